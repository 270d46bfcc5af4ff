"""
Unit tests for round-robin key rotation.
"""

import threading
from collections import Counter

import pytest

from llm_relay.core.errors import InvalidConfigurationError, RotationNotStartedError
from llm_relay.core.key_rotator import KeyRotator


class TestKeyRotator:
    """Test KeyRotator."""

    @pytest.mark.parametrize("keys", [["a"], ["a", "b"], ["a", "b", "c", "d", "e"]])
    def test_full_cycle_visits_every_key_once(self, keys):
        """N calls visit every key once; call N+1 repeats the first."""
        rotator = KeyRotator(keys)
        seen = [rotator.next_key() for _ in keys]
        assert seen == keys
        assert rotator.next_key() == keys[0]

    def test_empty_pool_rejected(self):
        """An empty pool is a configuration error."""
        with pytest.raises(InvalidConfigurationError):
            KeyRotator([])

    def test_current_before_rotation_fails(self):
        """current_key() has no value until the first next_key()."""
        rotator = KeyRotator(["a", "b"])
        assert rotator.current_index == -1
        assert not rotator.started
        with pytest.raises(RotationNotStartedError):
            rotator.current_key()

    def test_current_does_not_advance(self):
        """current_key() returns the last rotated key without moving."""
        rotator = KeyRotator(["a", "b", "c"])
        rotator.next_key()
        rotator.next_key()
        assert rotator.current_key() == "b"
        assert rotator.current_key() == "b"
        assert rotator.current_index == 1
        assert rotator.next_key() == "c"

    def test_count(self):
        """count() and len() report pool size."""
        rotator = KeyRotator(("a", "b", "c"))
        assert rotator.count() == 3
        assert len(rotator) == 3

    def test_pool_is_immutable_copy(self):
        """Mutating the source list does not change the pool."""
        keys = ["a", "b"]
        rotator = KeyRotator(keys)
        keys.append("c")
        assert rotator.keys == ("a", "b")

    def test_next_slot_returns_index(self):
        """next_slot() pairs the index with the key."""
        rotator = KeyRotator(["a", "b"])
        assert rotator.next_slot() == (0, "a")
        assert rotator.next_slot() == (1, "b")
        assert rotator.next_slot() == (0, "a")

    def test_concurrent_rotation_hands_out_distinct_positions(self):
        """Under contention every position is handed out equally often."""
        keys = ["a", "b", "c", "d"]
        rotator = KeyRotator(keys)
        per_thread = 250
        results = []
        lock = threading.Lock()

        def worker():
            local = [rotator.next_slot()[0] for _ in range(per_thread)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        counts = Counter(results)
        assert len(results) == 8 * per_thread
        assert set(counts.values()) == {8 * per_thread // len(keys)}
