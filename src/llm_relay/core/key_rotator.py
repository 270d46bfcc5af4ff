"""
Round-robin API key rotation.
"""

import threading
from typing import Sequence, Tuple

from .errors import InvalidConfigurationError, RotationNotStartedError


class KeyRotator:
    """
    Round-robin selector over one provider's API keys.

    The cursor starts unset and only moves on next_key()/next_slot().
    Advancement is serialized so concurrent callers each get a distinct
    position. The rotator has no notion of a good or exhausted key.
    """

    def __init__(self, keys: Sequence[str], gateway: str = None):
        if not keys:
            raise InvalidConfigurationError(
                "KeyRotator requires at least one API key",
                gateway=gateway,
            )
        self._keys: Tuple[str, ...] = tuple(keys)
        self._index = -1
        self._lock = threading.Lock()
        self._gateway = gateway

    @property
    def keys(self) -> Tuple[str, ...]:
        return self._keys

    @property
    def current_index(self) -> int:
        """Cursor position, -1 before the first rotation."""
        return self._index

    @property
    def started(self) -> bool:
        return self._index >= 0

    def next_slot(self) -> Tuple[int, str]:
        """Advance the cursor and return (index, key) at the new position."""
        with self._lock:
            self._index = (self._index + 1) % len(self._keys)
            return self._index, self._keys[self._index]

    def next_key(self) -> str:
        """Advance the cursor and return the key at the new position."""
        return self.next_slot()[1]

    def current_key(self) -> str:
        """
        Return the key at the cursor without advancing.

        Raises:
            RotationNotStartedError: If next_key() was never called
        """
        index = self._index
        if index < 0:
            raise RotationNotStartedError(
                "No current key: rotation has not started",
                gateway=self._gateway,
            )
        return self._keys[index]

    def count(self) -> int:
        """Number of keys in the pool."""
        return len(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(keys={len(self._keys)}, index={self._index})"
