"""
Transient vs. fatal classification of upstream failures.
"""

from enum import Enum
from typing import Any, Iterable

from .errors import UpstreamError


class ErrorClass(str, Enum):
    """Verdict consumed by the retry loop."""
    TRANSIENT = "transient"
    FATAL = "fatal"


TRANSIENT_STATUS_CODES = frozenset({429, 502, 503, 504})

TRANSIENT_MARKERS = (
    "quota",
    "rate limit",
    "too many requests",
    "upstream error",
    "bad gateway",
    "service unavailable",
    "gateway timeout",
)


def _payload_text(payload: Any) -> str:
    """Flatten a provider error payload into searchable lowercase text."""
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload.lower()
    if isinstance(payload, dict):
        parts = []
        for key in ("error", "message", "code", "type", "detail"):
            if key in payload:
                parts.append(_payload_text(payload[key]))
        return " ".join(p for p in parts if p)
    if isinstance(payload, (list, tuple)):
        return " ".join(_payload_text(p) for p in payload)
    return str(payload).lower()


def has_transient_marker(error: Exception, markers: Iterable[str] = TRANSIENT_MARKERS) -> bool:
    """Check the error message and nested provider payload for quota/5xx wording."""
    texts = [str(error).lower()]
    if isinstance(error, UpstreamError):
        texts.append(_payload_text(error.provider_error))
    return any(marker in text for text in texts for marker in markers)


def classify_upstream_error(error: Exception) -> ErrorClass:
    """
    Default heuristic shared by adapters.

    HTTP 429/502/503/504, or any transient marker in the message or the
    provider payload, is transient. Everything else is fatal.
    """
    status_code = getattr(error, "status_code", None)
    if status_code in TRANSIENT_STATUS_CODES:
        return ErrorClass.TRANSIENT

    if has_transient_marker(error):
        return ErrorClass.TRANSIENT

    return ErrorClass.FATAL
