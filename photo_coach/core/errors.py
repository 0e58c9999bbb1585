"""
Request failure taxonomy and classification.

Decides whether a failed remote request may succeed on retry.

Classification order:
1. Already-classified request errors keep their label
2. Structured status code (``code``, ``status_code`` or integer ``status``).
   A code outside both known sets is FATAL; the message is not consulted.
3. Lower-cased message markers, only when the error carries no code.
   Numeric markers match whole numbers only.
4. Default: FATAL. Unknown failures fail fast rather than being retried.
"""

import re
from enum import Enum
from typing import Optional


class ErrorClass(Enum):
    """Whether retrying a failed request can change the outcome."""
    FATAL = "fatal"          # Authorization, billing or missing resource
    TRANSIENT = "transient"  # Server-side or availability fault


FATAL_STATUS_CODES = frozenset({401, 402, 403, 404})
TRANSIENT_STATUS_CODES = frozenset({500, 502, 503, 504})

FATAL_MESSAGE_MARKERS = (
    "permission denied",
    "not found",
    "billing",
    "api key",
    "403",
    "404",
)
TRANSIENT_MESSAGE_MARKERS = (
    "internal error",
    "internal server error",
    "service unavailable",
    "unavailable",
    "500",
    "503",
)


class RequestError(Exception):
    """Base class for a remote request that ultimately failed."""
    classification: ErrorClass

    def __init__(self, message: str, attempts: int = 1, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.attempts = attempts
        self.cause = cause


class FatalRequestError(RequestError):
    """Retrying cannot succeed: credentials, billing or resource access."""
    classification = ErrorClass.FATAL


class TransientRequestError(RequestError):
    """Server-side fault that persisted through the retry budget."""
    classification = ErrorClass.TRANSIENT


def status_code_of(error: BaseException) -> Optional[int]:
    """Extract a numeric status code from an error, if it carries one."""
    for attr in ("code", "status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
    return None


def _message_of(error: BaseException) -> str:
    parts = [str(error)]
    message = getattr(error, "message", None)
    if isinstance(message, str):
        parts.append(message)
    return " ".join(parts).lower()


def _matches_any(message: str, markers) -> bool:
    for marker in markers:
        if marker.isdigit():
            if re.search(rf"(?<!\d){marker}(?!\d)", message):
                return True
        elif marker in message:
            return True
    return False


def classify_error(error: BaseException) -> ErrorClass:
    """Label a request failure as FATAL or TRANSIENT.

    Pure function, no side effects.

    Args:
        error: Exception raised by a single request attempt

    Returns:
        ErrorClass for the failure
    """
    if isinstance(error, RequestError):
        return error.classification

    code = status_code_of(error)
    if code in FATAL_STATUS_CODES:
        return ErrorClass.FATAL
    if code in TRANSIENT_STATUS_CODES:
        return ErrorClass.TRANSIENT
    if code is not None:
        return ErrorClass.FATAL

    message = _message_of(error)
    if _matches_any(message, FATAL_MESSAGE_MARKERS):
        return ErrorClass.FATAL
    if _matches_any(message, TRANSIENT_MESSAGE_MARKERS):
        return ErrorClass.TRANSIENT

    # Unrecognised failures are never retried
    return ErrorClass.FATAL
