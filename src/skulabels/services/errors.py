"""
Failure classes raised by extraction backends.

Every backend failure is an ``ExtractionError`` carrying a kind, so the retry
policy can decide between backing off, giving up softly and escalating.
"""

import enum
from typing import Optional


class ExtractionErrorKind(str, enum.Enum):
    MALFORMED = "malformed"
    UNAVAILABLE = "unavailable"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    FATAL = "fatal"


class ExtractionError(Exception):
    kind: ExtractionErrorKind = ExtractionErrorKind.FATAL

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        return self.kind in (
            ExtractionErrorKind.UNAVAILABLE,
            ExtractionErrorKind.RATE_LIMITED,
            ExtractionErrorKind.TIMEOUT,
        )


class MalformedResponseError(ExtractionError):
    kind = ExtractionErrorKind.MALFORMED


class BackendUnavailableError(ExtractionError):
    kind = ExtractionErrorKind.UNAVAILABLE


class RateLimitedError(ExtractionError):
    kind = ExtractionErrorKind.RATE_LIMITED


class BackendTimeoutError(ExtractionError):
    kind = ExtractionErrorKind.TIMEOUT


class FatalBackendError(ExtractionError):
    kind = ExtractionErrorKind.FATAL


class ConfigurationError(Exception):
    pass


class NoRecordsFoundError(Exception):
    """Neither the pattern matcher nor the remote backends identified anything."""

    def __init__(self, message: str = "Could not identify any SKU or barcode in the document."):
        super().__init__(message)
        self.message = message


def classify_http_status(status_code: int, message: str = "") -> ExtractionError:
    detail = message or f"HTTP {status_code}"
    if status_code == 429:
        return RateLimitedError(detail, status_code=status_code)
    lowered = detail.lower()
    if status_code >= 500 or "overloaded" in lowered or "unavailable" in lowered:
        return BackendUnavailableError(detail, status_code=status_code)
    return FatalBackendError(detail, status_code=status_code)
