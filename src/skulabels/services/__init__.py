from .base_backend import DeterministicBackend, ExtractionBackend, RemoteExtractionBackend
from .errors import (
    BackendTimeoutError,
    BackendUnavailableError,
    ConfigurationError,
    ExtractionError,
    ExtractionErrorKind,
    FatalBackendError,
    MalformedResponseError,
    NoRecordsFoundError,
    RateLimitedError,
)
from .field_matcher import match_label_records
from .remote_backends import GeminiBackend, OpenAIBackend, build_remote_backend
from .retry import RetryPolicy
from .text_utils import normalize_text

__all__ = [
    "BackendTimeoutError",
    "BackendUnavailableError",
    "ConfigurationError",
    "DeterministicBackend",
    "ExtractionBackend",
    "ExtractionError",
    "ExtractionErrorKind",
    "FatalBackendError",
    "GeminiBackend",
    "MalformedResponseError",
    "NoRecordsFoundError",
    "OpenAIBackend",
    "RateLimitedError",
    "RemoteExtractionBackend",
    "RetryPolicy",
    "build_remote_backend",
    "match_label_records",
    "normalize_text",
]
