from .handling import classify_error, log_error
from .internal import (
    ArgumentError,
    ConflictError,
    InternalError,
    NetworkError,
    NotFoundError,
    ProtocolFormatError,
    UsageError,
)

__all__ = [
    "ArgumentError",
    "ConflictError",
    "InternalError",
    "NetworkError",
    "NotFoundError",
    "ProtocolFormatError",
    "UsageError",
    "classify_error",
    "log_error",
]
