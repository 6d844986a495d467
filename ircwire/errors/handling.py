from __future__ import annotations

import ssl
from typing import Any

from ..logging_config import log_structured_error
from .internal import (
    ConflictError,
    InternalError,
    NetworkError,
    NotFoundError,
    ProtocolFormatError,
    UsageError,
)


def classify_error(error: BaseException) -> str:
    """Map an exception to the category used by structured error logging."""
    if isinstance(error, NetworkError | OSError | ssl.SSLError | EOFError):
        return "network"
    if isinstance(error, ProtocolFormatError):
        return "protocol"
    if isinstance(error, UsageError):
        return "usage"
    if isinstance(error, ConflictError | NotFoundError):
        return "request"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(message: str, error: Exception, context: dict[str, Any] | None = None) -> None:
    """Logs an error message with the associated exception details.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
    """
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {error}",
        exception=error,
        context=context,
    )
