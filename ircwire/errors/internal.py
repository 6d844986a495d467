"""Centralized internal error hierarchy.

These exceptions give the protocol engine semantic categories for the errors
it raises synchronously at a call site. Transport failures on the async read
and write paths are reported through the NETWORK_ERROR event instead.

Classes:
  InternalError        – Base for all internal errors.
  ProtocolFormatError  – Malformed wire input (bad timestamp tag, bad NOTICE).
  ArgumentError        – A message cannot be formatted as a correct line.
  ConflictError        – A correlation key is already pending.
  NotFoundError        – Lookup/dequeue of an unknown correlation key.
  UsageError           – Caller violated an invariant of the client.
  NetworkError         – Transport/IO failure wrapped for callers.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class ProtocolFormatError(InternalError):
    """Raised for input that violates wire-format assumptions.

    Examples are an empty line, an unparseable ``time``/``t`` tag, a non-numeric
    hop count in a WHO reply or a NOTICE with the wrong parameter count. Not
    retried.
    """


class ArgumentError(InternalError, ValueError):
    """Raised when a message cannot be serialized without corrupting the line."""


class ConflictError(InternalError):
    """Raised when a correlation key is already pending.

    The original pending operation is left untouched.
    """


class NotFoundError(InternalError, KeyError):
    """Raised on peek/dequeue of a correlation key that is not pending."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class UsageError(InternalError):
    """Raised when the caller violates a client invariant.

    Connecting while connected, leaving a channel that was never joined, or
    sending a message without destinations. Illegal characters in a message
    raise :class:`ArgumentError` instead.
    """


class NetworkError(InternalError):
    """Transport layer failure (socket, TLS, EOF)."""


__all__ = [
    "InternalError",
    "ProtocolFormatError",
    "ArgumentError",
    "ConflictError",
    "NotFoundError",
    "UsageError",
    "NetworkError",
]
