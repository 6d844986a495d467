"""ircwire: an asyncio IRC client protocol engine."""

from .config import ClientSettings, load_settings
from .errors import (
    ArgumentError,
    ConflictError,
    InternalError,
    NetworkError,
    NotFoundError,
    ProtocolFormatError,
    UsageError,
)
from .irc import AsyncIRCClient, IRCMessage, IrcEvent, parse_irc_message

__version__ = "0.1.0"

__all__ = [
    "ArgumentError",
    "AsyncIRCClient",
    "ClientSettings",
    "ConflictError",
    "IRCMessage",
    "InternalError",
    "IrcEvent",
    "NetworkError",
    "NotFoundError",
    "ProtocolFormatError",
    "UsageError",
    "load_settings",
    "parse_irc_message",
]
