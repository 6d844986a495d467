"""IRC subsystem package.

Contains the message codec, capability/SASL negotiation, request correlation,
the connection pipeline, dispatch and the client built on top of them.
"""

from .capabilities import Capability, CapabilityPool  # noqa: F401
from .client import AsyncIRCClient  # noqa: F401
from .connection import IRCConnection, LineFramer  # noqa: F401
from .dispatcher import IRCDispatcher  # noqa: F401
from .events import EventHub, IrcEvent  # noqa: F401
from .heartbeat import IRCHeartbeat  # noqa: F401
from .models import (  # noqa: F401
    ChannelModes,
    ConnectionState,
    ExtendedWho,
    IrcUser,
    Mask,
    NegotiationPhase,
    ServerInfo,
    WhoIs,
)
from .negotiation import CapNegotiator, build_sasl_plain_chunks  # noqa: F401
from .parser import IRCMessage, PrivMsg, build_privmsg, format_irc_message, parse_irc_message  # noqa: F401
from .requests import (  # noqa: F401
    OperationOutcome,
    PendingOperation,
    RequestKey,
    RequestKind,
    RequestManager,
)
from .tags import escape_tag_value, unescape_tag_value  # noqa: F401
from .timestamp import Timestamp  # noqa: F401
from .whox import WhoxField, WhoxFlag, decode_who, decode_whox  # noqa: F401

__all__ = [
    "AsyncIRCClient",
    "Capability",
    "CapabilityPool",
    "CapNegotiator",
    "ChannelModes",
    "ConnectionState",
    "EventHub",
    "ExtendedWho",
    "IRCConnection",
    "IRCDispatcher",
    "IRCHeartbeat",
    "IRCMessage",
    "IrcEvent",
    "IrcUser",
    "LineFramer",
    "Mask",
    "NegotiationPhase",
    "OperationOutcome",
    "PendingOperation",
    "PrivMsg",
    "RequestKey",
    "RequestKind",
    "RequestManager",
    "ServerInfo",
    "Timestamp",
    "WhoIs",
    "WhoxField",
    "WhoxFlag",
    "build_privmsg",
    "build_sasl_plain_chunks",
    "decode_who",
    "decode_whox",
    "escape_tag_value",
    "format_irc_message",
    "parse_irc_message",
    "unescape_tag_value",
]
