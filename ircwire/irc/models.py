"""Shared IRC data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto


class ConnectionState(Enum):
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()


class NegotiationPhase(Enum):
    IDLE = auto()
    NEGOTIATING = auto()
    AUTHENTICATING_SASL = auto()
    READY = auto()


@dataclass
class IrcUser:
    """A user on the network, usually built from a ``nick!user@host`` source."""

    nick: str | None = None
    user: str | None = None
    hostname: str | None = None
    real_name: str | None = None
    password: str | None = field(default=None, repr=False)
    account: str | None = "*"
    mode: str = ""

    @classmethod
    def from_source(cls, source: str | None) -> IrcUser:
        if source is None:
            return cls()
        nick, hostname = source, None
        if "@" in nick:
            nick, hostname = nick.split("@", 1)
        user = None
        if "!" in nick:
            nick, user = nick.split("!", 1)
        return cls(nick=nick, user=user, hostname=hostname)

    @property
    def hostmask(self) -> str:
        return f"{self.nick}!{self.user}@{self.hostname}"

    @property
    def logged_in(self) -> bool:
        return self.account not in (None, "*", "0", "")


# Used when the server advertises no PREFIX or CHANTYPES
DEFAULT_MEMBERSHIP_PREFIXES = "~&@%+"
DEFAULT_CHANNEL_TYPES = "#&"


@dataclass
class ServerInfo:
    """What the server told us in RPL_ISUPPORT (005)."""

    extended_who: bool = False
    network: str | None = None
    features: dict[str, str | None] = field(default_factory=dict)

    def update(self, tokens: list[str]) -> None:
        for token in tokens:
            if token.startswith("-"):
                self.features.pop(token[1:], None)
                if token[1:] == "WHOX":
                    self.extended_who = False
                continue
            key, sep, value = token.partition("=")
            self.features[key] = value if sep else None
            if key == "WHOX":
                self.extended_who = True
            elif key == "NETWORK":
                self.network = value

    @property
    def membership_prefixes(self) -> str:
        """Nick prefix symbols from ``PREFIX=(modes)symbols``."""
        value = self.features.get("PREFIX")
        if value and ")" in value:
            return value.partition(")")[2]
        return DEFAULT_MEMBERSHIP_PREFIXES

    @property
    def channel_types(self) -> str:
        return self.features.get("CHANTYPES") or DEFAULT_CHANNEL_TYPES


@dataclass
class WhoIs:
    """Accumulated WHOIS reply."""

    user: IrcUser = field(default_factory=IrcUser)
    logged_in_as: str | None = None
    server: str | None = None
    server_info: str | None = None
    irc_op: bool = False
    seconds_idle: int = -1
    channels: list[str] = field(default_factory=list)


@dataclass
class ExtendedWho:
    """One WHO (352) or WHOX (354) row. Unrequested WHOX fields stay None."""

    query_type: int | None = None
    channel: str | None = None
    user: IrcUser = field(default_factory=lambda: IrcUser(account=None))
    ip: str | None = None
    server: str | None = None
    flags: str | None = None
    hops: int | None = None
    time_idle: int | None = None
    op_level: str | None = None


@dataclass
class Mask:
    """One entry of a channel mask list (bans, exceptions, invites, quiets)."""

    value: str
    creator: IrcUser
    created_at: datetime | None


@dataclass
class ChannelModes:
    """Reply to ``MODE <channel>`` (RPL_CHANNELMODEIS, 324)."""

    channel: str
    modes: str = ""
    arguments: list[str] = field(default_factory=list)
