"""Events surfaced to application code and their payloads."""

from __future__ import annotations

import inspect
import logging
import secrets
import string
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from ..constants import IRC_RANDOM_NICK_LENGTH
from ..logs.logger import logger
from .models import ExtendedWho, IrcUser, WhoIs
from .parser import IRCMessage, PrivMsg


class IrcEvent(Enum):
    RAW_MESSAGE_SENT = auto()
    RAW_MESSAGE_RECEIVED = auto()
    NOTICE_RECEIVED = auto()
    PRIVATE_MESSAGE_RECEIVED = auto()
    CHANNEL_MESSAGE_RECEIVED = auto()
    USER_MESSAGE_RECEIVED = auto()
    MOTD_PART_RECEIVED = auto()
    MOTD_RECEIVED = auto()
    MODE_CHANGED = auto()
    NICK_IN_USE = auto()
    WHOIS_RECEIVED = auto()
    WHOX_RECEIVED = auto()
    ERROR_REPLY = auto()
    NETWORK_ERROR = auto()
    ERROR = auto()
    CONNECTION_COMPLETE = auto()
    SERVER_INFO_RECEIVED = auto()
    USER_JOINED_CHANNEL = auto()
    USER_PARTED_CHANNEL = auto()
    USER_KICKED = auto()
    NICK_CHANGED = auto()
    USER_QUIT = auto()
    CHANNEL_TOPIC_RECEIVED = auto()
    CHANNEL_LIST_RECEIVED = auto()


@dataclass
class RawMessage:
    line: str
    outgoing: bool


@dataclass
class Notice:
    message: IRCMessage

    @property
    def source(self) -> str | None:
        return self.message.source

    @property
    def text(self) -> str:
        return self.message.params[-1]


@dataclass
class PrivateMessage:
    message: IRCMessage
    privmsg: PrivMsg


@dataclass
class Motd:
    text: str


@dataclass
class ModeChange:
    source: str | None
    target: str
    change: str
    arguments: list[str] = field(default_factory=list)


def generate_random_nick(length: int = IRC_RANDOM_NICK_LENGTH) -> str:
    return "".join(secrets.choice(string.ascii_letters) for _ in range(length))


@dataclass
class NickInUse:
    """Set ``do_not_handle`` to stop the client from switching to ``new_nick``."""

    invalid_nick: str
    new_nick: str = field(default_factory=generate_random_nick)
    do_not_handle: bool = False


@dataclass
class WhoIsReceived:
    whois: WhoIs


@dataclass
class WhoxReceived:
    responses: list[ExtendedWho]


@dataclass
class ErrorReply:
    message: IRCMessage


@dataclass
class NetworkErrorEvent:
    error: BaseException | None
    reason: str


@dataclass
class ErrorEvent:
    error: BaseException
    line: str | None = None


@dataclass
class ServerInfoReceived:
    tokens: list[str]


@dataclass
class ChannelUserEvent:
    """A user joined or left ``channel``; ``reason`` is the PART message, if any."""

    channel: str
    user: IrcUser
    reason: str | None = None


@dataclass
class UserKicked:
    channel: str
    kicked: str
    kicker: IrcUser
    reason: str | None = None


@dataclass
class NickChanged:
    """``user`` still carries the old nick."""

    user: IrcUser
    new_nick: str

    @property
    def old_nick(self) -> str | None:
        return self.user.nick


@dataclass
class UserQuit:
    user: IrcUser
    reason: str | None = None


@dataclass
class ChannelTopic:
    """Topic from a 332 reply (``setter`` is None) or a live TOPIC change."""

    channel: str
    topic: str
    setter: IrcUser | None = None


@dataclass
class ChannelNames:
    """NAMES listing for ``channel``: nick -> membership prefix symbols."""

    channel: str
    members: dict[str, str] = field(default_factory=dict)


EventHandler = Callable[[Any], Any]


class EventHub:
    """Fan-out of events to registered handlers.

    Handlers may be plain callables or coroutine functions. A failing handler
    is logged and does not affect the other handlers or the protocol engine.
    """

    def __init__(self) -> None:
        self._handlers: dict[IrcEvent, list[EventHandler]] = defaultdict(list)

    def on(self, event: IrcEvent, handler: EventHandler) -> EventHandler:
        self._handlers[event].append(handler)
        return handler

    def off(self, event: IrcEvent, handler: EventHandler) -> None:
        try:
            self._handlers[event].remove(handler)
        except ValueError:
            pass

    def has_handlers(self, event: IrcEvent) -> bool:
        return bool(self._handlers.get(event))

    async def emit(self, event: IrcEvent, payload: Any = None) -> None:
        for handler in list(self._handlers.get(event, ())):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:  # noqa: BLE001
                logger.log_event(
                    "irc",
                    "event_handler_error",
                    level=logging.ERROR,
                    event=event.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
