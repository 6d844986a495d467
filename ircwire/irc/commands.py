"""Command surface of the client: format a line, correlate when a reply is expected."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..constants import IRC_WHOX_QUERY_TYPE_MAX
from ..errors import ArgumentError, UsageError
from ..logs.logger import logger
from .models import ChannelModes, Mask, WhoIs
from .requests import OperationCallback, PendingOperation, RequestKey, RequestKind
from .whox import WhoxField, WhoxFlag, build_whox_query

if TYPE_CHECKING:  # pragma: no cover
    from .client import AsyncIRCClient

ILLEGAL_MESSAGE_CHARACTERS = "\r\n\0"


def check_message(message: str, destinations: Sequence[str]) -> None:
    """Reject messages that would break the line framing or have nowhere to go.

    Raises:
        UsageError: If no destination is given.
        ArgumentError: If the message contains CR, LF or NUL.
    """
    if not destinations:
        raise UsageError("Message must have at least one target.")
    if any(c in message for c in ILLEGAL_MESSAGE_CHARACTERS):
        raise ArgumentError("Illegal characters are present in message.")


def _check_token(value: str, what: str) -> None:
    if not value or " " in value or value.startswith(":") or any(
        c in value for c in ILLEGAL_MESSAGE_CHARACTERS
    ):
        raise ArgumentError(f"invalid {what}: {value!r}")


class IRCCommands:
    """Mixed into :class:`~ircwire.irc.client.AsyncIRCClient`."""

    def nick(self: AsyncIRCClient, new_nick: str) -> None:
        _check_token(new_nick, "nick")
        self.send_raw(f"NICK {new_nick}")
        self.user.nick = new_nick

    def send_message(self: AsyncIRCClient, message: str, *destinations: str) -> None:
        check_message(message, destinations)
        to = ",".join(destinations)
        self.send_raw(f"PRIVMSG {to} :{self.settings.privmsg_prefix}{message}")

    def send_action(self: AsyncIRCClient, message: str, *destinations: str) -> None:
        check_message(message, destinations)
        to = ",".join(destinations)
        self.send_raw(f"PRIVMSG {to} :\x01ACTION {self.settings.privmsg_prefix}{message}\x01")

    def send_notice(self: AsyncIRCClient, message: str, *destinations: str) -> None:
        check_message(message, destinations)
        to = ",".join(destinations)
        self.send_raw(f"NOTICE {to} :{self.settings.privmsg_prefix}{message}")

    def in_channel(self: AsyncIRCClient, channel: str) -> bool:
        return channel.casefold() in self.channels

    def join_channel(self: AsyncIRCClient, channel: str, key: str | None = None) -> None:
        if self.in_channel(channel):
            raise UsageError("Client is already present in channel.", data={"channel": channel})
        _check_token(channel, "channel")
        self.send_raw(f"JOIN {channel} {key}" if key else f"JOIN {channel}")

    def part_channel(self: AsyncIRCClient, channel: str, reason: str | None = None) -> None:
        if not self.in_channel(channel):
            raise UsageError("Client is not present in channel.", data={"channel": channel})
        self.send_raw(f"PART {channel} :{reason}" if reason else f"PART {channel}")

    def set_topic(self: AsyncIRCClient, channel: str, topic: str) -> None:
        if not self.in_channel(channel):
            raise UsageError("Client is not present in channel.", data={"channel": channel})
        self.send_raw(f"TOPIC {channel} :{topic}")

    def get_topic(self: AsyncIRCClient, channel: str) -> None:
        self.send_raw(f"TOPIC {channel}")

    def kick_user(self: AsyncIRCClient, channel: str, user: str, reason: str | None = None) -> None:
        self.send_raw(f"KICK {channel} {user} :{reason or user}")

    def invite_user(self: AsyncIRCClient, channel: str, user: str) -> None:
        self.send_raw(f"INVITE {user} {channel}")

    def change_mode(self: AsyncIRCClient, target: str, change: str) -> None:
        self.send_raw(f"MODE {target} {change}")

    # Correlated requests: the callback receives the PendingOperation once,
    # either completed (state filled in) or cancelled on disconnect.

    def whois(
        self: AsyncIRCClient, nick: str, callback: OperationCallback | None = None
    ) -> PendingOperation:
        """Ask for WHOIS on ``nick``; the state is a :class:`WhoIs`.

        Raises:
            ConflictError: If a WHOIS for the same nick is already pending.
        """
        operation = self.requests.queue_operation(
            RequestKey(RequestKind.WHOIS, nick), WhoIs(), callback
        )
        self.send_raw(f"WHOIS {nick}")
        return operation

    def who(
        self: AsyncIRCClient,
        target: str,
        flags: WhoxFlag = WhoxFlag.NONE,
        fields: WhoxField = WhoxField.NONE,
        callback: OperationCallback | None = None,
    ) -> PendingOperation:
        """WHO ``target``; the state is a list of :class:`ExtendedWho` rows.

        When the server advertised WHOX the query asks for ``fields`` (plus
        the query type, always) under a random query-type discriminator.
        """
        if not self.server_info.extended_who:
            operation = self.requests.queue_operation(
                RequestKey(RequestKind.WHO, target), [], callback
            )
            self.send_raw(f"WHO {target}")
            return operation
        query_type = secrets.randbelow(IRC_WHOX_QUERY_TYPE_MAX)
        fields |= WhoxField.QUERY_TYPE
        key = RequestKey(RequestKind.WHOX, target, query_type, int(fields))
        operation = self.requests.queue_operation(key, [], callback)
        logger.log_event(
            "request",
            "whox_query",
            level=logging.DEBUG,
            target=target,
            query_type=query_type,
            fields=fields.as_string(),
        )
        self.send_raw(build_whox_query(target, flags, fields, query_type))
        return operation

    def get_mode(
        self: AsyncIRCClient, channel: str, callback: OperationCallback | None = None
    ) -> PendingOperation:
        """Request a channel's modes; the state is a :class:`ChannelModes`."""
        operation = self.requests.queue_operation(
            RequestKey(RequestKind.MODE, channel), ChannelModes(channel), callback
        )
        self.send_raw(f"MODE {channel}")
        return operation

    def get_mode_list(
        self: AsyncIRCClient, channel: str, mode: str, callback: OperationCallback | None = None
    ) -> PendingOperation:
        """Request a mask list (``b``, ``e``, ``I`` or ``q``); the state is a list of :class:`Mask`."""
        if len(mode) != 1:
            raise ArgumentError(f"list mode must be a single character: {mode!r}")
        masks: list[Mask] = []
        operation = self.requests.queue_operation(
            RequestKey(RequestKind.MODE_LIST, channel, mode), masks, callback
        )
        self.send_raw(f"MODE {channel} {mode}")
        return operation
