"""Channel mode replies: mode-list entries (bans, exceptions, invites, quiets) and 324."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from ...errors import NotFoundError, ProtocolFormatError
from ...logs.logger import logger
from ..models import IrcUser, Mask
from ..parser import IRCMessage
from ..requests import RequestKey, RequestKind

if TYPE_CHECKING:  # pragma: no cover
    from ..client import AsyncIRCClient

# numeric -> list mode character
LIST_PART_MODES = {"367": "b", "348": "e", "346": "I", "728": "q"}
LIST_END_MODES = {"368": "b", "349": "e", "347": "I", "729": "q"}


def _created_at(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=UTC)
    except ValueError as e:
        raise ProtocolFormatError(f"mask timestamp is not numeric: {value!r}") from e


async def handle_list_part(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 367 <me> <channel> <mask> [<setter> <time>]
    # 728 <me> <channel> q <mask> [<setter> <time>]
    mode = LIST_PART_MODES[message.command]
    entry = message.params[2:]
    if message.command == "728" and entry[:1] == [mode]:
        entry = entry[1:]
    if len(message.params) < 2 or not entry:
        raise ProtocolFormatError(
            f"{message.command} reply is incorrectly formatted.",
            data={"params": list(message.params)},
        )
    channel = message.params[1]
    operation = client.requests.peek_operation(RequestKey(RequestKind.MODE_LIST, channel, mode))
    creator = IrcUser.from_source(entry[1]) if len(entry) > 1 else IrcUser()
    operation.state.append(
        Mask(value=entry[0], creator=creator, created_at=_created_at(entry[2] if len(entry) > 2 else None))
    )


async def handle_list_end(client: AsyncIRCClient, message: IRCMessage) -> None:
    if len(message.params) < 2:
        raise ProtocolFormatError(f"{message.command} reply is incorrectly formatted.")
    mode = LIST_END_MODES[message.command]
    operation = client.requests.dequeue_operation(
        RequestKey(RequestKind.MODE_LIST, message.params[1], mode)
    )
    operation.complete()


async def handle_channel_modes(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 324 <me> <channel> <modes> [<args>...]
    if len(message.params) < 3:
        raise ProtocolFormatError("324 reply is incorrectly formatted.")
    channel = message.params[1]
    try:
        operation = client.requests.dequeue_operation(RequestKey(RequestKind.MODE, channel))
    except NotFoundError:
        logger.log_event("request", "unsolicited_modes", level=logging.DEBUG, target=channel)
        return
    operation.state.modes = message.params[2]
    operation.state.arguments = list(message.params[3:])
    operation.complete()
