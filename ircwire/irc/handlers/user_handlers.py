"""WHOIS, WHO and WHOX reply handlers.

Each reply is correlated with the request that caused it through the
client's :class:`~ircwire.irc.requests.RequestManager`. Partial replies peek
the pending operation and accumulate into its state; the end-of-list numeric
dequeues it and fires its callback.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...errors import NotFoundError, ProtocolFormatError
from ...logs.logger import logger
from ..events import IrcEvent, WhoIsReceived, WhoxReceived
from ..models import WhoIs
from ..parser import IRCMessage
from ..requests import PendingOperation, RequestKey, RequestKind
from ..whox import WhoxField, decode_who, decode_whox

if TYPE_CHECKING:  # pragma: no cover
    from ..client import AsyncIRCClient


def _whois_state(client: AsyncIRCClient, message: IRCMessage, min_params: int = 3) -> WhoIs:
    if len(message.params) < min_params:
        raise ProtocolFormatError(
            f"{message.command} reply is incorrectly formatted.",
            data={"params": list(message.params)},
        )
    operation = client.requests.peek_operation(RequestKey(RequestKind.WHOIS, message.params[1]))
    return operation.state


async def handle_whois_user(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 311 <me> <nick> <user> <host> * :<real name>
    whois = _whois_state(client, message, min_params=6)
    whois.user.nick = message.params[1]
    whois.user.user = message.params[2]
    whois.user.hostname = message.params[3]
    whois.user.real_name = message.params[5]


async def handle_whois_logged_in_as(client: AsyncIRCClient, message: IRCMessage) -> None:
    whois = _whois_state(client, message)
    whois.logged_in_as = message.params[2]
    whois.user.account = message.params[2]


async def handle_whois_server(client: AsyncIRCClient, message: IRCMessage) -> None:
    whois = _whois_state(client, message, min_params=4)
    whois.server = message.params[2]
    whois.server_info = message.params[3]


async def handle_whois_operator(client: AsyncIRCClient, message: IRCMessage) -> None:
    whois = _whois_state(client, message, min_params=2)
    whois.irc_op = True


async def handle_whois_idle(client: AsyncIRCClient, message: IRCMessage) -> None:
    whois = _whois_state(client, message)
    try:
        whois.seconds_idle = int(message.params[2])
    except ValueError as e:
        raise ProtocolFormatError(f"idle time is not numeric: {message.params[2]!r}") from e


async def handle_whois_channels(client: AsyncIRCClient, message: IRCMessage) -> None:
    whois = _whois_state(client, message)
    prefixes = client.server_info.membership_prefixes
    chantypes = client.server_info.channel_types
    for channel in message.params[2].split():
        whois.channels.append(strip_membership_prefixes(channel, prefixes, chantypes))


def strip_membership_prefixes(name: str, prefixes: str, chantypes: str) -> str:
    """Remove ``@``/``+``-style prefixes (several with multi-prefix) from a channel name.

    A symbol that is both a prefix and a channel type (``&``) is kept when
    what follows it is not itself a channel name.
    """
    while len(name) > 1 and name[0] in prefixes:
        if name[0] in chantypes and name[1] not in chantypes:
            break
        name = name[1:]
    return name


async def handle_whois_end(client: AsyncIRCClient, message: IRCMessage) -> None:
    if len(message.params) < 2:
        raise ProtocolFormatError("318 reply is incorrectly formatted.")
    operation = client.requests.dequeue_operation(
        RequestKey(RequestKind.WHOIS, message.params[1])
    )
    operation.complete()
    await client.events.emit(IrcEvent.WHOIS_RECEIVED, WhoIsReceived(operation.state))


async def handle_who(client: AsyncIRCClient, message: IRCMessage) -> None:
    record = decode_who(message.params)
    operations = client.requests.find(RequestKind.WHO, record.channel)
    if not operations:
        # Replies about a nick carry a channel the nick is on (or "*"), not the target.
        operations = client.requests.find(RequestKind.WHO)
    for operation in operations:
        operation.state.append(record)


async def handle_whox(client: AsyncIRCClient, message: IRCMessage) -> None:
    if len(message.params) < 2:
        raise ProtocolFormatError("354 reply is incorrectly formatted.")
    try:
        query_type = int(message.params[1])
    except ValueError as e:
        raise ProtocolFormatError(f"WHOX query type is not numeric: {message.params[1]!r}") from e
    operations = client.requests.find(
        RequestKind.WHOX, predicate=lambda key: key.discriminator == query_type
    )
    if not operations:
        logger.log_event(
            "request", "unmatched_whox", level=logging.DEBUG, query_type=query_type
        )
        return
    operation = operations[0]
    record = decode_whox(WhoxField(operation.key.fields or 0), message.params)
    operation.state.append(record)


def _find_who_operation(client: AsyncIRCClient, target: str) -> PendingOperation:
    kinds = (RequestKind.WHOX, RequestKind.WHO)
    if not client.server_info.extended_who:
        kinds = (RequestKind.WHO, RequestKind.WHOX)
    for kind in kinds:
        operations = client.requests.find(kind, target)
        if operations:
            return operations[0]
    raise NotFoundError(f"No pending WHO for {target}", data={"target": target})


async def handle_who_end(client: AsyncIRCClient, message: IRCMessage) -> None:
    if len(message.params) < 2:
        raise ProtocolFormatError("315 reply is incorrectly formatted.")
    pending = _find_who_operation(client, message.params[1])
    operation = client.requests.dequeue_operation(pending.key)
    operation.complete()
    await client.events.emit(IrcEvent.WHOX_RECEIVED, WhoxReceived(list(operation.state)))
