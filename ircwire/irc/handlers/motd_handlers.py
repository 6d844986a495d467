"""MOTD accumulation and end-of-registration handling."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...errors import ProtocolFormatError
from ...logs.logger import logger
from ..events import IrcEvent, Motd
from ..parser import IRCMessage
from ..requests import OperationOutcome, PendingOperation

if TYPE_CHECKING:  # pragma: no cover
    from ..client import AsyncIRCClient


async def handle_motd_start(client: AsyncIRCClient, message: IRCMessage) -> None:
    client.motd_buffer.clear()


async def handle_motd(client: AsyncIRCClient, message: IRCMessage) -> None:
    if len(message.params) != 2:
        raise ProtocolFormatError("372 MOTD message is incorrectly formatted.")
    # Lines arrive as "- text"
    part = message.params[1][2:]
    client.motd_buffer.append(part)
    await client.events.emit(IrcEvent.MOTD_PART_RECEIVED, Motd(part))


async def handle_end_of_motd(client: AsyncIRCClient, message: IRCMessage) -> None:
    await _complete_registration(client)


async def handle_motd_not_found(client: AsyncIRCClient, message: IRCMessage) -> None:
    await _complete_registration(client)


async def _complete_registration(client: AsyncIRCClient) -> None:
    text = "".join(f"{line}\n" for line in client.motd_buffer)
    client.negotiator.finish()
    await client.events.emit(IrcEvent.MOTD_RECEIVED, Motd(text))
    logger.log_event("irc", "connection_complete", nick=client.user.nick, server=client.settings.host)
    await client.events.emit(IrcEvent.CONNECTION_COMPLETE, None)
    if client.settings.whois_on_connect and client.user.nick:
        client.whois(client.user.nick, _verify_identity(client))


def _verify_identity(client: AsyncIRCClient):
    def reconcile(operation: PendingOperation) -> None:
        if operation.outcome is not OperationOutcome.COMPLETED:
            return
        seen = operation.state.user
        client.user.nick = seen.nick or client.user.nick
        client.user.user = seen.user or client.user.user
        client.user.hostname = seen.hostname or client.user.hostname
        client.user.real_name = seen.real_name or client.user.real_name

    return reconcile
