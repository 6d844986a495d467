"""CAP, AUTHENTICATE and SASL numeric handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..negotiation import SASL_LOGGED_IN
from ..parser import IRCMessage

if TYPE_CHECKING:  # pragma: no cover
    from ..client import AsyncIRCClient


async def handle_cap(client: AsyncIRCClient, message: IRCMessage) -> None:
    client.negotiator.handle_cap(message.params)


async def handle_authenticate(client: AsyncIRCClient, message: IRCMessage) -> None:
    client.negotiator.handle_authenticate(message.params)


async def handle_sasl_numeric(client: AsyncIRCClient, message: IRCMessage) -> None:
    # 900 <me> <nick!user@host> <account> :You are now logged in as <account>
    if message.command == SASL_LOGGED_IN and len(message.params) > 2:
        client.user.account = message.params[2]
    client.negotiator.handle_sasl_numeric(message.command, message.params)
