"""Async IRC client: one connection, the negotiation state and request correlation."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ..config.model import ClientSettings
from ..errors import UsageError, log_error
from ..logs.logger import logger
from .capabilities import CapabilityPool
from .commands import IRCCommands
from .connection import IRCConnection
from .dispatcher import IRCDispatcher
from .events import ChannelNames, ErrorEvent, EventHandler, EventHub, IrcEvent, RawMessage
from .handlers import MessageHandler
from .models import IrcUser, ServerInfo
from .negotiation import CapNegotiator
from .parser import IRCMessage, parse_irc_message
from .requests import RequestManager


class AsyncIRCClient(IRCCommands):  # pylint: disable=too-many-instance-attributes
    def __init__(self, settings: ClientSettings):
        self.settings = settings
        self.user = IrcUser(
            nick=settings.nick,
            user=settings.user,
            real_name=settings.real_name,
            password=settings.password,
        )
        self.capabilities = CapabilityPool(settings.capabilities)
        self.server_info = ServerInfo()
        self.channels: set[str] = set()
        self.motd_buffer: list[str] = []
        self.names_buffer: dict[str, ChannelNames] = {}
        self.events = EventHub()
        self.requests = RequestManager()
        self.connection = IRCConnection(
            settings.host,
            settings.port,
            self.events,
            use_tls=settings.use_tls,
            ignore_invalid_tls=settings.ignore_invalid_tls,
            encoding=settings.encoding,
            ping_interval=settings.ping_interval,
            nick=settings.nick,
        )
        self.connection.line_handler = self.handle_line
        self.connection.on_disconnected = self._on_disconnected
        self.negotiator = CapNegotiator(
            self.capabilities,
            self.send_raw,
            sasl_credentials=settings.sasl_credentials,
            nick=settings.nick,
        )
        self.dispatcher = IRCDispatcher(self)

    # State

    @property
    def connected(self) -> bool:
        return self.connection.connected

    @property
    def negotiating_capabilities(self) -> bool:
        return self.negotiator.negotiating_capabilities

    @property
    def authenticating_sasl(self) -> bool:
        return self.negotiator.authenticating_sasl

    @property
    def server_name_from_ping(self) -> str | None:
        return self.connection.server_name_from_ping

    def is_me(self, nick: str | None) -> bool:
        return bool(nick and self.user.nick and nick.casefold() == self.user.nick.casefold())

    # Lifecycle

    async def connect(self) -> bool:
        """Open the connection and start registration.

        Returns False (after a NETWORK_ERROR event) if the transport could not
        be opened.

        Raises:
            UsageError: If already connected.
        """
        if not await self.connection.open():
            return False
        self.register()
        return True

    def register(self) -> None:
        """Send the registration burst: ``CAP LS 302``, ``PASS``, ``NICK``, ``USER``."""
        self.channels.clear()
        self.motd_buffer.clear()
        self.names_buffer.clear()
        self.server_info = ServerInfo()
        self.user.nick = self.settings.nick
        self.negotiator.start()
        if self.settings.password:
            self.send_raw(f"PASS {self.settings.password}")
        self.send_raw(f"NICK {self.user.nick}")
        self.send_raw(f"USER {self.user.user} hostname servername :{self.user.real_name}")

    async def quit(self, reason: str | None = None, timeout: float = 5.0) -> None:
        """Send ``QUIT``, wait for the write queue to flush and close the transport."""
        if not self.connected:
            raise UsageError("Client is not connected.")
        self.send_raw(f"QUIT :{reason}" if reason else "QUIT")
        await self.connection.flush(timeout)
        await self.disconnect()

    async def disconnect(self) -> None:
        await self.connection.close()

    async def _on_disconnected(self) -> None:
        self.negotiator.reset()
        self.channels.clear()
        cancelled = self.requests.cancel_all()
        logger.log_event(
            "irc", "session_ended", level=logging.DEBUG, nick=self.user.nick, cancelled=cancelled
        )

    # Sending

    def send_raw(self, line: str) -> None:
        self.connection.send_raw(line)

    def send(self, message: IRCMessage) -> None:
        self.send_raw(message.format())

    # Receiving

    async def handle_line(self, line: str) -> None:
        """Parse and dispatch one inbound line.

        Any exception raised while handling is logged and surfaced as an
        ``ERROR`` event; the read loop keeps going.
        """
        logger.log_event("irc", "raw_in", level=logging.DEBUG, nick=self.user.nick, raw=line)
        await self.events.emit(IrcEvent.RAW_MESSAGE_RECEIVED, RawMessage(line, outgoing=False))
        try:
            message = parse_irc_message(line)
            await self.dispatcher.dispatch(message)
        except Exception as e:  # noqa: BLE001
            log_error("Failed to handle line", e, context={"line": line})
            await self.events.emit(IrcEvent.ERROR, ErrorEvent(e, line))

    # Extension points

    def on(self, event: IrcEvent, handler: EventHandler) -> EventHandler:
        return self.events.on(event, handler)

    def off(self, event: IrcEvent, handler: EventHandler) -> None:
        self.events.off(event, handler)

    def set_handler(self, command: str, handler: MessageHandler | None) -> None:
        self.dispatcher.set_handler(command, handler)

    def get_state(self) -> dict[str, Any]:
        return {
            "connection": self.connection.state.name,
            "negotiation": self.negotiator.phase.name,
            "nick": self.user.nick,
            "channels": sorted(self.channels),
            "capabilities": self.capabilities.enabled,
            "pending_requests": len(self.requests),
            "queued_writes": len(self.connection.write_queue),
        }

    async def wait_until_closed(self) -> None:
        while self.connected:
            await asyncio.sleep(0.5)
