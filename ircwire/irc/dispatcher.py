"""Routing of parsed messages to command handlers."""

from __future__ import annotations

import inspect
import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from ..logs.logger import logger
from .handlers import MessageHandler, default_handlers
from .handlers.message_handlers import handle_error_reply
from .parser import IRCMessage

if TYPE_CHECKING:  # pragma: no cover
    from .client import AsyncIRCClient


def is_error_numeric(command: str) -> bool:
    """4xx and 5xx numerics are error replies."""
    return len(command) == 3 and command.isdigit() and command[0] in "45"


class IRCDispatcher:
    """Command-keyed handler table built once per client.

    Handlers are called as ``handler(client, message)`` and may be coroutine
    functions. Exceptions propagate to the caller, which owns error reporting.
    """

    def __init__(self, client: AsyncIRCClient):
        self.client = client
        self._handlers: dict[str, MessageHandler] = default_handlers()

    @property
    def handlers(self) -> MappingProxyType[str, MessageHandler]:
        return MappingProxyType(self._handlers)

    def set_handler(self, command: str, handler: MessageHandler | None) -> None:
        """Install (or with ``None`` remove) the handler for ``command``."""
        command = command.upper()
        if handler is None:
            self._handlers.pop(command, None)
        else:
            self._handlers[command] = handler
        logger.log_event(
            "irc",
            "handler_set",
            level=logging.DEBUG,
            command=command,
            removed=handler is None,
        )

    def resolve(self, command: str) -> MessageHandler | None:
        handler = self._handlers.get(command.upper())
        if handler is None and is_error_numeric(command):
            return handle_error_reply
        return handler

    async def dispatch(self, message: IRCMessage) -> bool:
        """Run the handler for ``message``. Returns False if none is registered."""
        handler = self.resolve(message.command)
        if handler is None:
            logger.log_event(
                "irc",
                "unhandled_command",
                level=logging.DEBUG,
                nick=self.client.user.nick,
                command=message.command,
            )
            return False
        result = handler(self.client, message)
        if inspect.isawaitable(result):
            await result
        return True
