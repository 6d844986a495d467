"""Keepalive PING and write-queue poll timers for one connection."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..constants import IRC_PING_INTERVAL, IRC_QUEUE_POLL_INTERVAL
from ..logs.logger import logger

if TYPE_CHECKING:  # pragma: no cover
    from .connection import IRCConnection


class IRCHeartbeat:
    def __init__(
        self,
        connection: IRCConnection,
        ping_interval: float | None = None,
        queue_poll_interval: float = IRC_QUEUE_POLL_INTERVAL,
    ):
        self.connection = connection
        self.ping_interval = ping_interval or IRC_PING_INTERVAL
        self.queue_poll_interval = queue_poll_interval
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        self.stop()
        loop = asyncio.get_running_loop()
        self._tasks = [
            loop.create_task(self._keepalive_loop()),
            loop.create_task(self._queue_poll_loop()),
        ]

    def stop(self) -> None:
        current = asyncio.current_task() if _loop_running() else None
        for task in self._tasks:
            if task is not current:
                task.cancel()
        self._tasks = []

    def send_keepalive(self) -> bool:
        """Ping the server name learned from its last PING. Returns True if sent."""
        name = self.connection.server_name_from_ping
        if not name or not self.connection.connected:
            return False
        logger.log_event(
            "connection", "keepalive_ping", level=logging.DEBUG, server=name
        )
        self.connection.send_raw(f"PING :{name}")
        return True

    async def _keepalive_loop(self) -> None:
        while self.connection.connected:
            await asyncio.sleep(self.ping_interval)
            self.send_keepalive()

    async def _queue_poll_loop(self) -> None:
        while self.connection.connected:
            await asyncio.sleep(self.queue_poll_interval)
            self.connection.drain_queue()


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True
