"""Connection pipeline: transport lifecycle, line framing and serialized writes."""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections import deque
from collections.abc import Awaitable, Callable

from ..constants import IRC_CONNECT_TIMEOUT, IRC_READ_BUFFER_LENGTH
from ..errors import ArgumentError, ProtocolFormatError, UsageError, log_error
from ..logs.logger import logger
from .events import ErrorEvent, EventHub, IrcEvent, NetworkErrorEvent, RawMessage
from .heartbeat import IRCHeartbeat
from .models import ConnectionState


class LineFramer:
    """Fixed-capacity receive buffer that cuts a byte stream into lines.

    A partial line left at the end of one read is kept at the front of the
    buffer (``index`` bytes) and completed by the next read.
    """

    def __init__(self, capacity: int = IRC_READ_BUFFER_LENGTH, encoding: str = "utf-8") -> None:
        self.capacity = capacity
        self.encoding = encoding
        self.buffer = bytearray(capacity)
        self.index = 0
        self.dropped_bytes = 0

    @property
    def free(self) -> int:
        return self.capacity - self.index

    def reset(self) -> None:
        self.index = 0
        self.dropped_bytes = 0

    def feed(self, data: bytes) -> list[str]:
        """Append ``data`` and return every complete line, CR/LF stripped.

        If the buffer fills up without a line terminator, the partial line is
        discarded and its size recorded in ``dropped_bytes``.
        """
        if len(data) > self.free:
            raise ValueError(f"read of {len(data)} bytes exceeds free buffer space {self.free}")
        end = self.index + len(data)
        self.buffer[self.index : end] = data
        length = end
        lines: list[str] = []
        start = 0
        while start < length:
            newline = self.buffer.find(b"\n", start, length)
            if newline == -1:
                break
            raw = bytes(self.buffer[start:newline]).rstrip(b"\r")
            start = newline + 1
            if raw:
                lines.append(raw.decode(self.encoding, errors="replace"))
        leftover = length - start
        if start:
            self.buffer[0:leftover] = self.buffer[start:length]
        self.index = leftover
        if self.index == self.capacity:
            self.dropped_bytes += self.index
            self.index = 0
        return lines


LineHandler = Callable[[str], Awaitable[None]]


class IRCConnection:
    """One TCP (optionally TLS) connection to an IRC server.

    Reads are re-armed as soon as the previous read is framed and dispatched.
    Writes are serialized: at most one write is in flight and later sends wait
    in a FIFO queue drained on completion (and by a periodic poll).
    """

    def __init__(
        self,
        host: str,
        port: int,
        events: EventHub,
        *,
        use_tls: bool = False,
        ignore_invalid_tls: bool = False,
        encoding: str = "utf-8",
        ping_interval: float | None = None,
        nick: str | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.events = events
        self.use_tls = use_tls
        self.ignore_invalid_tls = ignore_invalid_tls
        self.encoding = encoding
        self.nick = nick  # log context only
        self.state = ConnectionState.DISCONNECTED
        self.reader: asyncio.StreamReader | None = None
        self.writer: asyncio.StreamWriter | None = None
        self.framer = LineFramer(IRC_READ_BUFFER_LENGTH, encoding)
        self.write_queue: deque[str] = deque()
        self.is_writing = False
        self.server_name_from_ping: str | None = None
        self.line_handler: LineHandler | None = None
        self.on_disconnected: Callable[[], Awaitable[None]] | None = None
        self.heartbeat = IRCHeartbeat(self, ping_interval=ping_interval)
        self._loop: asyncio.AbstractEventLoop | None = None
        self._read_task: asyncio.Task[None] | None = None
        self._write_tasks: set[asyncio.Task[None]] = set()

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def _set_state(self, new_state: ConnectionState) -> None:
        if self.state != new_state:
            logger.log_event(
                "connection",
                "state_change",
                level=logging.DEBUG,
                nick=self.nick,
                old_state=self.state.name,
                new_state=new_state.name,
            )
            self.state = new_state

    def _build_ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context()
        if self.ignore_invalid_tls:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    async def open(self) -> bool:
        """Open the transport. Returns False (after a NETWORK_ERROR event) on failure.

        Raises:
            UsageError: If already connecting or connected.
        """
        if self.state is not ConnectionState.DISCONNECTED:
            raise UsageError("Socket is already connected to server.")
        self._set_state(ConnectionState.CONNECTING)
        logger.log_event(
            "connection",
            "connect_start",
            nick=self.nick,
            server=self.host,
            port=self.port,
            tls=self.use_tls,
        )
        ssl_context = self._build_ssl_context() if self.use_tls else None
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(
                    self.host,
                    self.port,
                    ssl=ssl_context,
                    server_hostname=self.host if ssl_context else None,
                ),
                timeout=IRC_CONNECT_TIMEOUT,
            )
        except (TimeoutError, OSError) as e:
            self._set_state(ConnectionState.DISCONNECTED)
            reason = "connect_timeout" if isinstance(e, TimeoutError) else "connect_failed"
            logger.log_event(
                "connection",
                reason,
                level=logging.ERROR,
                nick=self.nick,
                server=self.host,
                error=str(e),
            )
            await self.events.emit(IrcEvent.NETWORK_ERROR, NetworkErrorEvent(e, reason))
            return False
        self.attach(reader, writer)
        return True

    def attach(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Adopt already-open streams and start the read loop and timers."""
        self._loop = asyncio.get_running_loop()
        self.reader = reader
        self.writer = writer
        self.framer.reset()
        self.write_queue.clear()
        self.is_writing = False
        self._set_state(ConnectionState.CONNECTED)
        logger.log_event("connection", "established", nick=self.nick, server=self.host)
        self._read_task = self._loop.create_task(self._read_loop())
        self.heartbeat.start()

    # Read path

    async def _read_loop(self) -> None:
        reason = "connection_closed"
        error: BaseException | None = None
        try:
            while self.connected and self.reader is not None:
                data = await self.reader.read(self.framer.free)
                if not data:
                    break
                await self.process_data(data)
        except asyncio.CancelledError:
            return
        except (OSError, ssl.SSLError) as e:
            reason, error = "read_failed", e
            log_error("Read from server failed", e, context={"server": self.host})
        if self.connected:
            await self._fail(reason, error)

    async def process_data(self, data: bytes) -> None:
        """Frame freshly read bytes and hand every complete line to the handler."""
        lines = self.framer.feed(data)
        for line in lines:
            if self.line_handler is not None:
                await self.line_handler(line)
        if self.framer.dropped_bytes:
            dropped, self.framer.dropped_bytes = self.framer.dropped_bytes, 0
            logger.log_event(
                "connection",
                "line_too_long",
                level=logging.WARNING,
                nick=self.nick,
                dropped=dropped,
                capacity=self.framer.capacity,
            )
            error = ProtocolFormatError(
                "Received line exceeds read buffer; discarded",
                data={"dropped": dropped, "capacity": self.framer.capacity},
            )
            await self.events.emit(IrcEvent.ERROR, ErrorEvent(error))

    # Write path

    def send_raw(self, line: str) -> None:
        """Queue one line for sending; safe to call from any thread.

        Raises:
            UsageError: If the line contains CR or LF.
            ArgumentError: If the line cannot be encoded with the connection encoding.
        """
        if "\r" in line or "\n" in line:
            raise UsageError("raw lines cannot contain CR or LF", data={"line": line})
        try:
            line.encode(self.encoding)
        except UnicodeEncodeError as e:
            raise ArgumentError(
                f"raw line is not representable in {self.encoding}",
                data={"line": line, "encoding": self.encoding},
            ) from e
        loop = self._loop
        if loop is None or loop.is_closed():
            self._report_not_connected()
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            self._send_on_loop(line)
        else:
            loop.call_soon_threadsafe(self._send_on_loop, line)

    def _report_not_connected(self) -> None:
        logger.log_event("connection", "send_not_connected", level=logging.WARNING, nick=self.nick)
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.create_task(
                self.events.emit(
                    IrcEvent.NETWORK_ERROR, NetworkErrorEvent(None, "not_connected")
                )
            )

    def _send_on_loop(self, line: str) -> None:
        if self.writer is None or not self.connected:
            self._report_not_connected()
            return
        # Every line goes through the queue so lines sent while a write
        # completes still land behind the ones already waiting.
        self.write_queue.append(line)
        if not self.is_writing:
            self._start_next()

    def _start_next(self) -> None:
        if not self.write_queue or self.writer is None or not self.connected:
            self.is_writing = False
            return
        self.is_writing = True
        task = asyncio.get_running_loop().create_task(self._write(self.write_queue.popleft()))
        self._write_tasks.add(task)
        task.add_done_callback(self._write_tasks.discard)

    async def _write(self, line: str) -> None:
        writer = self.writer
        if writer is None:
            self.is_writing = False
            self._report_not_connected()
            return
        try:
            writer.write(f"{line}\r\n".encode(self.encoding))
            await writer.drain()
        except (OSError, ssl.SSLError) as e:
            self.is_writing = False
            log_error("Write to server failed", e, context={"server": self.host})
            await self._fail("write_failed", e)
            return
        logger.log_event("irc", "raw_out", level=logging.DEBUG, nick=self.nick, raw=_redact(line))
        # Hand the slot to the next queued line before handlers run.
        self._start_next()
        await self.events.emit(IrcEvent.RAW_MESSAGE_SENT, RawMessage(line, outgoing=True))

    def drain_queue(self) -> None:
        """Start the next queued write if nothing is in flight."""
        if not self.is_writing:
            self._start_next()

    async def flush(self, timeout: float = 5.0) -> bool:
        """Wait until nothing is queued or in flight. Returns False on timeout."""

        async def _drained() -> None:
            while self.connected and (self.is_writing or self.write_queue):
                self.drain_queue()
                await asyncio.sleep(0.01)

        try:
            await asyncio.wait_for(_drained(), timeout=timeout)
        except TimeoutError:
            logger.log_event(
                "connection", "flush_timeout", level=logging.WARNING, nick=self.nick, timeout=timeout
            )
            return False
        return True

    # Teardown

    async def _fail(self, reason: str, error: BaseException | None) -> None:
        logger.log_event(
            "connection", "lost", level=logging.ERROR, nick=self.nick, reason=reason
        )
        await self.close()
        await self.events.emit(IrcEvent.NETWORK_ERROR, NetworkErrorEvent(error, reason))

    async def close(self) -> None:
        if self.state is ConnectionState.DISCONNECTED and self.writer is None:
            return
        self._set_state(ConnectionState.DISCONNECTED)
        self.heartbeat.stop()
        current = asyncio.current_task()
        if self._read_task is not None and self._read_task is not current:
            self._read_task.cancel()
        self._read_task = None
        writer, self.writer, self.reader = self.writer, None, None
        self.write_queue.clear()
        self.is_writing = False
        if writer is not None:
            try:
                writer.close()
                await writer.wait_closed()
            except (OSError, ssl.SSLError) as e:
                logger.log_event(
                    "connection", "close_error", level=logging.DEBUG, nick=self.nick, error=str(e)
                )
        logger.log_event("connection", "disconnected", level=logging.WARNING, nick=self.nick)
        if self.on_disconnected is not None:
            await self.on_disconnected()


def _redact(line: str) -> str:
    upper = line[:13].upper()
    if upper.startswith("AUTHENTICATE ") and not line.endswith(("PLAIN", "+")):
        return "AUTHENTICATE ****"
    if upper.startswith("PASS "):
        return "PASS ****"
    return line
