import asyncio
import os

import pytest

# Keep background timers out of the way of tests that drive a live connection
os.environ.setdefault("IRC_QUEUE_POLL_INTERVAL", "60")
os.environ.setdefault("IRC_PING_INTERVAL", "60")

from ircwire.config.model import ClientSettings  # noqa: E402
from ircwire.irc.client import AsyncIRCClient  # noqa: E402


class FakeWriter:
    """Stand-in for asyncio.StreamWriter that records written bytes."""

    def __init__(self) -> None:
        self.data = bytearray()
        self.closed = False
        self.fail_with: BaseException | None = None
        self.drain_gate: asyncio.Event | None = None

    def write(self, data: bytes) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.data.extend(data)

    async def drain(self) -> None:
        if self.drain_gate is not None:
            await self.drain_gate.wait()

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None

    def is_closing(self) -> bool:
        return self.closed

    @property
    def lines(self) -> list[str]:
        return [line for line in self.data.decode("utf-8").split("\r\n") if line]


class DummyIRC(AsyncIRCClient):
    def __init__(self, settings: ClientSettings) -> None:  # keep base init
        super().__init__(settings)
        self.sent: list[str] = []

    def send_raw(self, line: str) -> None:  # capture instead of network
        self.sent.append(line)

    async def feed(self, *lines: str) -> None:
        for line in lines:
            await self.handle_line(line)


def make_settings(**overrides) -> ClientSettings:  # type: ignore[no-untyped-def]
    data = {"server": "irc.example.net:6667", "nick": "tester"}
    data.update(overrides)
    return ClientSettings(**data)


@pytest.fixture
def settings() -> ClientSettings:
    return make_settings()


@pytest.fixture
def client(settings: ClientSettings) -> DummyIRC:
    return DummyIRC(settings)


@pytest.fixture
async def live_client(settings: ClientSettings):  # type: ignore[no-untyped-def]
    """Client attached to in-memory streams; bytes are fed through the reader."""
    c = AsyncIRCClient(settings)
    reader = asyncio.StreamReader()
    writer = FakeWriter()
    c.connection.attach(reader, writer)  # type: ignore[arg-type]
    yield c, reader, writer
    await c.disconnect()


async def wait_until(predicate, timeout: float = 1.0) -> None:  # type: ignore[no-untyped-def]
    """Yield to the loop until ``predicate()`` holds."""

    async def _poll() -> None:
        while not predicate():
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout)
