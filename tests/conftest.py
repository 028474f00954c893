import asyncio
from typing import Any, Iterable, Optional

import pytest
from websockets.exceptions import ConnectionClosedOK

_END = object()


class DummyWebSocket:
    """Stand-in for a websockets ClientConnection; frames are fed by the test."""

    def __init__(self, frames: Iterable[Any] = ()) -> None:
        self.sent_messages: list[str] = []
        self.closed = False
        self.close_code: Optional[int] = None
        self.close_reason: Optional[str] = None
        self._inbound: asyncio.Queue = asyncio.Queue()
        for frame in frames:
            self.feed(frame)

    def feed(self, frame: Any) -> None:
        self._inbound.put_nowait(frame)

    def server_close(self, code: int = 1000, reason: str = "") -> None:
        """Simulate the server closing the connection"""
        self.closed = True
        self.close_code = code
        self.close_reason = reason
        self._inbound.put_nowait(_END)

    async def send(self, data: str) -> None:
        if self.closed:
            raise ConnectionClosedOK(None, None)
        self.sent_messages.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if not self.closed:
            self.server_close(code, reason)

    def __aiter__(self) -> "DummyWebSocket":
        return self

    async def __anext__(self) -> Any:
        item = await self._inbound.get()
        if item is _END:
            raise StopAsyncIteration
        return item


@pytest.fixture
def dummy_ws() -> DummyWebSocket:
    return DummyWebSocket()


@pytest.fixture
def connector(dummy_ws):
    """Connector returning dummy_ws; records each call's arguments"""
    calls = []

    async def connect(url, **kwargs):
        calls.append((url, kwargs))
        return dummy_ws

    connect.calls = calls
    return connect


@pytest.fixture
def endpoint() -> str:
    return "ws://localhost:3000/ws"


async def _wait_for(predicate, timeout: float = 3.0) -> bool:
    loop = asyncio.get_running_loop()
    end = loop.time() + timeout
    while loop.time() < end:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return False


@pytest.fixture
def wait_for():
    return _wait_for
