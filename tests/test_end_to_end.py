import json
import socket

import pytest
import websockets

from client.config import ClientConfig
from client.session import ChatSession
from shared.errors import ConnectionFailed, NotConnected


def free_port() -> int:
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.mark.asyncio
async def test_chat_scenario_against_local_server(wait_for):
    received = []

    async def handler(ws):
        await ws.send(json.dumps({"from": "alice", "text": "hello"}))
        received.append(await ws.recv())
        await ws.close()

    async with websockets.serve(handler, "127.0.0.1", 0) as server:
        port = server.sockets[0].getsockname()[1]
        session = ChatSession(ClientConfig(endpoint=f"ws://127.0.0.1:{port}/ws", identity="michael"))
        await session.start()

        assert await wait_for(lambda: len(session.view.entries) == 1)
        assert session.view.labels() == ["alice: hello"]

        session.input.set("hi there")
        await session.submit(session.input.value)
        assert session.input.value == ""

        await session.wait_closed()
        assert received == ['{"from":"michael","text":"hi there"}']
        assert session.closed is True

        session.input.set("still there?")
        with pytest.raises(NotConnected):
            await session.submit(session.input.value)
        assert len(received) == 1
        assert session.input.value == "still there?"
        await session.close()


@pytest.mark.asyncio
async def test_connection_refused_is_connection_failed():
    session = ChatSession(ClientConfig(endpoint=f"ws://127.0.0.1:{free_port()}/ws", open_timeout=2))

    with pytest.raises(ConnectionFailed):
        await session.start()
    assert session.closed is True
