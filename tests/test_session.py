import pytest

from client.config import ClientConfig
from client.renderer import BufferView
from client.session import ChatSession
from client.ws_client import ChatConnection
from shared.errors import ConnectionFailed, NotConnected
from shared.message import ChatMessage


@pytest.fixture
def config(endpoint) -> ClientConfig:
    return ClientConfig(endpoint=endpoint, identity="michael")


@pytest.fixture
def session(config, connector) -> ChatSession:
    connection = ChatConnection(config.endpoint, connector=connector)
    return ChatSession(config, view=BufferView(), connection=connection)


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["", "   "])
async def test_blank_submit_is_noop(session, dummy_ws, raw):
    await session.start()
    session.input.set(raw)

    result = await session.submit(raw)

    assert result is None
    assert dummy_ws.sent_messages == []
    assert session.input.value == raw
    await session.close()


@pytest.mark.asyncio
async def test_blank_submit_before_connect_does_not_raise(session):
    assert await session.submit("   ") is None


@pytest.mark.asyncio
async def test_submit_sends_trimmed_text_and_clears_input(session, dummy_ws):
    await session.start()
    session.input.set("  hi there  ")

    message = await session.submit(session.input.value)

    assert message == ChatMessage(from_="michael", text="hi there")
    assert dummy_ws.sent_messages == ['{"from":"michael","text":"hi there"}']
    assert session.input.value == ""
    await session.close()


@pytest.mark.asyncio
async def test_submit_before_connect_keeps_input(session, dummy_ws):
    session.input.set("hi")

    with pytest.raises(NotConnected):
        await session.submit(session.input.value)

    assert session.input.value == "hi"
    assert dummy_ws.sent_messages == []


@pytest.mark.asyncio
async def test_identity_comes_from_config(endpoint, connector, dummy_ws):
    config = ClientConfig(endpoint=endpoint, identity="alice")
    session = ChatSession(config, connection=ChatConnection(endpoint, connector=connector))
    await session.start()

    await session.submit("hey")

    assert dummy_ws.sent_messages == ['{"from":"alice","text":"hey"}']
    await session.close()


@pytest.mark.asyncio
async def test_inbound_messages_render_in_order(session, dummy_ws, wait_for):
    await session.start()
    for i in range(10):
        dummy_ws.feed(f'{{"from":"alice","text":"{i}"}}')

    assert await wait_for(lambda: len(session.view.entries) == 10)
    assert [e.text for e in session.view.entries] == [str(i) for i in range(10)]
    await session.close()


@pytest.mark.asyncio
async def test_malformed_frame_renders_nothing(session, dummy_ws, wait_for):
    await session.start()
    dummy_ws.feed("{not json")
    dummy_ws.feed('{"from":"alice","text":"still alive"}')

    assert await wait_for(lambda: len(session.view.entries) == 1)
    assert session.view.labels() == ["alice: still alive"]
    assert session.dropped_frames == 1
    await session.close()


@pytest.mark.asyncio
async def test_scenario_with_dummy_transport(session, dummy_ws):
    await session.start()
    dummy_ws.feed('{"from":"alice","text":"hello"}')
    session.input.set("hi there")

    await session.submit(session.input.value)
    dummy_ws.server_close()
    await session.wait_closed()

    assert session.view.labels() == ["alice: hello"]
    assert dummy_ws.sent_messages == ['{"from":"michael","text":"hi there"}']
    assert session.input.value == ""
    assert session.closed is True

    session.input.set("anyone?")
    with pytest.raises(NotConnected):
        await session.submit(session.input.value)
    assert dummy_ws.sent_messages == ['{"from":"michael","text":"hi there"}']
    assert session.input.value == "anyone?"


@pytest.mark.asyncio
async def test_start_propagates_connection_failed(config):
    async def refuse(url, **kwargs):
        raise ConnectionRefusedError("refused")

    session = ChatSession(config, connection=ChatConnection(config.endpoint, connector=refuse))

    with pytest.raises(ConnectionFailed):
        await session.start()
    assert session.closed is True


def test_default_view_honours_max_entries(endpoint):
    session = ChatSession(ClientConfig(endpoint=endpoint, max_entries=5))

    assert isinstance(session.view, BufferView)
    assert session.view.max_entries == 5
