from __future__ import annotations
import asyncio
from contextlib import suppress
from typing import Optional

from client.config import ClientConfig
from client.events import ConnectionEvent
from client.renderer import BufferView, ChatView, MessageRenderer, RenderedEntry
from client.state import InputBuffer
from client.ws_client import ChatConnection, ConnectionState
from shared.errors import ConnectionClosed, ConnectionFailed, MalformedFrame
from shared.log import get_logger, log_chat_event
from shared.message import ChatMessage

logger = get_logger(__name__)


class ChatSession:
    """
    Holds the one connection, input buffer and renderer of a running client.

    `render` and `submit` are the only entry points the presentation side uses.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        view: Optional[ChatView] = None,
        connection: Optional[ChatConnection] = None,
        input_buffer: Optional[InputBuffer] = None,
    ) -> None:
        self.config = config
        self.view = view if view is not None else BufferView(max_entries=config.max_entries)
        self.renderer = MessageRenderer(self.view)
        self.input = input_buffer if input_buffer is not None else InputBuffer()
        self.connection = connection or ChatConnection(config.endpoint, open_timeout=config.open_timeout)
        self.dropped_frames = 0
        self._recv_task: Optional[asyncio.Task] = None
        self._subscribe()

    def _subscribe(self) -> None:
        events = self.connection.events
        events.subscribe(ConnectionEvent.CONNECTED, self._on_connected)
        events.subscribe(ConnectionEvent.MESSAGE_RECEIVED, self.render)
        events.subscribe(ConnectionEvent.FRAME_DROPPED, self._on_frame_dropped)
        events.subscribe(ConnectionEvent.CLOSED, self._on_closed)

    def _on_connected(self, endpoint: str) -> None:
        logger.info("Session started as %s", self.config.identity, extra={"endpoint": endpoint})

    def _on_frame_dropped(self, error: MalformedFrame, raw: object) -> None:
        self.dropped_frames += 1

    def _on_closed(self, closed: ConnectionClosed) -> None:
        logger.info("Session ended: %s", closed)

    @property
    def closed(self) -> bool:
        return self.connection.state is ConnectionState.CLOSED

    async def start(self) -> None:
        """Connect and start receiving; ConnectionFailed propagates"""
        try:
            await self.connection.connect()
        except ConnectionFailed:
            logger.error("Session could not start", extra={"endpoint": self.config.endpoint})
            raise
        self._recv_task = asyncio.create_task(self.connection.recv_loop())

    def render(self, message: ChatMessage) -> RenderedEntry:
        return self.renderer.render(message)

    async def submit(self, raw_text: str) -> Optional[ChatMessage]:
        """
        Send one user submission.

        Whitespace-only input is a no-op returning None. The input is cleared
        only after a successful send; NotConnected propagates and leaves it intact.
        """
        message = ChatMessage.compose(self.config.identity, raw_text)
        if message is None:
            return None
        await self.connection.send(message)
        self.input.clear()
        log_chat_event(logger, "debug", "Submitted message", chat_message=message)
        return message

    async def wait_closed(self) -> None:
        if self._recv_task is not None:
            await self._recv_task

    async def close(self) -> None:
        await self.connection.close()
        if self._recv_task is not None:
            self._recv_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._recv_task
