from __future__ import annotations
import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

import websockets
from websockets.exceptions import ConnectionClosed as TransportClosed, InvalidHandshake, InvalidURI

from client.events import ConnectionEvent, EventBus
from shared.errors import ConnectionClosed, ConnectionFailed, MalformedFrame, NotConnected
from shared.log import get_logger
from shared.message import ChatMessage
from shared.utils import is_ws_url

logger = get_logger(__name__)


Connector = Callable[..., Awaitable[Any]]

# Errors websockets.connect raises when the transport cannot be established
_CONNECT_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    InvalidURI,
    InvalidHandshake,
)


class ConnectionState(str, Enum):
    """Linear lifecycle, no transition back to CONNECTING."""
    CONNECTING = "CONNECTING"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ChatConnection:
    """
    One WebSocket connection to the chat server and all message transport over it.

    Lifecycle observations are published on `events` instead of callbacks:
    CONNECTED, CONNECTION_FAILED, MESSAGE_RECEIVED, FRAME_DROPPED and CLOSED.
    A failed or dropped connection is terminal for this object; nothing is retried.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        events: Optional[EventBus] = None,
        connector: Optional[Connector] = None,
        open_timeout: Optional[float] = None,
        ping_interval: Optional[float] = 15,
        ping_timeout: Optional[float] = 45,
    ) -> None:
        if not is_ws_url(endpoint):
            raise ValueError(f"Endpoint must be a ws:// or wss:// URL, got {endpoint!r}")
        self.endpoint = endpoint
        self.events = events or EventBus()
        self.websocket: Optional[Any] = None
        self.state = ConnectionState.CONNECTING
        self.open_timeout = open_timeout
        self.ping_interval = ping_interval
        self.ping_timeout = ping_timeout
        self._connector: Connector = connector or websockets.connect
        self._connect_issued = False

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    async def connect(self) -> None:
        """Open the WebSocket; raises ConnectionFailed without retrying"""
        if self._connect_issued:
            raise RuntimeError("connect() may only be issued once per connection")
        self._connect_issued = True

        logger.info("Connecting", extra={"endpoint": self.endpoint})
        try:
            websocket = await self._connector(
                self.endpoint,
                open_timeout=self.open_timeout,
                ping_interval=self.ping_interval,
                ping_timeout=self.ping_timeout,
            )
        except _CONNECT_ERRORS as e:
            error = ConnectionFailed(f"Could not connect to {self.endpoint}: {e}")
            logger.error("%s", error, extra={"endpoint": self.endpoint})
            await self.events.publish(ConnectionEvent.CONNECTION_FAILED, error)
            await self.handle_close()
            raise error from e

        if self.state is ConnectionState.CLOSED:
            # closed locally while the handshake was in flight
            await websocket.close(code=1000)
            raise ConnectionFailed(f"Connection to {self.endpoint} was closed before it opened")

        await self.handle_open(websocket)

    async def handle_open(self, websocket: Any) -> None:
        """Handshake complete: the transport is usable for send"""
        self.websocket = websocket
        self.state = ConnectionState.OPEN
        logger.info("Connected", extra={"endpoint": self.endpoint, "state": self.state.value})
        await self.events.publish(ConnectionEvent.CONNECTED, self.endpoint)

    async def handle_frame(self, raw: Union[str, bytes]) -> Optional[ChatMessage]:
        """
        Decode one inbound frame and publish it.

        Malformed frames are dropped: logged, published as FRAME_DROPPED,
        never rendered and never raised.
        """
        try:
            message = ChatMessage.from_json(raw)
        except MalformedFrame as e:
            logger.warning("Dropped malformed frame: %s", e, extra={"endpoint": self.endpoint})
            await self.events.publish(ConnectionEvent.FRAME_DROPPED, e, raw)
            return None

        logger.debug("Received message", extra={"sender": message.from_})
        await self.events.publish(ConnectionEvent.MESSAGE_RECEIVED, message)
        return message

    async def handle_close(self, code: Optional[int] = None, reason: Optional[str] = None) -> None:
        """Transition to CLOSED and publish CLOSED once"""
        if self.state is ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        closed = ConnectionClosed(code, reason)
        logger.info("%s", closed, extra={"endpoint": self.endpoint, "state": self.state.value})
        await self.events.publish(ConnectionEvent.CLOSED, closed)

    async def recv_loop(self) -> None:
        """Deliver inbound frames in arrival order until the transport closes"""
        if self.websocket is None:
            raise NotConnected("recv_loop() requires an open connection")
        try:
            async for raw in self.websocket:
                await self.handle_frame(raw)
        except TransportClosed as e:
            logger.warning("Connection dropped: %s", e, extra={"endpoint": self.endpoint})
        finally:
            await self.handle_close(
                getattr(self.websocket, "close_code", None),
                getattr(self.websocket, "close_reason", None),
            )

    async def send(self, message: ChatMessage) -> None:
        """
        Serialize and write one message.

        Raises NotConnected, without touching the transport, unless the
        connection is OPEN.
        """
        if self.state is not ConnectionState.OPEN or self.websocket is None:
            raise NotConnected(f"Cannot send while connection is {self.state.value}")

        try:
            await self.websocket.send(message.to_json())
        except TransportClosed as e:
            await self.handle_close(
                getattr(self.websocket, "close_code", None),
                getattr(self.websocket, "close_reason", None),
            )
            raise NotConnected("Connection closed while sending") from e
        logger.debug("Sent message", extra={"sender": message.from_})

    async def close(self) -> None:
        """Local teardown; safe to call more than once"""
        if self.state is ConnectionState.CLOSED:
            return
        if self.websocket is not None:
            try:
                await self.websocket.close(code=1000)
            except Exception as e:
                logger.error(f"Error closing connection: {e}")
        await self.handle_close(1000, "client closed")
