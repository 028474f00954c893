from __future__ import annotations
import inspect
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from shared.log import get_logger

logger = get_logger(__name__)


class ConnectionEvent(str, Enum):
    """Events a ChatConnection publishes over its lifetime."""

    CONNECTED = "CONNECTED"                  # handshake complete, payload: endpoint
    CONNECTION_FAILED = "CONNECTION_FAILED"  # payload: ConnectionFailed
    MESSAGE_RECEIVED = "MESSAGE_RECEIVED"    # payload: ChatMessage
    FRAME_DROPPED = "FRAME_DROPPED"          # payload: MalformedFrame, raw frame
    CLOSED = "CLOSED"                        # payload: ConnectionClosed


EventHandler = Callable[..., Union[None, Awaitable[None]]]


class EventBus:
    """
    Publish/subscribe registry for connection events.

    Handlers may be plain functions or coroutine functions. They run in
    subscription order on the event loop's thread; an exception in one
    handler is logged and does not stop delivery to the rest.
    """

    def __init__(self) -> None:
        self.handlers: Dict[ConnectionEvent, List[EventHandler]] = {}

    def subscribe(self, event: ConnectionEvent, handler: EventHandler) -> Callable[[], None]:
        """Register a handler; returns a callable that removes it again"""
        self.handlers.setdefault(event, []).append(handler)

        def unsubscribe() -> None:
            listeners = self.handlers.get(event, [])
            if handler in listeners:
                listeners.remove(handler)

        return unsubscribe

    def on(self, event: ConnectionEvent) -> Callable[[EventHandler], EventHandler]:
        """Decorator form of subscribe"""
        def decorator(handler: EventHandler) -> EventHandler:
            self.subscribe(event, handler)
            return handler
        return decorator

    def handler_count(self, event: Optional[ConnectionEvent] = None) -> int:
        if event is None:
            return sum(len(h) for h in self.handlers.values())
        return len(self.handlers.get(event, []))

    async def publish(self, event: ConnectionEvent, *args: Any) -> None:
        # snapshot so handlers can unsubscribe while being called
        for handler in list(self.handlers.get(event, [])):
            try:
                result = handler(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Handler %r failed for %s", handler, event.value, extra={"event": event.value})
