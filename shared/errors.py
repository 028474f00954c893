from __future__ import annotations
from typing import Optional


class ChatClientError(Exception):
    """Base class for every condition the chat client reports."""
    pass


class ConnectionFailed(ChatClientError):
    """Raised when the transport could not be established."""
    pass


class NotConnected(ChatClientError):
    """Raised when a send is attempted while the transport is not open."""
    pass


class MalformedFrame(ChatClientError):
    """Raised when an inbound frame is not a valid JSON chat message."""
    pass


class ConnectionClosed(ChatClientError):
    """The transport closed, locally or remotely."""

    def __init__(self, code: Optional[int] = None, reason: Optional[str] = None) -> None:
        self.code = code
        self.reason = reason
        detail = f"code={code}" if code is not None else "no close code"
        if reason:
            detail = f"{detail}, reason={reason}"
        super().__init__(f"Connection closed ({detail})")


class ConfigError(ChatClientError, ValueError):
    """Raised when a configuration value is missing or invalid."""
    pass
