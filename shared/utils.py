from __future__ import annotations
from typing import Any
from urllib.parse import urlsplit

# ========================================
#           INPUT VALIDATION HELPERS
# ========================================
"""
Helpers the message codec and the config loader call to decide whether
a value is well-formed enough to use.
"""

_WS_SCHEMES = {"ws", "wss"}


def is_ws_url(s: Any) -> bool:
    """
    Accepts 'ws://host[:port][/path]' or 'wss://...'.

    - scheme must be ws or wss
    - hostname must be non-empty
    - port, when given, must be between 1 and 65535
    """
    if not isinstance(s, str) or not s:
        return False
    try:
        parts = urlsplit(s)
        if parts.scheme not in _WS_SCHEMES:
            return False
        if not parts.hostname:
            return False
        port = parts.port  # raises ValueError when out of range
        return port is None or 0 < port <= 65535
    except ValueError:
        return False


def is_identity(s: Any) -> bool:
    """returns True if the value can be used as a sender identity."""
    return isinstance(s, str) and bool(s.strip())


def is_non_empty_text(s: Any) -> bool:
    return isinstance(s, str) and bool(s.strip())
