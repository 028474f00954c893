from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union
import json

from shared.errors import MalformedFrame
from shared.utils import is_identity, is_non_empty_text


@dataclass(frozen=True)
class ChatMessage:
    """
    One chat message as it travels over the socket:
    {
    "from": "STRING (sender identity, non-empty)",
    "text": "STRING (non-empty)"
    }

    No envelope, id, timestamp or room. Unknown keys on inbound frames are ignored.
    """
    from_: str          # sender identity (renamed to avoid keyword collision)
    text: str

    def __post_init__(self) -> None:
        if not is_identity(self.from_):
            raise ValueError("'from' must be a non-empty string")
        if not is_non_empty_text(self.text):
            raise ValueError("'text' must be a non-empty string")

    @classmethod
    def compose(cls, identity: str, raw_text: str) -> Optional['ChatMessage']:
        """Build an outbound message from user input, or None when the trimmed input is empty"""
        text = raw_text.strip()
        if not text:
            return None
        return cls(from_=identity, text=text)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> 'ChatMessage':
        """Parse an inbound frame, validating structure"""
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode('utf-8')
            except UnicodeDecodeError as e:
                raise MalformedFrame(f"Frame is not valid UTF-8: {e}") from e
        try:
            data = json.loads(raw)
        except (ValueError, TypeError, RecursionError) as e:
            raise MalformedFrame(f"Invalid JSON: {e}") from e

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> 'ChatMessage':
        """Create ChatMessage from a decoded JSON value, validating required fields"""
        if not isinstance(data, dict):
            raise MalformedFrame(f"Frame must be a JSON object, got {type(data).__name__}")

        missing = {'from', 'text'} - set(data.keys())
        if missing:
            raise MalformedFrame(f"Missing required fields: {sorted(missing)}")

        if not is_identity(data['from']):
            raise MalformedFrame("'from' must be a non-empty string")
        if not is_non_empty_text(data['text']):
            raise MalformedFrame("'text' must be a non-empty string")

        return cls(from_=data['from'], text=data['text'])

    def to_dict(self) -> Dict[str, Any]:
        return {'from': self.from_, 'text': self.text}

    def to_json(self) -> str:
        """Convert ChatMessage to the compact JSON text frame"""
        return json.dumps(self.to_dict(), separators=(',', ':'), sort_keys=True, ensure_ascii=False)
