from __future__ import annotations
from dataclasses import dataclass


@dataclass
class InputBuffer:
    """The draft the user is typing; survives a failed send."""
    value: str = ""

    def set(self, value: str) -> None:
        self.value = value

    def clear(self) -> None:
        self.value = ""
