from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Tuple

from rich.console import Console
from rich.text import Text

from shared.log import get_logger
from shared.message import ChatMessage

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderedEntry:
    sender: str
    text: str

    @property
    def tags(self) -> Tuple[str, str]:
        """Styling tags: every entry is a message, plus its sender"""
        return ("message", self.sender)

    @property
    def label(self) -> str:
        return f"{self.sender}: {self.text}"


class ChatView(Protocol):
    """Presentation target the renderer draws into."""

    def append_entry(self, entry: RenderedEntry) -> None: ...

    def scroll_to_bottom(self) -> None: ...


@dataclass
class BufferView:
    """
    In-memory view. Keeps every entry in arrival order; `max_entries`
    only limits the visible window.
    """
    max_entries: Optional[int] = None
    entries: List[RenderedEntry] = field(default_factory=list)
    scrolled_to: int = -1

    def append_entry(self, entry: RenderedEntry) -> None:
        self.entries.append(entry)

    def scroll_to_bottom(self) -> None:
        self.scrolled_to = len(self.entries) - 1

    def visible(self) -> List[RenderedEntry]:
        if self.max_entries is None:
            return list(self.entries)
        return self.entries[-self.max_entries:] if self.max_entries > 0 else []

    def labels(self) -> List[str]:
        return [entry.label for entry in self.entries]


class ConsoleView:
    """Terminal view; the terminal keeps the newest line in sight on its own."""

    LOCAL_STYLE = "bold green"
    REMOTE_STYLE = "bold cyan"

    def __init__(self, local_identity: str, console: Optional[Console] = None) -> None:
        self.local_identity = local_identity
        self.console = console or Console()

    def append_entry(self, entry: RenderedEntry) -> None:
        style = self.LOCAL_STYLE if entry.sender == self.local_identity else self.REMOTE_STYLE
        # Text keeps user content from being parsed as rich markup
        self.console.print(Text.assemble((entry.sender, style), ": ", entry.text))

    def scroll_to_bottom(self) -> None:
        # the terminal keeps the newest line in view
        pass


class MessageRenderer:
    """Appends messages to the view in the order render is called."""

    def __init__(self, view: ChatView) -> None:
        self.view = view
        self.rendered = 0

    def render(self, message: ChatMessage) -> RenderedEntry:
        entry = RenderedEntry(sender=message.from_, text=message.text)
        self.view.append_entry(entry)
        self.view.scroll_to_bottom()
        self.rendered += 1
        logger.debug("Rendered entry %d", self.rendered, extra={"sender": message.from_})
        return entry
