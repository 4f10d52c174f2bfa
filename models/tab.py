"""Document session entries and cursor value types."""

from dataclasses import dataclass, field
from typing import Optional

from models.chapter import StructuredChapter
from models.enums import TabKind


@dataclass(frozen=True)
class Cursor:
    """Position in a node sequence, as a node index (not a character offset)."""
    index: int = 0

    def clamp(self, length: int) -> "Cursor":
        return Cursor(min(max(self.index, 0), length))


@dataclass(frozen=True)
class TextSelection:
    """Character offsets into a tab's text; ``end`` is None for a bare caret."""
    start: int = 0
    end: Optional[int] = None

    @property
    def is_range(self) -> bool:
        return self.end is not None and self.end > self.start

    def clamp(self, length: int) -> "TextSelection":
        start = min(max(self.start, 0), length)
        if self.end is None:
            return TextSelection(start)
        end = min(max(self.end, start), length)
        return TextSelection(start, end)


@dataclass
class Tab:
    """An open, editable document.

    ``content`` is the live text; ``saved_content`` is the last persisted
    value, and ``modified`` is kept equal to ``content != saved_content``.
    Chapter tabs additionally own the structured chapter whose node sequence
    ``content`` is rendered from.
    """
    id: str
    name: str
    kind: TabKind
    storage_path: str
    content: str = ""
    saved_content: str = ""
    modified: bool = False
    chapter: Optional[StructuredChapter] = None
    cursor: Cursor = field(default_factory=Cursor)
    selection: TextSelection = field(default_factory=TextSelection)

    def set_content(self, content: str) -> None:
        self.content = content
        self.modified = content != self.saved_content

    def mark_saved(self, content: Optional[str] = None) -> None:
        self.saved_content = self.content if content is None else content
        self.modified = self.content != self.saved_content
