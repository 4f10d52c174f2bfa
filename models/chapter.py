"""Chapter and idea data models."""

from dataclasses import dataclass, field
from typing import Any, Optional

from models.nodes import ContentNode


@dataclass
class ChapterMetadata:
    """The recognised frontmatter fields of a chapter file.

    ``extra`` keeps any unrecognised keys so they survive a save.
    """
    order: int = 0
    title: str = "Untitled"
    tags: list[str] = field(default_factory=list)
    characters: list[str] = field(default_factory=list)
    location: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_mapping(self) -> dict[str, Any]:
        mapping = {
            "order": self.order,
            "title": self.title,
            "tags": list(self.tags),
            "characters": list(self.characters),
            "location": self.location,
        }
        for key, value in self.extra.items():
            mapping.setdefault(key, value)
        return mapping


@dataclass
class StructuredChapter:
    """Represents a single chapter.

    ``content`` is the canonical node sequence; the persisted body is derived
    from it. ``order`` sequences chapters and should be unique in a project,
    which nothing enforces automatically.
    """
    id: str
    order: int = 1
    title: str = "Untitled"
    tags: list[str] = field(default_factory=list)
    character_ids: list[str] = field(default_factory=list)
    location: Optional[str] = None
    content: list[ContentNode] = field(default_factory=list)
    filename: str = ""
    path: str = ""
    extra_metadata: dict[str, Any] = field(default_factory=dict)

    def metadata(self) -> ChapterMetadata:
        return ChapterMetadata(
            order=self.order,
            title=self.title,
            tags=list(self.tags),
            characters=list(self.character_ids),
            location=self.location or "",
            extra=dict(self.extra_metadata),
        )

    @classmethod
    def from_metadata(
        cls,
        chapter_id: str,
        metadata: ChapterMetadata,
        content: Optional[list[ContentNode]] = None,
        filename: str = "",
        path: str = "",
    ) -> "StructuredChapter":
        return cls(
            id=chapter_id,
            order=metadata.order,
            title=metadata.title,
            tags=list(metadata.tags),
            character_ids=list(metadata.characters),
            location=metadata.location or None,
            content=list(content or []),
            filename=filename,
            path=path,
            extra_metadata=dict(metadata.extra),
        )


@dataclass
class Idea:
    """A free-form notes document from the project's ideas folder."""
    id: str
    filename: str
    path: str
    content: str = ""
