"""Character catalog data model."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import CharacterContext


@dataclass
class CharacterNames:
    """Alternative display names, one per reference context."""
    dialogue: Optional[str] = None
    narrative: Optional[str] = None
    reference: Optional[str] = None

    def get(self, context: CharacterContext) -> Optional[str]:
        return getattr(self, CharacterContext(context).value)

    def to_dict(self) -> dict:
        return {k: v for k, v in (
            ("dialogue", self.dialogue),
            ("narrative", self.narrative),
            ("reference", self.reference),
        ) if v}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "CharacterNames":
        data = data or {}
        return cls(
            dialogue=data.get("dialogue") or None,
            narrative=data.get("narrative") or None,
            reference=data.get("reference") or None,
        )


@dataclass
class Character:
    """Represents a character card.

    ``id`` is assigned once when the character is created and never reused.
    Inactive characters stay resolvable but are hidden from quick-insert and
    autocomplete.
    """
    id: str
    name: str
    traits: str = ""
    bio: str = ""
    appearance: Optional[str] = None
    active: bool = True
    names: CharacterNames = field(default_factory=CharacterNames)
    relationships: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    notes: Optional[str] = None
    color: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "traits": self.traits,
            "bio": self.bio,
            "active": self.active,
        }
        if self.appearance is not None:
            data["appearance"] = self.appearance
        names = self.names.to_dict()
        if names:
            data["names"] = names
        if self.relationships:
            data["relationships"] = list(self.relationships)
        if self.tags:
            data["tags"] = list(self.tags)
        if self.notes is not None:
            data["notes"] = self.notes
        if self.color is not None:
            data["color"] = self.color
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Character":
        """Create a character from its catalog record.

        Raises:
            KeyError: If ``id`` or ``name`` is missing.
        """
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            traits=data.get("traits") or "",
            bio=data.get("bio") or "",
            appearance=data.get("appearance"),
            active=bool(data.get("active", True)),
            names=CharacterNames.from_dict(data.get("names")),
            relationships=list(data.get("relationships") or []),
            tags=list(data.get("tags") or []),
            notes=data.get("notes"),
            color=data.get("color"),
        )
