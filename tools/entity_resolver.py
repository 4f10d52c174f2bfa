"""Resolve character and location references against the live catalogs.

Deleting an entity while chapters still reference it is a recoverable state,
so resolution never raises: a dangling id resolves to placeholder text with an
``unresolved`` status and an error message the caller can present.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from models.character import Character
from models.enums import CharacterContext, ResolutionStatus
from models.location import Location
from models.nodes import CharacterRef, ContentNode, LineBreak, LocationRef, TextNode

UNKNOWN_CHARACTER = "[Unknown Character]"
UNKNOWN_LOCATION = "[Unknown Location]"


def character_display_name(character: Character, context: CharacterContext | str) -> str:
    """Pick the name a character is shown by in ``context``.

    Order: the name for the context, then the narrative name, then the
    canonical name.
    """
    context = CharacterContext(context)
    return (
        character.names.get(context)
        or character.names.narrative
        or character.name
    )


def location_display_name(location: Location) -> str:
    """Pick a location's display name: full, then short, then canonical."""
    return location.names.full or location.names.short or location.name


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    text: str
    color: Optional[str] = None
    error: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


class EntityResolver:
    """Id-indexed view over the character and location catalogs."""

    def __init__(
        self,
        characters: Iterable[Character] = (),
        locations: Iterable[Location] = (),
    ):
        self.characters: dict[str, Character] = {c.id: c for c in characters}
        self.locations: dict[str, Location] = {l.id: l for l in locations}

    def character(self, character_id: str) -> Optional[Character]:
        return self.characters.get(character_id)

    def location(self, location_id: str) -> Optional[Location]:
        return self.locations.get(location_id)

    def resolve_character(
        self,
        character_id: str,
        context: CharacterContext | str = CharacterContext.NARRATIVE,
    ) -> Resolution:
        character = self.characters.get(character_id)
        if character is None:
            return Resolution(
                status=ResolutionStatus.UNRESOLVED,
                text=UNKNOWN_CHARACTER,
                error=f"Character '{character_id}' not found",
            )
        return Resolution(
            status=ResolutionStatus.RESOLVED,
            text=character_display_name(character, context),
            color=character.color,
        )

    def resolve_location(self, location_id: str) -> Resolution:
        location = self.locations.get(location_id)
        if location is None:
            return Resolution(
                status=ResolutionStatus.UNRESOLVED,
                text=UNKNOWN_LOCATION,
                error=f"Location '{location_id}' not found",
            )
        return Resolution(
            status=ResolutionStatus.RESOLVED,
            text=location_display_name(location),
            color=location.color,
        )

    def resolve(self, node: ContentNode) -> Resolution:
        """Resolve any node to its display text.

        Text and line-break nodes always resolve to their own text.
        """
        if isinstance(node, TextNode):
            return Resolution(ResolutionStatus.RESOLVED, node.content)
        if isinstance(node, CharacterRef):
            return self.resolve_character(node.character_id, node.context)
        if isinstance(node, LocationRef):
            return self.resolve_location(node.location_id)
        if isinstance(node, LineBreak):
            return Resolution(ResolutionStatus.RESOLVED, "\n")
        raise TypeError(f"Not a content node: {node!r}")

    def unresolved(self, nodes: Iterable[ContentNode]) -> list[ContentNode]:
        """Return the reference nodes whose entity is missing."""
        return [
            node for node in nodes
            if isinstance(node, (CharacterRef, LocationRef)) and not self.resolve(node).resolved
        ]
