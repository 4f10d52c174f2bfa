"""Statistics over a chapter's node sequence: word counts and entity usage."""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from models.enums import CharacterContext
from models.nodes import CharacterRef, ContentNode, LocationRef, TextNode
from tools.text_utils import count_words


@dataclass
class CharacterUsageStats:
    dialogue_count: int = 0
    narrative_count: int = 0
    reference_count: int = 0
    total_mentions: int = 0
    first_appearance: Optional[int] = None  # node index
    last_appearance: Optional[int] = None
    positions: list[int] = field(default_factory=list)


@dataclass
class LocationUsageStats:
    mention_count: int = 0
    first_appearance: Optional[int] = None
    last_appearance: Optional[int] = None


@dataclass
class ContentStats:
    total_words: int = 0
    total_characters: int = 0
    character_usage: dict[str, CharacterUsageStats] = field(default_factory=dict)
    location_usage: dict[str, LocationUsageStats] = field(default_factory=dict)
    dialogue_percentage: float = 0.0
    narrative_percentage: float = 0.0


def _count_context(usage: CharacterUsageStats, context: CharacterContext) -> None:
    if context is CharacterContext.DIALOGUE:
        usage.dialogue_count += 1
    elif context is CharacterContext.NARRATIVE:
        usage.narrative_count += 1
    else:
        usage.reference_count += 1


def calculate_content_stats(nodes: Sequence[ContentNode]) -> ContentStats:
    """Count prose words/characters and tally entity references by context.

    Words and characters are counted over text nodes only. The dialogue and
    narrative percentages are shares of the dialogue+narrative references.
    """
    stats = ContentStats()
    dialogue_refs = 0
    narrative_refs = 0

    for index, node in enumerate(nodes):
        if isinstance(node, TextNode):
            stats.total_words += count_words(node.content)
            stats.total_characters += len(node.content)
        elif isinstance(node, CharacterRef):
            usage = stats.character_usage.setdefault(
                node.character_id, CharacterUsageStats(first_appearance=index),
            )
            _count_context(usage, node.context)
            usage.total_mentions += 1
            usage.last_appearance = index
            usage.positions.append(index)
            if node.context is CharacterContext.DIALOGUE:
                dialogue_refs += 1
            elif node.context is CharacterContext.NARRATIVE:
                narrative_refs += 1
        elif isinstance(node, LocationRef):
            loc_usage = stats.location_usage.setdefault(
                node.location_id, LocationUsageStats(first_appearance=index),
            )
            loc_usage.mention_count += 1
            loc_usage.last_appearance = index

    counted = dialogue_refs + narrative_refs
    if counted:
        stats.dialogue_percentage = dialogue_refs / counted * 100
        stats.narrative_percentage = narrative_refs / counted * 100
    return stats


def character_usage_in_nodes(nodes: Sequence[ContentNode], character_id: str) -> CharacterUsageStats:
    """Usage of one character; zero counts when it is never referenced."""
    return calculate_content_stats(nodes).character_usage.get(character_id, CharacterUsageStats())
