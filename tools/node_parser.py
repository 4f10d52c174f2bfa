"""Convert prose text into a content node sequence.

This is the inverse of ``render_nodes_to_text``: lines are joined by line
break nodes, a ``Speaker: ...`` line whose speaker is a known character opens
with a dialogue reference, and entity names found in the prose become
references. A name only becomes a reference when the reference renders back
to exactly the matched text, so rendering the parsed nodes reproduces the
input whenever every mention resolves.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from models.character import Character
from models.enums import CharacterContext
from models.location import Location
from models.nodes import ContentNode, character_ref, line_break, location_ref, text_node
from tools.entity_resolver import character_display_name, location_display_name
from tools.text_utils import parse_dialogue_line

logger = logging.getLogger(__name__)

# Contexts detected from plain prose, in order of preference.
_PROSE_CONTEXTS = (CharacterContext.NARRATIVE, CharacterContext.REFERENCE)


@dataclass
class ParseResult:
    nodes: list[ContentNode] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class _MentionIndex:
    """Display-name lookup table plus one alternation regex over all names."""

    def __init__(self, characters: Iterable[Character], locations: Iterable[Location]):
        self.targets: dict[str, tuple] = {}
        self.speakers: dict[str, str] = {}
        for character in characters:
            speaker = character_display_name(character, CharacterContext.DIALOGUE)
            self.speakers.setdefault(speaker, character.id)
            for context in _PROSE_CONTEXTS:
                name = character_display_name(character, context)
                if name and name not in self.targets:
                    self.targets[name] = ("character", character.id, context)
        for location in locations:
            name = location_display_name(location)
            if name and name not in self.targets:
                self.targets[name] = ("location", location.id, None)

        self.pattern: Optional[re.Pattern] = None
        if self.targets:
            names = sorted(self.targets, key=len, reverse=True)
            alternation = "|".join(re.escape(n) for n in names)
            self.pattern = re.compile(rf"(?<!\w)(?:{alternation})(?!\w)")

    def node_for(self, name: str) -> ContentNode:
        kind, entity_id, context = self.targets[name]
        if kind == "character":
            return character_ref(entity_id, context)
        return location_ref(entity_id)

    def split(self, text: str) -> list[ContentNode]:
        """Split a single line into text and reference nodes."""
        if not text:
            return []
        if self.pattern is None:
            return [text_node(text)]
        nodes: list[ContentNode] = []
        position = 0
        for match in self.pattern.finditer(text):
            if match.start() > position:
                nodes.append(text_node(text[position:match.start()]))
            nodes.append(self.node_for(match.group(0)))
            position = match.end()
        if position < len(text):
            nodes.append(text_node(text[position:]))
        return nodes


def parse_text_to_nodes(
    text: str,
    characters: Iterable[Character] = (),
    locations: Iterable[Location] = (),
) -> ParseResult:
    """Parse prose into nodes, collecting warnings for unknown speakers."""
    index = _MentionIndex(characters, locations)
    result = ParseResult()
    if not text:
        return result

    for line_number, line in enumerate(text.split("\n"), start=1):
        if line_number > 1:
            result.nodes.append(line_break())

        dialogue = parse_dialogue_line(line)
        if dialogue is not None and line.startswith(dialogue.speaker):
            speaker_id = index.speakers.get(dialogue.speaker)
            if speaker_id is not None:
                result.nodes.append(character_ref(speaker_id, CharacterContext.DIALOGUE))
                result.nodes.extend(index.split(line[len(dialogue.speaker):]))
                continue
            result.warnings.append(f'Line {line_number}: Unknown character "{dialogue.speaker}"')

        result.nodes.extend(index.split(line))

    if result.warnings:
        logger.debug("Parsed %d nodes with %d warnings", len(result.nodes), len(result.warnings))
    return result
