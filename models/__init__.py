"""Models package: content nodes, documents, catalog entities and tabs."""

from models.nodes import (
    ContentNode,
    TextNode,
    CharacterRef,
    LocationRef,
    LineBreak,
    text_node,
    character_ref,
    location_ref,
    line_break,
    node_to_dict,
    node_from_dict,
)
from models.chapter import ChapterMetadata, StructuredChapter, Idea
from models.character import Character, CharacterNames
from models.location import Location, LocationNames
from models.tab import Tab, Cursor, TextSelection
from models.results import OperationResult, AutocompleteItem, EntityUsage
from models.enums import (
    NodeType,
    CharacterContext,
    LocationType,
    TabKind,
    EntityKind,
    ResolutionStatus,
    UsageType,
)

__all__ = [
    "ContentNode",
    "TextNode",
    "CharacterRef",
    "LocationRef",
    "LineBreak",
    "text_node",
    "character_ref",
    "location_ref",
    "line_break",
    "node_to_dict",
    "node_from_dict",
    "ChapterMetadata",
    "StructuredChapter",
    "Idea",
    "Character",
    "CharacterNames",
    "Location",
    "LocationNames",
    "Tab",
    "Cursor",
    "TextSelection",
    "OperationResult",
    "AutocompleteItem",
    "EntityUsage",
    "NodeType",
    "CharacterContext",
    "LocationType",
    "TabKind",
    "EntityKind",
    "ResolutionStatus",
    "UsageType",
]
