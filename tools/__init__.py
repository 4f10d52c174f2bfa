"""Tools package: pure node operations, parsing, resolution and codecs."""

from tools.node_ops import (
    insert_node_at,
    remove_node_at,
    update_node,
    advance_cursor,
    render_nodes_to_text,
    replace_character_in_nodes,
    replace_location_in_nodes,
    validate_nodes,
    cleanup_nodes,
    reconcile_ids,
)
from tools.node_parser import ParseResult, parse_text_to_nodes
from tools.entity_resolver import (
    EntityResolver,
    Resolution,
    UNKNOWN_CHARACTER,
    UNKNOWN_LOCATION,
    character_display_name,
    location_display_name,
)
from tools.autocomplete import autocomplete
from tools.frontmatter import parse, serialize, chapter_metadata, parse_chapter, serialize_chapter
from tools.dialogue import insert_dialogue_text
from tools.content_stats import ContentStats, calculate_content_stats, character_usage_in_nodes
from tools.text_utils import (
    count_words,
    count_characters,
    split_into_paragraphs,
    slugify,
    parse_dialogue_line,
    format_dialogue_line,
)

__all__ = [
    "insert_node_at",
    "remove_node_at",
    "update_node",
    "advance_cursor",
    "render_nodes_to_text",
    "replace_character_in_nodes",
    "replace_location_in_nodes",
    "validate_nodes",
    "cleanup_nodes",
    "reconcile_ids",
    "ParseResult",
    "parse_text_to_nodes",
    "EntityResolver",
    "Resolution",
    "UNKNOWN_CHARACTER",
    "UNKNOWN_LOCATION",
    "character_display_name",
    "location_display_name",
    "autocomplete",
    "parse",
    "serialize",
    "chapter_metadata",
    "parse_chapter",
    "serialize_chapter",
    "insert_dialogue_text",
    "ContentStats",
    "calculate_content_stats",
    "character_usage_in_nodes",
    "count_words",
    "count_characters",
    "split_into_paragraphs",
    "slugify",
    "parse_dialogue_line",
    "format_dialogue_line",
]
