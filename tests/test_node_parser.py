"""Tests for parsing prose into content nodes."""

import pytest

from models.character import Character, CharacterNames
from models.enums import CharacterContext
from models.location import Location, LocationNames
from models.nodes import CharacterRef, LineBreak, LocationRef, TextNode


@pytest.fixture
def catalogs():
    characters = [
        Character(id="alex", name="Alex"),
        Character(id="sarah", name="Sarah Connor", names=CharacterNames(dialogue="Sarah", narrative="Sarah")),
        Character(id="ann", name="Ann"),
        Character(id="annlee", name="Ann Lee"),
    ]
    locations = [Location(id="tavern", name="Rusty Anchor", names=LocationNames(full="the tavern"))]
    return characters, locations


def _shape(nodes):
    shape = []
    for node in nodes:
        if isinstance(node, TextNode):
            shape.append(("text", node.content))
        elif isinstance(node, CharacterRef):
            shape.append(("char", node.character_id, node.context.value))
        elif isinstance(node, LocationRef):
            shape.append(("loc", node.location_id))
        elif isinstance(node, LineBreak):
            shape.append(("br",))
    return shape


class TestParseTextToNodes:
    def test_empty_text(self, catalogs):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes("", *catalogs)
        assert result.nodes == [] and result.warnings == []

    def test_dialogue_line_of_known_speaker(self, catalogs):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes('Alex: "Hi"', *catalogs)
        assert _shape(result.nodes) == [("char", "alex", "dialogue"), ("text", ': "Hi"')]

    def test_dialogue_uses_dialogue_display_name(self, catalogs):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes('Sarah: "Run!"', *catalogs)
        assert _shape(result.nodes)[0] == ("char", "sarah", "dialogue")

    def test_mentions_become_references(self, catalogs):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes("Sarah walked into the tavern.", *catalogs)
        assert _shape(result.nodes) == [
            ("char", "sarah", "narrative"),
            ("text", " walked into "),
            ("loc", "tavern"),
            ("text", "."),
        ]

    def test_lines_are_joined_by_line_breaks(self, catalogs):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes("one\ntwo\n", *catalogs)
        assert _shape(result.nodes) == [("text", "one"), ("br",), ("text", "two"), ("br",)]

    def test_unknown_speaker_is_a_warning(self, catalogs):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes('Intro\nBob: "Hey"', *catalogs)
        assert result.warnings == ['Line 2: Unknown character "Bob"']
        assert _shape(result.nodes)[-1] == ("text", 'Bob: "Hey"')

    def test_names_match_whole_words_only(self, catalogs):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes("Alexander waved.", *catalogs)
        assert _shape(result.nodes) == [("text", "Alexander waved.")]

    def test_longest_name_wins(self, catalogs):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes("Ann Lee met Ann.", *catalogs)
        assert _shape(result.nodes) == [
            ("char", "annlee", "narrative"),
            ("text", " met "),
            ("char", "ann", "narrative"),
            ("text", "."),
        ]

    def test_no_catalogs_yields_plain_text(self):
        from tools.node_parser import parse_text_to_nodes
        result = parse_text_to_nodes('Alex: "Hi"\n')
        assert _shape(result.nodes) == [("text", 'Alex: "Hi"'), ("br",)]
        assert result.warnings == ['Line 1: Unknown character "Alex"']

    def test_rendering_reproduces_the_text(self, catalogs):
        from tools.node_ops import render_nodes_to_text
        from tools.node_parser import parse_text_to_nodes
        text = (
            "# Chapter 1\n\n"
            'Alex: "Did Sarah see the tavern?"\n'
            "Ann Lee laughed. Sarah Connor did not.\n"
            'Bob: "Who?"\n'
        )
        nodes = parse_text_to_nodes(text, *catalogs).nodes
        assert render_nodes_to_text(nodes, *catalogs) == text

    def test_node_ids_are_unique(self, catalogs):
        from tools.node_ops import validate_nodes
        from tools.node_parser import parse_text_to_nodes
        nodes = parse_text_to_nodes("Alex\nAlex\nAlex", *catalogs).nodes
        assert validate_nodes(nodes) == []
        assert all(n.context is CharacterContext.NARRATIVE for n in nodes if isinstance(n, CharacterRef))
