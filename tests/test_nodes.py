"""Tests for content nodes and the pure node-sequence operations."""

import pytest

from models.character import Character, CharacterNames
from models.enums import CharacterContext
from models.location import Location, LocationNames
from models.nodes import (
    CharacterRef,
    LineBreak,
    LocationRef,
    TextNode,
    character_ref,
    line_break,
    location_ref,
    text_node,
)


@pytest.fixture
def sequence():
    return [
        TextNode(id="t1", content="Hello "),
        CharacterRef(id="c1", character_id="alex", context=CharacterContext.NARRATIVE),
        LineBreak(id="b1"),
        LocationRef(id="l1", location_id="city"),
    ]


@pytest.fixture
def catalogs():
    characters = [
        Character(id="alex", name="Alexander", names=CharacterNames(dialogue="Alex", narrative="Xander")),
        Character(id="sam", name="Sam"),
    ]
    locations = [Location(id="city", name="Harbor City", names=LocationNames(short="the Harbor"))]
    return characters, locations


class TestNodeFactories:
    def test_ids_are_unique(self):
        ids = {text_node("x").id for _ in range(50)}
        assert len(ids) == 50

    def test_text_node_defaults_to_empty_content(self):
        assert text_node().content == ""

    def test_character_ref_coerces_context(self):
        node = character_ref("alex", "dialogue")
        assert node.context is CharacterContext.DIALOGUE

    def test_node_dict_round_trip(self):
        from models.nodes import node_from_dict, node_to_dict
        for node in (text_node("hi"), character_ref("alex", "reference"), location_ref("city"), line_break()):
            assert node_from_dict(node_to_dict(node)) == node

    def test_node_dict_uses_camel_case_keys(self):
        from models.nodes import node_to_dict
        data = node_to_dict(CharacterRef(id="c1", character_id="alex"))
        assert data == {"id": "c1", "type": "character", "characterId": "alex", "context": "narrative"}

    def test_unknown_type_raises(self):
        from models.nodes import node_from_dict
        with pytest.raises(ValueError):
            node_from_dict({"type": "image"})


class TestInsertNodeAt:
    @pytest.mark.parametrize("index", [0, 1, 2, 3, 4])
    def test_inserted_node_occupies_index(self, sequence, index):
        from tools.node_ops import insert_node_at
        node = text_node("new")
        result = insert_node_at(sequence, index, node)
        assert len(result) == len(sequence) + 1
        assert result[index] == node
        assert [n for n in result if n is not node] == sequence

    def test_empty_sequence(self):
        from tools.node_ops import insert_node_at
        node = line_break()
        assert insert_node_at([], 0, node) == [node]

    def test_out_of_range_index_is_clamped(self, sequence):
        from tools.node_ops import insert_node_at
        node = text_node("x")
        assert insert_node_at(sequence, 99, node)[-1] == node
        assert insert_node_at(sequence, -5, node)[0] == node

    def test_later_insert_at_same_index_wins(self):
        from tools.node_ops import insert_node_at
        first, second = text_node("a"), text_node("b")
        result = insert_node_at(insert_node_at([], 0, first), 0, second)
        assert result == [second, first]

    def test_input_is_not_mutated(self, sequence):
        from tools.node_ops import insert_node_at
        before = list(sequence)
        insert_node_at(sequence, 1, text_node("x"))
        assert sequence == before


class TestUpdateNode:
    def test_missing_id_is_a_no_op(self, sequence):
        from tools.node_ops import update_node
        assert update_node(sequence, "missing", {"content": "x"}) == sequence

    def test_shallow_merge(self, sequence):
        from tools.node_ops import update_node
        result = update_node(sequence, "t1", {"content": "Goodbye "})
        assert result[0] == TextNode(id="t1", content="Goodbye ")
        assert result[1:] == sequence[1:]

    def test_context_string_is_coerced(self, sequence):
        from tools.node_ops import update_node
        result = update_node(sequence, "c1", {"context": "dialogue"})
        assert result[1].context is CharacterContext.DIALOGUE

    def test_patching_id_raises(self, sequence):
        from config.exceptions import InvalidNodePatchError
        from tools.node_ops import update_node
        with pytest.raises(InvalidNodePatchError):
            update_node(sequence, "t1", {"id": "other"})

    def test_unknown_field_raises(self, sequence):
        from config.exceptions import InvalidNodePatchError
        from tools.node_ops import update_node
        with pytest.raises(InvalidNodePatchError, match="l1"):
            update_node(sequence, "l1", {"content": "x"})


class TestRemoveAndFind:
    def test_remove_node_at(self, sequence):
        from tools.node_ops import remove_node_at
        assert [n.id for n in remove_node_at(sequence, 1)] == ["t1", "b1", "l1"]

    def test_remove_out_of_range(self, sequence):
        from tools.node_ops import remove_node_at
        assert remove_node_at(sequence, 10) == sequence

    def test_find_node_index(self, sequence):
        from tools.node_ops import find_node_index
        assert find_node_index(sequence, "b1") == 2
        assert find_node_index(sequence, "zz") is None


class TestCursor:
    def test_insert_before_cursor_advances_it(self):
        from models.tab import Cursor
        from tools.node_ops import advance_cursor
        assert advance_cursor(Cursor(2), 0) == Cursor(3)
        assert advance_cursor(Cursor(2), 2) == Cursor(3)

    def test_insert_after_cursor_keeps_it(self):
        from models.tab import Cursor
        from tools.node_ops import advance_cursor
        assert advance_cursor(Cursor(2), 3) == Cursor(2)

    def test_clamp(self):
        from models.tab import Cursor
        assert Cursor(9).clamp(4) == Cursor(4)
        assert Cursor(-1).clamp(4) == Cursor(0)


class TestRenderNodesToText:
    def test_resolved_rendering(self, sequence, catalogs):
        from tools.node_ops import render_nodes_to_text
        characters, locations = catalogs
        assert render_nodes_to_text(sequence, characters, locations) == "Hello Xander\nthe Harbor"

    def test_dialogue_context_uses_dialogue_name(self, catalogs):
        from tools.node_ops import render_nodes_to_text
        characters, locations = catalogs
        nodes = [character_ref("alex", CharacterContext.DIALOGUE), text_node(': "Hi"')]
        assert render_nodes_to_text(nodes, characters, locations) == 'Alex: "Hi"'

    def test_dangling_references_render_placeholders(self, sequence):
        from tools.node_ops import render_nodes_to_text
        assert render_nodes_to_text(sequence) == "Hello [Unknown Character]\n[Unknown Location]"

    def test_empty_sequence(self):
        from tools.node_ops import render_nodes_to_text
        assert render_nodes_to_text([]) == ""

    def test_rendered_offset(self, sequence, catalogs):
        from tools.entity_resolver import EntityResolver
        from tools.node_ops import rendered_offset
        resolver = EntityResolver(*catalogs)
        assert rendered_offset(sequence, 0, resolver) == 0
        assert rendered_offset(sequence, 2, resolver) == len("Hello Xander")


class TestSequenceHelpers:
    def test_replace_character(self, sequence):
        from tools.node_ops import replace_character_in_nodes
        result = replace_character_in_nodes(sequence, "alex", "sam")
        assert result[1].character_id == "sam"
        assert result[1].id == "c1"

    def test_replace_location(self, sequence):
        from tools.node_ops import replace_location_in_nodes
        assert replace_location_in_nodes(sequence, "city", "port")[3].location_id == "port"

    def test_validate_reports_duplicates_and_missing_ids(self):
        from tools.node_ops import validate_nodes
        nodes = [TextNode(id="a"), TextNode(id="a"), CharacterRef(id="c", character_id="")]
        errors = validate_nodes(nodes)
        assert "Node at index 1 has duplicate ID a" in errors
        assert "Character node at index 2 missing characterId" in errors

    def test_validate_clean_sequence(self, sequence):
        from tools.node_ops import validate_nodes
        assert validate_nodes(sequence) == []

    def test_cleanup_drops_blank_text_and_collapses_breaks(self):
        from tools.node_ops import cleanup_nodes
        nodes = [TextNode(id="a", content="  "), LineBreak(id="b"), LineBreak(id="c"), TextNode(id="d", content="x")]
        assert [n.id for n in cleanup_nodes(nodes)] == ["b", "d"]


class TestReconcileIds:
    def test_unchanged_nodes_keep_ids(self):
        from tools.node_ops import reconcile_ids
        previous = [TextNode(id="t1", content="One"), LineBreak(id="b1"), TextNode(id="t2", content="Two")]
        current = [text_node("One"), line_break(), text_node("Two!")]
        result = reconcile_ids(previous, current)
        assert result[0].id == "t1"
        assert result[1].id == "b1"
        assert result[2].id == current[2].id
        assert result[2].content == "Two!"

    def test_inserted_node_keeps_fresh_id(self):
        from tools.node_ops import reconcile_ids
        previous = [TextNode(id="t1", content="A"), TextNode(id="t2", content="B")]
        inserted = text_node("new")
        result = reconcile_ids(previous, [text_node("A"), inserted, text_node("B")])
        assert [n.id for n in result] == ["t1", inserted.id, "t2"]
