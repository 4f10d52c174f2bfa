"""Tests for reference resolution against the entity catalogs."""

import pytest

from models.character import Character, CharacterNames
from models.enums import CharacterContext, ResolutionStatus
from models.location import Location, LocationNames
from models.nodes import CharacterRef, LineBreak, LocationRef, TextNode


@pytest.fixture
def resolver():
    from tools.entity_resolver import EntityResolver
    characters = [
        Character(id="eli", name="Elijah Stone", color="#ff0000",
                  names=CharacterNames(dialogue="Eli", reference="Mr. Stone")),
        Character(id="mara", name="Mara", names=CharacterNames(narrative="the captain")),
        Character(id="bo", name="Bo"),
    ]
    locations = [
        Location(id="keep", name="Keep", names=LocationNames(short="the keep", full="Blackwater Keep")),
        Location(id="yard", name="Yard", names=LocationNames(short="the yard")),
        Location(id="gate", name="Gate"),
    ]
    return EntityResolver(characters, locations)


class TestCharacterDisplayName:
    @pytest.mark.parametrize("character_id,context,expected", [
        ("eli", CharacterContext.DIALOGUE, "Eli"),
        ("eli", CharacterContext.REFERENCE, "Mr. Stone"),
        ("eli", CharacterContext.NARRATIVE, "Elijah Stone"),
        ("mara", CharacterContext.DIALOGUE, "the captain"),
        ("mara", CharacterContext.NARRATIVE, "the captain"),
        ("bo", CharacterContext.REFERENCE, "Bo"),
    ])
    def test_fallback_order(self, resolver, character_id, context, expected):
        assert resolver.resolve_character(character_id, context).text == expected

    def test_context_accepts_strings(self, resolver):
        assert resolver.resolve_character("eli", "dialogue").text == "Eli"


class TestLocationDisplayName:
    @pytest.mark.parametrize("location_id,expected", [
        ("keep", "Blackwater Keep"),
        ("yard", "the yard"),
        ("gate", "Gate"),
    ])
    def test_fallback_order(self, resolver, location_id, expected):
        assert resolver.resolve_location(location_id).text == expected


class TestResolution:
    def test_resolved_carries_color(self, resolver):
        resolution = resolver.resolve(CharacterRef(id="c", character_id="eli"))
        assert resolution.status is ResolutionStatus.RESOLVED
        assert resolution.color == "#ff0000"
        assert resolution.error is None

    def test_missing_character_is_unresolved(self, resolver):
        from tools.entity_resolver import UNKNOWN_CHARACTER
        resolution = resolver.resolve(CharacterRef(id="c", character_id="nobody"))
        assert not resolution.resolved
        assert resolution.text == UNKNOWN_CHARACTER
        assert "nobody" in resolution.error

    def test_missing_location_is_unresolved(self, resolver):
        resolution = resolver.resolve(LocationRef(id="l", location_id="moon"))
        assert resolution.status is ResolutionStatus.UNRESOLVED
        assert resolution.text == "[Unknown Location]"

    def test_text_and_line_break(self, resolver):
        assert resolver.resolve(TextNode(id="t", content="abc")).text == "abc"
        assert resolver.resolve(LineBreak(id="b")).text == "\n"

    def test_non_node_raises_type_error(self, resolver):
        with pytest.raises(TypeError):
            resolver.resolve("not a node")

    def test_unresolved_lists_dangling_references(self, resolver):
        nodes = [
            CharacterRef(id="c1", character_id="eli"),
            CharacterRef(id="c2", character_id="ghost"),
            LocationRef(id="l1", location_id="moon"),
            TextNode(id="t", content="x"),
        ]
        assert [n.id for n in resolver.unresolved(nodes)] == ["c2", "l1"]

    def test_lookup_is_by_id(self, resolver):
        assert resolver.character("mara").name == "Mara"
        assert resolver.location("nowhere") is None
