"""Tests for the frontmatter codec."""

import pytest


CHAPTER_FIELDS = {
    "order": 1,
    "title": "Chapter 1 - The Beginning",
    "tags": ["intro"],
    "characters": ["protagonist"],
    "location": "",
}


class TestSerialize:
    def test_layout(self):
        from tools.frontmatter import serialize
        raw = serialize("Body text\n", CHAPTER_FIELDS)
        assert raw == (
            "---\n"
            "order: 1\n"
            'title: "Chapter 1 - The Beginning"\n'
            'tags: ["intro"]\n'
            'characters: ["protagonist"]\n'
            'location: ""\n'
            "---\n"
            "\n"
            "Body text\n"
        )

    def test_empty_metadata(self):
        from tools.frontmatter import serialize
        assert serialize("x", {}) == "---\n---\n\nx"


class TestRoundTrip:
    @pytest.mark.parametrize("metadata,body", [
        (CHAPTER_FIELDS, "# Chapter 1\n\nWrite your story here...\n"),
        ({}, "no metadata"),
        ({"title": 'He said "no": twice'}, ""),
        ({"title": "multi\nline", "tags": ["a: b", "[c]", "#d"]}, "\nstarts with a newline"),
        ({"order": 3, "draft": True, "rating": 4.5, "nested": {"k": "v"}, "empty": None}, "---\nnot a block\n---"),
        ({"title": "Ünïcode ✓"}, "Zoë: \"Bonjour\"\r\n"),
    ])
    def test_parse_inverts_serialize(self, metadata, body):
        from tools.frontmatter import parse, serialize
        assert parse(serialize(body, metadata)) == (metadata, body)


class TestParse:
    def test_missing_block(self):
        from tools.frontmatter import parse
        assert parse("Just prose.\n") == ({}, "Just prose.\n")

    def test_unterminated_block(self):
        from tools.frontmatter import parse
        raw = "---\ntitle: x\nBody"
        assert parse(raw) == ({}, raw)

    def test_malformed_yaml(self):
        from tools.frontmatter import parse
        raw = "---\ntitle: [unclosed\n---\n\nBody"
        assert parse(raw) == ({}, raw)

    def test_non_mapping_block(self):
        from tools.frontmatter import parse
        raw = "---\n- a\n- b\n---\n\nBody"
        assert parse(raw) == ({}, raw)

    def test_unquoted_lists_from_hand_written_files(self):
        from tools.frontmatter import parse
        metadata, body = parse("---\norder: 1\ntags: [intro, action]\n---\n\nText")
        assert metadata == {"order": 1, "tags": ["intro", "action"]}
        assert body == "Text"

    def test_crlf_line_endings(self):
        from tools.frontmatter import parse
        metadata, body = parse("---\r\ntitle: \"T\"\r\n---\r\n\r\nBody")
        assert metadata == {"title": "T"}
        assert body == "Body"


class TestChapterMetadata:
    def test_defaults(self):
        from tools.frontmatter import chapter_metadata
        metadata = chapter_metadata({})
        assert metadata.order == 0
        assert metadata.title == "Untitled"
        assert metadata.tags == []
        assert metadata.characters == []
        assert metadata.location == ""
        assert metadata.extra == {}

    def test_coercion(self):
        from tools.frontmatter import chapter_metadata
        metadata = chapter_metadata({"order": "3", "tags": "solo", "characters": None, "location": None})
        assert metadata.order == 3
        assert metadata.tags == ["solo"]
        assert metadata.characters == []
        assert metadata.location == ""

    def test_bad_order_defaults_to_zero(self):
        from tools.frontmatter import chapter_metadata
        assert chapter_metadata({"order": "first"}).order == 0
        assert chapter_metadata({"order": True}).order == 0

    def test_unknown_keys_survive_a_round_trip(self):
        from tools.frontmatter import parse_chapter, serialize_chapter
        metadata, body = parse_chapter("---\norder: 2\npov: \"sarah\"\n---\n\nText")
        assert metadata.extra == {"pov": "sarah"}
        again, _ = parse_chapter(serialize_chapter(body, metadata))
        assert again.extra == {"pov": "sarah"}
        assert again.order == 2

    def test_to_mapping_key_order(self):
        from models.chapter import ChapterMetadata
        mapping = ChapterMetadata(order=1, title="T", extra={"pov": "x"}).to_mapping()
        assert list(mapping) == ["order", "title", "tags", "characters", "location", "pov"]
