"""Tests for prose text utility functions."""

import pytest


class TestCountWords:
    def test_empty_string(self):
        from tools.text_utils import count_words
        assert count_words("") == 0

    def test_whitespace_separated(self):
        from tools.text_utils import count_words
        assert count_words("The storm  hit\nHarbor City.") == 5

    def test_only_whitespace(self):
        from tools.text_utils import count_words
        assert count_words("   \n\t") == 0


class TestCountCharacters:
    def test_including_whitespace(self):
        from tools.text_utils import count_characters
        assert count_characters("a b\n") == 4

    def test_excluding_whitespace(self):
        from tools.text_utils import count_characters
        assert count_characters("a b\n", include_whitespace=False) == 2


class TestSplitIntoParagraphs:
    def test_blank_lines_separate(self):
        from tools.text_utils import split_into_paragraphs
        assert split_into_paragraphs("One.\n\nTwo.\n   \nThree.") == ["One.", "Two.", "Three."]

    def test_empty_text(self):
        from tools.text_utils import split_into_paragraphs
        assert split_into_paragraphs("\n\n") == []


class TestSlugify:
    def test_spaces_and_punctuation(self):
        from tools.text_utils import slugify
        assert slugify("Chapter 1 - The Beginning!") == "chapter-1-the-beginning"

    def test_fallback_for_empty(self):
        from tools.text_utils import slugify
        assert slugify("?!", fallback="character") == "character"

    def test_non_ascii_kept(self):
        from tools.text_utils import slugify
        assert slugify("Zoë Ångström") == "zoë-ångström"


class TestParseDialogueLine:
    def test_quoted_line(self):
        from tools.text_utils import parse_dialogue_line
        line = parse_dialogue_line('Alex: "Hello there"')
        assert line.speaker == "Alex"
        assert line.speech == '"Hello there"'
        assert line.speech_start == 6
        assert line.quoted

    def test_unquoted_speech(self):
        from tools.text_utils import parse_dialogue_line
        line = parse_dialogue_line("Main Character: I will go.")
        assert line.speaker == "Main Character"
        assert not line.quoted

    @pytest.mark.parametrize("text", [
        "Sarah walked into the tavern.",
        "He said it plainly. Then: nothing.",
        "",
        ": no speaker",
    ])
    def test_not_dialogue(self, text):
        from tools.text_utils import parse_dialogue_line
        assert parse_dialogue_line(text) is None

    def test_format_dialogue_line(self):
        from tools.text_utils import format_dialogue_line
        assert format_dialogue_line("Sarah", "Wait!") == 'Sarah: "Wait!"'
