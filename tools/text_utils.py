"""Prose text utilities: counting, slugs, and speaker-line detection."""

import re
import unicodedata
from dataclasses import dataclass
from typing import Optional

# "<speaker>: <speech>" with a short speaker that carries no sentence punctuation.
_DIALOGUE_LINE = re.compile(r'^(?P<speaker>[^:\n".!?]{1,40}?): (?P<speech>.*)$')


@dataclass(frozen=True)
class DialogueLine:
    """A recognised ``Speaker: speech`` line.

    ``speech_start`` is the offset of the speech within the line.
    """
    speaker: str
    speech: str
    speech_start: int

    @property
    def quoted(self) -> bool:
        return len(self.speech) >= 2 and self.speech.startswith('"') and self.speech.endswith('"')


def count_words(text: str) -> int:
    """Count whitespace-separated words."""
    return len(text.split())


def count_characters(text: str, include_whitespace: bool = True) -> int:
    """Count characters, optionally ignoring whitespace."""
    if include_whitespace:
        return len(text)
    return len(re.sub(r"\s", "", text))


def split_into_paragraphs(text: str) -> list[str]:
    """Split text into paragraphs on blank lines."""
    paragraphs = re.split(r"\n\s*\n", text)
    return [p.strip() for p in paragraphs if p.strip()]


def slugify(text: str, fallback: str = "untitled") -> str:
    """Lowercase, hyphen-separated identifier for ids and filenames.

    Non-ASCII letters are kept (after NFKC normalisation) so names in any
    script still produce a readable slug.
    """
    text = unicodedata.normalize("NFKC", text).strip().lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text).strip("-")
    return text or fallback


def parse_dialogue_line(line: str) -> Optional[DialogueLine]:
    """Recognise a ``Speaker: speech`` line, or return None."""
    match = _DIALOGUE_LINE.match(line)
    if not match:
        return None
    speaker = match.group("speaker").strip()
    if not speaker:
        return None
    return DialogueLine(
        speaker=speaker,
        speech=match.group("speech"),
        speech_start=match.start("speech"),
    )


def format_dialogue_line(speaker: str, dialogue: str) -> str:
    return f'{speaker}: "{dialogue}"'
