"""Cursor-aware insertion of a dialogue line into prose text.

Lines are recognised as dialogue only through the fixed ``"<speaker>: "``
prefix; this is a heuristic over line boundaries, not a general syntax.
"""

import logging
from typing import Optional

from tools.text_utils import DialogueLine, format_dialogue_line, parse_dialogue_line

logger = logging.getLogger(__name__)


def _separator_before(prefix: str) -> str:
    if not prefix or prefix.endswith("\n\n"):
        return ""
    if prefix.endswith("\n"):
        return "\n"
    return "\n\n"


def _separator_after(suffix: str) -> str:
    if not suffix or suffix.startswith("\n\n"):
        return ""
    if suffix.startswith("\n"):
        return "\n"
    return "\n\n"


def _split_speech(line: str, parsed: DialogueLine, offset: int) -> tuple[Optional[str], Optional[str]]:
    """Split a dialogue line at ``offset`` into two lines for the same speaker.

    Either side is None when it would carry no speech.
    """
    prefix = line[:parsed.speech_start]
    speech_offset = offset - parsed.speech_start
    if parsed.quoted:
        inner = parsed.speech[1:-1]
        cut = min(max(speech_offset - 1, 0), len(inner))
        head, tail = inner[:cut], inner[cut:]
        before = f'{prefix}"{head}"' if head else None
        after = f'{prefix}"{tail}"' if tail else None
    else:
        cut = min(max(speech_offset, 0), len(parsed.speech))
        head, tail = parsed.speech[:cut], parsed.speech[cut:]
        before = f"{prefix}{head}" if head.strip() else None
        after = f"{prefix}{tail.lstrip()}" if tail.strip() else None
    return before, after


def insert_dialogue_text(
    text: str,
    speaker: str,
    dialogue: str,
    start: int,
    end: Optional[int] = None,
) -> tuple[str, int]:
    """Insert ``speaker: "dialogue"`` at the cursor.

    Inside the speech of an existing dialogue line the line is split into the
    original speaker's text before the cursor, the new line, and the original
    speaker's text after the cursor. Anywhere else the new line becomes its
    own paragraph and a selected range ``[start, end)`` is kept immediately
    after it. Nothing is deleted in either case.

    Returns:
        The new text and the cursor offset at the end of the inserted line.
    """
    start = min(max(start, 0), len(text))
    end = start if end is None else min(max(end, start), len(text))
    new_line = format_dialogue_line(speaker, dialogue)

    line_start = text.rfind("\n", 0, start) + 1
    line_end = text.find("\n", start)
    if line_end == -1:
        line_end = len(text)
    line = text[line_start:line_end]
    parsed = parse_dialogue_line(line)

    if parsed is not None and end <= line_end:
        before, after = _split_speech(line, parsed, start - line_start)
        pieces = [p for p in (before, new_line, after) if p is not None]
        new_text = text[:line_start] + "\n".join(pieces) + text[line_end:]
        cursor = line_start + (len(before) + 1 if before is not None else 0) + len(new_line)
        logger.debug("Split dialogue line of '%s' for '%s'", parsed.speaker, speaker)
        return new_text, cursor

    before_text, tail_text = text[:start], text[start:]
    lead = _separator_before(before_text)
    trail = _separator_after(tail_text)
    new_text = before_text + lead + new_line + trail + tail_text
    cursor = len(before_text) + len(lead) + len(new_line)
    return new_text, cursor
