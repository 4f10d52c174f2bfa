"""Frontmatter codec: persisted document text <-> (metadata, body).

A persisted document is a ``---`` line, one ``key: value`` line per metadata
key (strings double-quoted, sequences as bracketed lists), a closing ``---``
line, one blank line, then the body verbatim. ``parse(serialize(body, m))``
returns ``(m, body)`` for any mapping of YAML-representable values.

The codec knows nothing about content nodes.
"""

import logging
import re
from typing import Any, Mapping

import yaml

from models.chapter import ChapterMetadata

logger = logging.getLogger(__name__)

DELIMITER = "---"

_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<meta>.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
_PLAIN_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")
_DOCUMENT_END = "\n...\n"

CHAPTER_FIELDS = ("order", "title", "tags", "characters", "location")


class _FrontmatterDumper(yaml.SafeDumper):
    """SafeDumper that quotes strings and keeps collections on one line."""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.Node:
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')


def _represent_sequence(dumper: yaml.SafeDumper, data) -> yaml.Node:
    return dumper.represent_sequence("tag:yaml.org,2002:seq", list(data), flow_style=True)


def _represent_mapping(dumper: yaml.SafeDumper, data: dict) -> yaml.Node:
    return dumper.represent_mapping("tag:yaml.org,2002:map", data, flow_style=True)


_FrontmatterDumper.add_representer(str, _represent_str)
_FrontmatterDumper.add_representer(list, _represent_sequence)
_FrontmatterDumper.add_representer(tuple, _represent_sequence)
_FrontmatterDumper.add_representer(dict, _represent_mapping)


def _dump_value(value: Any) -> str:
    text = yaml.dump(
        value,
        Dumper=_FrontmatterDumper,
        allow_unicode=True,
        sort_keys=False,
        width=float("inf"),
    )
    if text.endswith(_DOCUMENT_END):
        text = text[: -len(_DOCUMENT_END)]
    return text.rstrip("\n")


def _dump_key(key: Any) -> str:
    if isinstance(key, str) and _PLAIN_KEY.match(key) and yaml.safe_load(key) == key:
        return key
    return _dump_value(key)


def serialize(body: str, metadata: Mapping[str, Any]) -> str:
    """Prefix ``body`` with a metadata block.

    Raises:
        yaml.representer.RepresenterError: If a value has no YAML form.
    """
    lines = [DELIMITER]
    for key, value in metadata.items():
        lines.append(f"{_dump_key(key)}: {_dump_value(value)}")
    lines.append(DELIMITER)
    return "\n".join(lines) + "\n\n" + body


def parse(raw: str) -> tuple[dict[str, Any], str]:
    """Split ``raw`` into its metadata mapping and body.

    A missing, unterminated or unparseable block yields ``({}, raw)``.
    """
    match = _FRONTMATTER_RE.match(raw)
    if match is None:
        if raw.startswith(DELIMITER):
            logger.warning("Unterminated frontmatter block; treating whole text as body")
        else:
            logger.debug("No frontmatter block found")
        return {}, raw

    try:
        metadata = yaml.safe_load(match.group("meta"))
    except yaml.YAMLError as e:
        logger.warning("Malformed frontmatter, using defaults: %s", e)
        return {}, raw

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        logger.warning("Frontmatter is a %s, not a mapping; using defaults", type(metadata).__name__)
        return {}, raw

    body = raw[match.end():]
    if body.startswith("\r\n"):
        body = body[2:]
    elif body.startswith("\n"):
        body = body[1:]
    return metadata, body


def _coerce_order(value: Any) -> int:
    if isinstance(value, bool):
        logger.warning("Frontmatter order %r is not an integer; using 0", value)
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    if value is not None:
        logger.warning("Frontmatter order %r is not an integer; using 0", value)
    return 0


def _coerce_list(key: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    logger.warning("Frontmatter %s %r is not a list; wrapping it", key, value)
    return [str(value)]


def chapter_metadata(mapping: Mapping[str, Any]) -> ChapterMetadata:
    """Read the recognised chapter fields with their defaults.

    Unrecognised keys are kept in ``extra``.
    """
    title = mapping.get("title")
    location = mapping.get("location")
    return ChapterMetadata(
        order=_coerce_order(mapping.get("order")),
        title=str(title) if title not in (None, "") else "Untitled",
        tags=_coerce_list("tags", mapping.get("tags")),
        characters=_coerce_list("characters", mapping.get("characters")),
        location=str(location) if location is not None else "",
        extra={k: v for k, v in mapping.items() if k not in CHAPTER_FIELDS},
    )


def parse_chapter(raw: str) -> tuple[ChapterMetadata, str]:
    metadata, body = parse(raw)
    return chapter_metadata(metadata), body


def serialize_chapter(body: str, metadata: ChapterMetadata) -> str:
    return serialize(body, metadata.to_mapping())
