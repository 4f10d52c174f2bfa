"""Content node variants that make up a chapter's structured content."""

import uuid
from dataclasses import dataclass
from typing import Union

from models.enums import CharacterContext, NodeType


@dataclass(frozen=True)
class TextNode:
    """A run of plain prose. ``content`` may be empty but is never None."""
    id: str
    content: str = ""


@dataclass(frozen=True)
class CharacterRef:
    """A reference to a character, rendered by the name for its context."""
    id: str
    character_id: str
    context: CharacterContext = CharacterContext.NARRATIVE


@dataclass(frozen=True)
class LocationRef:
    """A reference to a location."""
    id: str
    location_id: str


@dataclass(frozen=True)
class LineBreak:
    """A hard line break."""
    id: str


ContentNode = Union[TextNode, CharacterRef, LocationRef, LineBreak]

NODE_CLASSES = (TextNode, CharacterRef, LocationRef, LineBreak)


def new_node_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def text_node(content: str = "") -> TextNode:
    return TextNode(id=new_node_id("text"), content=content)


def character_ref(
    character_id: str,
    context: CharacterContext | str = CharacterContext.NARRATIVE,
) -> CharacterRef:
    return CharacterRef(
        id=new_node_id("char"),
        character_id=character_id,
        context=CharacterContext(context),
    )


def location_ref(location_id: str) -> LocationRef:
    return LocationRef(id=new_node_id("loc"), location_id=location_id)


def line_break() -> LineBreak:
    return LineBreak(id=new_node_id("br"))


def node_type(node: ContentNode) -> NodeType:
    """Return the discriminant of a node."""
    if isinstance(node, TextNode):
        return NodeType.TEXT
    if isinstance(node, CharacterRef):
        return NodeType.CHARACTER
    if isinstance(node, LocationRef):
        return NodeType.LOCATION
    if isinstance(node, LineBreak):
        return NodeType.LINEBREAK
    raise TypeError(f"Not a content node: {node!r}")


def node_to_dict(node: ContentNode) -> dict:
    """Serialize a node to its JSON form."""
    data = {"id": node.id, "type": node_type(node).value}
    if isinstance(node, TextNode):
        data["content"] = node.content
    elif isinstance(node, CharacterRef):
        data["characterId"] = node.character_id
        data["context"] = node.context.value
    elif isinstance(node, LocationRef):
        data["locationId"] = node.location_id
    return data


def node_from_dict(data: dict) -> ContentNode:
    """Build a node from its JSON form.

    Raises:
        ValueError: If ``type`` is missing or unknown.
    """
    kind = NodeType(data.get("type", ""))
    node_id = data.get("id") or new_node_id(kind.value)
    if kind is NodeType.TEXT:
        return TextNode(id=node_id, content=data.get("content") or "")
    if kind is NodeType.CHARACTER:
        return CharacterRef(
            id=node_id,
            character_id=data.get("characterId", ""),
            context=CharacterContext(data.get("context", CharacterContext.NARRATIVE.value)),
        )
    if kind is NodeType.LOCATION:
        return LocationRef(id=node_id, location_id=data.get("locationId", ""))
    return LineBreak(id=node_id)
