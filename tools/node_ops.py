"""Pure operations over an ordered sequence of content nodes.

Every function returns a new list and leaves its input untouched. Insert
indices are clamped silently to ``[0, len(nodes)]``.
"""

import dataclasses
import logging
from difflib import SequenceMatcher
from typing import Any, Iterable, Optional, Sequence

from config.exceptions import InvalidNodePatchError
from models.character import Character
from models.enums import CharacterContext
from models.location import Location
from models.nodes import CharacterRef, ContentNode, LineBreak, LocationRef, TextNode
from models.tab import Cursor
from tools.entity_resolver import EntityResolver

logger = logging.getLogger(__name__)


def insert_node_at(nodes: Sequence[ContentNode], index: int, node: ContentNode) -> list[ContentNode]:
    """Insert ``node`` so it sits at ``index`` in the result."""
    index = min(max(index, 0), len(nodes))
    return [*nodes[:index], node, *nodes[index:]]


def remove_node_at(nodes: Sequence[ContentNode], index: int) -> list[ContentNode]:
    """Remove the node at ``index``; out-of-range indices leave the sequence unchanged."""
    return [n for i, n in enumerate(nodes) if i != index]


def update_node(nodes: Sequence[ContentNode], node_id: str, patch: dict[str, Any]) -> list[ContentNode]:
    """Replace the node with ``node_id`` by a shallow-merged copy.

    A missing ``node_id`` returns the sequence unchanged.

    Raises:
        InvalidNodePatchError: If the patch names ``id`` or a field the
            node's variant does not have.
    """
    result = []
    for node in nodes:
        if node.id != node_id:
            result.append(node)
            continue
        allowed = {f.name for f in dataclasses.fields(node)} - {"id"}
        bad = sorted(set(patch) - allowed)
        if bad:
            raise InvalidNodePatchError(node_id, bad)
        changes = dict(patch)
        if "context" in changes:
            changes["context"] = CharacterContext(changes["context"])
        result.append(dataclasses.replace(node, **changes))
    return result


def find_node_index(nodes: Sequence[ContentNode], node_id: str) -> Optional[int]:
    for i, node in enumerate(nodes):
        if node.id == node_id:
            return i
    return None


def advance_cursor(cursor: Cursor, insert_index: int) -> Cursor:
    """Keep the cursor after a node inserted at or before it."""
    if insert_index <= cursor.index:
        return Cursor(cursor.index + 1)
    return cursor


def render_nodes_to_text(
    nodes: Iterable[ContentNode],
    characters: Iterable[Character] = (),
    locations: Iterable[Location] = (),
    resolver: Optional[EntityResolver] = None,
) -> str:
    """Render nodes to the plain text used for word counts and the persisted body.

    Dangling references render as placeholder text.
    """
    resolver = resolver or EntityResolver(characters, locations)
    return "".join(resolver.resolve(node).text for node in nodes)


def rendered_offset(
    nodes: Sequence[ContentNode],
    index: int,
    resolver: EntityResolver,
) -> int:
    """Character offset in the rendered text where node ``index`` starts."""
    return len(render_nodes_to_text(nodes[:max(index, 0)], resolver=resolver))


def replace_character_in_nodes(
    nodes: Sequence[ContentNode], old_id: str, new_id: str,
) -> list[ContentNode]:
    return [
        dataclasses.replace(n, character_id=new_id)
        if isinstance(n, CharacterRef) and n.character_id == old_id else n
        for n in nodes
    ]


def replace_location_in_nodes(
    nodes: Sequence[ContentNode], old_id: str, new_id: str,
) -> list[ContentNode]:
    return [
        dataclasses.replace(n, location_id=new_id)
        if isinstance(n, LocationRef) and n.location_id == old_id else n
        for n in nodes
    ]


def validate_nodes(nodes: Sequence[ContentNode]) -> list[str]:
    """Return a message for every structural problem found."""
    errors = []
    seen: set[str] = set()
    for index, node in enumerate(nodes):
        if not node.id:
            errors.append(f"Node at index {index} missing ID")
        elif node.id in seen:
            errors.append(f"Node at index {index} has duplicate ID {node.id}")
        seen.add(node.id)
        if isinstance(node, CharacterRef) and not node.character_id:
            errors.append(f"Character node at index {index} missing characterId")
        if isinstance(node, LocationRef) and not node.location_id:
            errors.append(f"Location node at index {index} missing locationId")
    return errors


def cleanup_nodes(nodes: Sequence[ContentNode]) -> list[ContentNode]:
    """Drop blank text nodes and collapse runs of line breaks to one."""
    result: list[ContentNode] = []
    for node in nodes:
        if isinstance(node, TextNode) and not node.content.strip():
            continue
        if isinstance(node, LineBreak) and result and isinstance(result[-1], LineBreak):
            continue
        result.append(node)
    return result


def _signature(node: ContentNode) -> tuple:
    fields = dataclasses.astuple(node)
    return (type(node).__name__, *fields[1:])


def reconcile_ids(
    previous: Sequence[ContentNode], current: Sequence[ContentNode],
) -> list[ContentNode]:
    """Carry ids of unchanged nodes from ``previous`` over to ``current``.

    Used after re-parsing edited text so that nodes the edit did not touch
    keep the ids they had.
    """
    old_keys = [_signature(n) for n in previous]
    new_keys = [_signature(n) for n in current]
    result = list(current)
    matcher = SequenceMatcher(a=old_keys, b=new_keys, autojunk=False)
    for block in matcher.get_matching_blocks():
        for offset in range(block.size):
            old = previous[block.a + offset]
            result[block.b + offset] = dataclasses.replace(result[block.b + offset], id=old.id)
    logger.debug("Reconciled %d/%d node ids", sum(b.size for b in matcher.get_matching_blocks()), len(result))
    return result
