"""Typed edit requests queued into the document session.

The panels that produce these (character list, location list) fire and
forget; the session drains the queue in posting order.
"""

from dataclasses import dataclass
from typing import Union

from models.enums import CharacterContext


@dataclass(frozen=True)
class InsertDialogue:
    character_id: str
    text: str


@dataclass(frozen=True)
class InsertCharacterReference:
    character_id: str
    context: CharacterContext = CharacterContext.NARRATIVE


@dataclass(frozen=True)
class InsertLocationReference:
    location_id: str


SessionCommand = Union[InsertDialogue, InsertCharacterReference, InsertLocationReference]
