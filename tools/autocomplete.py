"""Entity suggestions for the reference autocomplete dropdown."""

from typing import Iterable

from models.character import Character
from models.enums import EntityKind
from models.location import Location
from models.results import AutocompleteItem

DEFAULT_LIMIT = 10


def autocomplete(
    query: str,
    characters: Iterable[Character],
    locations: Iterable[Location],
    limit: int = DEFAULT_LIMIT,
) -> list[AutocompleteItem]:
    """Return active entities whose name contains ``query``, case-insensitively.

    Characters come before locations, each in catalog order; there is no
    other ranking. An empty query matches every active entity. The result is
    capped at ``limit`` items.
    """
    needle = query.strip().casefold()
    items: list[AutocompleteItem] = []

    for character in characters:
        if character.active and needle in character.name.casefold():
            items.append(AutocompleteItem(
                id=character.id,
                name=character.name,
                kind=EntityKind.CHARACTER,
                description=character.traits or None,
            ))

    for location in locations:
        if location.active and needle in location.name.casefold():
            items.append(AutocompleteItem(
                id=location.id,
                name=location.name,
                kind=EntityKind.LOCATION,
                description=location.description or None,
            ))

    return items[:max(limit, 0)]
