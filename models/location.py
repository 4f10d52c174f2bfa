"""Location catalog data model."""

from dataclasses import dataclass, field
from typing import Optional

from models.enums import LocationType

DEFAULT_LOCATION_COLOR = "#a855f7"


@dataclass
class LocationNames:
    """Alternative display names for a location."""
    short: Optional[str] = None
    full: Optional[str] = None
    description: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in (
            ("short", self.short),
            ("full", self.full),
            ("description", self.description),
        ) if v}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "LocationNames":
        data = data or {}
        return cls(
            short=data.get("short") or None,
            full=data.get("full") or None,
            description=data.get("description") or None,
        )


@dataclass
class Location:
    """Represents a place in the story world.

    ``parent_location`` and ``sub_locations`` form a hierarchy; the project
    store keeps both sides consistent and refuses cyclic parents.
    """
    id: str
    name: str
    description: Optional[str] = None
    type: LocationType = LocationType.INDOOR
    names: LocationNames = field(default_factory=LocationNames)
    parent_location: Optional[str] = None
    color: str = DEFAULT_LOCATION_COLOR
    active: bool = True
    sub_locations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "color": self.color,
            "active": self.active,
        }
        if self.description is not None:
            data["description"] = self.description
        names = self.names.to_dict()
        if names:
            data["names"] = names
        if self.parent_location:
            data["parentLocation"] = self.parent_location
        if self.sub_locations:
            data["subLocations"] = list(self.sub_locations)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Location":
        """Create a location from its catalog record.

        Raises:
            KeyError: If ``id`` or ``name`` is missing.
            ValueError: If ``type`` is not a known location type.
        """
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=data.get("description"),
            type=LocationType(data.get("type") or LocationType.INDOOR.value),
            names=LocationNames.from_dict(data.get("names")),
            parent_location=data.get("parentLocation") or None,
            color=data.get("color") or DEFAULT_LOCATION_COLOR,
            active=bool(data.get("active", True)),
            sub_locations=list(data.get("subLocations") or []),
        )
