"""Enumerations for content nodes, entities, and session tabs."""

from enum import Enum


class NodeType(str, Enum):
    TEXT = "text"
    CHARACTER = "character"
    LOCATION = "location"
    LINEBREAK = "linebreak"


class CharacterContext(str, Enum):
    DIALOGUE = "dialogue"
    NARRATIVE = "narrative"
    REFERENCE = "reference"


class LocationType(str, Enum):
    INDOOR = "indoor"
    OUTDOOR = "outdoor"
    VEHICLE = "vehicle"
    ABSTRACT = "abstract"


class TabKind(str, Enum):
    CHAPTER = "chapter"
    IDEA = "idea"
    CHARACTER = "character"
    LOCATION = "location"


class EntityKind(str, Enum):
    CHARACTER = "character"
    LOCATION = "location"


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"


class UsageType(str, Enum):
    FRONTMATTER = "frontmatter"
    DIALOGUE = "dialogue"
    NARRATIVE = "narrative"
    REFERENCE = "reference"
    LOCATION = "location"
