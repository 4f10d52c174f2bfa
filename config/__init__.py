"""Configuration package: settings, logging and exceptions."""

from config.exceptions import (
    NovelIDEError,
    StorageError,
    CatalogError,
    ValidationError,
    InvalidNodePatchError,
    InvalidEntityError,
    UnresolvedReferenceError,
    InvalidConfigError,
    EntityError,
    EntityNotFoundError,
    EntityInUseError,
    LocationCycleError,
    SessionError,
    NoActiveTabError,
    UnknownTabError,
    SaveInProgressError,
    ProjectNotLoadedError,
)
from config.logging_config import setup_logging
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "NovelIDEError",
    "StorageError",
    "CatalogError",
    "ValidationError",
    "InvalidNodePatchError",
    "InvalidEntityError",
    "UnresolvedReferenceError",
    "InvalidConfigError",
    "EntityError",
    "EntityNotFoundError",
    "EntityInUseError",
    "LocationCycleError",
    "SessionError",
    "NoActiveTabError",
    "UnknownTabError",
    "SaveInProgressError",
    "ProjectNotLoadedError",
]
