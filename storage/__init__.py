"""Storage package: the read/write/list collaborator and its backends."""

from config.settings import Settings
from storage.base import (
    DirectorySelection,
    StorageBackend,
    StorageResult,
    base_name,
    join_path,
    parent_path,
)
from storage.filesystem import FileSystemStorage
from storage.memory import MemoryStorage


def create_storage(settings: Settings) -> StorageBackend:
    """Return the backend named by ``settings.storage_backend``."""
    if settings.storage_backend == "memory":
        return MemoryStorage()
    return FileSystemStorage()


__all__ = [
    "DirectorySelection",
    "StorageBackend",
    "StorageResult",
    "FileSystemStorage",
    "MemoryStorage",
    "create_storage",
    "join_path",
    "parent_path",
    "base_name",
]
