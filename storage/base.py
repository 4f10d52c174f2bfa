"""Storage collaborator contract.

Every method is a coroutine returning a result value; backends never raise
for I/O failures, they report ``ok=False`` with an error message.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class StorageResult:
    ok: bool
    content: Optional[str] = None
    entries: Optional[list[str]] = None
    error: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "StorageResult":
        return cls(ok=False, error=error)


@dataclass(frozen=True)
class DirectorySelection:
    canceled: bool
    paths: list[str] = field(default_factory=list)


@runtime_checkable
class StorageBackend(Protocol):
    """Read/write/list contract the core depends on.

    Paths are strings with ``/`` separators.
    """

    async def select_directory(self) -> DirectorySelection:
        ...

    async def read_file(self, path: str) -> StorageResult:
        ...

    async def write_file(self, path: str, content: str) -> StorageResult:
        ...

    async def create_directory(self, path: str) -> StorageResult:
        ...

    async def read_directory(self, path: str) -> StorageResult:
        """List entry names (not full paths) directly under ``path``, sorted."""
        ...

    async def delete_file(self, path: str) -> StorageResult:
        ...


def join_path(*parts: str) -> str:
    """Join path segments with ``/``, ignoring empty segments."""
    present = [p for p in parts if p]
    if not present:
        return ""
    path = present[0].rstrip("/")
    for part in present[1:]:
        part = part.strip("/")
        if part:
            path = f"{path}/{part}"
    return path or "/"


def parent_path(path: str) -> str:
    head, _, _ = path.rstrip("/").rpartition("/")
    return head


def base_name(path: str) -> str:
    return path.rstrip("/").rpartition("/")[2]
