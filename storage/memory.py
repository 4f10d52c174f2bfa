"""In-memory storage backend, used by tests and throwaway sessions."""

import asyncio
import logging
from typing import Optional

from storage.base import DirectorySelection, StorageResult, base_name, parent_path

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Dict-backed storage with the same contract as the filesystem backend.

    Writing a file implicitly creates its parent directories. Failures can be
    injected per path with ``fail_on_write``/``fail_on_read``, and setting
    ``write_gate`` to an ``asyncio.Event`` holds every write until the event
    is set.
    """

    def __init__(self, files: Optional[dict[str, str]] = None, selected_directory: Optional[str] = None):
        self.files: dict[str, str] = {}
        self.directories: set[str] = set()
        self.selected_directory = selected_directory
        self.fail_on_write: dict[str, str] = {}
        self.fail_on_read: dict[str, str] = {}
        self.write_gate: Optional[asyncio.Event] = None
        self.write_count = 0
        for path, content in (files or {}).items():
            self._store(path, content)

    def _register_parents(self, path: str) -> None:
        parent = parent_path(path)
        while parent and parent not in self.directories:
            self.directories.add(parent)
            parent = parent_path(parent)

    def _store(self, path: str, content: str) -> None:
        self._register_parents(path)
        self.files[path] = content

    async def select_directory(self) -> DirectorySelection:
        if not self.selected_directory:
            return DirectorySelection(canceled=True)
        return DirectorySelection(canceled=False, paths=[self.selected_directory])

    async def read_file(self, path: str) -> StorageResult:
        if path in self.fail_on_read:
            return StorageResult.failed(self.fail_on_read[path])
        if path not in self.files:
            return StorageResult.failed("File not found")
        return StorageResult(ok=True, content=self.files[path])

    async def write_file(self, path: str, content: str) -> StorageResult:
        if self.write_gate is not None:
            await self.write_gate.wait()
        if path in self.fail_on_write:
            logger.error("write_file failed: %s: %s", path, self.fail_on_write[path])
            return StorageResult.failed(self.fail_on_write[path])
        self._store(path, content)
        self.write_count += 1
        logger.debug("write_file %s (%d chars)", path, len(content))
        return StorageResult(ok=True)

    async def create_directory(self, path: str) -> StorageResult:
        path = path.rstrip("/")
        self._register_parents(path)
        self.directories.add(path)
        return StorageResult(ok=True)

    async def read_directory(self, path: str) -> StorageResult:
        path = path.rstrip("/")
        if path not in self.directories:
            return StorageResult.failed("Directory not found")
        children = {
            base_name(p)
            for p in [*self.files, *self.directories]
            if parent_path(p) == path
        }
        return StorageResult(ok=True, entries=sorted(children))

    async def delete_file(self, path: str) -> StorageResult:
        if path not in self.files:
            return StorageResult.failed("File not found")
        del self.files[path]
        return StorageResult(ok=True)
