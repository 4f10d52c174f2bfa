"""Storage backend over the local filesystem."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from storage.base import DirectorySelection, StorageResult

logger = logging.getLogger(__name__)


class FileSystemStorage:
    """Filesystem-backed storage; blocking calls run in a worker thread.

    Args:
        chooser: Optional callable returning a directory path (or None when
            the user cancels). Without one, ``select_directory`` reports a
            cancelled selection.
    """

    def __init__(self, chooser: Optional[Callable[[], Optional[str]]] = None, encoding: str = "utf-8"):
        self._chooser = chooser
        self._encoding = encoding

    async def select_directory(self) -> DirectorySelection:
        if self._chooser is None:
            return DirectorySelection(canceled=True)
        chosen = await asyncio.to_thread(self._chooser)
        if not chosen:
            return DirectorySelection(canceled=True)
        return DirectorySelection(canceled=False, paths=[str(chosen)])

    async def read_file(self, path: str) -> StorageResult:
        try:
            content = await asyncio.to_thread(Path(path).read_text, encoding=self._encoding)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("read_file failed: %s: %s", path, e)
            return StorageResult.failed(str(e))
        logger.debug("read_file %s (%d chars)", path, len(content))
        return StorageResult(ok=True, content=content)

    async def write_file(self, path: str, content: str) -> StorageResult:
        def _write() -> None:
            target = Path(path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding=self._encoding)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            logger.error("write_file failed: %s: %s", path, e)
            return StorageResult.failed(str(e))
        logger.debug("write_file %s (%d chars)", path, len(content))
        return StorageResult(ok=True)

    async def create_directory(self, path: str) -> StorageResult:
        try:
            await asyncio.to_thread(Path(path).mkdir, parents=True, exist_ok=True)
        except OSError as e:
            logger.error("create_directory failed: %s: %s", path, e)
            return StorageResult.failed(str(e))
        return StorageResult(ok=True)

    async def read_directory(self, path: str) -> StorageResult:
        def _list() -> list[str]:
            return sorted(p.name for p in Path(path).iterdir())

        try:
            entries = await asyncio.to_thread(_list)
        except OSError as e:
            logger.error("read_directory failed: %s: %s", path, e)
            return StorageResult.failed(str(e))
        return StorageResult(ok=True, entries=entries)

    async def delete_file(self, path: str) -> StorageResult:
        try:
            await asyncio.to_thread(Path(path).unlink)
        except OSError as e:
            logger.error("delete_file failed: %s: %s", path, e)
            return StorageResult.failed(str(e))
        logger.debug("delete_file %s", path)
        return StorageResult(ok=True)
