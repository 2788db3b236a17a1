"""Project-directory file access used by the converter."""

import asyncio
from pathlib import Path
from typing import Union

from .errors import StorageIOError, StorageNotFoundError
from .logger import get_logger

LOGGER = get_logger(__name__)


class ProjectStorage:
    """Reads and writes files below a fixed root directory.

    Paths are given relative to the root and may not escape it. Blocking
    file I/O runs in a worker thread so several reads can be awaited at once.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def resolve(self, path: str) -> Path:
        """Resolve path relative to the root and validate it stays within."""
        resolved = (self.root / path).resolve()
        try:
            resolved.relative_to(self.root)
        except ValueError:
            raise ValueError(f"Path '{path}' escapes the project directory")
        return resolved

    async def read_text(self, path: str) -> str:
        data = await self.read_binary(path)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StorageIOError(path, f"File is not valid UTF-8: {path}") from e

    async def read_binary(self, path: str) -> bytes:
        file_path = self.resolve(path)
        LOGGER.debug("Reading %s", file_path)
        try:
            return await asyncio.to_thread(file_path.read_bytes)
        except FileNotFoundError as e:
            raise StorageNotFoundError(path, f"File not found: {path}") from e
        except OSError as e:
            raise StorageIOError(path, f"Failed to read {path}: {e}") from e

    async def write_text(self, path: str, content: str) -> None:
        file_path = self.resolve(path)
        LOGGER.debug("Writing %s", file_path)

        def _write():
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise StorageIOError(path, f"Failed to write {path}: {e}") from e
