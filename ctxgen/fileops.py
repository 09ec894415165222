"""Asynchronous file-system capability used by the analysis pipeline."""

from __future__ import annotations

import asyncio
import functools
from pathlib import Path
from typing import Any, Callable, List, TypeVar

from .errors import FileOperationError

T = TypeVar("T")


class FileOperations:
    """Thin async wrapper over pathlib; every failure carries the offending path."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    async def read_file(self, path: str | Path) -> str:
        return await self._run(path, "Failed to read file", self._read_text, Path(path))

    async def read_dir(self, path: str | Path) -> List[str]:
        return await self._run(path, "Failed to read directory", self._list_names, Path(path))

    async def is_directory(self, path: str | Path) -> bool:
        return await self._run(path, "Failed to stat path", Path(path).is_dir)

    async def exists(self, path: str | Path) -> bool:
        return await self._run(path, "Failed to stat path", Path(path).exists)

    async def is_symlink(self, path: str | Path) -> bool:
        return await self._run(path, "Failed to stat path", Path(path).is_symlink)

    async def stat_size(self, path: str | Path) -> int:
        return await self._run(path, "Failed to stat file", lambda: Path(path).stat().st_size)

    async def write_file(self, path: str | Path, content: str) -> None:
        await self._run(path, "Failed to write file", self._write_text, Path(path), content)

    async def create_directory(self, path: str | Path) -> None:
        await self._run(path, "Failed to create directory", Path(path).mkdir, parents=True, exist_ok=True)

    def _read_text(self, path: Path) -> str:
        return path.read_text(encoding=self.encoding, errors="replace")

    def _write_text(self, path: Path, content: str) -> None:
        path.write_text(content, encoding=self.encoding)

    @staticmethod
    def _list_names(path: Path) -> List[str]:
        return sorted(child.name for child in path.iterdir())

    @staticmethod
    async def _run(path: str | Path, message: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))
        except OSError as exc:
            raise FileOperationError(f"{message} ({exc.strerror or exc})", str(path)) from exc


__all__ = ["FileOperations"]
