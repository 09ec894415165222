"""Priority classification and the deterministic inclusion order."""

from __future__ import annotations

from fnmatch import fnmatchcase
from pathlib import PurePosixPath
from typing import Iterable, List, Tuple

from ..models import FileMetadata
from .constants import DEFAULT_PRIORITY, PRIORITY_EXTENSIONS, PRIORITY_NAME_PATTERNS


def priority_for(path: str) -> int:
    """Return the 1..5 priority level for ``path`` (1 is highest)."""
    name = PurePosixPath(path).name
    for level in sorted(PRIORITY_NAME_PATTERNS):
        if any(fnmatchcase(name, pattern) for pattern in PRIORITY_NAME_PATTERNS[level]):
            return level
    suffix = PurePosixPath(name).suffix.lower()
    for level in sorted(PRIORITY_EXTENSIONS):
        if suffix and suffix in PRIORITY_EXTENSIONS[level]:
            return level
    return DEFAULT_PRIORITY


def _sort_key(meta: FileMetadata) -> Tuple[int, int, int, str]:
    return (meta.priority or DEFAULT_PRIORITY, meta.size, meta.depth, meta.path)


class FilePrioritizer:
    """Assigns priorities and sorts by level, size, depth and path."""

    def prioritize(self, files: Iterable[FileMetadata]) -> List[FileMetadata]:
        ranked = [meta.with_priority(priority_for(meta.path)) for meta in files]
        ranked.sort(key=_sort_key)
        return ranked


__all__ = ["FilePrioritizer", "priority_for"]
