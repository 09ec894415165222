"""Project tree walking with early pruning and an allow-list of analyzable files."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path, PurePosixPath
from typing import Iterable, List, Optional, Sequence

from ..errors import DiscoveryError, FileOperationError
from ..fileops import FileOperations
from ..logging import get_logger
from .constants import (
    BINARY_EXTENSIONS,
    CONFIG_EXTENSIONS,
    DENIED_NAME_PATTERNS,
    HIDDEN_CONFIG_PATTERNS,
    KNOWN_FILENAMES,
    LOCK_FILES,
    SKIP_DIRECTORIES,
    SOURCE_EXTENSIONS,
)

logger = get_logger("discovery")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or analysis.exclude_paths."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern or pattern.startswith("#"):
        return None

    negate = pattern.startswith("!")
    if negate:
        pattern = pattern[1:]

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def parse_ignore_lines(lines: Iterable[str]) -> List[IgnoreRule]:
    rules: List[IgnoreRule] = []
    for line in lines:
        rule = build_ignore_rule(line)
        if rule is not None:
            rules.append(rule)
    return rules


def should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _is_known_name(name: str) -> bool:
    return name in KNOWN_FILENAMES or any(fnmatchcase(name, pattern) for pattern in HIDDEN_CONFIG_PATTERNS)


def is_skippable_entry(name: str) -> bool:
    """Entries pruned before recursion: vendor/build directories and hidden names."""
    if name in SKIP_DIRECTORIES:
        return True
    return name.startswith(".") and not _is_known_name(name)


def is_analyzable_file(name: str) -> bool:
    """Deny-by-default filter over a bare filename."""
    suffix = PurePosixPath(name).suffix.lower()
    if name in LOCK_FILES or any(fnmatchcase(name, pattern) for pattern in DENIED_NAME_PATTERNS):
        return False
    if suffix in BINARY_EXTENSIONS:
        return False
    if _is_known_name(name):
        return True
    return suffix in SOURCE_EXTENSIONS or suffix in CONFIG_EXTENSIONS


class FileDiscoverer:
    """Walks a project root and returns analyzable files as relative POSIX paths."""

    def __init__(
        self,
        file_ops: Optional[FileOperations] = None,
        *,
        exclude_paths: Sequence[str] = (),
        respect_gitignore: bool = True,
    ) -> None:
        self.file_ops = file_ops or FileOperations()
        self.exclude_paths = list(exclude_paths)
        self.respect_gitignore = respect_gitignore

    async def discover(self, root_dir: str | Path) -> List[str]:
        root = Path(root_dir)
        try:
            if not await self.file_ops.is_directory(root):
                raise DiscoveryError(f"Project path is not a directory: {root}")
        except FileOperationError as exc:
            raise DiscoveryError(f"Project path could not be inspected: {exc}") from exc

        rules = await self._load_rules(root)
        found: List[str] = []
        pending: List[tuple[Path, str]] = [(root, "")]
        while pending:
            directory, rel_dir = pending.pop()
            try:
                names = await self.file_ops.read_dir(directory)
            except FileOperationError as exc:
                if not rel_dir:
                    raise DiscoveryError(f"Project root could not be read: {exc}") from exc
                logger.warning("Skipping unreadable directory %s: %s", exc.path, exc)
                continue

            for name in names:
                if is_skippable_entry(name):
                    logger.debug("Pruned %s", f"{rel_dir}/{name}" if rel_dir else name)
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                full_path = directory / name
                try:
                    is_dir = await self.file_ops.is_directory(full_path)
                    is_link = is_dir and await self.file_ops.is_symlink(full_path)
                except FileOperationError as exc:
                    logger.warning("Could not inspect %s: %s", rel_path, exc)
                    continue

                if should_ignore(rel_path, is_dir, rules):
                    logger.debug("Ignored by rule: %s", rel_path)
                    continue
                if is_link:
                    # symlinked directories are not followed
                    logger.debug("Not following symlinked directory %s", rel_path)
                elif is_dir:
                    pending.append((full_path, rel_path))
                elif is_analyzable_file(name):
                    found.append(rel_path)

        found.sort()
        logger.debug("Discovered %d analyzable files under %s", len(found), root)
        return found

    async def _load_rules(self, root: Path) -> List[IgnoreRule]:
        rules: List[IgnoreRule] = []
        if self.respect_gitignore:
            gitignore = root / ".gitignore"
            try:
                if await self.file_ops.exists(gitignore):
                    text = await self.file_ops.read_file(gitignore)
                    rules.extend(parse_ignore_lines(text.splitlines()))
            except FileOperationError as exc:
                logger.warning("Could not read %s: %s", exc.path, exc)
        rules.extend(parse_ignore_lines(self.exclude_paths))
        return rules


__all__ = [
    "FileDiscoverer",
    "IgnoreRule",
    "build_ignore_rule",
    "is_analyzable_file",
    "is_skippable_entry",
    "parse_ignore_lines",
    "should_ignore",
]
