"""Best-effort readers for dependency manifests."""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from ..errors import FileOperationError
from ..fileops import FileOperations
from ..logging import get_logger

logger = get_logger("manifest")

_LINE_COMMENT = re.compile(r"(?<![:\w])//[^\r\n]*")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_REQUIREMENT_SPLIT = re.compile(r"[<>=!~;\[ ]")


def strip_json_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments, leaving URL schemes intact."""
    return _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", text))


def parse_package_json(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(strip_json_comments(text))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def _requirement_name(spec: str) -> str:
    return _REQUIREMENT_SPLIT.split(spec.strip(), 1)[0].strip()


def parse_requirements(text: str) -> List[str]:
    packages: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        name = _requirement_name(stripped)
        if name:
            packages.append(name)
    return packages


def parse_pyproject(text: str) -> List[str]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError:
        return []

    dependencies: List[Any] = []
    project = data.get("project")
    if isinstance(project, dict):
        dependencies.extend(project.get("dependencies", []) or [])
        optional = project.get("optional-dependencies", {}) or {}
        for values in optional.values():
            dependencies.extend(values or [])

    tool = data.get("tool")
    poetry = tool.get("poetry", {}) if isinstance(tool, dict) else {}
    if isinstance(poetry, dict):
        dependencies.extend((poetry.get("dependencies", {}) or {}).keys())

    packages: Set[str] = set()
    for dep in dependencies:
        if isinstance(dep, str):
            name = _requirement_name(dep)
            if name and name.lower() != "python":
                packages.add(name)
    return sorted(packages)


class ManifestReader:
    """Reads package.json and Python dependency manifests; absence is never an error."""

    def __init__(self, file_ops: Optional[FileOperations] = None) -> None:
        self.file_ops = file_ops or FileOperations()

    async def read_package_json(self, root: str | Path) -> Optional[Dict[str, Any]]:
        text = await self._read_optional(Path(root) / "package.json")
        if text is None:
            return None
        data = parse_package_json(text)
        if data is None:
            logger.debug("package.json under %s could not be parsed; treating as absent", root)
        return data

    async def read_python_dependencies(self, root: str | Path) -> List[str]:
        deps: Set[str] = set()
        requirements = await self._read_optional(Path(root) / "requirements.txt")
        if requirements is not None:
            deps.update(parse_requirements(requirements))
        pyproject = await self._read_optional(Path(root) / "pyproject.toml")
        if pyproject is not None:
            deps.update(parse_pyproject(pyproject))
        return sorted(deps)

    async def _read_optional(self, path: Path) -> Optional[str]:
        try:
            if not await self.file_ops.exists(path):
                return None
            return await self.file_ops.read_file(path)
        except FileOperationError as exc:
            logger.debug("Manifest %s unreadable: %s", exc.path, exc)
            return None


__all__ = [
    "ManifestReader",
    "parse_package_json",
    "parse_pyproject",
    "parse_requirements",
    "strip_json_comments",
]
