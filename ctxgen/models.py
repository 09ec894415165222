"""Core data structures shared across the analysis pipeline."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .insights.schema import CodeInsights


MIN_PRIORITY = 1
MAX_PRIORITY = 5


@dataclass(frozen=True)
class FileMetadata:
    """A discovered file: relative path, size in bytes and assigned priority."""

    path: str
    size: int
    priority: Optional[int] = None

    def with_priority(self, priority: int) -> "FileMetadata":
        if not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            raise ValueError(f"priority must be in {MIN_PRIORITY}..{MAX_PRIORITY}, got {priority}")
        return FileMetadata(path=self.path, size=self.size, priority=priority)

    @property
    def depth(self) -> int:
        return self.path.count("/")


@dataclass(frozen=True)
class Position:
    row: int
    column: int

    def to_dict(self) -> Dict[str, int]:
        return {"row": self.row, "column": self.column}


@dataclass
class GenericAstNode:
    """Language-independent syntax tree node produced by the parser."""

    type: str
    text: str
    start_position: Position
    end_position: Position
    is_named: bool = True
    field_name: Optional[str] = None
    children: List["GenericAstNode"] = field(default_factory=list)

    def child_by_field(self, name: str) -> Optional["GenericAstNode"]:
        for child in self.children:
            if child.field_name == name:
                return child
        return None

    def children_by_field(self, name: str) -> List["GenericAstNode"]:
        return [child for child in self.children if child.field_name == name]

    @property
    def named_children(self) -> List["GenericAstNode"]:
        return [child for child in self.children if child.is_named]

    def to_dict(self) -> Dict[str, Any]:
        # iterative so deep trees never hit the recursion limit
        root: Dict[str, Any] = {}
        stack = [(self, root)]
        while stack:
            node, out = stack.pop()
            out.update(
                {
                    "type": node.type,
                    "text": node.text,
                    "startPosition": node.start_position.to_dict(),
                    "endPosition": node.end_position.to_dict(),
                    "isNamed": node.is_named,
                    "fieldName": node.field_name,
                    "children": [],
                }
            )
            for child in node.children:
                child_out: Dict[str, Any] = {}
                out["children"].append(child_out)
                stack.append((child, child_out))
        return root


@dataclass(frozen=True)
class ImportEntry:
    source: str


@dataclass(frozen=True)
class FunctionEntry:
    name: str
    params: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ClassEntry:
    name: str


@dataclass
class CondensedAst:
    """Imports, functions and classes reduced from a full syntax tree."""

    imports: List[ImportEntry] = field(default_factory=list)
    functions: List[FunctionEntry] = field(default_factory=list)
    classes: List[ClassEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imports": [asdict(entry) for entry in self.imports],
            "functions": [{"name": entry.name, "params": list(entry.params)} for entry in self.functions],
            "classes": [asdict(entry) for entry in self.classes],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    def is_empty(self) -> bool:
        return not (self.imports or self.functions or self.classes)


@dataclass
class ContentCollection:
    """Concatenated file content admitted under the token ceiling."""

    content: str
    metadata: List[FileMetadata]
    token_count: int = 0

    @property
    def paths(self) -> List[str]:
        return [meta.path for meta in self.metadata]


@dataclass
class TechStackAnalysis:
    languages: List[str] = field(default_factory=list)
    frameworks: List[str] = field(default_factory=list)
    build_tools: List[str] = field(default_factory=list)
    testing_frameworks: List[str] = field(default_factory=list)
    linters: List[str] = field(default_factory=list)
    package_manager: str = "unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "languages": list(self.languages),
            "frameworks": list(self.frameworks),
            "buildTools": list(self.build_tools),
            "testingFrameworks": list(self.testing_frameworks),
            "linters": list(self.linters),
            "packageManager": self.package_manager,
        }


@dataclass
class ProjectContext:
    """Root aggregate returned by ``ProjectAnalyzer.analyze_project``."""

    project_root_path: str
    tech_stack: TechStackAnalysis
    package_json: Optional[Dict[str, Any]] = None
    code_insights: Dict[str, "CodeInsights"] = field(default_factory=dict)
    included_files: List[str] = field(default_factory=list)
    python_dependencies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "projectRootPath": self.project_root_path,
            "techStack": self.tech_stack.to_dict(),
            "packageJson": self.package_json,
            "codeInsights": {path: insights.model_dump() for path, insights in self.code_insights.items()},
            "includedFiles": list(self.included_files),
            "pythonDependencies": list(self.python_dependencies),
        }


__all__ = [
    "ClassEntry",
    "CondensedAst",
    "ContentCollection",
    "FileMetadata",
    "FunctionEntry",
    "GenericAstNode",
    "ImportEntry",
    "MAX_PRIORITY",
    "MIN_PRIORITY",
    "Position",
    "ProjectContext",
    "TechStackAnalysis",
]
