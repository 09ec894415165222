"""Closed table of languages the syntax parser understands."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, Optional, Tuple

# language -> (grammar module, factory attribute)
GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
    "python": ("tree_sitter_python", "language"),
    "java": ("tree_sitter_java", "language"),
}

EXTENSION_LANGUAGE_MAP: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".py": "python",
    ".java": "java",
}

SUPPORTED_LANGUAGES = frozenset(GRAMMAR_MODULES)


def language_for_path(path: str) -> Optional[str]:
    return EXTENSION_LANGUAGE_MAP.get(PurePosixPath(path).suffix.lower())


__all__ = ["EXTENSION_LANGUAGE_MAP", "GRAMMAR_MODULES", "SUPPORTED_LANGUAGES", "language_for_path"]
