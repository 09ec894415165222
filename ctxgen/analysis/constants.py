"""Closed tables driving discovery and prioritization."""

from __future__ import annotations

from typing import Dict, FrozenSet, Tuple

SKIP_DIRECTORIES: FrozenSet[str] = frozenset(
    {
        "node_modules",
        "dist",
        "build",
        "out",
        "coverage",
        "vendor",
        "target",
        "bin",
        "obj",
        "__pycache__",
        "venv",
        "env",
        "site-packages",
    }
)

SOURCE_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        ".ts",
        ".tsx",
        ".js",
        ".jsx",
        ".mjs",
        ".cjs",
        ".py",
        ".java",
        ".go",
        ".rs",
        ".rb",
        ".php",
        ".cs",
        ".c",
        ".h",
        ".cpp",
        ".hpp",
        ".kt",
        ".swift",
        ".scala",
        ".vue",
        ".svelte",
    }
)

CONFIG_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        ".json",
        ".yaml",
        ".yml",
        ".toml",
        ".ini",
        ".cfg",
        ".xml",
        ".sql",
        ".sh",
        ".css",
        ".scss",
        ".html",
        ".md",
    }
)

KNOWN_FILENAMES: FrozenSet[str] = frozenset(
    {
        "package.json",
        "tsconfig.json",
        "pyproject.toml",
        "requirements.txt",
        "setup.py",
        "setup.cfg",
        "Dockerfile",
        "docker-compose.yml",
        "Makefile",
        "Cargo.toml",
        "go.mod",
        "pom.xml",
        "build.gradle",
        "Gemfile",
        "composer.json",
        ".env.example",
    }
)

# Hidden tool configuration kept by discovery.
HIDDEN_CONFIG_PATTERNS: Tuple[str, ...] = (".eslintrc*", ".prettierrc*")

LOCK_FILES: FrozenSet[str] = frozenset({"package-lock.json", "yarn.lock", "pnpm-lock.yaml"})

DENIED_NAME_PATTERNS: Tuple[str, ...] = (
    "*.test.*",
    "*.spec.*",
    "test_*.py",
    "*_test.py",
    "*.d.ts",
    "*.map",
    "*.min.js",
    "*.lock",
)

BINARY_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".bmp",
        ".ico",
        ".webp",
        ".svgz",
        ".tiff",
        ".woff",
        ".woff2",
        ".ttf",
        ".otf",
        ".eot",
        ".zip",
        ".tar",
        ".gz",
        ".tgz",
        ".bz2",
        ".xz",
        ".7z",
        ".rar",
        ".jar",
        ".war",
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".bin",
        ".o",
        ".a",
        ".obj",
        ".class",
        ".pyc",
        ".pyo",
        ".wasm",
        ".mp3",
        ".mp4",
        ".wav",
        ".ogg",
        ".mov",
        ".avi",
        ".webm",
        ".pdf",
        ".sqlite",
        ".db",
    }
)

# Filename globs per priority level; consulted before extensions.
PRIORITY_NAME_PATTERNS: Dict[int, Tuple[str, ...]] = {
    1: (
        "package.json",
        "pyproject.toml",
        "requirements.txt",
        "setup.py",
        "setup.cfg",
        "Cargo.toml",
        "go.mod",
        "pom.xml",
        "build.gradle",
        "Gemfile",
        "composer.json",
        "tsconfig.json",
    ),
    2: (
        "*.config.js",
        "*.config.ts",
        "*.config.mjs",
        "Dockerfile",
        "docker-compose.yml",
        "Makefile",
        ".eslintrc*",
        ".prettierrc*",
        "index.*",
        "main.*",
        "app.*",
        "server.*",
        "__main__.py",
        "manage.py",
    ),
    3: (),
    4: ("*.test.*", "*.spec.*", "test_*.py", "*_test.py"),
    5: (),
}

PRIORITY_EXTENSIONS: Dict[int, FrozenSet[str]] = {
    1: frozenset(),
    2: frozenset(),
    3: SOURCE_EXTENSIONS,
    4: frozenset(
        {".css", ".scss", ".html", ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".xml", ".sql", ".sh"}
    ),
    5: frozenset({".md", ".rst", ".txt"}),
}

DEFAULT_PRIORITY = 5


__all__ = [
    "BINARY_EXTENSIONS",
    "CONFIG_EXTENSIONS",
    "DEFAULT_PRIORITY",
    "DENIED_NAME_PATTERNS",
    "HIDDEN_CONFIG_PATTERNS",
    "KNOWN_FILENAMES",
    "LOCK_FILES",
    "PRIORITY_EXTENSIONS",
    "PRIORITY_NAME_PATTERNS",
    "SKIP_DIRECTORIES",
    "SOURCE_EXTENSIONS",
]
