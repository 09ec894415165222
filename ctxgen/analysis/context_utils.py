"""Query helpers over a finished ``ProjectContext``."""

from __future__ import annotations

import posixpath
import re
import sys
from typing import List, Optional, Pattern, Sequence, Union

from ..models import ProjectContext

NODE_BUILTIN_MODULES = frozenset(
    {
        "assert",
        "async_hooks",
        "buffer",
        "child_process",
        "constants",
        "crypto",
        "dgram",
        "diagnostics_channel",
        "dns",
        "domain",
        "events",
        "fs",
        "fs/promises",
        "http",
        "http2",
        "https",
        "inspector",
        "module",
        "net",
        "os",
        "path",
        "perf_hooks",
        "process",
        "punycode",
        "querystring",
        "readline",
        "repl",
        "stream",
        "stream/promises",
        "string_decoder",
        "sys",
        "timers",
        "timers/promises",
        "tls",
        "trace_events",
        "tty",
        "url",
        "util",
        "v8",
        "vm",
        "worker_threads",
        "zlib",
    }
)

CONFIG_FILE_PATTERNS: Sequence[Pattern[str]] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"(^|/)(babel|webpack|vite|jest|playwright|eslint|prettier|stylelint|postcss|tailwind)\.config\.(js|ts|cjs|mjs|json)$",
        r"(^|/)(\.eslintrc|\.prettierrc|\.stylelintrc)$",
        r"(^|/)(tsconfig(\..*)?\.json|jsconfig(\..*)?\.json)$",
        r"(^|/)(dockerfile|docker-compose\.yml)$",
        r"(^|/)(package\.json|pyproject\.toml|setup\.cfg|setup\.py|requirements\.txt)$",
        r"(^|/)(nest-cli\.json|angular\.json|vue\.config\.js|nuxt\.config\.(js|ts))$",
        r"(^|/)(conftest\.py|settings\.py)$",
    )
)

ENTRY_POINT_PATTERNS: Sequence[Pattern[str]] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"(^|/)(src|app|source|lib|server|client|main|electron)/(index|main|app|server|client|start|entry|bootstrap)\.(js|ts|jsx|tsx|mjs|cjs)$",
        r"^(index|main|app|server|client|start|entry|bootstrap)\.(js|ts|jsx|tsx|mjs|cjs)$",
        r"(^|/)(pages|views)/(index|app|main)\.(js|ts|jsx|tsx|vue|svelte)$",
        r"(^|/)(main|__main__|manage|app|wsgi|asgi)\.py$",
        r"(^|/)main\.(go|java|cs|rb|php)$",
        r"(^|/)Main\.java$",
    )
)


def _matching(context: ProjectContext, patterns: Sequence[Pattern[str]]) -> List[str]:
    return [path for path in context.code_insights if any(pattern.search(path) for pattern in patterns)]


def get_config_files(context: ProjectContext) -> List[str]:
    return _matching(context, CONFIG_FILE_PATTERNS)


def get_entry_point_files(context: ProjectContext) -> List[str]:
    return _matching(context, ENTRY_POINT_PATTERNS)


def get_files_by_pattern(context: ProjectContext, pattern: Union[str, Pattern[str]]) -> List[str]:
    compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
    return [path for path in context.code_insights if compiled.search(path)]


def get_dependency_version(package: str, context: ProjectContext) -> Optional[str]:
    """Return the declared version of an npm package, or None when undeclared."""
    manifest = context.package_json
    if not manifest:
        return None
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = manifest.get(key)
        if isinstance(section, dict) and package in section:
            return str(section[package])
    return None


def _is_declared_package(source: str, context: ProjectContext) -> bool:
    if source.startswith("@"):
        root_name = "/".join(source.split("/")[:2])
    else:
        root_name = source.split("/")[0]
    if get_dependency_version(root_name, context) or get_dependency_version(source, context):
        return True
    top_level = source.split(".")[0].lower().replace("_", "-")
    return any(dep.lower().replace("_", "-") == top_level for dep in context.python_dependencies)


def _is_builtin(source: str) -> bool:
    bare = source[5:] if source.startswith("node:") else source
    if bare in NODE_BUILTIN_MODULES:
        return True
    return source.split(".")[0] in sys.stdlib_module_names


def get_internal_dependencies_for_file(path: str, context: ProjectContext) -> List[str]:
    """Resolve one file's imports to project-internal paths.

    Built-in modules and declared packages are dropped; relative specifiers
    are resolved against the importing file's directory; anything else is kept
    only when it is itself a key of ``code_insights``.
    """
    insights = context.code_insights.get(path)
    if insights is None:
        return []

    importing_dir = posixpath.dirname(path)
    internal: List[str] = []
    for entry in insights.imports:
        source = entry.source
        if source.startswith(("./", "../")):
            resolved = posixpath.normpath(posixpath.join(importing_dir, source))
        elif _is_builtin(source) or _is_declared_package(source, context):
            continue
        elif source in context.code_insights:
            resolved = source
        else:
            continue
        if resolved not in internal:
            internal.append(resolved)
    return internal


__all__ = [
    "NODE_BUILTIN_MODULES",
    "get_config_files",
    "get_dependency_version",
    "get_entry_point_files",
    "get_files_by_pattern",
    "get_internal_dependencies_for_file",
]
