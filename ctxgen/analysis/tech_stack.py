"""Technology stack summary derived from file extensions and declared dependencies."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..errors import FileOperationError
from ..fileops import FileOperations
from ..logging import get_logger
from ..models import TechStackAnalysis

logger = get_logger("tech_stack")

EXTENSION_LANGUAGES: Dict[str, str] = {
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".mjs": "JavaScript",
    ".cjs": "JavaScript",
    ".py": "Python",
    ".java": "Java",
    ".cs": "C#",
    ".go": "Go",
    ".rb": "Ruby",
    ".php": "PHP",
    ".html": "HTML",
    ".htm": "HTML",
    ".css": "CSS",
    ".scss": "SCSS",
    ".sass": "SCSS",
    ".less": "LESS",
    ".json": "JSON",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".toml": "TOML",
    ".md": "Markdown",
    ".sh": "Shell",
    ".ps1": "PowerShell",
    ".c": "C",
    ".cpp": "C++",
    ".h": "C/C++ Header",
    ".hpp": "C++ Header",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".kts": "Kotlin Script",
    ".rs": "Rust",
    ".lua": "Lua",
    ".sql": "SQL",
    ".scala": "Scala",
    ".dart": "Dart",
    ".vue": "Vue",
    ".svelte": "Svelte",
}

FRAMEWORK_PACKAGES: Dict[str, str] = {
    "react": "React",
    "@angular/core": "Angular",
    "vue": "Vue.js",
    "svelte": "Svelte",
    "next": "Next.js",
    "nuxt": "Nuxt.js",
    "@nestjs/core": "NestJS",
    "express": "Express.js",
    "koa": "Koa.js",
    "fastify": "Fastify",
    "django": "Django",
    "flask": "Flask",
    "fastapi": "FastAPI",
    "starlette": "Starlette",
    "aiohttp": "aiohttp",
    "tornado": "Tornado",
}

BUILD_TOOL_PACKAGES: Dict[str, str] = {
    "webpack": "Webpack",
    "rollup": "Rollup",
    "parcel": "Parcel",
    "esbuild": "esbuild",
    "vite": "Vite",
    "typescript": "TypeScript Compiler (tsc)",
    "@babel/core": "Babel",
    "babel-loader": "Babel Loader",
    "gulp": "Gulp",
    "grunt": "Grunt",
    "setuptools": "setuptools",
    "hatchling": "Hatch",
    "poetry-core": "Poetry",
    "flit-core": "Flit",
}

TESTING_FRAMEWORK_PACKAGES: Dict[str, str] = {
    "jest": "Jest",
    "mocha": "Mocha",
    "chai": "Chai",
    "jasmine": "Jasmine",
    "cypress": "Cypress",
    "@playwright/test": "Playwright",
    "vitest": "Vitest",
    "@testing-library/react": "React Testing Library",
    "@testing-library/vue": "Vue Testing Library",
    "@testing-library/angular": "Angular Testing Library",
    "@testing-library/svelte": "Svelte Testing Library",
    "pytest": "Pytest",
    "hypothesis": "Hypothesis",
    "tox": "tox",
    "nose2": "nose2",
}

LINTER_PACKAGES: Dict[str, str] = {
    "eslint": "ESLint",
    "prettier": "Prettier",
    "tslint": "TSLint",
    "stylelint": "Stylelint",
    "flake8": "Flake8",
    "pylint": "Pylint",
    "ruff": "Ruff",
    "black": "Black",
    "mypy": "mypy",
    "isort": "isort",
}

# Checked in order; the first lock file present decides.
LOCK_FILE_MANAGERS: Tuple[Tuple[str, str], ...] = (
    ("package-lock.json", "npm"),
    ("yarn.lock", "yarn"),
    ("pnpm-lock.yaml", "pnpm"),
    ("poetry.lock", "poetry"),
    ("uv.lock", "uv"),
    ("Pipfile.lock", "pipenv"),
)


def derive_languages(file_paths: Iterable[str]) -> List[str]:
    languages: Set[str] = set()
    for path in file_paths:
        language = EXTENSION_LANGUAGES.get(PurePosixPath(path).suffix.lower())
        if language:
            languages.add(language)
    return sorted(languages)


def _npm_dependency_names(package_json: Optional[Mapping[str, Any]]) -> List[str]:
    if not isinstance(package_json, Mapping):
        return []
    names: List[str] = []
    for key in ("dependencies", "devDependencies"):
        section = package_json.get(key)
        if isinstance(section, Mapping):
            names.extend(str(name) for name in section)
    return names


def infer_technologies(
    package_json: Optional[Mapping[str, Any]] = None,
    python_dependencies: Sequence[str] = (),
) -> Dict[str, List[str]]:
    """Classify dependency names into frameworks, build tools, testing frameworks and linters."""
    names = _npm_dependency_names(package_json) + [dep.lower() for dep in python_dependencies]
    found: Dict[str, Set[str]] = {"frameworks": set(), "build_tools": set(), "testing_frameworks": set(), "linters": set()}
    tables = (
        ("frameworks", FRAMEWORK_PACKAGES),
        ("build_tools", BUILD_TOOL_PACKAGES),
        ("testing_frameworks", TESTING_FRAMEWORK_PACKAGES),
        ("linters", LINTER_PACKAGES),
    )
    for name in names:
        for category, table in tables:
            label = table.get(name)
            if label:
                found[category].add(label)
    return {category: sorted(labels) for category, labels in found.items()}


class TechStackAnalyzer:
    def __init__(self, file_ops: Optional[FileOperations] = None) -> None:
        self.file_ops = file_ops or FileOperations()

    async def analyze(
        self,
        root: str | Path,
        file_paths: Sequence[str],
        package_json: Optional[Mapping[str, Any]] = None,
        python_dependencies: Sequence[str] = (),
    ) -> TechStackAnalysis:
        languages = derive_languages(file_paths)
        inferred = infer_technologies(package_json, python_dependencies)
        package_manager = await self.detect_package_manager(root)
        stack = TechStackAnalysis(
            languages=languages,
            frameworks=inferred["frameworks"],
            build_tools=inferred["build_tools"],
            testing_frameworks=inferred["testing_frameworks"],
            linters=inferred["linters"],
            package_manager=package_manager,
        )
        logger.debug(
            "Tech stack: languages=%s frameworks=%s package_manager=%s",
            ", ".join(stack.languages) or "-",
            ", ".join(stack.frameworks) or "-",
            stack.package_manager,
        )
        return stack

    async def detect_package_manager(self, root: str | Path) -> str:
        for filename, manager in LOCK_FILE_MANAGERS:
            try:
                if await self.file_ops.exists(Path(root) / filename):
                    return manager
            except FileOperationError as exc:
                logger.warning("Error checking for %s: %s", filename, exc)
        return "unknown"


__all__ = [
    "EXTENSION_LANGUAGES",
    "TechStackAnalyzer",
    "derive_languages",
    "infer_technologies",
]
