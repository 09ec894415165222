"""Tests for ctxgen.analysis.manifest."""

from __future__ import annotations

import asyncio

from ctxgen.analysis.manifest import (
    ManifestReader,
    parse_package_json,
    parse_pyproject,
    parse_requirements,
    strip_json_comments,
)


def test_strip_json_comments_preserves_urls() -> None:
    text = """
    {
      // the project name
      "name": "demo", /* inline */
      "homepage": "https://example.com/docs"
    }
    """

    data = parse_package_json(text)

    assert data == {"name": "demo", "homepage": "https://example.com/docs"}
    assert "https://example.com" in strip_json_comments('"url": "https://example.com" // trailing')


def test_parse_package_json_rejects_non_objects() -> None:
    assert parse_package_json("[1, 2]") is None
    assert parse_package_json("{not json") is None


def test_parse_requirements_skips_comments_and_options() -> None:
    text = "# pinned\nrequests>=2.31\n-r base.txt\nuvicorn[standard]==0.29\n\nPyYAML ; python_version>'3'\n"

    assert parse_requirements(text) == ["requests", "uvicorn", "PyYAML"]


def test_parse_pyproject_collects_all_dependency_tables() -> None:
    text = """
[project]
dependencies = ["fastapi>=0.110", "pydantic>=2"]

[project.optional-dependencies]
test = ["pytest>=8"]

[tool.poetry.dependencies]
python = "^3.11"
httpx = "^0.27"
"""

    assert parse_pyproject(text) == ["fastapi", "httpx", "pydantic", "pytest"]
    assert parse_pyproject("not = [valid") == []


def test_manifest_reader_treats_missing_and_broken_files_as_absent(repo_builder) -> None:
    reader = ManifestReader()
    root = repo_builder.path()

    assert asyncio.run(reader.read_package_json(root)) is None
    assert asyncio.run(reader.read_python_dependencies(root)) == []

    repo_builder.write({"package.json": "{ broken"})
    assert asyncio.run(reader.read_package_json(root)) is None


def test_manifest_reader_merges_python_manifests(repo_builder) -> None:
    repo_builder.write(
        {
            "requirements.txt": "flask\nrequests\n",
            "pyproject.toml": '[project]\ndependencies = ["requests>=2", "click"]\n',
            "package.json": '{"dependencies": {"react": "^18.2.0"}}',
        }
    )
    reader = ManifestReader()

    assert asyncio.run(reader.read_python_dependencies(repo_builder.path())) == ["click", "flask", "requests"]
    assert asyncio.run(reader.read_package_json(repo_builder.path())) == {"dependencies": {"react": "^18.2.0"}}
