"""Tests for ctxgen.analysis.discovery."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from ctxgen.analysis.discovery import (
    FileDiscoverer,
    build_ignore_rule,
    is_analyzable_file,
    is_skippable_entry,
    should_ignore,
)
from ctxgen.errors import DiscoveryError, FileOperationError
from ctxgen.fileops import FileOperations


def test_discover_prunes_vendor_and_hidden_directories(repo_builder) -> None:
    repo_builder.write(
        {
            "package.json": "{}",
            "src/index.ts": "export const a = 1;\n",
            "node_modules/lib/index.js": "module.exports = 1;\n",
            "dist/bundle.js": "x\n",
            ".git/config": "[core]\n",
            ".venv/lib/site.py": "pass\n",
            "src/__pycache__/mod.py": "pass\n",
        }
    )

    assert repo_builder.discover() == ["package.json", "src/index.ts"]


def test_discover_applies_deny_list_before_allow_list(repo_builder) -> None:
    repo_builder.write(
        {
            "src/app.ts": "export {}\n",
            "src/app.test.ts": "test()\n",
            "src/types.d.ts": "declare const x: number;\n",
            "tests/test_api.py": "def test_x():\n    pass\n",
            "pkg/api_test.py": "pass\n",
            "package-lock.json": "{}",
            "yarn.lock": "",
            "static/app.min.js": "x\n",
            "assets/logo.png": "not really a png\n",
            "notes.unknown": "?\n",
            ".env.example": "TOKEN=\n",
            "Dockerfile": "FROM python:3.12\n",
        }
    )

    assert repo_builder.discover() == [".env.example", "Dockerfile", "src/app.ts"]


def test_discover_respects_gitignore_and_exclude_paths(repo_builder) -> None:
    repo_builder.write(
        {
            ".gitignore": "generated/\n*.sql\n!keep.sql\n",
            "generated/client.ts": "export {}\n",
            "db/schema.sql": "create table t();\n",
            "db/keep.sql": "select 1;\n",
            "sandbox/tool.py": "print(1)\n",
            "main.py": "print(2)\n",
        }
    )
    discoverer = FileDiscoverer(exclude_paths=["sandbox/"])

    found = asyncio.run(discoverer.discover(repo_builder.path()))

    assert found == ["db/keep.sql", "main.py"]


def test_discover_can_ignore_gitignore(repo_builder) -> None:
    repo_builder.write({".gitignore": "*.py\n", "main.py": "print(1)\n"})
    discoverer = FileDiscoverer(respect_gitignore=False)

    assert asyncio.run(discoverer.discover(repo_builder.path())) == ["main.py"]


def test_discover_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(DiscoveryError):
        asyncio.run(FileDiscoverer().discover(tmp_path / "missing"))


def test_discover_rejects_file_root(tmp_path: Path) -> None:
    target = tmp_path / "file.py"
    target.write_text("pass\n", encoding="utf-8")

    with pytest.raises(DiscoveryError):
        asyncio.run(FileDiscoverer().discover(target))


class _FlakyFileOperations(FileOperations):
    def __init__(self, broken: Path) -> None:
        super().__init__()
        self.broken = broken

    async def read_dir(self, path):
        if Path(path) == self.broken:
            raise FileOperationError("Failed to read directory", str(path))
        return await super().read_dir(path)


def test_unreadable_subdirectory_is_skipped(repo_builder, caplog) -> None:
    repo_builder.write({"src/a.py": "pass\n", "locked/b.py": "pass\n"})
    file_ops = _FlakyFileOperations(repo_builder.path() / "locked")

    found = asyncio.run(FileDiscoverer(file_ops).discover(repo_builder.path()))

    assert found == ["src/a.py"]
    assert "Skipping unreadable directory" in caplog.text


def test_unreadable_root_raises_discovery_error(repo_builder) -> None:
    repo_builder.write({"a.py": "pass\n"})
    file_ops = _FlakyFileOperations(repo_builder.path())

    with pytest.raises(DiscoveryError):
        asyncio.run(FileDiscoverer(file_ops).discover(repo_builder.path()))


def test_entry_and_file_filters() -> None:
    assert is_skippable_entry("node_modules")
    assert is_skippable_entry(".idea")
    assert not is_skippable_entry(".env.example")
    assert not is_skippable_entry("src")

    assert is_analyzable_file("package.json")
    assert is_analyzable_file("Makefile")
    assert is_analyzable_file("README.md")
    assert not is_analyzable_file("package-lock.json")
    assert not is_analyzable_file("bundle.js.map")
    assert not is_analyzable_file("archive.zip")


def test_ignore_rules_last_match_wins() -> None:
    rules = [build_ignore_rule("*.log"), build_ignore_rule("!important.log")]

    assert should_ignore("debug.log", False, rules)
    assert not should_ignore("important.log", False, rules)
    assert build_ignore_rule("# comment") is None
    assert build_ignore_rule("   ") is None


def test_symlinked_directories_are_not_followed(repo_builder) -> None:
    repo_builder.write({"src/a.py": "pass\n", "lib/b.py": "pass\n"})
    root = repo_builder.path()
    (root / "src" / "loop1").symlink_to(root, target_is_directory=True)
    (root / "src" / "loop2").symlink_to(root, target_is_directory=True)
    (root / "lib_link").symlink_to(root / "lib", target_is_directory=True)

    found = asyncio.run(asyncio.wait_for(FileDiscoverer().discover(root), timeout=10))

    assert found == ["lib/b.py", "src/a.py"]


def test_hidden_tool_configuration_is_discovered(repo_builder) -> None:
    repo_builder.write(
        {
            ".eslintrc": "{}\n",
            ".prettierrc.json": "{}\n",
            ".editorconfig": "root = true\n",
            "index.js": "module.exports = {}\n",
        }
    )

    assert repo_builder.discover() == [".eslintrc", ".prettierrc.json", "index.js"]
    assert not is_skippable_entry(".eslintrc")
    assert is_analyzable_file(".eslintrc")
