"""Tests for ctxgen.analysis.content."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List

import pytest

from ctxgen.analysis.content import ContentAssembler, format_block
from ctxgen.errors import NoContentError
from ctxgen.models import FileMetadata


class LengthCounter:
    """One token per character of the formatted block."""

    def __init__(self, failing: tuple[str, ...] = ()) -> None:
        self.failing = failing
        self.seen: List[str] = []

    async def count_tokens(self, text: str) -> int:
        self.seen.append(text)
        if any(marker in text for marker in self.failing):
            raise RuntimeError("tokenizer exploded")
        return len(text)

    async def get_context_window_size(self) -> int:
        return 10_000


def _write(root: Path, files: Dict[str, str]) -> List[FileMetadata]:
    metas: List[FileMetadata] = []
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        metas.append(FileMetadata(rel, len(text), priority=3))
    return metas


def _cost(path: str, text: str) -> int:
    return len(format_block(path, text))


def test_collect_includes_everything_under_a_large_ceiling(tmp_path: Path) -> None:
    metas = _write(tmp_path, {"package.json": "{}", "src/a.ts": "function add(a,b){}"})

    result = asyncio.run(ContentAssembler(LengthCounter()).collect(metas, tmp_path, 10_000))

    assert result.paths == ["package.json", "src/a.ts"]
    assert result.content == format_block("package.json", "{}") + format_block("src/a.ts", "function add(a,b){}")
    assert result.token_count == _cost("package.json", "{}") + _cost("src/a.ts", "function add(a,b){}")
    assert "=== File: src/a.ts ===" in result.content


def test_collect_stops_at_first_overflow(tmp_path: Path) -> None:
    metas = _write(tmp_path, {"a.py": "a" * 10, "big.py": "b" * 500, "c.py": "c"})
    ceiling = _cost("a.py", "a" * 10) + _cost("c.py", "c") + 5

    result = asyncio.run(ContentAssembler(LengthCounter()).collect(metas, tmp_path, ceiling))

    # c.py would fit, but the scan ends at big.py
    assert result.paths == ["a.py"]
    assert result.token_count <= ceiling


def test_collect_accepts_exact_fit(tmp_path: Path) -> None:
    metas = _write(tmp_path, {"a.py": "pass"})

    result = asyncio.run(ContentAssembler(LengthCounter()).collect(metas, tmp_path, _cost("a.py", "pass")))

    assert result.paths == ["a.py"]


def test_included_set_grows_monotonically_with_ceiling(tmp_path: Path) -> None:
    metas = _write(tmp_path, {f"m{i}.py": "x" * (i * 7) for i in range(1, 6)})
    assembler = ContentAssembler(LengthCounter())

    previous: List[str] = []
    for ceiling in range(40, 400, 20):
        try:
            current = asyncio.run(assembler.collect(metas, tmp_path, ceiling)).paths
        except NoContentError:
            current = []
        assert current[: len(previous)] == previous
        assert current == [meta.path for meta in metas][: len(current)]
        previous = current


def test_unreadable_and_uncountable_files_are_skipped(tmp_path: Path) -> None:
    metas = _write(tmp_path, {"a.py": "alpha", "bad.py": "boom", "c.py": "gamma"})
    metas.insert(1, FileMetadata("missing.py", 3, priority=3))

    result = asyncio.run(ContentAssembler(LengthCounter(failing=("bad.py",))).collect(metas, tmp_path, 10_000))

    assert result.paths == ["a.py", "c.py"]


def test_collect_raises_when_nothing_fits(tmp_path: Path) -> None:
    metas = _write(tmp_path, {"a.py": "x" * 100})

    with pytest.raises(NoContentError):
        asyncio.run(ContentAssembler(LengthCounter()).collect(metas, tmp_path, 10))


def test_collect_raises_for_empty_input(tmp_path: Path) -> None:
    with pytest.raises(NoContentError):
        asyncio.run(ContentAssembler(LengthCounter()).collect([], tmp_path, 10_000))
