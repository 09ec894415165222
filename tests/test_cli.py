"""CLI parser and entrypoint behaviour tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ctxgen import cli
from ctxgen.cli import _build_parser
from ctxgen.errors import NoContentError
from ctxgen.models import ProjectContext, TechStackAnalysis


def test_cli_accepts_verbose_before_command() -> None:
    args = _build_parser().parse_args(["--verbose", "analyze"])
    assert args.verbose is True
    assert args.command == "analyze"
    assert args.paths == ["."]


def test_cli_accepts_verbose_after_command() -> None:
    args = _build_parser().parse_args(["analyze", "src", "--verbose"])
    assert args.verbose is True
    assert args.paths == ["src"]


def test_cli_analyze_options() -> None:
    args = _build_parser().parse_args(
        ["analyze", "proj", "--config", "ci.yml", "--output", "out/context.json", "--no-snapshot"]
    )
    assert args.config == "ci.yml"
    assert args.output == "out/context.json"
    assert args.no_snapshot is True


def test_cli_serve_options() -> None:
    args = _build_parser().parse_args(["serve", "--port", "9000"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 9000


class _StubAnalyzer:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.last_snapshot = None

    async def analyze_project(self, paths):
        if self.error is not None:
            raise self.error
        return ProjectContext(
            project_root_path=str(paths[0]),
            tech_stack=TechStackAnalysis(),
            included_files=["a.py", "b.py"],
        )


@pytest.fixture
def quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)


def test_main_writes_context_to_output(tmp_path: Path, monkeypatch, capsys, quiet_logging) -> None:
    captured = {}

    def fake_build(config, *, snapshot=None):
        captured["snapshot"] = snapshot
        captured["root"] = config.root
        return _StubAnalyzer()

    monkeypatch.setattr(cli, "build_default_analyzer", fake_build)
    output = tmp_path / "out" / "context.json"

    cli.main(["analyze", str(tmp_path), "--output", str(output), "--no-snapshot"])

    assert captured == {"snapshot": False, "root": tmp_path.resolve()}
    assert json.loads(output.read_text(encoding="utf-8"))["includedFiles"] == ["a.py", "b.py"]
    assert "Project context written to" in capsys.readouterr().out


def test_main_prints_summary(tmp_path: Path, monkeypatch, capsys, quiet_logging) -> None:
    monkeypatch.setattr(cli, "build_default_analyzer", lambda config, snapshot=None: _StubAnalyzer())

    cli.main(["analyze", str(tmp_path)])

    out = capsys.readouterr().out
    assert "Files analyzed: 2" in out
    assert "Insights collected: 0" in out


def test_main_exits_non_zero_on_analysis_error(tmp_path: Path, monkeypatch, capsys, quiet_logging) -> None:
    monkeypatch.setattr(
        cli,
        "build_default_analyzer",
        lambda config, snapshot=None: _StubAnalyzer(error=NoContentError("No content could be collected")),
    )

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["analyze", str(tmp_path)])

    assert excinfo.value.code == 1
    assert "No content could be collected" in capsys.readouterr().err
