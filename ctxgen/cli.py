"""CLI entrypoints for ctxgen commands."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from .analysis.analyzer import build_default_analyzer
from .config import load_config
from .errors import AnalysisError, ConfigError
from .logging import configure_logging


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ctxgen",
        description="Analyze a project and build an LLM-ready context snapshot.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Discover, budget and extract code insights for a project.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Project paths; the first one is the project root (defaults to current directory).",
    )
    analyze_parser.add_argument(
        "--config",
        default=None,
        help="Path to a .ctxgen.yml file (defaults to the one in the project root).",
    )
    analyze_parser.add_argument(
        "--output",
        default=None,
        help="Write the project context JSON to this file instead of printing a summary.",
    )
    analyze_parser.add_argument(
        "--no-snapshot",
        action="store_true",
        help="Do not persist the context snapshot inside the project.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP analysis service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for ctxgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "analyze":
        paths = list(args.paths) or ["."]
        config_path = Path(args.config) if args.config else Path(paths[0])
        try:
            config = load_config(config_path)
            analyzer = build_default_analyzer(config, snapshot=False if args.no_snapshot else None)
            context = asyncio.run(analyzer.analyze_project(paths))
        except (AnalysisError, ConfigError) as exc:
            parser.exit(1, f"{exc}\n")
        except Exception as exc:  # pragma: no cover - defensive guard
            parser.exit(1, f"ctxgen analyze failed: {exc}\nRun with --verbose for more details.\n")

        if args.output:
            output = Path(args.output)
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(json.dumps(context.to_dict(), indent=2) + "\n", encoding="utf-8")
            print(f"Project context written to {_relativize(output)}")
            return
        print(f"Files analyzed: {len(context.included_files)}")
        print(f"Insights collected: {len(context.code_insights)}")
        if analyzer.last_snapshot is not None:
            print(f"Snapshot saved at {_relativize(analyzer.last_snapshot)}")
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
