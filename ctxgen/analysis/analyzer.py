"""Analysis orchestration: discovery through snapshot persistence."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import DEFAULT_BUDGET_RATIO, CtxGenConfig
from ..errors import (
    FileOperationError,
    NoAnalyzableFilesError,
    NoPathsError,
    ParseError,
)
from ..fileops import FileOperations
from ..insights.extractor import InsightExtractor
from ..insights.schema import CodeInsights
from ..llm.runner import LLMRunner
from ..llm.structured import RetryPolicy, StructuredCompletionClient
from ..logging import get_logger
from ..models import FileMetadata, GenericAstNode, ProjectContext
from ..parsing.languages import language_for_path
from ..parsing.parser import GrammarCache, TreeSitterParser
from ..stores.snapshot import ContextSnapshotStore
from .content import ContentAssembler
from .discovery import FileDiscoverer
from .manifest import ManifestReader
from .prioritizer import FilePrioritizer
from .tech_stack import TechStackAnalyzer
from .tokens import TokenCounter, create_token_counter


@dataclass
class FileOutcome:
    """Terminal state of one file's extraction task."""

    path: str
    insights: Optional[CodeInsights] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.insights is not None and self.error is None


class ProjectAnalyzer:
    """Sequences discovery, budgeting, parsing and concurrent insight extraction."""

    def __init__(
        self,
        *,
        discoverer: FileDiscoverer,
        prioritizer: FilePrioritizer,
        token_counter: TokenCounter,
        assembler: ContentAssembler,
        parser: TreeSitterParser,
        extractor: InsightExtractor,
        manifest_reader: ManifestReader,
        tech_stack_analyzer: TechStackAnalyzer,
        file_ops: Optional[FileOperations] = None,
        token_ceiling: Optional[int] = None,
        snapshot_path: Optional[Path] = None,
    ) -> None:
        self.discoverer = discoverer
        self.prioritizer = prioritizer
        self.token_counter = token_counter
        self.assembler = assembler
        self.parser = parser
        self.extractor = extractor
        self.manifest_reader = manifest_reader
        self.tech_stack_analyzer = tech_stack_analyzer
        self.file_ops = file_ops or FileOperations()
        self.token_ceiling = token_ceiling
        self.snapshot_path = snapshot_path
        self.last_snapshot: Optional[Path] = None
        self.logger = get_logger("analyzer")

    async def analyze_project(self, paths: Sequence[str | Path]) -> ProjectContext:
        """Build the ``ProjectContext`` for the project rooted at ``paths[0]``.

        Raises an ``AnalysisError`` subclass only before extraction fans out;
        afterwards per-file failures are logged and the file is left out of
        ``code_insights``.
        """
        if not paths:
            raise NoPathsError("No project paths were provided for analysis")
        root = Path(paths[0]).expanduser().resolve()
        self.logger.info("Analyzing project at %s", root)

        discovered = await self.discoverer.discover(root)
        if not discovered:
            raise NoAnalyzableFilesError(f"No analyzable files found under {root}")
        self.logger.debug("Discovered %d files", len(discovered))

        ordered = self.prioritizer.prioritize(await self._collect_metadata(root, discovered))
        ceiling = await self._resolve_ceiling()
        collection = await self.assembler.collect(ordered, root, ceiling)
        self.logger.info(
            "Collected %d of %d files within %d tokens (%d used)",
            len(collection.metadata),
            len(ordered),
            ceiling,
            collection.token_count,
        )

        package_json = await self.manifest_reader.read_package_json(root)
        python_dependencies = await self.manifest_reader.read_python_dependencies(root)
        tech_stack = await self.tech_stack_analyzer.analyze(root, discovered, package_json, python_dependencies)

        parsed = await self._parse_sources(root, ordered)
        outcomes = await self._extract_all(parsed)

        code_insights: Dict[str, CodeInsights] = {}
        for outcome in outcomes:
            if outcome.ok:
                code_insights[outcome.path] = outcome.insights  # type: ignore[assignment]
            else:
                self.logger.warning("Insight extraction failed for %s: %s", outcome.path, outcome.error)
        self.logger.info("Extracted insights for %d of %d parsed files", len(code_insights), len(parsed))

        context = ProjectContext(
            project_root_path=str(root),
            tech_stack=tech_stack,
            package_json=package_json,
            code_insights=code_insights,
            included_files=collection.paths,
            python_dependencies=python_dependencies,
        )
        await self._persist(root, context)
        return context

    async def _collect_metadata(self, root: Path, discovered: Sequence[str]) -> List[FileMetadata]:
        metadata: List[FileMetadata] = []
        for rel_path in discovered:
            try:
                size = await self.file_ops.stat_size(root / rel_path)
            except FileOperationError as exc:
                self.logger.warning("Could not stat %s: %s", rel_path, exc)
                continue
            metadata.append(FileMetadata(path=rel_path, size=size))
        return metadata

    async def _resolve_ceiling(self) -> int:
        if self.token_ceiling is not None:
            return self.token_ceiling
        window = await self.token_counter.get_context_window_size()
        return int(window * DEFAULT_BUDGET_RATIO)

    async def _parse_sources(self, root: Path, ordered: Sequence[FileMetadata]) -> List[Tuple[str, GenericAstNode]]:
        # sequential; parsers in the grammar cache are shared
        parsed: List[Tuple[str, GenericAstNode]] = []
        for meta in ordered:
            if language_for_path(meta.path) is None:
                continue
            try:
                content = await self.file_ops.read_file(root / meta.path)
                parsed.append((meta.path, self.parser.parse_file(meta.path, content)))
            except (FileOperationError, ParseError) as exc:
                self.logger.warning("Skipping %s: %s", meta.path, exc)
        return parsed

    async def _extract_one(self, path: str, ast: GenericAstNode) -> FileOutcome:
        try:
            insights = await self.extractor.analyze(ast, path)
        except Exception as exc:
            return FileOutcome(path=path, error=exc)
        return FileOutcome(path=path, insights=insights)

    async def _extract_all(self, parsed: Sequence[Tuple[str, GenericAstNode]]) -> List[FileOutcome]:
        results: List[Any] = await asyncio.gather(
            *(self._extract_one(path, ast) for path, ast in parsed),
            return_exceptions=True,
        )
        outcomes: List[FileOutcome] = []
        # gather preserves argument order, so index i belongs to parsed[i]
        for (path, _), result in zip(parsed, results):
            if isinstance(result, FileOutcome):
                outcomes.append(result)
            else:
                outcomes.append(FileOutcome(path=path, error=result))
        return outcomes

    async def _persist(self, root: Path, context: ProjectContext) -> None:
        if self.snapshot_path is None:
            return
        target = self.snapshot_path if self.snapshot_path.is_absolute() else root / self.snapshot_path
        try:
            self.last_snapshot = await ContextSnapshotStore(target, self.file_ops).write(context)
        except FileOperationError as exc:
            self.logger.warning("Could not write context snapshot: %s", exc)
        else:
            self.logger.debug("Context snapshot written to %s", target)


def build_default_analyzer(
    config: CtxGenConfig,
    *,
    runner: Optional[LLMRunner] = None,
    snapshot: Optional[bool] = None,
) -> ProjectAnalyzer:
    """Wire the default collaborators from ``config``."""
    file_ops = FileOperations()
    llm = config.llm
    token_counter = create_token_counter(llm.tokenizer, llm.context_window, llm.model)

    if runner is None:
        runner_kwargs: Dict[str, Any] = {
            "temperature": llm.temperature if llm.temperature is not None else 0.0,
            "max_tokens": llm.max_tokens,
            "request_timeout": llm.request_timeout or 60.0,
        }
        if llm.runner == "ollama":
            runner_kwargs["base_url"] = None
        elif llm.base_url:
            runner_kwargs["base_url"] = llm.base_url
        if llm.api_key:
            runner_kwargs["api_key"] = llm.api_key
        runner = LLMRunner(llm.model, **runner_kwargs)

    completion = StructuredCompletionClient(runner, retry=RetryPolicy(retries=llm.retries))
    snapshot_enabled = config.snapshot.enabled if snapshot is None else snapshot

    return ProjectAnalyzer(
        discoverer=FileDiscoverer(
            file_ops,
            exclude_paths=config.analysis.exclude_paths,
            respect_gitignore=config.analysis.respect_gitignore,
        ),
        prioritizer=FilePrioritizer(),
        token_counter=token_counter,
        assembler=ContentAssembler(token_counter, file_ops),
        parser=TreeSitterParser(GrammarCache(), max_depth=config.analysis.max_ast_depth),
        extractor=InsightExtractor(completion),
        manifest_reader=ManifestReader(file_ops),
        tech_stack_analyzer=TechStackAnalyzer(file_ops),
        file_ops=file_ops,
        token_ceiling=config.token_ceiling(),
        snapshot_path=Path(config.snapshot.path) if snapshot_enabled else None,
    )


__all__ = ["FileOutcome", "ProjectAnalyzer", "build_default_analyzer"]
