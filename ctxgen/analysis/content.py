"""Token-budgeted concatenation of prioritized file contents."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import FileOperationError, NoContentError
from ..fileops import FileOperations
from ..logging import get_logger
from ..models import ContentCollection, FileMetadata
from .tokens import TokenCounter

logger = get_logger("content")


def format_block(path: str, content: str) -> str:
    return f"\n=== File: {path} ===\n\n{content}\n\n"


class ContentAssembler:
    """Greedily appends files in priority order until the ceiling would be exceeded.

    The first file whose block would overflow the ceiling ends the scan, so the
    included files always form a prefix of the readable, countable input.
    """

    def __init__(self, token_counter: TokenCounter, file_ops: Optional[FileOperations] = None) -> None:
        self.token_counter = token_counter
        self.file_ops = file_ops or FileOperations()

    async def collect(
        self,
        ordered: Sequence[FileMetadata],
        root_dir: str | Path,
        token_ceiling: int,
    ) -> ContentCollection:
        root = Path(root_dir)
        blocks: List[str] = []
        included: List[FileMetadata] = []
        total = 0

        for meta in ordered:
            try:
                text = await self.file_ops.read_file(root / meta.path)
            except FileOperationError as exc:
                logger.warning("Skipping %s: %s", meta.path, exc)
                continue

            block = format_block(meta.path, text)
            try:
                cost = await self.token_counter.count_tokens(block)
            except Exception as exc:  # counters are pluggable
                logger.warning("Could not count tokens for %s: %s", meta.path, exc)
                continue

            if total + cost > token_ceiling:
                logger.debug(
                    "Token ceiling %d reached at %s (%d + %d); stopping collection",
                    token_ceiling,
                    meta.path,
                    total,
                    cost,
                )
                break

            blocks.append(block)
            included.append(meta)
            total += cost
            logger.debug("Included %s (running total %d tokens)", meta.path, total)

        if not included:
            raise NoContentError("No content could be collected from the provided files")

        return ContentCollection(content="".join(blocks), metadata=included, token_count=total)


__all__ = ["ContentAssembler", "format_block"]
