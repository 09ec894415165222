"""JSON snapshot sink for finished project contexts."""

from __future__ import annotations

from datetime import UTC, datetime
import json
from pathlib import Path
from typing import Any, Dict, Optional

from ..fileops import FileOperations
from ..models import ProjectContext

_SNAPSHOT_VERSION = 1


class ContextSnapshotStore:
    """Writes one JSON document per analysis run, replacing the previous one."""

    def __init__(self, path: Path, file_ops: Optional[FileOperations] = None) -> None:
        self.path = path
        self.file_ops = file_ops or FileOperations()

    async def write(self, context: ProjectContext) -> Path:
        payload: Dict[str, Any] = {
            "version": _SNAPSHOT_VERSION,
            "generatedAt": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "context": context.to_dict(),
        }
        await self.file_ops.create_directory(self.path.parent)
        await self.file_ops.write_file(self.path, json.dumps(payload, indent=2, sort_keys=True))
        return self.path

    async def read(self) -> Optional[Dict[str, Any]]:
        """Return the stored context dictionary, or None when absent or unusable."""
        if not await self.file_ops.exists(self.path):
            return None
        try:
            data = json.loads(await self.file_ops.read_file(self.path))
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict) or data.get("version") != _SNAPSHOT_VERSION:
            return None
        context = data.get("context")
        return context if isinstance(context, dict) else None


__all__ = ["ContextSnapshotStore"]
