"""Pydantic models describing per-file code insights."""

from __future__ import annotations

import json
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class FunctionInfo(_Frozen):
    name: str
    parameters: List[str] = Field(default_factory=list)


class ClassInfo(_Frozen):
    name: str


class ImportInfo(_Frozen):
    source: str


class CodeInsights(_Frozen):
    """Validated structural summary of one source file."""

    functions: List[FunctionInfo]
    classes: List[ClassInfo]
    imports: List[ImportInfo]


def schema_description() -> str:
    """JSON schema for ``CodeInsights`` as embedded in prompts."""
    return json.dumps(CodeInsights.model_json_schema(), indent=2, sort_keys=True)


__all__ = ["ClassInfo", "CodeInsights", "FunctionInfo", "ImportInfo", "schema_description"]
