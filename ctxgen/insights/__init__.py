"""Structured code insights extracted with an LLM."""

from .extractor import InsightExtractor
from .schema import ClassInfo, CodeInsights, FunctionInfo, ImportInfo

__all__ = ["ClassInfo", "CodeInsights", "FunctionInfo", "ImportInfo", "InsightExtractor"]
