"""LLM runner adapters and structured completions."""

from .runner import LLMRunner
from .structured import CompletionOptions, StructuredCompletionClient

__all__ = ["CompletionOptions", "LLMRunner", "StructuredCompletionClient"]
