"""Per-file insight extraction: condense, prompt, structured completion."""

from __future__ import annotations

from typing import Optional, Protocol, Type, TypeVar

from pydantic import BaseModel

from ..errors import ProviderError
from ..llm.structured import CompletionOptions
from ..logging import get_logger
from ..models import GenericAstNode
from ..parsing.condenser import condense
from ..parsing.languages import language_for_path
from .prompt import InsightPromptBuilder
from .schema import CodeInsights

logger = get_logger("insights")

ModelT = TypeVar("ModelT", bound=BaseModel)


class StructuredCompletion(Protocol):
    provider: str

    async def get_structured_completion(
        self,
        prompt: str,
        schema: Type[ModelT],
        options: Optional[CompletionOptions] = None,
    ) -> Optional[ModelT]:
        ...


class InsightExtractor:
    """Turns one parsed file into validated ``CodeInsights``."""

    def __init__(
        self,
        completion: StructuredCompletion,
        prompt_builder: Optional[InsightPromptBuilder] = None,
        options: Optional[CompletionOptions] = None,
    ) -> None:
        self.completion = completion
        self.prompt_builder = prompt_builder or InsightPromptBuilder()
        self.options = options

    async def analyze(self, ast: GenericAstNode, file_path: str) -> CodeInsights:
        provider = getattr(self.completion, "provider", "unknown")
        try:
            condensed = condense(ast, language_for_path(file_path))
            prompt = self.prompt_builder.build(condensed.to_json(), file_path)
            insights = await self.completion.get_structured_completion(prompt, CodeInsights, self.options)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(
                f"Unexpected error during insight extraction for {file_path}: {exc}",
                ProviderError.UNEXPECTED_ANALYSIS_ERROR,
                provider,
                {"file": file_path},
            ) from exc

        if insights is None:
            raise ProviderError(
                f"Structured completion returned no insights for {file_path}",
                ProviderError.UNEXPECTED_ANALYSIS_ERROR,
                provider,
                {"file": file_path},
            )
        logger.debug(
            "Extracted %d functions, %d classes, %d imports from %s",
            len(insights.functions),
            len(insights.classes),
            len(insights.imports),
            file_path,
        )
        return insights


__all__ = ["InsightExtractor", "StructuredCompletion"]
