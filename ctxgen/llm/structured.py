"""Schema-constrained completions on top of a blocking chat runner."""

from __future__ import annotations

import asyncio
import functools
import json
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..errors import ProviderError
from ..logging import get_logger
from .json_repair import JSONRepairError, parse_json
from .runner import LLMRunner

logger = get_logger("llm.structured")

ModelT = TypeVar("ModelT", bound=BaseModel)

RETRYABLE_CODES = frozenset({ProviderError.API_ERROR, ProviderError.TIMEOUT_ERROR})
DEFAULT_SYSTEM_PROMPT = (
    "You are a precise code analysis assistant. Reply with a single JSON value and nothing else."
)


@dataclass
class CompletionOptions:
    system: Optional[str] = DEFAULT_SYSTEM_PROMPT
    json_mode: bool = True
    retries: Optional[int] = None


@dataclass
class RetryPolicy:
    """Exponential backoff with +/-20% jitter."""

    retries: int = 2
    initial_delay: float = 0.5
    max_delay: float = 8.0
    factor: float = 2.0
    jitter: float = 0.2

    def delay(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        base = min(self.max_delay, self.initial_delay * (self.factor**attempt))
        spread = base * self.jitter
        return max(0.0, base - spread + 2 * spread * rng())


class StructuredCompletionClient:
    """Runs prompts through ``LLMRunner`` and returns validated pydantic models."""

    def __init__(
        self,
        runner: LLMRunner,
        *,
        retry: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.runner = runner
        self.retry = retry or RetryPolicy()
        self._sleep = sleep

    @property
    def provider(self) -> str:
        return getattr(self.runner, "provider", "custom")

    async def get_structured_completion(
        self,
        prompt: str,
        schema: Type[ModelT],
        options: Optional[CompletionOptions] = None,
    ) -> Optional[ModelT]:
        """Return ``schema`` parsed from the model reply, or ``None`` for a JSON ``null`` reply."""
        options = options or CompletionOptions()
        raw = await self._complete_with_retry(prompt, options)

        try:
            data = parse_json(raw)
        except JSONRepairError as exc:
            raise ProviderError(
                str(exc), ProviderError.PARSING_ERROR, self.provider, {"preview": raw[:200]}
            ) from exc

        if data is None:
            return None
        try:
            return schema.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(
                f"Response did not match {schema.__name__}: {exc.error_count()} validation error(s)",
                ProviderError.VALIDATION_ERROR,
                self.provider,
                {"errors": json.loads(exc.json())},
            ) from exc

    async def _complete_with_retry(self, prompt: str, options: CompletionOptions) -> str:
        retries = self.retry.retries if options.retries is None else options.retries
        attempt = 0
        while True:
            try:
                return await self._complete_once(prompt, options)
            except ProviderError as exc:
                if exc.code not in RETRYABLE_CODES or attempt >= retries:
                    raise
                delay = self.retry.delay(attempt)
                attempt += 1
                logger.warning(
                    "Completion attempt %d/%d failed (%s); retrying in %.2fs",
                    attempt,
                    retries + 1,
                    exc.code,
                    delay,
                )
                await self._sleep(delay)

    async def _complete_once(self, prompt: str, options: CompletionOptions) -> str:
        loop = asyncio.get_running_loop()
        call = functools.partial(self.runner.run, prompt, system=options.system, json_mode=options.json_mode)
        try:
            text = await loop.run_in_executor(None, call)
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError.from_exception(exc, self.provider) from exc
        if not text or not text.strip():
            raise ProviderError("Model returned an empty response", ProviderError.EMPTY_RESPONSE, self.provider)
        return text


__all__ = ["CompletionOptions", "RetryPolicy", "StructuredCompletionClient"]
