"""Token-counting capabilities feeding the content assembler."""

from __future__ import annotations

from typing import Optional, Protocol

import tiktoken

from ..config import DEFAULT_CONTEXT_WINDOW


class TokenCounter(Protocol):
    async def count_tokens(self, text: str) -> int:
        ...

    async def get_context_window_size(self) -> int:
        ...


class HeuristicTokenCounter:
    """Approximates four characters per token."""

    def __init__(self, context_window: int = DEFAULT_CONTEXT_WINDOW) -> None:
        self.context_window = context_window

    async def count_tokens(self, text: str) -> int:
        stripped = text.strip()
        if not stripped:
            return 0
        return max(1, len(stripped) // 4)

    async def get_context_window_size(self) -> int:
        return self.context_window


class TiktokenCounter:
    """Exact counts using a tiktoken encoding."""

    def __init__(
        self,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        *,
        model: Optional[str] = None,
        encoding_name: str = "cl100k_base",
    ) -> None:
        self.context_window = context_window
        self._encoding = self._resolve_encoding(model, encoding_name)

    @staticmethod
    def _resolve_encoding(model: Optional[str], encoding_name: str) -> "tiktoken.Encoding":
        if model:
            try:
                return tiktoken.encoding_for_model(model)
            except KeyError:
                pass
        return tiktoken.get_encoding(encoding_name)

    async def count_tokens(self, text: str) -> int:
        return len(self._encoding.encode(text, disallowed_special=()))

    async def get_context_window_size(self) -> int:
        return self.context_window


def create_token_counter(kind: str, context_window: int, model: Optional[str] = None) -> TokenCounter:
    if kind == "tiktoken":
        return TiktokenCounter(context_window, model=model)
    if kind == "heuristic":
        return HeuristicTokenCounter(context_window)
    raise ValueError(f"Unknown tokenizer: {kind}")


__all__ = ["HeuristicTokenCounter", "TiktokenCounter", "TokenCounter", "create_token_counter"]
