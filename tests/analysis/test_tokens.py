"""Tests for ctxgen.analysis.tokens."""

from __future__ import annotations

import asyncio

import pytest

from ctxgen.analysis.tokens import HeuristicTokenCounter, TiktokenCounter, create_token_counter


def test_heuristic_counter_approximates_four_chars_per_token() -> None:
    counter = HeuristicTokenCounter(context_window=1000)

    assert asyncio.run(counter.count_tokens("")) == 0
    assert asyncio.run(counter.count_tokens("   \n")) == 0
    assert asyncio.run(counter.count_tokens("ab")) == 1
    assert asyncio.run(counter.count_tokens("x" * 40)) == 10
    assert asyncio.run(counter.get_context_window_size()) == 1000


def test_tiktoken_counter_counts_special_tokens_as_text() -> None:
    counter = TiktokenCounter(4096, model="not-a-real-model")

    plain = asyncio.run(counter.count_tokens("def add(a, b):\n    return a + b\n"))
    special = asyncio.run(counter.count_tokens("<|endoftext|>"))

    assert plain > 0
    assert special > 1
    assert asyncio.run(counter.get_context_window_size()) == 4096


def test_create_token_counter_selects_implementation() -> None:
    assert isinstance(create_token_counter("heuristic", 10), HeuristicTokenCounter)
    assert isinstance(create_token_counter("tiktoken", 10), TiktokenCounter)
    with pytest.raises(ValueError):
        create_token_counter("bogus", 10)
