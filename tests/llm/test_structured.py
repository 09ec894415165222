"""Tests for ctxgen.llm.structured."""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from ctxgen.errors import ProviderError
from ctxgen.insights.schema import CodeInsights
from ctxgen.llm.runner import LLMRunner
from ctxgen.llm.structured import CompletionOptions, RetryPolicy, StructuredCompletionClient


class ScriptedRunner:
    """Replays a list of replies; exceptions in the list are raised."""

    def __init__(self, replies) -> None:
        self.replies = list(replies)
        self.requests: List[object] = []

    def __call__(self, request) -> str:
        self.requests.append(request)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


def _client(replies, *, retries: int = 2):
    scripted = ScriptedRunner(replies)
    delays: List[float] = []

    async def fake_sleep(delay: float) -> None:
        delays.append(delay)

    runner = LLMRunner(model="stub", base_url=None, api_key=None, runner=scripted)
    client = StructuredCompletionClient(runner, retry=RetryPolicy(retries=retries), sleep=fake_sleep)
    return client, scripted, delays


VALID = '{"functions": [{"name": "add", "parameters": ["a", "b"]}], "classes": [], "imports": [{"source": "./y"}]}'


def test_structured_completion_validates_against_schema() -> None:
    client, scripted, _ = _client([VALID])

    insights = asyncio.run(client.get_structured_completion("prompt", CodeInsights))

    assert insights.model_dump() == {
        "functions": [{"name": "add", "parameters": ["a", "b"]}],
        "classes": [],
        "imports": [{"source": "./y"}],
    }
    request = scripted.requests[0]
    assert request.json_mode is True
    assert request.system


def test_structured_completion_repairs_fenced_output() -> None:
    client, _, _ = _client(["```json\n" + VALID[:-1] + ",}\n```"])

    insights = asyncio.run(client.get_structured_completion("prompt", CodeInsights))

    assert [fn.name for fn in insights.functions] == ["add"]


def test_structured_completion_returns_none_for_null() -> None:
    client, _, _ = _client(["null"])

    assert asyncio.run(client.get_structured_completion("prompt", CodeInsights)) is None


def test_unparseable_output_raises_parsing_error() -> None:
    client, _, _ = _client(["I cannot help with that."])

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.get_structured_completion("prompt", CodeInsights))

    assert excinfo.value.code == ProviderError.PARSING_ERROR
    assert excinfo.value.provider == "custom"


def test_schema_mismatch_raises_validation_error() -> None:
    client, _, _ = _client(['{"functions": "nope", "classes": []}'])

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.get_structured_completion("prompt", CodeInsights))

    assert excinfo.value.code == ProviderError.VALIDATION_ERROR
    locations = {tuple(error["loc"]) for error in excinfo.value.details["errors"]}
    assert ("functions",) in locations
    assert ("imports",) in locations


def test_transient_failures_are_retried_with_backoff() -> None:
    client, scripted, delays = _client(
        [
            ProviderError("boom", ProviderError.API_ERROR, "custom"),
            ProviderError("slow", ProviderError.TIMEOUT_ERROR, "custom"),
            VALID,
        ]
    )

    insights = asyncio.run(client.get_structured_completion("prompt", CodeInsights))

    assert insights is not None
    assert len(scripted.requests) == 3
    assert len(delays) == 2
    assert 0.4 <= delays[0] <= 0.6
    assert 0.8 <= delays[1] <= 1.2


def test_retries_stop_after_budget() -> None:
    client, scripted, delays = _client(
        [ProviderError("down", ProviderError.API_ERROR, "custom")] * 3,
        retries=1,
    )

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.get_structured_completion("prompt", CodeInsights))

    assert excinfo.value.code == ProviderError.API_ERROR
    assert len(scripted.requests) == 2
    assert len(delays) == 1


def test_non_transient_failures_are_not_retried() -> None:
    client, scripted, delays = _client([ValueError("bad request shape"), VALID])

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.get_structured_completion("prompt", CodeInsights))

    assert excinfo.value.code == ProviderError.UNKNOWN_ERROR
    assert len(scripted.requests) == 1
    assert delays == []


def test_blank_reply_is_an_empty_response() -> None:
    client, _, _ = _client(["   "])

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.get_structured_completion("prompt", CodeInsights, CompletionOptions(json_mode=False)))

    assert excinfo.value.code == ProviderError.EMPTY_RESPONSE


def test_retry_policy_caps_delay() -> None:
    policy = RetryPolicy(initial_delay=1.0, max_delay=4.0, jitter=0.0)

    assert [policy.delay(attempt) for attempt in range(5)] == [1.0, 2.0, 4.0, 4.0, 4.0]
    assert RetryPolicy(jitter=0.2).delay(0, rng=lambda: 1.0) == pytest.approx(0.6)
