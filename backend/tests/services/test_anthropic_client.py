"""ResilientAnthropicClient - retry, backoff and error mapping around messages.create.

Tests:
    - complete_text joins text blocks and skips other block types
    - Connection and overloaded errors are retried, then mapped to AnthropicAPIError
    - 4xx client errors fail immediately without retry
    - Rate limits honour Retry-After and surface it on the mapped error
"""

from types import SimpleNamespace

import httpx
import pytest
from anthropic import (
    APIConnectionError, APIStatusError, BadRequestError, RateLimitError,
)

from app.core.errors import AnthropicAPIError
from app.infrastructure.anthropic_client import ResilientAnthropicClient

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _response(*blocks):
    return SimpleNamespace(
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
    )


def _status(status: int, headers: dict | None = None) -> httpx.Response:
    return httpx.Response(status, request=_REQUEST, headers=headers or {})


class ScriptedMessages:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(outcomes, max_retries=2) -> tuple[ResilientAnthropicClient, ScriptedMessages]:
    client = ResilientAnthropicClient(
        api_key="sk-test", model="claude-test", max_retries=max_retries,
        base_delay_ms=0, max_delay_ms=0,
    )
    messages = ScriptedMessages(outcomes)
    client.client = SimpleNamespace(messages=messages)
    return client, messages


async def test_complete_text_joins_text_blocks():
    client, messages = _client([_response(
        SimpleNamespace(type="text", text="Hello "),
        SimpleNamespace(type="tool_use", name="x"),
        SimpleNamespace(type="text", text="family"),
    )])
    text = await client.complete_text(system="sys", prompt="hi", max_tokens=100)
    assert text == "Hello family"
    call = messages.calls[0]
    assert call["model"] == "claude-test"
    assert call["max_tokens"] == 100
    assert call["messages"] == [{"role": "user", "content": "hi"}]


async def test_connection_error_retried_then_succeeds():
    client, messages = _client([
        APIConnectionError(request=_REQUEST),
        _response(SimpleNamespace(type="text", text="ok")),
    ])
    assert await client.complete_text(system="s", prompt="p") == "ok"
    assert len(messages.calls) == 2
    assert messages.calls[0]["max_tokens"] == 2048


async def test_overloaded_retried_until_exhausted():
    overloaded = [APIStatusError("overloaded", response=_status(529), body=None) for _ in range(3)]
    client, messages = _client(overloaded, max_retries=2)
    with pytest.raises(AnthropicAPIError) as exc:
        await client.complete_text(system="s", prompt="p")
    assert exc.value.api_error_type == "connection_error"
    assert len(messages.calls) == 3


async def test_client_error_not_retried():
    client, messages = _client([BadRequestError("bad", response=_status(400), body=None)])
    with pytest.raises(AnthropicAPIError) as exc:
        await client.complete_text(system="s", prompt="p")
    assert exc.value.api_error_type == "client_error"
    assert len(messages.calls) == 1


async def test_rate_limit_exhausted_reports_retry_after():
    limited = [
        RateLimitError("slow down", response=_status(429, {"retry-after": "0"}), body=None),
        RateLimitError("slow down", response=_status(429, {"retry-after": "7"}), body=None),
    ]
    client, messages = _client(limited, max_retries=1)
    with pytest.raises(AnthropicAPIError) as exc:
        await client.complete_text(system="s", prompt="p")
    assert exc.value.api_error_type == "rate_limit"
    assert exc.value.context.retry_after_ms == 7000
    assert len(messages.calls) == 2
