from types import SimpleNamespace

import httpx
import pytest
from openai import OpenAIError

from therabridge.services.llm_client import (
    LLMClient, LLMServiceError, build_openai_client, extract_text, extract_tokens,
)

MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]


def _resp(content, tokens=None, choices=True):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))] if choices else [],
        usage=SimpleNamespace(total_tokens=tokens) if tokens is not None else None,
    )


def test_extract_text():
    assert extract_text(_resp("  Reflect on Tuesday.\n")) == "  Reflect on Tuesday.\n"
    assert extract_text(_resp(None)) is None
    assert extract_text(_resp("   ")) is None
    assert extract_text(_resp(["not", "a", "string"])) is None
    assert extract_text(_resp("x", choices=False)) is None
    assert extract_text(SimpleNamespace()) is None


def test_extract_tokens():
    assert extract_tokens(_resp("x", tokens=128)) == 128
    assert extract_tokens(_resp("x")) is None


async def test_complete_returns_text_and_tokens(fake_openai):
    llm = LLMClient(client=fake_openai, model="test-model")
    result = await llm.complete(MESSAGES, fallback="fallback")

    assert result.text == "1. What felt different this week?"
    assert result.tokens_used == 42
    call = fake_openai.completions.calls[0]
    assert call["model"] == "test-model"
    assert call["messages"] == MESSAGES


async def test_complete_uses_fallback_on_missing_content(fake_openai):
    fake_openai.completions.content = None
    result = await LLMClient(client=fake_openai).complete(MESSAGES, fallback="fallback")
    assert result.text == "fallback"
    assert result.tokens_used == 42


async def test_complete_wraps_api_errors(fake_openai):
    fake_openai.completions.error = OpenAIError("upstream down")
    with pytest.raises(LLMServiceError):
        await LLMClient(client=fake_openai).complete(MESSAGES, fallback="fallback")
    assert len(fake_openai.completions.calls) == 1


async def test_failing_endpoint_gets_exactly_one_request():
    sent = []

    def handler(request):
        sent.append(request.url.path)
        return httpx.Response(500, json={"error": {"message": "server exploded", "type": "server_error"}})

    openai_client = build_openai_client(
        api_key="test-key",
        base_url="http://llm.local/v1",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    with pytest.raises(LLMServiceError):
        await LLMClient(client=openai_client).complete(MESSAGES, fallback="fallback")
    assert sent == ["/v1/chat/completions"]


def test_default_client_does_not_retry(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    assert LLMClient().client.max_retries == 0
