from __future__ import annotations
import asyncio
from typing import Any, Dict, List, NamedTuple, Optional
from loguru import logger
from openai import OpenAI, OpenAIError

from therabridge.config import OPENAI_MODEL, OPENAI_TIMEOUT_S


class LLMServiceError(RuntimeError):
    """The hosted model could not be reached or rejected the request."""


class LLMResult(NamedTuple):
    text: str
    tokens_used: Optional[int] = None


def extract_text(resp: Any) -> Optional[str]:
    """First choice's message content, or None when it is missing, empty or not a string."""
    try:
        content = resp.choices[0].message.content
    except (AttributeError, IndexError, TypeError):
        return None
    if not isinstance(content, str) or not content.strip():
        return None
    return content


def build_openai_client(**kwargs: Any) -> OpenAI:
    """OpenAI client with SDK retries off, so one complete() is one HTTP request."""
    return OpenAI(max_retries=0, **kwargs)


def extract_tokens(resp: Any) -> Optional[int]:
    usage = getattr(resp, "usage", None)
    total = getattr(usage, "total_tokens", None)
    return total if isinstance(total, int) else None


class LLMClient:
    """
    Thin wrapper around the OpenAI chat completions API.

    One request per call: no retries, no streaming. Transport and API errors
    are raised as LLMServiceError for the request handler to deal with; a
    response without usable text is not an error and yields `fallback`.
    """

    def __init__(self, client: Any = None, model: str = OPENAI_MODEL, timeout: float = OPENAI_TIMEOUT_S):
        self._client = client
        self.model = model
        self.timeout = timeout

    @property
    def client(self) -> Any:
        # OPENAI_API_KEY is read from env on first use
        if self._client is None:
            self._client = build_openai_client()
        return self._client

    async def complete(self, messages: List[Dict[str, str]], fallback: str) -> LLMResult:
        def _call():
            return self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                timeout=self.timeout,
            )

        try:
            resp = await asyncio.to_thread(_call)
        except OpenAIError as e:
            logger.error(f"OpenAI request failed: {type(e).__name__}: {e}")
            raise LLMServiceError(f"OpenAI error: {e}") from e

        text = extract_text(resp)
        if text is None:
            logger.warning("OpenAI returned no usable content, using fallback text")
            return LLMResult(fallback, extract_tokens(resp))
        return LLMResult(text, extract_tokens(resp))
