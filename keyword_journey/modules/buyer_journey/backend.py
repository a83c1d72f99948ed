"""OpenAI classification backend: model-dependent request shapes and the per-batch call."""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import openai

from keyword_journey.exceptions import BatchRequestError, ConfigurationError
from keyword_journey.modules.buyer_journey.prompts import PERSONA, build_batch_prompt

logger = logging.getLogger(__name__)

REASONING_MODEL_PREFIX = "gpt-5"

RESPONSES_ENDPOINT = "responses"
CHAT_ENDPOINT = "chat.completions"


class ClassificationBackend(Protocol):
    """Anything that turns one keyword batch into raw ``keyword|stage`` text."""

    async def __call__(
        self, keywords: list[str], model: str, batch_index: int, attempt: int
    ) -> str:
        ...


@dataclass
class BackendRequest:
    """A fully built request: which endpoint to hit and the keyword arguments for it."""
    endpoint: str
    body: dict[str, Any] = field(default_factory=dict)


def is_reasoning_model(model: str) -> bool:
    """Return True for the reasoning-capable model family."""
    return (model or "").startswith(REASONING_MODEL_PREFIX)


def build_backend_request(
    model: str,
    prompt: str,
    temperature: float = 0.3,
    max_tokens: int = 2000,
) -> BackendRequest:
    """Build the request for ``model``.

    Reasoning models go through the Responses API with a single combined
    instruction and effort/verbosity hints. Every other identifier, known or
    not, uses a system+user chat completion.
    """
    if is_reasoning_model(model):
        return BackendRequest(
            endpoint=RESPONSES_ENDPOINT,
            body={
                "model": model,
                "input": PERSONA + "\n\n" + prompt,
                "reasoning": {"effort": "medium" if model == "gpt-5" else "low"},
                "text": {"verbosity": "medium" if model == "gpt-5-nano" else "high"},
            },
        )
    return BackendRequest(
        endpoint=CHAT_ENDPOINT,
        body={
            "model": model,
            "messages": [
                {"role": "system", "content": PERSONA},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        },
    )


def extract_response_text(endpoint: str, response: Any) -> str:
    """Pull the completion text out of an SDK response object."""
    if endpoint == RESPONSES_ENDPOINT:
        return getattr(response, "output_text", "") or ""
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    return choices[0].message.content or ""


class OpenAIJourneyBackend:
    """Calls OpenAI once per batch attempt.

    The SDK's own retries are disabled; the batch classifier owns the retry
    loop so that every batch follows the same backoff schedule.

    Usage::

        backend = OpenAIJourneyBackend(api_key="sk-...")
        text = await backend(["카페", "카페 추천"], "gpt-4.1", batch_index=0, attempt=0)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[openai.AsyncOpenAI] = None,
        timeout: float = 60.0,
        temperature: float = 0.3,
        max_tokens: int = 2000,
    ):
        self._temperature = temperature
        self._max_tokens = max_tokens
        if client is not None:
            self._client = client
            return
        key = api_key or os.getenv("OPENAI_API_KEY", "")
        if not key:
            raise ConfigurationError("OPENAI_API_KEY is required for the classification backend.")
        self._client = openai.AsyncOpenAI(api_key=key, timeout=timeout, max_retries=0)

    async def __call__(
        self, keywords: list[str], model: str, batch_index: int, attempt: int
    ) -> str:
        suffix = " (attempt " + str(attempt + 1) + ")" if attempt > 0 else ""
        logger.info(
            "Processing batch %d with %d keywords using %s%s",
            batch_index + 1, len(keywords), model, suffix,
        )
        request = build_backend_request(
            model,
            build_batch_prompt(keywords),
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        try:
            if request.endpoint == RESPONSES_ENDPOINT:
                response = await self._client.responses.create(**request.body)
            else:
                response = await self._client.chat.completions.create(**request.body)
        except openai.APIStatusError as exc:
            reason = ""
            if exc.response is not None:
                reason = exc.response.reason_phrase or ""
            logger.error("Batch %d API error: %s", batch_index + 1, exc.message)
            raise BatchRequestError(batch_index, exc.status_code, reason) from exc

        content = extract_response_text(request.endpoint, response)
        logger.debug("Batch %d raw response: %s", batch_index + 1, content[:500])
        return content
