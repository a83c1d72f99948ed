"""LLM client for JSON-mode insight generation: OpenAI primary, Gemini fallback."""

import asyncio
import hashlib
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Optional

import openai
import google.generativeai as genai

from keyword_journey.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class UsageStats:
    """Token counts across all completions made by one client."""
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    total_requests: int = 0
    fallback_requests: int = 0

    def add_usage(self, input_tokens: int, output_tokens: int) -> None:
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens
        self.total_requests += 1


class ResponseCache:
    """In-memory TTL cache keyed on model, prompts and sampling parameters."""

    def __init__(self, max_size: int = 500, ttl_hours: int = 24):
        self._cache: dict[str, tuple[float, Any]] = {}
        self._max_size = max_size
        self._ttl_seconds = ttl_hours * 3600

    @staticmethod
    def _make_key(model: str, system_prompt: str, user_prompt: str, **kwargs) -> str:
        raw = model + ":" + system_prompt + ":" + user_prompt + ":" + json.dumps(kwargs, sort_keys=True)
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    def get(self, model: str, system_prompt: str, user_prompt: str, **kwargs) -> Optional[Any]:
        key = self._make_key(model, system_prompt, user_prompt, **kwargs)
        if key in self._cache:
            ts, value = self._cache[key]
            if time.time() - ts < self._ttl_seconds:
                return value
            del self._cache[key]
        return None

    def set(self, model: str, system_prompt: str, user_prompt: str, value: Any, **kwargs) -> None:
        if len(self._cache) >= self._max_size:
            oldest_key = min(self._cache, key=lambda k: self._cache[k][0])
            del self._cache[oldest_key]
        key = self._make_key(model, system_prompt, user_prompt, **kwargs)
        self._cache[key] = (time.time(), value)

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


class RateLimiter:
    """Sliding one-minute window limiter for async callers."""

    def __init__(self, requests_per_minute: int = 60):
        self._rpm = requests_per_minute
        self._timestamps: list[float] = []
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            self._timestamps = [t for t in self._timestamps if now - t < 60.0]
            if len(self._timestamps) >= self._rpm:
                wait = 60.0 - (now - self._timestamps[0])
                if wait > 0:
                    logger.debug("Rate limiter sleeping %.2fs", wait)
                    await asyncio.sleep(wait)
            self._timestamps.append(time.monotonic())


def parse_json_content(content: str) -> Any:
    """Parse a JSON completion, tolerating a surrounding markdown code fence.

    Raises:
        ValueError: when the content is not valid JSON.
    """
    cleaned = content.strip()
    if cleaned.startswith("```"):
        lines = cleaned.split("\n")[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        cleaned = "\n".join(lines)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError("LLM returned invalid JSON: " + str(exc)) from exc


class LLMClient:
    """Async chat client used for marketing insights.

    Usage::

        client = LLMClient()
        raw = await client.generate_json_completion(system_prompt, user_prompt)
        data = parse_json_content(raw)
    """

    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        gemini_api_key: Optional[str] = None,
        openai_model: str = "gpt-4.1",
        gemini_model: str = "gemini-2.0-flash",
        max_tokens: int = 2000,
        temperature: float = 0.7,
        timeout: float = 60.0,
        openai_rpm: int = 60,
        gemini_rpm: int = 15,
        cache_enabled: bool = True,
        cache_ttl_hours: int = 24,
        openai_client: Optional[Any] = None,
    ):
        self._openai_key = openai_api_key or os.getenv("OPENAI_API_KEY", "")
        self._gemini_key = gemini_api_key or os.getenv("GEMINI_API_KEY", "")

        self._openai_model = openai_model
        self._gemini_model = gemini_model
        self._max_tokens = max_tokens
        self._temperature = temperature

        self._openai_client = openai_client
        if self._openai_client is None and self._openai_key:
            self._openai_client = openai.AsyncOpenAI(api_key=self._openai_key, timeout=timeout)

        if self._gemini_key:
            genai.configure(api_key=self._gemini_key)

        self._openai_limiter = RateLimiter(openai_rpm)
        self._gemini_limiter = RateLimiter(gemini_rpm)

        self._cache_enabled = cache_enabled
        self._cache = ResponseCache(ttl_hours=cache_ttl_hours)

        self.usage = UsageStats()

    @property
    def is_configured(self) -> bool:
        return self._openai_client is not None or bool(self._gemini_key)

    @property
    def model(self) -> str:
        return self._openai_model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate_json_completion(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        use_cache: bool = True,
    ) -> str:
        """Request a JSON-object completion and return its raw text.

        OpenAI is tried first; on failure, Gemini is used when a key is set.

        Raises:
            ConfigurationError: when neither provider is configured.
            Exception: the provider error when every configured provider fails.
        """
        model = model or self._openai_model
        max_tokens = max_tokens or self._max_tokens
        temperature = temperature if temperature is not None else self._temperature

        if use_cache and self._cache_enabled:
            cached = self._cache.get(model, system_prompt, user_prompt, temp=temperature)
            if cached is not None:
                logger.debug("Cache hit for insight prompt (len=%d)", len(user_prompt))
                return cached

        if not self.is_configured:
            raise ConfigurationError("No LLM provider configured. Set OPENAI_API_KEY or GEMINI_API_KEY.")

        result = None
        if self._openai_client is not None:
            try:
                result = await self._call_openai(system_prompt, user_prompt, model, max_tokens, temperature)
            except Exception as exc:
                if not self._gemini_key:
                    raise
                logger.warning("OpenAI call failed: %s. Falling back to Gemini", exc)

        if result is None:
            result = await self._call_gemini(system_prompt, user_prompt, max_tokens, temperature)
            self.usage.fallback_requests += 1

        if use_cache and self._cache_enabled:
            self._cache.set(model, system_prompt, user_prompt, result, temp=temperature)
        return result

    async def test_connection(self) -> bool:
        """List models with the OpenAI key; True when the call succeeds."""
        if self._openai_client is None:
            return False
        try:
            await self._openai_client.models.list()
        except openai.OpenAIError as exc:
            logger.warning("OpenAI connection test failed: %s", exc)
            return False
        return True

    def get_usage_summary(self) -> dict[str, Any]:
        return {
            "total_requests": self.usage.total_requests,
            "fallback_requests": self.usage.fallback_requests,
            "total_input_tokens": self.usage.total_input_tokens,
            "total_output_tokens": self.usage.total_output_tokens,
            "cached_responses": len(self._cache),
        }

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _call_openai(
        self, system_prompt: str, user_prompt: str, model: str,
        max_tokens: int, temperature: float,
    ) -> str:
        await self._openai_limiter.acquire()

        response = await self._openai_client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
            response_format={"type": "json_object"},
        )
        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""
        usage = response.usage
        if usage:
            self.usage.add_usage(usage.prompt_tokens, usage.completion_tokens)
            logger.info(
                "OpenAI %s call: %d in / %d out tokens",
                model, usage.prompt_tokens, usage.completion_tokens,
            )
        return content

    async def _call_gemini(
        self, system_prompt: str, user_prompt: str,
        max_tokens: int, temperature: float,
    ) -> str:
        await self._gemini_limiter.acquire()

        model = genai.GenerativeModel(
            model_name=self._gemini_model,
            system_instruction=system_prompt,
            generation_config=genai.types.GenerationConfig(
                max_output_tokens=max_tokens,
                temperature=temperature,
                response_mime_type="application/json",
            ),
        )
        # The Gemini SDK call is blocking
        loop = asyncio.get_running_loop()
        response = await loop.run_in_executor(None, model.generate_content, user_prompt)
        text = response.text or ""
        logger.info("Gemini call completed (len=%d)", len(text))
        return text
