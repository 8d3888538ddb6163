"""
LLM client - OpenAI SDK pointed at OpenRouter (DeepSeek) with OpenAI fallback.

Both providers speak the OpenAI chat completions API, so one code path
serves either; the configured preference decides which one is tried first.
"""
import asyncio
import json
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

from openai import AsyncOpenAI

from heartcart.core.config import settings
from heartcart.core.exceptions import AINotConfiguredError, AIServiceError
from heartcart.core.logging import get_logger

logger = get_logger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"


@dataclass
class Provider:
    name: str
    client: AsyncOpenAI
    model: str
    vision_model: Optional[str] = None


def extract_json(content: str) -> dict[str, Any]:
    """
    Parse a JSON object from model output.

    Falls back to the outermost `{...}` block when the model wraps the
    JSON in prose or code fences.
    """
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        match = re.search(r"\{.*\}", content, re.DOTALL)
        if not match:
            raise
        parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise json.JSONDecodeError("Expected a JSON object", content, 0)
    return parsed


class LLMClient:
    """
    Chat completion client with retries and provider fallback.

    Attempts go through the primary provider with exponential backoff;
    when it is exhausted the fallback provider, if configured, gets the
    same number of attempts.
    """

    def __init__(
        self,
        openrouter_api_key: Optional[str] = None,
        openai_api_key: Optional[str] = None,
        prefer_deepseek: Optional[bool] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        openrouter_api_key = openrouter_api_key or settings.openrouter_api_key
        openai_api_key = openai_api_key or settings.openai_api_key
        if prefer_deepseek is None:
            prefer_deepseek = settings.prefer_deepseek
        self.max_retries = max_retries or settings.ai_max_retries

        deepseek = None
        if openrouter_api_key:
            deepseek = Provider(
                name="deepseek",
                client=AsyncOpenAI(api_key=openrouter_api_key, base_url=OPENROUTER_BASE_URL),
                model=settings.deepseek_model,
                vision_model=settings.openrouter_vision_model,
            )
        openai = None
        if openai_api_key:
            openai = Provider(
                name="openai",
                client=AsyncOpenAI(api_key=openai_api_key),
                model=settings.openai_model,
                vision_model=settings.openai_model,
            )

        ordered = [deepseek, openai] if prefer_deepseek else [openai, deepseek]
        self.providers: list[Provider] = [p for p in ordered if p is not None]

    @property
    def is_configured(self) -> bool:
        return bool(self.providers)

    async def chat_completion(
        self,
        messages: list[dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: int = 1500,
        json_mode: bool = False,
        vision: bool = False,
    ) -> dict[str, Any]:
        """
        Execute a chat completion.

        Returns the parsed JSON object in json mode, otherwise
        `{"content": text}`; either way with a `_metadata` entry. With
        `vision` only providers that have a vision model are tried, using
        that model; messages may then carry `image_url` content parts.

        Raises:
            AINotConfiguredError: no provider has an API key
            AIServiceError: every provider failed
        """
        providers = [p for p in self.providers if p.vision_model] if vision else self.providers
        if not providers:
            raise AINotConfiguredError(
                "AI image analysis is not configured" if vision and self.providers
                else "AI content generation is not configured"
            )

        last_error: Optional[Exception] = None
        for provider in providers:
            try:
                return await self._complete_with_retries(
                    provider, messages, temperature, max_tokens, json_mode,
                    model=provider.vision_model if vision else provider.model,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "AI provider exhausted, trying next",
                    provider=provider.name,
                    error=str(e),
                )

        raise AIServiceError(f"AI provider request failed: {last_error}") from last_error

    async def _complete_with_retries(
        self,
        provider: Provider,
        messages: list[dict[str, Any]],
        temperature: float,
        max_tokens: int,
        json_mode: bool,
        model: Optional[str] = None,
    ) -> dict[str, Any]:
        model = model or provider.model
        start_time = time.time()
        response_format = {"type": "json_object"} if json_mode else None

        for attempt in range(self.max_retries):
            try:
                kwargs: dict[str, Any] = {
                    "model": model,
                    "messages": messages,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                }
                if response_format:
                    kwargs["response_format"] = response_format
                response = await provider.client.chat.completions.create(**kwargs)

                tokens_used = response.usage.total_tokens if response.usage else 0
                content = response.choices[0].message.content
                if not content:
                    raise ValueError(f"Empty response from {provider.name}")

                result = extract_json(content) if json_mode else {"content": content}
                result["_metadata"] = {
                    "ai_provider": provider.name,
                    "ai_model": model,
                    "tokens_used": tokens_used,
                    "duration_ms": int((time.time() - start_time) * 1000),
                }

                logger.info(
                    "AI completion successful",
                    provider=provider.name,
                    model=model,
                    tokens=tokens_used,
                    attempt=attempt + 1,
                )
                return result

            except json.JSONDecodeError as e:
                logger.warning(
                    "Failed to parse AI response",
                    provider=provider.name,
                    attempt=attempt + 1,
                    error=str(e),
                )
                if attempt == self.max_retries - 1:
                    raise ValueError(f"JSON parse error: {e}") from e

            except Exception as e:
                logger.error(
                    "AI API error",
                    provider=provider.name,
                    attempt=attempt + 1,
                    error=str(e),
                    model=model,
                )
                if attempt == self.max_retries - 1:
                    raise

                # Exponential backoff
                await asyncio.sleep(2 ** attempt)

        raise RuntimeError("Max retries exceeded")


_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Shared client built from settings."""
    global _client
    if _client is None:
        _client = LLMClient()
    return _client
