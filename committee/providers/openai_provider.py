"""OpenAI provider using openai SDK with native async. Also serves any OpenAI-compatible base_url."""

import asyncio
import logging
import time

from openai import AsyncOpenAI

from config.config_loader import ModelConfig
from committee.models import ModelResponse, PromptSegment
from committee.providers.base import AIProvider, ProviderError

logger = logging.getLogger(__name__)


class OpenAIProvider(AIProvider):
    """OpenAI (or OpenAI-compatible) chat completions provider."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = config.resolve_api_key()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env or 'api_key'}")
        self._client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def timeout_sec(self) -> float | None:
        return self._config.timeout_sec

    def _request_kwargs(self, prompt: list[PromptSegment]) -> dict:
        kwargs: dict = {
            "model": self._config.model,
            "messages": [{"role": s.role, "content": s.text} for s in prompt],
            "max_tokens": self._config.max_tokens,
        }
        for key in ("temperature", "top_p", "presence_penalty", "frequency_penalty"):
            value = getattr(self._config, key)
            if value is not None:
                kwargs[key] = value
        return kwargs

    async def _complete(self, kwargs: dict) -> tuple[str, int | None]:
        response = await self._client.chat.completions.create(**kwargs)
        choice = response.choices[0] if response.choices else None
        content = choice.message.content if choice else None
        token_count = response.usage.total_tokens if response.usage else None
        return content or "", token_count

    async def _complete_streamed(self, kwargs: dict) -> tuple[str, int | None]:
        stream = await self._client.chat.completions.create(**kwargs, stream=True)
        parts: list[str] = []
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta is not None and delta.content:
                parts.append(delta.content)
        return "".join(parts), None

    async def generate(self, prompt: list[PromptSegment]) -> ModelResponse:
        start = time.monotonic()
        kwargs = self._request_kwargs(prompt)
        call = self._complete_streamed(kwargs) if self._config.stream else self._complete(kwargs)
        try:
            content, token_count = await asyncio.wait_for(call, timeout=self._config.timeout_sec)
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not content.strip():
            raise ProviderError(self._config.name, "Empty response content")

        logger.info(
            "OpenAI %s: %.2fs, %s tokens",
            self._config.name,
            latency,
            token_count,
        )

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            content=content,
            latency_sec=latency,
            token_count=token_count,
        )
