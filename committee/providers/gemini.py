"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from committee.models import ModelResponse, PromptSegment
from committee.providers.base import AIProvider, ProviderError, split_system

logger = logging.getLogger(__name__)


def _to_contents(turns: list[PromptSegment]) -> list[genai_types.Content]:
    # Gemini names the assistant role "model".
    return [
        genai_types.Content(
            role="model" if s.role == "assistant" else "user",
            parts=[genai_types.Part.from_text(text=s.text)],
        )
        for s in turns
    ]


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = config.resolve_api_key()
        if not api_key:
            raise ProviderError(config.name, f"Missing API key: {config.api_key_env or 'api_key'}")
        self._client = genai.Client(api_key=api_key)

    def name(self) -> str:
        return self._config.name

    def model_string(self) -> str:
        return self._config.model

    def timeout_sec(self) -> float | None:
        return self._config.timeout_sec

    async def generate(self, prompt: list[PromptSegment]) -> ModelResponse:
        system, turns = split_system(prompt)
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._config.model,
                    contents=_to_contents(turns),
                    config=genai_types.GenerateContentConfig(
                        max_output_tokens=self._config.max_tokens,
                        temperature=self._config.temperature,
                        top_p=self._config.top_p,
                        system_instruction=system or None,
                    ),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.name, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.name, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.text:
            raise ProviderError(self._config.name, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info(
            "Gemini %s: %.2fs, %s tokens",
            self._config.name,
            latency,
            token_count,
        )

        return ModelResponse(
            provider=self._config.name,
            model=self._config.model,
            content=response.text,
            latency_sec=latency,
            token_count=token_count,
        )
