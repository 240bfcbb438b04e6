"""Provider adapters with the vendor SDK clients mocked out."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.config_loader import ModelConfig
from committee.models import PromptSegment
from committee.providers.anthropic import AnthropicProvider
from committee.providers.base import ProviderError, split_system
from committee.providers.gemini import GeminiProvider
from committee.providers.openai_provider import OpenAIProvider

PROMPT = [PromptSegment("system", "Be brief."), PromptSegment("user", "Q?")]


def _cfg(sdk: str, **overrides) -> ModelConfig:
    values = dict(name="m", sdk=sdk, model="model-x", api_key="sk-test", timeout_sec=5, max_tokens=64)
    values.update(overrides)
    return ModelConfig(**values)


def _chat_completion(content: str | None, total_tokens: int = 7) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


class _Stream:
    def __init__(self, pieces: list[str | None]) -> None:
        self._chunks = [SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=p))]) for p in pieces]

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for chunk in self._chunks:
            yield chunk


def test_split_system():
    system, rest = split_system(PROMPT)
    assert system == "Be brief."
    assert rest == [PromptSegment("user", "Q?")]


def test_missing_key_raises(monkeypatch):
    monkeypatch.delenv("NOPE_KEY", raising=False)
    with pytest.raises(ProviderError, match="Missing API key"):
        OpenAIProvider(_cfg("openai", api_key=None, api_key_env="NOPE_KEY"))


async def test_openai_single_response():
    provider = OpenAIProvider(_cfg("openai", temperature=0.3))
    create = AsyncMock(return_value=_chat_completion("answer"))
    provider._client = MagicMock()
    provider._client.chat.completions.create = create

    response = await provider.generate(PROMPT)

    assert response.content == "answer"
    assert response.token_count == 7
    kwargs = create.call_args.kwargs
    assert kwargs["messages"] == [{"role": "system", "content": "Be brief."}, {"role": "user", "content": "Q?"}]
    assert kwargs["temperature"] == 0.3
    assert "top_p" not in kwargs
    assert "stream" not in kwargs


async def test_openai_stream_resolves_to_one_text():
    provider = OpenAIProvider(_cfg("openai", stream=True))
    create = AsyncMock(return_value=_Stream(["Hel", None, "lo"]))
    provider._client = MagicMock()
    provider._client.chat.completions.create = create

    response = await provider.generate(PROMPT)

    assert response.content == "Hello"
    assert create.call_args.kwargs["stream"] is True


async def test_openai_empty_content_is_error():
    provider = OpenAIProvider(_cfg("openai"))
    provider._client = MagicMock()
    provider._client.chat.completions.create = AsyncMock(return_value=_chat_completion(None))
    with pytest.raises(ProviderError, match="Empty"):
        await provider.generate(PROMPT)


async def test_openai_sdk_error_wrapped():
    provider = OpenAIProvider(_cfg("openai"))
    provider._client = MagicMock()
    provider._client.chat.completions.create = AsyncMock(side_effect=ConnectionError("reset"))
    with pytest.raises(ProviderError, match="API call failed: reset"):
        await provider.generate(PROMPT)


async def test_openai_timeout():
    provider = OpenAIProvider(_cfg("openai", timeout_sec=0))

    async def hang(**kwargs):
        await asyncio.sleep(9999)

    provider._client = MagicMock()
    provider._client.chat.completions.create = AsyncMock(side_effect=hang)
    with pytest.raises(ProviderError, match="timed out"):
        await provider.generate(PROMPT)


async def test_anthropic_moves_system_to_parameter():
    provider = AnthropicProvider(_cfg("anthropic"))
    create = AsyncMock(
        return_value=SimpleNamespace(
            content=[SimpleNamespace(type="text", text="part 1"), SimpleNamespace(type="text", text="part 2")],
            usage=SimpleNamespace(input_tokens=3, output_tokens=4),
        )
    )
    provider._client = MagicMock()
    provider._client.messages.create = create

    response = await provider.generate(PROMPT)

    assert response.content == "part 1\npart 2"
    assert response.token_count == 7
    kwargs = create.call_args.kwargs
    assert kwargs["system"] == "Be brief."
    assert kwargs["messages"] == [{"role": "user", "content": "Q?"}]


async def test_anthropic_no_text_blocks_is_error():
    provider = AnthropicProvider(_cfg("anthropic"))
    provider._client = MagicMock()
    provider._client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="tool_use")], usage=None)
    )
    with pytest.raises(ProviderError, match="No text blocks"):
        await provider.generate(PROMPT)


async def test_gemini_maps_roles_and_system_instruction():
    provider = GeminiProvider(_cfg("gemini", temperature=0.1))
    generate_content = AsyncMock(
        return_value=SimpleNamespace(text="gemini says", usage_metadata=SimpleNamespace(total_token_count=11))
    )
    provider._client = MagicMock()
    provider._client.aio.models.generate_content = generate_content

    prompt = PROMPT + [PromptSegment("assistant", "Earlier answer."), PromptSegment("user", "Follow-up?")]
    response = await provider.generate(prompt)

    assert response.content == "gemini says"
    assert response.token_count == 11
    kwargs = generate_content.call_args.kwargs
    assert kwargs["model"] == "model-x"
    assert [c.role for c in kwargs["contents"]] == ["user", "model", "user"]
    assert [c.parts[0].text for c in kwargs["contents"]] == ["Q?", "Earlier answer.", "Follow-up?"]
    assert kwargs["config"].system_instruction == "Be brief."
    assert kwargs["config"].temperature == 0.1


async def test_gemini_empty_text_is_error():
    provider = GeminiProvider(_cfg("gemini"))
    provider._client = MagicMock()
    provider._client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text=None, usage_metadata=None)
    )
    with pytest.raises(ProviderError, match="Empty response"):
        await provider.generate(PROMPT)
