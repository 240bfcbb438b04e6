"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModelConfig, PromptsConfig
from committee.models import CommitteeContext, CommitteeRequest, Message, ModelResponse, PromptSegment
from committee.prompts import prompt_text
from committee.providers.base import AIProvider
from committee.registry import MemberRegistry


def make_response(provider: str, content: str) -> ModelResponse:
    return ModelResponse(
        provider=provider,
        model="mock-model",
        content=content,
        latency_sec=0.1,
        token_count=10,
    )


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, provider_name: str = "mock", response_content: str = "Mock response") -> None:
        self._name = provider_name
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(return_value=make_response(provider_name, response_content))  # type: ignore[assignment]

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, prompt: list[PromptSegment]) -> ModelResponse:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return make_response(self._name, self._response_content)

    def prompts_seen(self) -> list[str]:
        """Flattened text of every prompt this provider was called with."""
        return [prompt_text(call.args[0]) for call in self.generate.call_args_list]


class EchoProvider(AIProvider):
    """Deterministic backend: its reply is a pure function of the prompt text."""

    def __init__(self, provider_name: str) -> None:
        self._name = provider_name

    def name(self) -> str:
        return self._name

    def model_string(self) -> str:
        return "echo-model"

    async def generate(self, prompt: list[PromptSegment]) -> ModelResponse:
        text = prompt_text(prompt)
        return make_response(self._name, f"{self._name}:{len(text)}:{text[-30:]}")


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="test_model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        summary="Summarize:\n{conversation}END",
        review="Request: {summary}\nOpinions:\n{opinions}Rank them.",
        synthesis="Request: {summary}\nOpinions:\n{opinions}Reviews:\n{reviews}Answer.",
    )


@pytest.fixture
def sample_app_config(tmp_path: Path, sample_prompts_config: PromptsConfig) -> AppConfig:
    model_cfg = ModelConfig(
        name="claude",
        sdk="anthropic",
        model="claude-sonnet-4-20250514",
        api_key_env="ANTHROPIC_API_KEY",
    )
    return AppConfig(
        defaults=DefaultsConfig(leader="claude", members=(), output_dir=tmp_path / "output"),
        models={"claude": model_cfg},
        prompts=sample_prompts_config,
    )


@pytest.fixture
def sample_messages() -> list[Message]:
    return [
        Message(role="system", content="Be concise."),
        Message(role="user", content="Should we use YAML or JSON for config?"),
    ]


@pytest.fixture
def two_mock_providers() -> list[MockProvider]:
    return [MockProvider("provider_a", "Response from A"), MockProvider("provider_b", "Response from B")]


@pytest.fixture
def sample_registry(two_mock_providers: list[MockProvider]) -> MemberRegistry:
    return MemberRegistry({p.name(): p for p in two_mock_providers})


@pytest.fixture
def sample_request(sample_messages: list[Message]) -> CommitteeRequest:
    return CommitteeRequest(leader="provider_a", messages=sample_messages)


@pytest.fixture
def sample_context(two_mock_providers: list[MockProvider], sample_messages: list[Message]) -> CommitteeContext:
    return CommitteeContext(
        messages=sample_messages,
        leader=two_mock_providers[0],
        members={p.name(): p for p in two_mock_providers},
        summary="The user asks YAML vs JSON.",
    )
