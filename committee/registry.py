"""Member registry: name -> backend, built once at startup and read-only afterwards."""

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from config.config_loader import ModelConfig
from committee.errors import ConfigurationError
from committee.providers.anthropic import AnthropicProvider
from committee.providers.base import AIProvider
from committee.providers.gemini import GeminiProvider
from committee.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


class MemberRegistry(Mapping[str, AIProvider]):
    """Immutable mapping from model name to backend. Safe to share across requests."""

    def __init__(self, providers: Mapping[str, AIProvider]) -> None:
        if not providers:
            raise ConfigurationError("Member registry cannot be empty")
        self._providers = MappingProxyType(dict(providers))

    def __getitem__(self, name: str) -> AIProvider:
        return self._providers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def names(self) -> list[str]:
        return sorted(self._providers)

    def __repr__(self) -> str:
        return f"MemberRegistry({self.names()})"


def build_registry(
    models: Mapping[str, ModelConfig],
    provider_classes: Mapping[str, type[AIProvider]] | None = None,
) -> MemberRegistry:
    """Instantiate every configured backend. Fails fast on the first bad entry.

    Raises:
        ConfigurationError: If no models are configured, an sdk is unknown,
            or any backend fails to initialise.
    """
    if not models:
        raise ConfigurationError("No models configured")

    classes = provider_classes if provider_classes is not None else PROVIDER_CLASSES
    providers: dict[str, AIProvider] = {}
    for name, model_cfg in models.items():
        provider_cls = classes.get(model_cfg.sdk)
        if provider_cls is None:
            raise ConfigurationError(f"Model '{name}' uses unknown sdk '{model_cfg.sdk}'")
        try:
            provider = provider_cls(model_cfg)
        except Exception as exc:
            raise ConfigurationError(f"Failed to initialise model '{name}': {exc}") from exc
        providers[provider.name()] = provider
        logger.info("Registered committee model: %s (%s)", provider.name(), provider.model_string())

    return MemberRegistry(providers)
