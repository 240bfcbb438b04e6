"""Abstract base for all committee model backends."""

from abc import ABC, abstractmethod

from committee.models import ModelResponse, PromptSegment


class ProviderError(Exception):
    """Raised when a provider call fails."""

    def __init__(self, provider_name: str, message: str) -> None:
        self.provider_name = provider_name
        super().__init__(f"[{provider_name}] {message}")


def split_system(prompt: list[PromptSegment]) -> tuple[str, list[PromptSegment]]:
    """Separate system segments (joined) from the conversational ones."""
    system = "\n\n".join(s.text for s in prompt if s.role == "system")
    rest = [s for s in prompt if s.role != "system"]
    return system, rest


class AIProvider(ABC):
    """A named backend: given a prompt, produce one completed text or fail."""

    @abstractmethod
    def name(self) -> str:
        """Return the registry name (also used as a label inside prompts)."""
        ...

    @abstractmethod
    def model_string(self) -> str:
        """Return the actual model identifier string."""
        ...

    def timeout_sec(self) -> float | None:
        """Per-call timeout the backend enforces, or None if it has none."""
        return None

    @abstractmethod
    async def generate(self, prompt: list[PromptSegment]) -> ModelResponse:
        """Generate a response for the given prompt.

        Streaming backends consume their stream internally and return only
        once the text is fully resolved.

        Args:
            prompt: Ordered role-tagged segments.

        Returns:
            ModelResponse dataclass with content and metadata.

        Raises:
            ProviderError: On API failure, timeout, or empty response.
        """
        ...
