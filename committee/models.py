"""Pure dataclasses for the committee pipeline. No logic, no deps."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from committee.providers.base import AIProvider


@dataclass(frozen=True)
class PromptSegment:
    role: str              # "user", "assistant", "system"
    text: str


@dataclass(frozen=True)
class Message:
    role: str
    content: str


@dataclass
class ModelResponse:
    provider: str          # registry name of the backend
    model: str             # actual model string used
    content: str
    latency_sec: float
    token_count: int | None


@dataclass
class CommitteeRequest:
    leader: str
    messages: list[Message] = field(default_factory=list)
    members: list[str] = field(default_factory=list)   # empty -> whole registry
    want_opinions: bool = False
    want_reviews: bool = False


@dataclass
class CommitteeContext:
    messages: list[Message]
    leader: "AIProvider"
    members: dict[str, "AIProvider"]
    summary: str = ""
    opinions: dict[str, str] = field(default_factory=dict)
    reviews: dict[str, list[str]] = field(default_factory=dict)
    want_opinions: bool = False
    want_reviews: bool = False


@dataclass
class CommitteeResult:
    answer: str
    leader: str
    members: list[str]
    summary: str
    opinions: dict[str, str]
    reviews: dict[str, list[str]]
    total_duration_sec: float
    want_opinions: bool = False
    want_reviews: bool = False
