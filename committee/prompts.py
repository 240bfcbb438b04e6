"""Prompt builders for the summary and the three committee phases.

Every builder walks member names in sorted order so the same inputs always
produce the same prompt text.
"""

import logging
from collections.abc import Iterable, Mapping

from config.config_loader import PromptsConfig
from committee.models import CommitteeContext, Message, PromptSegment

logger = logging.getLogger(__name__)


def prompt_text(prompt: list[PromptSegment]) -> str:
    """Flatten a prompt into plain text (logging and tests)."""
    return "\n\n".join(s.text for s in prompt)


def candidate_labels(names: Iterable[str]) -> dict[str, str]:
    """Map member names to opaque labels: 'Candidate 1', 'Candidate 2', ..."""
    return {name: f"Candidate {i}" for i, name in enumerate(sorted(names), start=1)}


def build_summary_prompt(messages: list[Message], prompts: PromptsConfig) -> list[PromptSegment]:
    labels = prompts.role_labels
    fallback = labels.get("system", "")
    conversation = "".join(
        f"{labels.get(m.role, fallback)}{m.content}\n\n" for m in messages
    )
    return [PromptSegment("user", prompts.summary.format(conversation=conversation))]


def build_opinion_prompt(ctx: CommitteeContext) -> list[PromptSegment]:
    """The summary when there is one, otherwise the raw conversation.

    An empty conversation still yields a single user segment, so members
    receive a well-formed (if empty) request.
    """
    if ctx.summary:
        return [PromptSegment("user", ctx.summary)]
    if not ctx.messages:
        logger.warning("Empty conversation: members will be asked with an empty prompt")
        return [PromptSegment("user", "")]
    return [PromptSegment(m.role, m.content) for m in ctx.messages]


def _opinions_block(opinions: Mapping[str, str], labels: Mapping[str, str]) -> str:
    return "".join(f"{labels.get(name, name)}: {opinions[name]}\n\n" for name in sorted(opinions))


def build_review_prompt(
    summary: str,
    opinions: Mapping[str, str],
    prompts: PromptsConfig,
    anonymize: bool = False,
) -> list[PromptSegment]:
    labels = candidate_labels(opinions) if anonymize else {}
    text = prompts.review.format(summary=summary, opinions=_opinions_block(opinions, labels))
    return [PromptSegment("user", text)]


def build_synthesis_prompt(
    ctx: CommitteeContext,
    prompts: PromptsConfig,
    anonymize: bool = False,
) -> list[PromptSegment]:
    # Reviews refer to candidates by label when anonymized, so the leader gets both.
    labels = (
        {name: f"{name} ({label})" for name, label in candidate_labels(ctx.opinions).items()}
        if anonymize
        else {}
    )
    reviews_block = ""
    for name in sorted(ctx.reviews):
        reviews_block += f"Review by {name}:\n"
        reviews_block += "".join(f"  {line}\n" for line in ctx.reviews[name])
        reviews_block += "\n"

    text = prompts.synthesis.format(
        summary=ctx.summary,
        opinions=_opinions_block(ctx.opinions, labels),
        reviews=reviews_block,
    )
    return [PromptSegment("user", text)]
