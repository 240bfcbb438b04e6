"""Conversation summarization by the leader, ahead of phase 1."""

import logging

from config.config_loader import PromptsConfig
from committee.errors import LeaderCallFailed
from committee.models import CommitteeContext
from committee.prompts import build_summary_prompt

logger = logging.getLogger(__name__)


async def summarize_conversation(ctx: CommitteeContext, prompts: PromptsConfig) -> None:
    """Collapse the conversation into ctx.summary using the leader.

    No-op when there are no messages.

    Raises:
        LeaderCallFailed: The leader call failed or returned no text.
    """
    if not ctx.messages:
        logger.info("No conversation messages, skipping summary")
        return

    leader_name = ctx.leader.name()
    prompt = build_summary_prompt(ctx.messages, prompts)
    logger.info("Generating conversation summary via %s (%d messages)", leader_name, len(ctx.messages))

    try:
        response = await ctx.leader.generate(prompt)
    except Exception as exc:
        raise LeaderCallFailed(leader_name, f"summary call failed: {exc}") from exc

    if not response.content.strip():
        raise LeaderCallFailed(leader_name, "summary call returned empty content")

    ctx.summary = response.content
    logger.debug("Conversation summary: %s", ctx.summary)
