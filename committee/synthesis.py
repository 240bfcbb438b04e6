"""Phase 3: leader synthesis of the final answer."""

import logging

from config.config_loader import PromptsConfig
from committee.errors import LeaderCallFailed
from committee.models import CommitteeContext
from committee.prompts import build_synthesis_prompt, prompt_text

logger = logging.getLogger(__name__)


async def synthesize_answer(
    ctx: CommitteeContext,
    prompts: PromptsConfig,
    anonymize: bool = False,
) -> str:
    """Run synthesis on the leader and return the final answer text.

    Raises:
        LeaderCallFailed: The leader call failed or returned empty content.
    """
    leader_name = ctx.leader.name()
    prompt = build_synthesis_prompt(ctx, prompts, anonymize=anonymize)

    logger.info(
        "Phase 3: synthesizing via %s (%d opinions, %d reviews)",
        leader_name,
        len(ctx.opinions),
        len(ctx.reviews),
    )
    logger.debug("Phase 3 prompt: %s", prompt_text(prompt))

    try:
        response = await ctx.leader.generate(prompt)
    except Exception as exc:
        raise LeaderCallFailed(leader_name, f"synthesis call failed: {exc}") from exc

    if not response.content.strip():
        raise LeaderCallFailed(leader_name, "synthesis returned empty content")

    return response.content
