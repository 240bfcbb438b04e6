"""Single entry point: resolve context, summarize, run the three phases."""

import logging
import time
from collections.abc import Callable

from config.config_loader import PromptsConfig
from committee.context import build_context
from committee.debate import collect_opinions, collect_reviews
from committee.errors import StageFailed
from committee.models import CommitteeRequest, CommitteeResult
from committee.registry import MemberRegistry
from committee.summary import summarize_conversation
from committee.synthesis import synthesize_answer

logger = logging.getLogger(__name__)

STAGE_CONTEXT = "build committee context"
STAGE_SUMMARY = "generate summary"
STAGE_OPINIONS = "phase 1"
STAGE_REVIEWS = "phase 2"
STAGE_SYNTHESIS = "phase 3"


async def run_committee(
    registry: MemberRegistry,
    request: CommitteeRequest,
    prompts: PromptsConfig,
    max_concurrency: int | None = None,
    anonymize_reviews: bool = False,
    on_stage_complete: Callable[[str], None] | None = None,
) -> CommitteeResult:
    """Run the full committee pipeline for one request.

    Cancelling the awaiting task cancels every in-flight backend call.

    Args:
        registry: Shared, read-only member registry.
        request: Leader, conversation, member selection and output flags.
        prompts: Prompt templates from config.
        max_concurrency: Optional cap on simultaneous member calls per phase.
        anonymize_reviews: Label opinions "Candidate N" in review prompts.
        on_stage_complete: Optional callback invoked with each finished stage name.

    Returns:
        CommitteeResult with the final answer and the collected opinions/reviews.

    Raises:
        StageFailed: Any fatal failure, wrapped with the stage it came from.
            Cancellation is never wrapped.
    """
    start = time.monotonic()

    def _done(stage: str) -> None:
        if on_stage_complete:
            on_stage_complete(stage)

    try:
        ctx = build_context(registry, request)
    except Exception as exc:
        raise StageFailed(STAGE_CONTEXT, exc) from exc
    _done(STAGE_CONTEXT)

    logger.info(
        "Committee run started: leader=%s members=%s messages=%d",
        ctx.leader.name(),
        sorted(ctx.members),
        len(ctx.messages),
    )

    try:
        await summarize_conversation(ctx, prompts)
    except Exception as exc:
        logger.error("Summary failed: %s", exc)
        raise StageFailed(STAGE_SUMMARY, exc) from exc
    _done(STAGE_SUMMARY)

    try:
        await collect_opinions(ctx, prompts, max_concurrency=max_concurrency)
    except Exception as exc:
        raise StageFailed(STAGE_OPINIONS, exc) from exc
    _done(STAGE_OPINIONS)

    try:
        await collect_reviews(ctx, prompts, max_concurrency=max_concurrency, anonymize=anonymize_reviews)
    except Exception as exc:
        raise StageFailed(STAGE_REVIEWS, exc) from exc
    _done(STAGE_REVIEWS)

    try:
        answer = await synthesize_answer(ctx, prompts, anonymize=anonymize_reviews)
    except Exception as exc:
        logger.error("Synthesis failed: %s", exc)
        raise StageFailed(STAGE_SYNTHESIS, exc) from exc
    _done(STAGE_SYNTHESIS)

    duration = time.monotonic() - start
    logger.info("Committee run complete in %.1fs", duration)

    return CommitteeResult(
        answer=answer,
        leader=ctx.leader.name(),
        members=sorted(ctx.members),
        summary=ctx.summary,
        opinions=dict(ctx.opinions),
        reviews={name: list(lines) for name, lines in ctx.reviews.items()},
        total_duration_sec=duration,
        want_opinions=ctx.want_opinions,
        want_reviews=ctx.want_reviews,
    )
