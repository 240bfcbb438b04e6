"""Committee phases 1 and 2: parallel opinion collection and cross-review."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from config.config_loader import PromptsConfig
from committee.errors import MemberCallFailed
from committee.models import CommitteeContext, ModelResponse, PromptSegment
from committee.prompts import build_opinion_prompt, build_review_prompt, prompt_text
from committee.providers.base import AIProvider

logger = logging.getLogger(__name__)

OPINION_STAGE = "phase 1"
REVIEW_STAGE = "phase 2"


async def _call_member(
    member: AIProvider,
    prompt: list[PromptSegment],
    stage: str,
) -> ModelResponse | MemberCallFailed:
    """Call a single member once. No retries.

    Never raises (except on cancellation). Returns MemberCallFailed on any
    failure or empty text, already logged.
    """
    try:
        response = await member.generate(prompt)
    except Exception as exc:
        failure = MemberCallFailed(member.name(), stage, str(exc))
        logger.warning("Member %s failed in %s: %s", member.name(), stage, exc)
        return failure

    if not response.content.strip():
        failure = MemberCallFailed(member.name(), stage, "empty response content")
        logger.warning("Member %s returned empty content in %s", member.name(), stage)
        return failure
    return response


async def _fan_out(
    members: dict[str, AIProvider],
    prompt: list[PromptSegment],
    stage: str,
    store: Callable[[dict, str, str], None],
    max_concurrency: int | None,
) -> dict:
    """Run one call per member concurrently, writing successes into a shared map.

    Returns only after every task has finished (the gather is the barrier).
    """
    results: dict = {}
    lock = asyncio.Lock()
    semaphore = asyncio.Semaphore(max_concurrency) if max_concurrency else None

    async def run_one(name: str, member: AIProvider) -> None:
        if semaphore is not None:
            async with semaphore:
                outcome = await _call_member(member, prompt, stage)
        else:
            outcome = await _call_member(member, prompt, stage)
        if isinstance(outcome, ModelResponse):
            async with lock:
                store(results, name, outcome.content)

    tasks: list[Awaitable[None]] = [run_one(name, members[name]) for name in sorted(members)]
    await asyncio.gather(*tasks)
    return results


def _store_opinion(results: dict, name: str, content: str) -> None:
    results[name] = content


def _store_review(results: dict, name: str, content: str) -> None:
    results[name] = [line.strip() for line in content.split("\n")]


async def collect_opinions(
    ctx: CommitteeContext,
    prompts: PromptsConfig,
    max_concurrency: int | None = None,
) -> dict[str, str]:
    """Phase 1: every member answers the same prompt independently.

    Failed or empty members are absent from the result. Sets ctx.opinions.
    """
    prompt = build_opinion_prompt(ctx)
    logger.info("Phase 1: collecting opinions from %d members", len(ctx.members))
    logger.debug("Phase 1 prompt: %s", prompt_text(prompt))

    opinions = await _fan_out(ctx.members, prompt, OPINION_STAGE, _store_opinion, max_concurrency)

    if len(opinions) < len(ctx.members):
        logger.warning(
            "Only %d/%d members gave an opinion in phase 1",
            len(opinions),
            len(ctx.members),
        )
    logger.info("Phase 1 complete: %d/%d members succeeded", len(opinions), len(ctx.members))

    ctx.opinions = opinions
    return opinions


async def collect_reviews(
    ctx: CommitteeContext,
    prompts: PromptsConfig,
    max_concurrency: int | None = None,
    anonymize: bool = False,
) -> dict[str, list[str]]:
    """Phase 2: every member reviews and ranks all phase-1 opinions.

    All members review, including those without an opinion of their own.
    Sets ctx.reviews.
    """
    # Snapshot taken after the phase-1 barrier; every reviewer sees the same set.
    opinions = dict(ctx.opinions)
    prompt = build_review_prompt(ctx.summary, opinions, prompts, anonymize=anonymize)
    logger.info("Phase 2: %d members reviewing %d opinions", len(ctx.members), len(opinions))
    logger.debug("Phase 2 prompt: %s", prompt_text(prompt))

    reviews = await _fan_out(ctx.members, prompt, REVIEW_STAGE, _store_review, max_concurrency)

    logger.info("Phase 2 complete: %d/%d members succeeded", len(reviews), len(ctx.members))

    ctx.reviews = reviews
    return reviews
