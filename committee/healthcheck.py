"""Pre-run connectivity check for the leader and the committee members."""

import asyncio
import logging
from collections.abc import Mapping

from committee.models import PromptSegment
from committee.providers.base import AIProvider

logger = logging.getLogger(__name__)

_PING_PROMPT = [PromptSegment("user", "Reply with the word OK only.")]
_DEFAULT_TIMEOUT_SEC = 15.0


async def _check_one(name: str, provider: AIProvider) -> tuple[str, bool, str]:
    """Ping one backend within its own configured timeout.

    An empty reply fails the check, same as it would fail a committee phase.
    """
    timeout = provider.timeout_sec() or _DEFAULT_TIMEOUT_SEC
    try:
        response = await asyncio.wait_for(provider.generate(_PING_PROMPT), timeout=timeout)
    except asyncio.TimeoutError:
        logger.debug("Health check for %s timed out after %ss", name, timeout)
        return name, False, f"no reply within {timeout}s"
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", name, exc)
        return name, False, str(exc) or type(exc).__name__

    if not response.content.strip():
        return name, False, "empty reply"
    return name, True, ""


async def run_health_checks(
    providers: Mapping[str, AIProvider],
) -> dict[str, tuple[bool, str]]:
    """Ping every backend in parallel.

    Returns:
        Dict mapping name -> (ok, error_message), in sorted name order.
        error_message is "" when ok is True.
    """
    names = sorted(providers)
    results = await asyncio.gather(*(_check_one(n, providers[n]) for n in names))
    failed = [name for name, ok, _ in results if not ok]
    if failed:
        logger.info("Health check: %d/%d backend(s) failed: %s", len(failed), len(names), ", ".join(failed))
    return {name: (ok, err) for name, ok, err in results}
