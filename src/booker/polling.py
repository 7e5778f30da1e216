"""Poll-until helper for content that appears without any event to wait on."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.booker.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


async def poll_until(
    probe: Callable[[], Awaitable[T | None]],
    step: Callable[[], Awaitable[None]],
    *,
    max_attempts: int,
    interval: float,
    label: str = "poll",
) -> T | None:
    """Probe, and on a miss run step and wait, up to max_attempts times.

    The probe runs once more after the last step, so a result brought into
    view by the final step is still seen.

    Args:
        probe: Returns a result, or None when the condition is not met yet.
        step: Action that may make the condition true (e.g. one scroll).
        max_attempts: Number of steps before giving up.
        interval: Seconds to wait after each step.
        label: Name used in log lines.

    Returns:
        The first non-None probe result, or None once attempts are exhausted.
    """
    for attempt in range(1, max_attempts + 1):
        result = await probe()
        if result is not None:
            log.debug("poll_hit", label=label, attempt=attempt)
            return result

        log.info("poll_miss", label=label, attempt=attempt, max_attempts=max_attempts)
        await step()
        if interval > 0:
            await asyncio.sleep(interval)

    result = await probe()
    if result is None:
        log.warning("poll_exhausted", label=label, attempts=max_attempts)
    return result
