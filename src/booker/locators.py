"""Fallback selector chains for elements whose markup is not stable.

A logical target ("username field", "confirmation button") is described as an
ordered tuple of SelectorCandidate. resolve() tries each candidate in turn and
returns the first Locator that becomes visible within its sub-timeout, so a new
fallback is a new tuple entry rather than another if-branch in a page object.
"""

import time
from dataclasses import dataclass
from typing import Literal

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.booker.errors import ElementNotFound
from src.booker.logging import get_logger

log = get_logger(__name__)

Root = Page | Locator

DEFAULT_CANDIDATE_TIMEOUT_MS = 3_000
DEFAULT_TOTAL_TIMEOUT_MS = 30_000


@dataclass(frozen=True)
class SelectorCandidate:
    """One way of finding an element: a CSS selector plus optional filters."""

    selector: str
    has_text: str | None = None
    pick: Literal["first", "last"] = "first"
    timeout_ms: int | None = None

    def build(self, root: Root) -> Locator:
        """Locator for the first (or last) *visible* match.

        Hidden matches earlier in the document, such as a collapsed search
        input, must not shadow the element we are after.
        """
        locator = root.locator(self.selector)
        if self.has_text is not None:
            locator = locator.filter(has_text=self.has_text)
        locator = locator.filter(visible=True)
        return locator.last if self.pick == "last" else locator.first

    def describe(self) -> str:
        text = self.selector
        if self.has_text is not None:
            text += f" has-text={self.has_text!r}"
        if self.pick == "last":
            text += " (last)"
        return text


async def is_visible_within(locator: Locator, timeout_ms: int) -> bool:
    """Wait up to timeout_ms for locator to become visible."""
    try:
        await locator.wait_for(state="visible", timeout=timeout_ms)
        return True
    except PlaywrightTimeoutError:
        return False


async def resolve(
    root: Root,
    candidates: tuple[SelectorCandidate, ...] | list[SelectorCandidate],
    target: str,
    *,
    per_candidate_timeout_ms: int = DEFAULT_CANDIDATE_TIMEOUT_MS,
    timeout_ms: int = DEFAULT_TOTAL_TIMEOUT_MS,
) -> Locator:
    """Resolve a logical target to the first visible candidate.

    Args:
        root: Page or Locator to search within.
        candidates: Candidates in priority order.
        target: Human-readable name of the element, used in logs and errors.
        per_candidate_timeout_ms: Visibility wait for candidates without their
            own timeout_ms.
        timeout_ms: Ceiling for the whole resolution. Candidates are skipped
            once it is spent.

    Returns:
        Locator for the first candidate that became visible.

    Raises:
        ElementNotFound: If no candidate became visible.
    """
    deadline = time.monotonic() + timeout_ms / 1000
    tried: list[str] = []

    for candidate in candidates:
        remaining_ms = int((deadline - time.monotonic()) * 1000)
        if remaining_ms <= 0:
            log.warning("locator_deadline_exhausted", target=target, tried=len(tried))
            break

        wait_ms = min(candidate.timeout_ms or per_candidate_timeout_ms, remaining_ms)
        locator = candidate.build(root)
        tried.append(candidate.describe())

        if await is_visible_within(locator, wait_ms):
            log.debug("locator_resolved", target=target, selector=candidate.describe())
            return locator

        log.debug(
            "locator_candidate_missed",
            target=target,
            selector=candidate.describe(),
            timeout_ms=wait_ms,
        )

    log.warning("locator_not_found", target=target, tried=tried)
    raise ElementNotFound(target, tried)
