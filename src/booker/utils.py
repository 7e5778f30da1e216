"""Page setup and failure diagnostics."""

from datetime import datetime
from pathlib import Path

from playwright.async_api import Page, Route

from src.booker.logging import get_logger

log = get_logger(__name__)

# Stylesheets stay: day partitioning and visibility checks need real layout.
BLOCKED_RESOURCE_TYPES: frozenset[str] = frozenset({"image", "font", "media"})


async def configure_page(page: Page, *, timeout_ms: int = 30_000) -> None:
    """Block heavy resources and set default timeouts on a fresh page.

    Args:
        page: Playwright Page instance.
        timeout_ms: Default timeout for actions and navigation.
    """

    async def _block_resources(route: Route) -> None:
        if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
            await route.abort()
        else:
            await route.continue_()

    await page.route("**/*", _block_resources)
    page.set_default_timeout(timeout_ms)
    page.set_default_navigation_timeout(timeout_ms)


async def capture_failure_artifacts(
    page: Page, debug_dir: str | Path, *, now: datetime | None = None
) -> tuple[Path, Path]:
    """Save a full-page screenshot and the HTML document for a failed run.

    Returns:
        (screenshot_path, html_path)
    """
    directory = Path(debug_dir)
    directory.mkdir(parents=True, exist_ok=True)
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")

    screenshot_path = directory / f"failure_{timestamp}.png"
    html_path = directory / f"failure_{timestamp}.html"

    await page.screenshot(path=str(screenshot_path), full_page=True)
    html_path.write_text(await page.content(), encoding="utf-8")

    log.info(
        "failure_artifacts_saved",
        screenshot=str(screenshot_path),
        html=str(html_path),
    )
    return screenshot_path, html_path
