"""Playwright session management for Wondr authentication.

SessionManager persists browser storage state (cookies, localStorage) after a
successful login and restores it on later runs, so a scheduled job does not
log in from scratch every time.
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.booker.errors import TransientError
from src.booker.logging import get_logger
from src.booker.pages.login import LoginPage, is_login_url

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Page

logger = get_logger(__name__)


class SessionManager:
    """Manages Playwright authentication state persistence and validation."""

    def __init__(
        self, state_dir: str = "data/state", max_session_age_hours: int = 24
    ) -> None:
        """Initialize SessionManager.

        Args:
            state_dir: Directory to store session state files.
            max_session_age_hours: Maximum age of session before considering expired.
        """
        self.state_dir = Path(state_dir)
        self.state_file = self.state_dir / "wondr_session.json"
        self.max_session_age_hours = max_session_age_hours

        self.state_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            "session_manager_initialized",
            state_file=str(self.state_file),
            max_age_hours=max_session_age_hours,
        )

    def is_session_valid(self) -> bool:
        """Check if a saved session exists and is still fresh."""
        if not self.state_file.exists():
            logger.debug("session_check", result="missing", reason="file_not_found")
            return False

        file_mtime = datetime.fromtimestamp(self.state_file.stat().st_mtime)
        age = datetime.now() - file_mtime
        max_age = timedelta(hours=self.max_session_age_hours)

        if age > max_age:
            logger.info(
                "session_check",
                result="expired",
                age_hours=age.total_seconds() / 3600,
                max_hours=self.max_session_age_hours,
            )
            return False

        logger.debug(
            "session_check",
            result="valid",
            age_hours=age.total_seconds() / 3600,
        )
        return True

    async def save_session(self, context: "BrowserContext") -> None:
        await context.storage_state(path=str(self.state_file))
        logger.info("session_saved", path=str(self.state_file))

    async def create_authenticated_context(
        self, browser: "Browser"
    ) -> "BrowserContext":
        """Create browser context, restoring session if valid."""
        if self.is_session_valid():
            context = await browser.new_context(storage_state=str(self.state_file))
            logger.info(
                "context_created", type="restored", state_file=str(self.state_file)
            )
        else:
            context = await browser.new_context()
            logger.info("context_created", type="fresh", reason="no_valid_session")

        return context

    def needs_login(self, page: "Page") -> bool:
        """True when the site bounced the page to its login form."""
        return is_login_url(page.url)

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_fixed(5),
        retry=retry_if_exception_type(TransientError),
        reraise=True,
    )
    async def authenticate(
        self,
        page: "Page",
        login_url: str,
        username: str,
        password: str,
        *,
        timeout_ms: int = 30_000,
    ) -> None:
        """Log in through the login form.

        Retries once on TransientError (slow page, form not rendered) but
        fails fast on AuthenticationError.

        Raises:
            AuthenticationError: If the login form rejects the credentials.
            TransientError: If the form could not be reached or filled.
        """
        logger.info("authentication_started", url=login_url)
        login_page = LoginPage(page, timeout_ms=timeout_ms)
        try:
            await login_page.open(login_url)
            await login_page.submit(username, password)
        except TransientError as e:
            logger.warning("authentication_transient_failure", error=str(e))
            raise

        logger.info("authentication_succeeded")

    def clear_session(self) -> None:
        """Delete saved session state file."""
        if self.state_file.exists():
            self.state_file.unlink()
            logger.info("session_cleared", path=str(self.state_file))
        else:
            logger.debug("session_clear_skipped", reason="file_not_found")
