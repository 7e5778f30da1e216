"""LoginPage - fills the Wondr login form.

The form is rendered client-side by React and its field names have changed
between releases (email, username, data[User][email]...), so every field is
resolved through a fallback chain from the selector registry.
"""

from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.booker import selectors
from src.booker.errors import AuthenticationError, BookingTimeout
from src.booker.locators import resolve
from src.booker.logging import get_logger

log = get_logger(__name__)


def is_login_url(url: str) -> bool:
    return "/login" in url.lower()


class LoginPage:
    """Login form at {site}/users/login."""

    def __init__(self, page: Page, *, timeout_ms: int = 30_000) -> None:
        self.page = page
        self.timeout_ms = timeout_ms

    async def open(self, login_url: str) -> None:
        log.info("login_page_opening", url=login_url)
        try:
            await self.page.goto(
                login_url, wait_until="networkidle", timeout=self.timeout_ms
            )
            await self.page.wait_for_load_state("networkidle")
        except PlaywrightTimeoutError as e:
            raise BookingTimeout("login navigation", str(e)) from e
        # React mounts the form after network idle
        await self.page.wait_for_timeout(2_000)

    async def log_inputs(self) -> None:
        """Debug aid: record every input on the page and its identifying attributes."""
        inputs = await self.page.locator("input").all()
        for field in inputs:
            log.debug(
                "login_input",
                name=await field.get_attribute("name"),
                type=await field.get_attribute("type"),
                placeholder=await field.get_attribute("placeholder"),
                id=await field.get_attribute("id"),
            )
        log.debug("login_inputs_found", count=len(inputs))

    async def submit(self, username: str, password: str) -> None:
        """Fill and submit the form, then wait to leave the login page.

        Raises:
            ElementNotFound: If a form field never rendered.
            BookingTimeout: If filling or clicking a resolved field timed out.
            AuthenticationError: If the browser stays on the login page.
        """
        await self.log_inputs()

        try:
            username_field = await resolve(
                self.page, selectors.USERNAME_FIELD, "username field", timeout_ms=self.timeout_ms
            )
            await username_field.fill(username)

            password_field = await resolve(
                self.page, selectors.PASSWORD_FIELD, "password field", timeout_ms=self.timeout_ms
            )
            await password_field.fill(password)

            submit_button = await resolve(
                self.page, selectors.SUBMIT_BUTTON, "submit button", timeout_ms=self.timeout_ms
            )
            log.info("login_submitting")
            await submit_button.click()
        except PlaywrightTimeoutError as e:
            raise BookingTimeout("login form", str(e)) from e

        try:
            await self.page.wait_for_url(
                lambda url: not is_login_url(url), timeout=self.timeout_ms
            )
        except PlaywrightTimeoutError as e:
            log.error("login_rejected", url=self.page.url)
            raise AuthenticationError(
                "Still on the login page after submitting - check credentials"
            ) from e

        log.info("login_complete", url=self.page.url)
