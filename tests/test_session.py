"""
Tests for LoginPage and SessionManager.
"""

import os
import time
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from tenacity import wait_none

from src.booker.errors import AuthenticationError, BookingTimeout, ElementNotFound
from src.booker.pages.login import LoginPage, is_login_url
from src.booker.session import SessionManager
from tests.fixtures.fake_page import FakePage

LOGIN_URL = "https://playtrening.example/users/login"


class TestLoginPage:
    @pytest.mark.asyncio
    async def test_fills_fallback_fields_and_norwegian_submit(self) -> None:
        page = FakePage(
            visible={
                ("input[type='email'], input[type='text']", None),
                ("input[type='password']", None),
                ("button", "Logg inn"),
            }
        )

        await LoginPage(page).submit("ola@example.no", "hemmelig")

        assert page.fills == {
            ("input[type='email'], input[type='text']", None): "ola@example.no",
            ("input[type='password']", None): "hemmelig",
        }
        assert page.clicks == [("button", "Logg inn")]
        page.wait_for_url.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rejected_login_raises_authentication_error(self) -> None:
        page = FakePage(
            visible={
                ("input[type='email'], input[type='text']", None),
                ("input[type='password']", None),
                ("button[type='submit'], input[type='submit']", None),
            },
            url=LOGIN_URL,
        )
        page.wait_for_url = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout"))

        with pytest.raises(AuthenticationError):
            await LoginPage(page).submit("ola@example.no", "feil")

    @pytest.mark.asyncio
    async def test_fill_timeout_is_transient(self) -> None:
        page = FakePage(
            visible={
                ("input[type='email'], input[type='text']", None),
                ("input[type='password']", None),
            }
        )
        page.fill_error = PlaywrightTimeoutError("Timeout 30000ms exceeded.")

        with pytest.raises(BookingTimeout) as exc_info:
            await LoginPage(page).submit("ola@example.no", "hemmelig")

        assert exc_info.value.__cause__ is page.fill_error
        assert page.clicks == []

    @pytest.mark.asyncio
    async def test_missing_username_field(self) -> None:
        page = FakePage()

        with pytest.raises(ElementNotFound) as exc_info:
            await LoginPage(page).submit("ola@example.no", "hemmelig")

        assert exc_info.value.target == "username field"

    def test_is_login_url(self) -> None:
        assert is_login_url(LOGIN_URL)
        assert is_login_url("https://x.example/users/LOGIN?next=/schema")
        assert not is_login_url("https://x.example/schema/index")


class TestSessionManager:
    def test_missing_session_is_invalid(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        assert manager.is_session_valid() is False

    def test_fresh_session_is_valid(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        manager.state_file.write_text("{}")
        assert manager.is_session_valid() is True

    def test_expired_session_is_invalid(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path), max_session_age_hours=1)
        manager.state_file.write_text("{}")
        two_hours_ago = time.time() - 2 * 3600
        os.utime(manager.state_file, (two_hours_ago, two_hours_ago))
        assert manager.is_session_valid() is False

    def test_clear_session(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        manager.state_file.write_text("{}")
        manager.clear_session()
        assert not manager.state_file.exists()
        manager.clear_session()

    def test_needs_login(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        assert manager.needs_login(FakePage(url=LOGIN_URL))
        assert not manager.needs_login(FakePage())

    @pytest.mark.asyncio
    async def test_restores_valid_session(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        manager.state_file.write_text("{}")
        browser = MagicMock()
        browser.new_context = AsyncMock()

        await manager.create_authenticated_context(browser)

        browser.new_context.assert_awaited_once_with(storage_state=str(manager.state_file))

    @pytest.mark.asyncio
    async def test_save_session(self, tmp_path) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        context = MagicMock()
        context.storage_state = AsyncMock()

        await manager.save_session(context)

        context.storage_state.assert_awaited_once_with(path=str(manager.state_file))


class TestAuthenticate:
    @pytest.fixture
    def login_page(self, monkeypatch) -> MagicMock:
        instance = MagicMock()
        instance.open = AsyncMock()
        instance.submit = AsyncMock()
        monkeypatch.setattr(
            "src.booker.session.LoginPage", MagicMock(return_value=instance)
        )
        return instance

    @pytest.mark.asyncio
    async def test_authenticate_opens_and_submits(self, tmp_path, login_page) -> None:
        manager = SessionManager(state_dir=str(tmp_path))

        await manager.authenticate(MagicMock(), LOGIN_URL, "ola", "hemmelig")

        login_page.open.assert_awaited_once_with(LOGIN_URL)
        login_page.submit.assert_awaited_once_with("ola", "hemmelig")

    @pytest.mark.asyncio
    async def test_login_page_uses_configured_timeout(self, tmp_path, monkeypatch) -> None:
        login_page_class = MagicMock()
        login_page_class.return_value.open = AsyncMock()
        login_page_class.return_value.submit = AsyncMock()
        monkeypatch.setattr("src.booker.session.LoginPage", login_page_class)
        manager = SessionManager(state_dir=str(tmp_path))
        page = MagicMock()

        await manager.authenticate(page, LOGIN_URL, "ola", "hemmelig", timeout_ms=12_000)

        login_page_class.assert_called_once_with(page, timeout_ms=12_000)

    @pytest.mark.asyncio
    async def test_form_timeout_is_retried(self, tmp_path, login_page) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        login_page.submit.side_effect = [BookingTimeout("login form", "fill"), None]

        authenticate = SessionManager.authenticate.retry_with(wait=wait_none())
        await authenticate(manager, MagicMock(), LOGIN_URL, "ola", "hemmelig")

        assert login_page.submit.await_count == 2

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried_once(self, tmp_path, login_page) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        login_page.submit.side_effect = [ElementNotFound("username field"), None]

        authenticate = SessionManager.authenticate.retry_with(wait=wait_none())
        await authenticate(manager, MagicMock(), LOGIN_URL, "ola", "hemmelig")

        assert login_page.submit.await_count == 2

    @pytest.mark.asyncio
    async def test_bad_credentials_fail_fast(self, tmp_path, login_page) -> None:
        manager = SessionManager(state_dir=str(tmp_path))
        login_page.submit.side_effect = AuthenticationError("still on login")

        authenticate = SessionManager.authenticate.retry_with(wait=wait_none())
        with pytest.raises(AuthenticationError):
            await authenticate(manager, MagicMock(), LOGIN_URL, "ola", "feil")

        assert login_page.submit.await_count == 1
