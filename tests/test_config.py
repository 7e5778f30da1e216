"""
Tests for environment configuration and the CLI helpers.
"""

import argparse
import importlib.util
from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from playwright.async_api import Error as PlaywrightError

from src.booker.config import BookerConfig, login_url, schedule_url

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "book_class.py"


@pytest.fixture
def clean_env(monkeypatch) -> None:
    for name in (
        "WONDR_USERNAME",
        "WONDR_PASSWORD",
        "BOOKING_TIME",
        "BOOKING_URL",
        "BOOKING_LOCATION",
        "BOOKING_CLASS_NAME",
        "BOOKING_DAYS_AHEAD",
    ):
        monkeypatch.delenv(name, raising=False)


class TestBookerConfig:
    def test_defaults(self, clean_env) -> None:
        config = BookerConfig(_env_file=None)

        assert config.booking_time == "16:00"
        assert config.booking_location == "Play Gamlebyen"
        assert config.booking_days_ahead == 3
        assert config.max_scroll_attempts == 20
        assert config.has_credentials is False

    def test_reads_environment(self, clean_env, monkeypatch) -> None:
        monkeypatch.setenv("WONDR_USERNAME", "ola@example.no")
        monkeypatch.setenv("WONDR_PASSWORD", "hemmelig")
        monkeypatch.setenv("BOOKING_TIME", "7:30")
        monkeypatch.setenv("BOOKING_URL", "https://gym.example/schema")

        config = BookerConfig(_env_file=None)

        assert config.has_credentials
        assert config.booking_time == "7:30"
        assert config.login_url == "https://gym.example/users/login"
        assert config.schedule_url == "https://gym.example/schema/index"


class TestUrls:
    @pytest.mark.parametrize(
        "booking_url,expected",
        [
            ("https://gym.example/schema", "https://gym.example/users/login"),
            ("https://gym.example/schema/", "https://gym.example/users/login"),
            ("https://gym.example/", "https://gym.example/users/login"),
        ],
    )
    def test_login_url(self, booking_url: str, expected: str) -> None:
        assert login_url(booking_url) == expected

    def test_schedule_url(self) -> None:
        assert schedule_url("https://gym.example/schema/") == "https://gym.example/schema/index"


@pytest.fixture(scope="module")
def book_class():
    spec = importlib.util.spec_from_file_location("book_class", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestBuildTarget:
    def _args(self, **overrides) -> argparse.Namespace:
        values = {"time": None, "date": None, "days_ahead": None, "class_name": None}
        values.update(overrides)
        return argparse.Namespace(**values)

    def test_uses_configured_defaults(self, book_class, clean_env) -> None:
        config = BookerConfig(_env_file=None)

        target = book_class.build_target(self._args(), config, date(2026, 2, 16))

        assert target.day == date(2026, 2, 19)
        assert target.start_time == "16:00"
        assert target.class_name is None

    def test_flags_override_config(self, book_class, clean_env) -> None:
        config = BookerConfig(_env_file=None)
        args = self._args(time="07:30", date=date(2026, 3, 1), class_name="Spinning")

        target = book_class.build_target(args, config, date(2026, 2, 16))

        assert target.start_time == "7:30"
        assert target.day == date(2026, 3, 1)
        assert target.class_name == "Spinning"

    def test_days_ahead_flag(self, book_class, clean_env) -> None:
        config = BookerConfig(_env_file=None)

        target = book_class.build_target(self._args(days_ahead=0), config, date(2026, 2, 16))

        assert target.day == date(2026, 2, 16)


class TestFailureArtifacts:
    @pytest.mark.asyncio
    async def test_unwritable_debug_dir_is_logged_not_raised(self, book_class, tmp_path) -> None:
        blocker = tmp_path / "debug"
        blocker.write_text("not a directory")
        page = MagicMock()
        page.screenshot = AsyncMock()
        page.content = AsyncMock(return_value="<html></html>")

        await book_class._save_failure_artifacts(page, str(blocker / "run"))

        page.screenshot.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_closed_page_is_logged_not_raised(self, book_class, tmp_path) -> None:
        page = MagicMock()
        page.screenshot = AsyncMock(side_effect=PlaywrightError("Target page has been closed"))

        await book_class._save_failure_artifacts(page, str(tmp_path))
