"""Book a class on the Wondr schedule, or join its waiting list.

Standalone CLI script meant to run from cron / a CI schedule shortly after
booking opens. Logs in (reusing a saved session when possible), selects the
facility, scrolls to the target day and books the class.

Run with: python scripts/book_class.py
Debug:    python scripts/book_class.py --headed
Explicit: python scripts/book_class.py --time 7:30 --date 2026-02-19
By name:  python scripts/book_class.py --time 18:00 --class-name spinning
Dry run:  python scripts/book_class.py --locate-only

Defaults come from the environment (.env supported): WONDR_USERNAME,
WONDR_PASSWORD, BOOKING_TIME, BOOKING_URL, BOOKING_LOCATION,
BOOKING_CLASS_NAME, BOOKING_DAYS_AHEAD.

Exit codes:
  0 = booked / waitlisted (or slot found with --locate-only)
  1 = error (screenshot and HTML saved to DEBUG_DIR when a page was open)
"""

import argparse
import asyncio
import os
import sys
from datetime import date, timedelta

from dotenv import load_dotenv
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.booker.booking import BookingFlow  # noqa: E402
from src.booker.config import BookerConfig, get_config  # noqa: E402
from src.booker.errors import BookingError  # noqa: E402
from src.booker.logging import bind_run_context, get_logger, setup_logging  # noqa: E402
from src.booker.models import TargetSpec  # noqa: E402
from src.booker.pages.schedule import SchedulePage  # noqa: E402
from src.booker.session import SessionManager  # noqa: E402
from src.booker.utils import capture_failure_artifacts, configure_page  # noqa: E402

log = get_logger("book_class")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Book a class on the Wondr schedule.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Launch browser in headed mode (visible window).",
    )
    parser.add_argument(
        "--time",
        type=str,
        default=None,
        help="Class start time, e.g. 7:30 (default: BOOKING_TIME).",
    )

    date_group = parser.add_mutually_exclusive_group()
    date_group.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Class date as YYYY-MM-DD.",
    )
    date_group.add_argument(
        "--days-ahead",
        type=int,
        default=None,
        help="Book this many days from today (default: BOOKING_DAYS_AHEAD).",
    )

    parser.add_argument(
        "--class-name",
        type=str,
        default=None,
        help="Only book rows whose activity name contains this text.",
    )
    parser.add_argument(
        "--location",
        type=str,
        default=None,
        help="Facility name (default: BOOKING_LOCATION).",
    )
    parser.add_argument(
        "--locate-only",
        action="store_true",
        help="Find and report the slot without clicking anything.",
    )
    return parser.parse_args()


def build_target(args: argparse.Namespace, config: BookerConfig, today: date) -> TargetSpec:
    """Combine CLI flags with configured defaults."""
    if args.date is not None:
        day = args.date
    else:
        days_ahead = (
            args.days_ahead if args.days_ahead is not None else config.booking_days_ahead
        )
        day = today + timedelta(days=days_ahead)

    return TargetSpec(
        start_time=args.time or config.booking_time,
        day=day,
        class_name=args.class_name or config.booking_class_name,
    )


async def _open_schedule(
    page: Page, session: SessionManager, config: BookerConfig, location: str
) -> SchedulePage:
    """Navigate to the schedule, logging in first when the session is gone."""
    schedule = SchedulePage(page, timeout_ms=config.default_timeout_ms)

    if not session.is_session_valid():
        await session.authenticate(
            page,
            config.login_url,
            config.wondr_username,
            config.wondr_password,
            timeout_ms=config.default_timeout_ms,
        )
        await session.save_session(page.context)

    await schedule.navigate(config.schedule_url, location)
    return schedule


async def _ensure_logged_in_schedule(
    page: Page, session: SessionManager, config: BookerConfig, location: str
) -> SchedulePage:
    restored = session.is_session_valid()
    try:
        return await _open_schedule(page, session, config, location)
    except BookingError:
        if not restored or not session.needs_login(page):
            raise
        # Saved session was rejected server-side
        log.info("session_rejected", url=page.url)
        session.clear_session()
        return await _open_schedule(page, session, config, location)


async def _save_failure_artifacts(page: Page, debug_dir: str) -> None:
    """Best-effort screenshot and HTML dump; never masks the original error."""
    try:
        await capture_failure_artifacts(page, debug_dir)
    except (PlaywrightError, OSError) as e:
        log.warning("failure_capture_failed", error=str(e), type=type(e).__name__)


async def main(args: argparse.Namespace) -> int:
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    if not config.has_credentials:
        print(
            "ERROR: WONDR_USERNAME and WONDR_PASSWORD environment variables are required.",
            file=sys.stderr,
        )
        return 1

    target = build_target(args, config, date.today())
    location = args.location or config.booking_location
    bind_run_context(day=target.day.isoformat(), start_time=target.start_time)
    log.info("run_started", location=location, class_name=target.class_name)

    session = SessionManager(config.state_dir, config.max_session_age_hours)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(headless=config.headless and not args.headed)
        page: Page | None = None
        try:
            context = await session.create_authenticated_context(browser)
            page = await context.new_page()
            await configure_page(page, timeout_ms=config.default_timeout_ms)

            schedule = await _ensure_logged_in_schedule(page, session, config, location)
            flow = BookingFlow(
                schedule,
                max_scroll_attempts=config.max_scroll_attempts,
                scroll_step=config.scroll_step_px,
                scroll_settle_seconds=config.scroll_settle_ms / 1000,
            )

            if args.locate_only:
                match = await flow.locate(target)
                print(
                    f"Found {target.start_time} on {target.day_text}: "
                    f"{match.info.summary} [{match.info.action_label}]"
                )
                return 0

            outcome = await flow.run(target)
            outcome.raise_for_failure()

            action = "Joined waiting list for" if outcome.waitlisted else "Booked"
            print(f"{action} class at {target.start_time} on {target.day.isoformat()}")
            return 0

        except Exception as e:
            log.error("run_failed", error=str(e), type=type(e).__name__)
            if page is not None:
                await _save_failure_artifacts(page, config.debug_dir)
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        finally:
            await browser.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main(_parse_args())))
