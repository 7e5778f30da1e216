"""SchedulePage - finds and books a class on the Wondr schedule list.

DOM structure (schedule index after picking a facility):
  h4.schedule-list-day-text           "Onsdag 19 feb."
  div.schedule-list-row               one per class, a sibling of the header
    .schedule-list-row-header-item.time   "16:00-17:00"
    .schedule-list-row-header-item.name   "Spinning 45"
    button                                "Booke" | "Venteliste" | "Avbook"
  h4.schedule-list-day-text           "Torsdag 20 feb."
  ...

The list is virtualized: days further ahead are only rendered once scrolled
near, and rows are recreated on scroll. Locators are resolved fresh each time
and never held across a scroll.
"""

import re
from dataclasses import dataclass

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.booker import selectors
from src.booker.errors import (
    BookingTimeout,
    ConfirmationNotFound,
    DayNotFound,
    ElementNotFound,
    SlotNotFound,
)
from src.booker.locators import resolve
from src.booker.logging import get_logger
from src.booker.models import (
    ScheduleRow,
    ScheduleSnapshot,
    TargetSpec,
    day_header_pattern,
)
from src.booker.partition import GeometryProvider, locate_slot
from src.booker.polling import poll_until

log = get_logger(__name__)

# Reads every rendered header and row with its current top offset in one
# round trip; element-by-element locator calls are far slower.
SNAPSHOT_JS = """(sel) => {
    const isVisible = (el) => {
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        return rect.width > 0 && rect.height > 0
            && style.visibility !== 'hidden' && style.display !== 'none';
    };
    const headers = Array.from(document.querySelectorAll(sel.header)).map((h) => ({
        text: h.textContent.trim(),
        top: h.getBoundingClientRect().top,
        visible: isVisible(h),
    }));
    const rows = Array.from(document.querySelectorAll(sel.row)).map((row, index) => {
        const timeEl = row.querySelector(sel.time);
        const nameEl = row.querySelector(sel.name);
        const button = row.querySelector(sel.button);
        return {
            index: index,
            top: row.getBoundingClientRect().top,
            time_text: timeEl ? timeEl.textContent.trim() : null,
            name_text: nameEl ? nameEl.textContent.trim() : null,
            text: row.textContent,
            action_label: button ? button.textContent.trim() : null,
        };
    });
    return { headers: headers, rows: rows };
}"""


class PageGeometryProvider:
    """GeometryProvider backed by a live Playwright page."""

    def __init__(self, page: Page) -> None:
        self.page = page

    async def snapshot(self) -> ScheduleSnapshot:
        raw = await self.page.evaluate(
            SNAPSHOT_JS,
            {
                "header": selectors.DAY_HEADER,
                "row": selectors.SCHEDULE_ROW,
                "time": selectors.ROW_TIME,
                "name": selectors.ROW_NAME,
                "button": selectors.ROW_BUTTON,
            },
        )
        return ScheduleSnapshot.model_validate(raw)


@dataclass
class SlotMatch:
    """A located row: the live Locator plus what it looked like when matched."""

    row: Locator
    info: ScheduleRow


class SchedulePage:
    """Schedule index at {booking_url}/index.

    Picks the facility, scrolls the lazy list to a day, and resolves rows and
    buttons for the booking flow.
    """

    def __init__(
        self,
        page: Page,
        *,
        geometry: GeometryProvider | None = None,
        timeout_ms: int = 30_000,
    ) -> None:
        self.page = page
        self.geometry = geometry or PageGeometryProvider(page)
        self.timeout_ms = timeout_ms

    async def navigate(self, schedule_url: str, location: str) -> None:
        """Open the schedule and select a facility.

        Raises:
            BookingTimeout: If the page or the first schedule row never loads.
            ElementNotFound: If the facility picker or location is missing.
        """
        try:
            await self.page.goto(
                schedule_url, wait_until="networkidle", timeout=self.timeout_ms
            )
        except PlaywrightTimeoutError as e:
            raise BookingTimeout("schedule navigation", str(e)) from e
        await self.page.wait_for_timeout(3_000)
        log.info("schedule_page_navigated", url=schedule_url)

        await self.select_facility(location)

    async def select_facility(self, location: str) -> None:
        picker = await resolve(
            self.page,
            selectors.FACILITY_BUTTON,
            "facility picker",
            timeout_ms=self.timeout_ms,
        )
        await picker.click()
        await self.page.wait_for_timeout(1_000)

        item = (
            self.page.locator(selectors.FACILITY_ITEM)
            .filter(has_text=location)
            .first
        )
        try:
            await item.wait_for(state="visible", timeout=5_000)
        except PlaywrightTimeoutError as e:
            raise ElementNotFound(f"facility {location!r}") from e
        await item.click()
        log.info("facility_selected", location=location)

        try:
            await self.page.locator(selectors.SCHEDULE_ROW).first.wait_for(
                state="visible", timeout=self.timeout_ms
            )
        except PlaywrightTimeoutError as e:
            raise BookingTimeout("schedule load", location) from e
        log.info("schedule_loaded", location=location)

    def day_header(self, day_text: str) -> Locator:
        return (
            self.page.locator(selectors.DAY_HEADER)
            .filter(has_text=day_header_pattern(day_text))
            .first
        )

    async def find_day_header(
        self,
        day_text: str,
        *,
        max_attempts: int = 20,
        scroll_step: int = 3000,
        settle_seconds: float = 1.5,
    ) -> Locator:
        """Scroll the lazy list until the day header is rendered and visible.

        A header can be in the DOM before it is on screen, so presence alone
        is not a hit.

        Raises:
            DayNotFound: If the header is not visible after max_attempts scrolls.
        """
        header = self.day_header(day_text)

        async def _probe() -> Locator | None:
            if await header.count() > 0 and await header.is_visible():
                return header
            return None

        async def _scroll() -> None:
            await self.page.mouse.wheel(0, scroll_step)

        found = await poll_until(
            _probe,
            _scroll,
            max_attempts=max_attempts,
            interval=settle_seconds,
            label=f"day_header {day_text}",
        )
        if found is None:
            raise DayNotFound(day_text, max_attempts)

        log.info("day_header_found", day=day_text, text=await found.inner_text())
        return found

    async def reveal(self, locator: Locator, settle_ms: int = 2_000) -> None:
        """Scroll an element into view and let the rows around it render."""
        await locator.scroll_into_view_if_needed()
        await self.page.wait_for_timeout(settle_ms)

    async def snapshot(self) -> ScheduleSnapshot:
        return await self.geometry.snapshot()

    async def locate(self, target: TargetSpec) -> SlotMatch:
        """Match target against the rows rendered right now.

        Raises:
            DayNotFound: If the target day header is not rendered.
            SlotNotFound: If no row in that day qualifies.
        """
        snapshot = await self.snapshot()
        row = locate_slot(snapshot.headers, snapshot.rows, target)
        if row is None:
            log.warning(
                "slot_not_found",
                day=target.day_text,
                start_time=target.start_time,
                class_name=target.class_name,
                rendered_rows=len(snapshot.rows),
            )
            raise SlotNotFound(target.day_text, target.start_time, target.class_name)

        log.info(
            "slot_matched",
            day=target.day_text,
            index=row.index,
            top=row.top,
            label=row.action_label,
            row=row.summary,
        )
        locator = self.page.locator(selectors.SCHEDULE_ROW).nth(row.index)
        return SlotMatch(locator, row)

    def action_button(self, row: Locator, labels: tuple[str, ...]) -> Locator:
        """Button inside row whose trimmed label is exactly one of labels."""
        pattern = re.compile(
            r"^\s*(?:" + "|".join(re.escape(label) for label in labels) + r")\s*$"
        )
        return row.locator(selectors.ROW_BUTTON).filter(has_text=pattern).first

    async def confirmation_button(self) -> Locator:
        """Resolve the Booke button of the confirmation dialog.

        Raises:
            ConfirmationNotFound: If neither a dialog-scoped nor a page-wide
                Booke button becomes visible.
        """
        try:
            return await resolve(
                self.page,
                selectors.CONFIRM_BUTTON,
                "confirmation button",
                per_candidate_timeout_ms=self.timeout_ms,
                timeout_ms=self.timeout_ms,
            )
        except ElementNotFound as e:
            raise ConfirmationNotFound(str(e)) from e
