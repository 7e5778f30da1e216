"""Booking state machine.

    AWAITING_DAY -> AWAITING_ROW -> DECIDING -> BOOKING | WAITLISTING
        -> AWAITING_CONFIRMATION -> CONFIRMED

Any error moves the run to FAILED, recording the state it happened in. States
run strictly in sequence and nothing is retried: clicking Booke or Venteliste
is not idempotent, so a failure after the click leaves the reservation in an
unknown state and is reported as such rather than replayed.
"""

from dataclasses import dataclass, field
from enum import Enum

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.booker.errors import BookingFailed, BookingTimeout
from src.booker.locators import is_visible_within
from src.booker.logging import bind_booking_state, get_logger
from src.booker.models import ScheduleRow, TargetSpec
from src.booker.pages.schedule import SchedulePage, SlotMatch
from src.booker.selectors import BOOK_LABELS, WAITLIST_LABELS

log = get_logger(__name__)


class BookingState(str, Enum):
    AWAITING_DAY = "awaiting_day"
    AWAITING_ROW = "awaiting_row"
    DECIDING = "deciding"
    BOOKING = "booking"
    WAITLISTING = "waitlisting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class BookingOutcome:
    """Result of one booking run."""

    state: BookingState
    history: list[BookingState] = field(default_factory=list)
    match: ScheduleRow | None = None
    failed_state: BookingState | None = None
    error: BaseException | None = None

    @property
    def confirmed(self) -> bool:
        return self.state == BookingState.CONFIRMED

    @property
    def waitlisted(self) -> bool:
        return BookingState.WAITLISTING in self.history

    @property
    def reason(self) -> str | None:
        if self.error is None:
            return None
        return f"{type(self.error).__name__}: {self.error}"

    def raise_for_failure(self) -> None:
        """Raise BookingFailed if the run did not reach CONFIRMED."""
        if self.state == BookingState.FAILED and self.error is not None:
            state = self.failed_state.value if self.failed_state else "unknown"
            raise BookingFailed(state, self.error) from self.error


class BookingFlow:
    """Drives SchedulePage through discovery, decision and confirmation."""

    def __init__(
        self,
        schedule: SchedulePage,
        *,
        max_scroll_attempts: int = 20,
        scroll_step: int = 3000,
        scroll_settle_seconds: float = 1.5,
        waitlist_check_ms: int = 2_000,
        dialog_settle_ms: int = 2_000,
        confirm_settle_ms: int = 3_000,
    ) -> None:
        self.schedule = schedule
        self.max_scroll_attempts = max_scroll_attempts
        self.scroll_step = scroll_step
        self.scroll_settle_seconds = scroll_settle_seconds
        self.waitlist_check_ms = waitlist_check_ms
        self.dialog_settle_ms = dialog_settle_ms
        self.confirm_settle_ms = confirm_settle_ms
        self._outcome = BookingOutcome(state=BookingState.AWAITING_DAY)

    def _enter(self, state: BookingState) -> None:
        self._outcome.state = state
        self._outcome.history.append(state)
        bind_booking_state(state.value)
        log.info("booking_state", state=state.value)

    async def locate(self, target: TargetSpec) -> SlotMatch:
        """Scroll to the target day and match its row, without clicking.

        Raises:
            DayNotFound: If the day header never became visible.
            SlotNotFound: If the day has no bookable row for target.
        """
        await self._reach_day(target)
        return await self.schedule.locate(target)

    async def _reach_day(self, target: TargetSpec) -> None:
        header = await self.schedule.find_day_header(
            target.day_text,
            max_attempts=self.max_scroll_attempts,
            scroll_step=self.scroll_step,
            settle_seconds=self.scroll_settle_seconds,
        )
        await self.schedule.reveal(header)

    async def run(self, target: TargetSpec) -> BookingOutcome:
        """Book target, joining the waiting list when the class is full."""
        self._outcome = BookingOutcome(state=BookingState.AWAITING_DAY)
        log.info(
            "booking_started",
            day=target.day_text,
            start_time=target.start_time,
            class_name=target.class_name,
        )
        try:
            await self._run(target)
        except Exception as e:
            # Any error ends the run in FAILED
            return self._fail(e)

        log.info("booking_confirmed", day=target.day_text, start_time=target.start_time)
        return self._outcome

    async def _run(self, target: TargetSpec) -> None:
        self._enter(BookingState.AWAITING_DAY)
        await self._reach_day(target)

        self._enter(BookingState.AWAITING_ROW)
        match = await self.schedule.locate(target)
        self._outcome.match = match.info

        self._enter(BookingState.DECIDING)
        waitlist_button = self.schedule.action_button(match.row, WAITLIST_LABELS)
        if await is_visible_within(waitlist_button, self.waitlist_check_ms):
            self._enter(BookingState.WAITLISTING)
            labels = WAITLIST_LABELS
            button = waitlist_button
        else:
            self._enter(BookingState.BOOKING)
            labels = BOOK_LABELS
            button = self.schedule.action_button(match.row, BOOK_LABELS)

        await button.scroll_into_view_if_needed()
        match = await self._rematch(target, match)
        await self.schedule.action_button(match.row, labels).click()
        log.info("action_clicked", waitlist=self._outcome.waitlisted, row=match.info.summary)

        self._enter(BookingState.AWAITING_CONFIRMATION)
        await self.schedule.page.wait_for_timeout(self.dialog_settle_ms)
        confirm_button = await self.schedule.confirmation_button()
        await confirm_button.click()
        await self.schedule.page.wait_for_timeout(self.confirm_settle_ms)

        self._enter(BookingState.CONFIRMED)

    async def _rematch(self, target: TargetSpec, previous: SlotMatch) -> SlotMatch:
        """Match target again after scrolling its button into view.

        The list recreates rows as it scrolls, so the row index taken before
        the scroll may now point at another class.
        """
        match = await self.schedule.locate(target)
        if match.info.index != previous.info.index:
            log.info(
                "slot_row_moved",
                old_index=previous.info.index,
                new_index=match.info.index,
                row=match.info.summary,
            )
        self._outcome.match = match.info
        return match

    def _fail(self, error: Exception) -> BookingOutcome:
        if isinstance(error, PlaywrightTimeoutError):
            timeout = BookingTimeout(self._outcome.state.value, str(error))
            timeout.__cause__ = error
            error = timeout
        self._outcome.failed_state = self._outcome.state
        self._outcome.error = error
        self._outcome.state = BookingState.FAILED
        self._outcome.history.append(BookingState.FAILED)
        bind_booking_state(BookingState.FAILED.value)
        log.error(
            "booking_failed",
            state=self._outcome.failed_state.value,
            error=str(error),
            type=type(error).__name__,
        )
        return self._outcome
