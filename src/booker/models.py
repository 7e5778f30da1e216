"""Pydantic models for schedule data and booking targets.

The schedule list shows day headers in Norwegian ("Onsdag 19 feb.") and
class times without a leading zero on the hour ("7:30-8:15").
"""

import re
from datetime import date, time

from pydantic import BaseModel, Field, field_validator

MONTH_ABBREVIATIONS: dict[int, str] = {
    1: "jan",
    2: "feb",
    3: "mar",
    4: "apr",
    5: "mai",
    6: "jun",
    7: "jul",
    8: "aug",
    9: "sep",
    10: "okt",
    11: "nov",
    12: "des",
}

_TIME_RE = re.compile(r"^\s*(\d{1,2})[:.](\d{2})\s*$")


def format_day_header(day: date) -> str:
    """Day header text for a date, e.g. date(2026, 2, 19) -> "19 feb."."""
    return f"{day.day} {MONTH_ABBREVIATIONS[day.month]}."


def day_header_pattern(day_text: str) -> re.Pattern[str]:
    """Match day_text inside a header without letting "9 feb." hit "19 feb."."""
    return re.compile(rf"(?<!\d){re.escape(day_text)}")


def normalize_display_time(value: str | time) -> str:
    """Normalize a start time to the schedule's H:MM display form.

    >>> normalize_display_time("07:30")
    '7:30'
    >>> normalize_display_time(time(16, 0))
    '16:00'
    """
    if isinstance(value, time):
        return f"{value.hour}:{value.minute:02d}"
    match = _TIME_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid start time {value!r}, expected H:MM")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValueError(f"Invalid start time {value!r}, expected H:MM")
    return f"{hour}:{minute:02d}"


class TargetSpec(BaseModel):
    """The class to book: a start time on a calendar day, optionally by name."""

    start_time: str
    day: date
    class_name: str | None = None

    @field_validator("start_time", mode="before")
    @classmethod
    def _normalize_start_time(cls, value: object) -> str:
        if isinstance(value, (str, time)):
            return normalize_display_time(value)
        raise ValueError(f"Unsupported start time {value!r}")

    @field_validator("class_name")
    @classmethod
    def _blank_name_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    @property
    def day_text(self) -> str:
        return format_day_header(self.day)


class DayHeader(BaseModel):
    """A rendered day header (h4.schedule-list-day-text)."""

    text: str
    top: float  # getBoundingClientRect().top at snapshot time
    visible: bool = True


class ScheduleRow(BaseModel):
    """One rendered class row (.schedule-list-row)."""

    index: int  # position among all rendered rows, for Locator.nth()
    top: float
    time_text: str | None = None  # "16:00-17:00"
    name_text: str | None = None
    text: str = ""  # full row textContent
    action_label: str | None = None  # first button label: Booke, Venteliste, Avbook...

    @property
    def start_time(self) -> str | None:
        if self.time_text is None:
            return None
        return self.time_text.split("-")[0].strip()

    @property
    def summary(self) -> str:
        """Row text with whitespace collapsed, for log lines."""
        return " ".join(self.text.split())


class ScheduleSnapshot(BaseModel):
    """Headers and rows rendered at one moment, in document order."""

    headers: list[DayHeader] = Field(default_factory=list)
    rows: list[ScheduleRow] = Field(default_factory=list)
