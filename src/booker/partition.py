"""Day partitioning and row matching over a schedule snapshot.

The schedule list does not nest rows under their day header; headers and rows
are siblings in a flat, virtualized list. A row belongs to the day whose header
is the closest one above it, so grouping is inferred from vertical positions:

    header "19 feb." at top=400  ->  owns rows with 400 <= top < 900
    header "20 feb." at top=900  ->  owns rows with 900 <= top < next header

Everything here works on plain ScheduleSnapshot data. Reading positions out of
a live page is the GeometryProvider's job (see pages/schedule.py), which keeps
the matching testable without a browser.
"""

import math
from typing import Protocol

from src.booker.errors import DayNotFound
from src.booker.logging import get_logger
from src.booker.models import (
    DayHeader,
    ScheduleRow,
    ScheduleSnapshot,
    TargetSpec,
    day_header_pattern,
)
from src.booker.selectors import BOOK_LABELS, WAITLIST_LABELS

log = get_logger(__name__)

# Headers closer than this are treated as sharing a position
HEADER_EPSILON_PX = 10.0

BOOKABLE_LABELS: frozenset[str] = frozenset(BOOK_LABELS + WAITLIST_LABELS)


class GeometryProvider(Protocol):
    """Source of rendered header/row positions."""

    async def snapshot(self) -> ScheduleSnapshot: ...


def find_day_header(headers: list[DayHeader], day_text: str) -> int | None:
    """Index of the first header whose text contains day_text."""
    pattern = day_header_pattern(day_text)
    for i, header in enumerate(headers):
        if pattern.search(header.text):
            return i
    return None


def day_interval(
    headers: list[DayHeader], index: int, epsilon: float = HEADER_EPSILON_PX
) -> tuple[float, float]:
    """Half-open [lower, upper) interval owned by headers[index].

    upper is the position of the first header after it in document order that
    sits strictly below lower + epsilon, or infinity for the last day.
    """
    lower = headers[index].top
    for header in headers[index + 1 :]:
        if header.top > lower + epsilon:
            return lower, header.top
    return lower, math.inf


def rows_in_interval(
    rows: list[ScheduleRow], interval: tuple[float, float]
) -> list[ScheduleRow]:
    lower, upper = interval
    return [row for row in rows if lower <= row.top < upper]


def partition_rows(
    headers: list[DayHeader],
    rows: list[ScheduleRow],
    epsilon: float = HEADER_EPSILON_PX,
) -> list[tuple[DayHeader, list[ScheduleRow]]]:
    """Group rows under the header whose interval contains them.

    Rows above the first header belong to no rendered day and are dropped.
    """
    intervals = [day_interval(headers, i, epsilon) for i in range(len(headers))]
    groups: list[tuple[DayHeader, list[ScheduleRow]]] = [(h, []) for h in headers]
    for row in rows:
        for i, (lower, upper) in enumerate(intervals):
            if lower <= row.top < upper:
                groups[i][1].append(row)
                break
    return groups


def row_matches(row: ScheduleRow, target: TargetSpec) -> bool:
    """Start time, optional name, and a Book/Waitlist action button."""
    if row.start_time is None or row.start_time != target.start_time:
        return False

    if target.class_name:
        haystack = row.name_text if row.name_text is not None else row.text
        if target.class_name.lower() not in haystack.lower():
            return False

    return row.action_label in BOOKABLE_LABELS


def locate_slot(
    headers: list[DayHeader],
    rows: list[ScheduleRow],
    target: TargetSpec,
    epsilon: float = HEADER_EPSILON_PX,
) -> ScheduleRow | None:
    """Find the first bookable row for target inside the target day.

    Returns:
        The first qualifying row in document order, or None.

    Raises:
        DayNotFound: If no header carries the target day.
    """
    day_text = target.day_text
    index = find_day_header(headers, day_text)
    if index is None:
        raise DayNotFound(day_text)

    interval = day_interval(headers, index, epsilon)
    candidates = rows_in_interval(rows, interval)
    log.debug(
        "day_partitioned",
        day=day_text,
        lower=interval[0],
        upper=interval[1],
        candidates=len(candidates),
    )

    for row in candidates:
        if row_matches(row, target):
            return row

    return None
