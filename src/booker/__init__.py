"""Class booking bot for Wondr-hosted gym schedules.

Logs in, scrolls the lazily rendered schedule list to a target day, finds the
class row by start time (and optionally name), and books it or joins its
waiting list.
"""

from src.booker.booking import BookingFlow, BookingOutcome, BookingState
from src.booker.models import TargetSpec
from src.booker.pages.schedule import SchedulePage, SlotMatch

__all__ = [
    "BookingFlow",
    "BookingOutcome",
    "BookingState",
    "SchedulePage",
    "SlotMatch",
    "TargetSpec",
]
