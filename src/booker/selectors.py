"""Selector registry for the Wondr booking site.

Every CSS selector and button label the bot relies on is defined here.
Fallback chains are ordered tuples of SelectorCandidate; the first candidate
that becomes visible wins. When the site changes its markup, update this file.
"""

from src.booker.locators import SelectorCandidate

# Login form (React, field names differ between site versions)
USERNAME_FIELD: tuple[SelectorCandidate, ...] = (
    SelectorCandidate(
        "input[name='email'], input[name='username'], "
        "input[name='data[User][email]'], input[name='data[User][username]'], "
        "input[type='email']"
    ),
    SelectorCandidate("input[placeholder*='mail' i], input[placeholder*='bruker' i]"),
    SelectorCandidate("input[type='email'], input[type='text']"),
)

PASSWORD_FIELD: tuple[SelectorCandidate, ...] = (
    SelectorCandidate("input[type='password']", timeout_ms=5_000),
)

SUBMIT_BUTTON: tuple[SelectorCandidate, ...] = (
    SelectorCandidate("button[type='submit'], input[type='submit']"),
    SelectorCandidate("button", has_text="Logg inn", timeout_ms=2_000),
    SelectorCandidate("button", has_text="Log in", timeout_ms=2_000),
)

# Facility picker on the schedule index
FACILITY_BUTTON: tuple[SelectorCandidate, ...] = (
    SelectorCandidate(".collapse-button"),
    SelectorCandidate("button", has_text="Choose facility"),
    SelectorCandidate("button", has_text="Velg"),
)
FACILITY_ITEM = ".list-group-item"

# Schedule list
DAY_HEADER = "h4.schedule-list-day-text"
SCHEDULE_ROW = ".schedule-list-row"
ROW_TIME = ".schedule-list-row-header-item.time"
ROW_NAME = (
    ".schedule-list-row-header-item.name, "
    ".schedule-list-row-header-item.activity-name"
)
ROW_BUTTON = "button"

# Action button labels. Anything else (Avbook, Fullt, ...) is not bookable.
BOOK_LABELS: tuple[str, ...] = ("Booke", "Book")
WAITLIST_LABELS: tuple[str, ...] = ("Venteliste", "Waitlist")

# Confirmation surface: the wrapper class is not stable, so try the known
# dialog containers first, then the last Booke button anywhere.
_DIALOG_SCOPES = (".modal", ".dialog", "[role='dialog']", ".offcanvas", ".popup")

CONFIRM_BUTTON: tuple[SelectorCandidate, ...] = (
    SelectorCandidate(
        ", ".join(f"{scope} button" for scope in _DIALOG_SCOPES),
        has_text=BOOK_LABELS[0],
        timeout_ms=5_000,
    ),
    SelectorCandidate("button", has_text=BOOK_LABELS[0], pick="last"),
)
