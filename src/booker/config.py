"""Booking configuration loaded from environment variables.

Variable names match the ones the scheduled job already exports
(WONDR_USERNAME, WONDR_PASSWORD, BOOKING_TIME, BOOKING_URL, BOOKING_LOCATION).
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class BookerConfig(BaseSettings):
    """Booking configuration loaded from environment variables.

    For local development, create a .env file in the project root.
    """

    # Wondr credentials
    wondr_username: str = Field(
        default="",
        description="Wondr username or e-mail used on the login form",
    )
    wondr_password: str = Field(
        default="",
        description="Wondr password",
    )

    # What to book
    booking_time: str = Field(
        default="16:00",
        description="Class start time, e.g. 7:30 or 07:30",
    )
    booking_url: str = Field(
        default="https://playtrening.wondr.cc/schema",
        description="Schedule base URL of the gym's Wondr site",
    )
    booking_location: str = Field(
        default="Play Gamlebyen",
        description="Facility name as shown in the facility picker",
    )
    booking_class_name: str | None = Field(
        default=None,
        description="Optional case-insensitive activity name filter",
    )
    booking_days_ahead: int = Field(
        default=3,
        ge=0,
        description="Book the class this many days from today",
    )

    # Browser
    headless: bool = Field(default=True, description="Run Chromium headless")
    debug_dir: str = Field(
        default="debug",
        description="Directory for failure screenshots and HTML dumps",
    )
    default_timeout_ms: int = Field(
        default=30_000,
        description="Default Playwright action/navigation timeout",
    )

    # Session persistence
    state_dir: str = Field(
        default="data/state",
        description="Directory for Playwright session state",
    )
    max_session_age_hours: int = Field(
        default=24,
        description="Maximum age of a saved session before logging in again",
    )

    # Schedule scrolling
    max_scroll_attempts: int = Field(
        default=20,
        ge=1,
        description="Scroll steps before giving up on the target day",
    )
    scroll_step_px: int = Field(
        default=3000,
        description="Mouse wheel delta per scroll step",
    )
    scroll_settle_ms: int = Field(
        default=1500,
        description="Pause after each scroll step for lazy rows to render",
    )

    # Logging
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format",
    )
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    model_config = {
        "env_prefix": "",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def has_credentials(self) -> bool:
        return bool(self.wondr_username and self.wondr_password)

    @property
    def login_url(self) -> str:
        return login_url(self.booking_url)

    @property
    def schedule_url(self) -> str:
        return schedule_url(self.booking_url)


def login_url(booking_url: str) -> str:
    """Login page lives next to /schema, not under it."""
    if "/schema" in booking_url:
        base = booking_url.replace("/schema", "").rstrip("/")
    else:
        base = booking_url.rstrip("/")
    return f"{base}/users/login"


def schedule_url(booking_url: str) -> str:
    return f"{booking_url.rstrip('/')}/index"


# Singleton pattern
_config: BookerConfig | None = None


def get_config() -> BookerConfig:
    """Get the booking configuration singleton."""
    global _config
    if _config is None:
        _config = BookerConfig()
    return _config
