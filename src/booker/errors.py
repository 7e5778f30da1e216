"""Error hierarchy for booking failures.

Errors are split into transient failures (worth retrying, e.g. the login form
has not rendered yet) and permanent failures (retrying will not help, e.g. the
requested class does not exist on the schedule). Only authentication is wrapped
in a tenacity retry; the booking flow surfaces the first error it hits.

Example usage with tenacity:
    @retry(retry=retry_if_exception_type(TransientError), stop=stop_after_attempt(2))
    async def authenticate(page, username, password):
        ...
"""


class BookingError(Exception):
    """Base exception for all booking errors."""

    pass


class TransientError(BookingError):
    """Temporary failure that may succeed on retry.

    Examples: navigation timeouts, a form that has not finished rendering.
    """

    pass


class PermanentError(BookingError):
    """Failure that won't succeed on retry."""

    pass


class AuthenticationError(PermanentError):
    """Login did not leave the login page - most likely invalid credentials."""

    pass


class ElementNotFound(TransientError):
    """No candidate selector for a logical UI target became visible."""

    def __init__(self, target: str, tried: list[str] | None = None) -> None:
        self.target = target
        self.tried = list(tried or [])
        message = f"Could not find {target}"
        if self.tried:
            message += f" (tried: {', '.join(self.tried)})"
        super().__init__(message)


class BookingTimeout(TransientError):
    """A bounded browser wait expired."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        message = f"Timed out during {operation}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class DayNotFound(PermanentError):
    """The target day header never became visible in the schedule list."""

    def __init__(self, day_text: str, attempts: int | None = None) -> None:
        self.day_text = day_text
        self.attempts = attempts
        message = f"Day header {day_text!r} not found"
        if attempts is not None:
            message += f" after {attempts} scroll attempts"
        super().__init__(message)


class SlotNotFound(PermanentError):
    """The day was found but no row matched time, name and bookable state."""

    def __init__(
        self, day_text: str, start_time: str, class_name: str | None = None
    ) -> None:
        self.day_text = day_text
        self.start_time = start_time
        self.class_name = class_name
        message = f"Could not find a bookable class at {start_time} on {day_text!r}"
        if class_name:
            message += f" matching {class_name!r}"
        super().__init__(message)


class ConfirmationNotFound(PermanentError):
    """The booking click went through but no confirmation button appeared.

    The real-world state is ambiguous at this point: the slot may or may not
    be reserved.
    """

    pass


class BookingFailed(BookingError):
    """A booking run ended in the failed state."""

    def __init__(self, state: str, cause: BaseException) -> None:
        self.state = state
        self.cause = cause
        super().__init__(f"Booking failed in state {state}: {cause}")
