"""Base exception classes for the time-guard domain layer."""


class TimeGuardError(Exception):
    """Base exception for all time-guard errors.

    All guard-specific exceptions MUST inherit from this class so host
    applications can catch the whole family with a single except clause.
    """

    def __init__(self, message: str = "") -> None:
        """Initialize the exception with an optional message.

        Args:
            message: Human-readable error description.
        """
        super().__init__(message)
