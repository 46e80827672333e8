"""Error taxonomy for the ProTracker core.

Every error here is recoverable by user correction. Each carries a
human-readable message and an optional recovery hint that the CLI shows
underneath the message.
"""

from typing import Any, Optional


class ProTrackerError(Exception):
    """Base exception with a user-friendly message."""

    def __init__(self, message: str, recovery_hint: Optional[str] = None):
        """
        Initialize the error.

        Args:
            message: Error message to display
            recovery_hint: Optional hint for recovering from the error
        """
        self.message = message
        self.recovery_hint = recovery_hint
        super().__init__(message)


class ValidationError(ProTrackerError):
    """Malformed or logically inconsistent user input.

    Raised for time-field mismatches, end-before-start entries, invalid
    invoice selections and similar problems. Blocks submission.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        recovery_hint: Optional[str] = None,
    ):
        self.field = field
        self.value = value
        super().__init__(message, recovery_hint)


class MissingRateError(ProTrackerError):
    """Currency conversion requested for a pair with no known rate."""

    def __init__(self, from_currency: str, to_currency: str):
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(
            f"No exchange rate available for {from_currency} -> {to_currency}",
            recovery_hint=(
                f"Add a {from_currency}/{to_currency} rate (or its inverse) "
                "to the exchange rate table"
            ),
        )


class ExternalServiceError(ProTrackerError):
    """File upload or OCR extraction failed. Never retried."""

    def __init__(
        self,
        service: str,
        message: str,
        recovery_hint: Optional[str] = None,
    ):
        self.service = service
        super().__init__(f"{service}: {message}", recovery_hint)


class StorageError(ProTrackerError):
    """Persisted or imported data could not be read."""

    pass
