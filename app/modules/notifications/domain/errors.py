"""Errors for the notifications module."""


class NotificationValidationError(ValueError):
    """Raised when a notification, preference or routing call is misused.

    Business outcomes (quiet hours, disabled category, expiry) are never
    reported with this error; the router encodes them in its decision.

    Attributes:
        field: name of the offending field or argument
        message: human-friendly message
    """

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class DeliverySchedulingError(RuntimeError):
    """Raised when a retry backoff could not be scheduled."""


class TransportError(Exception):
    """Raised by channel transports when a send fails.

    Attributes:
        retryable: False when retrying the same payload cannot succeed
        status_code: provider/HTTP status code, when there is one
    """

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = status_code
