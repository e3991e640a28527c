"""Delivery dispatcher infrastructure settings."""

from pydantic import Field

from infrastructure.configuration.base import InfrastructureSettings


class DeliverySettings(InfrastructureSettings):
    """Retry, backoff and timeout configuration for channel delivery.

    Environment Variables:
        DELIVERY_MAX_ATTEMPTS: Attempts per channel before giving up (default: 3)
        DELIVERY_BASE_DELAY_MS: Base exponential backoff delay (default: 100ms)
        DELIVERY_MAX_DELAY_MS: Backoff cap (default: 5000ms)
        DELIVERY_JITTER_RATIO: Upper bound of random jitter as a fraction of
            the computed delay (default: 0.02)
        DELIVERY_TRANSPORT_TIMEOUT_SECONDS: Timeout wrapped around every
            transport send call (default: 10s)
        DELIVERY_TRACKER_MAX_ATTEMPTS: Attempt history kept per
            (notification, channel) record (default: 100)

    Exponential Backoff:
        Delay calculation: min(base_delay * (2 ^ attempt_index), max_delay)

        Example with defaults (base=100ms, max=5000ms):
            After attempt 1: 100ms
            After attempt 2: 200ms
            After attempt 3: 400ms
            ...
            After attempt 7: 5000ms (capped)

    Example:
        ```python
        from infrastructure.configuration import settings

        max_attempts = settings.delivery.max_attempts
        timeout = settings.delivery.transport_timeout_seconds
        ```
    """

    max_attempts: int = Field(
        default=3,
        alias="DELIVERY_MAX_ATTEMPTS",
        description="Maximum delivery attempts per channel",
    )
    base_delay_ms: int = Field(
        default=100,
        alias="DELIVERY_BASE_DELAY_MS",
        description="Base delay for exponential backoff (milliseconds)",
    )
    max_delay_ms: int = Field(
        default=5000,
        alias="DELIVERY_MAX_DELAY_MS",
        description="Maximum delay for exponential backoff (milliseconds)",
    )
    jitter_ratio: float = Field(
        default=0.02,
        alias="DELIVERY_JITTER_RATIO",
        description="Maximum random jitter as a fraction of the backoff delay",
    )
    transport_timeout_seconds: float = Field(
        default=10.0,
        alias="DELIVERY_TRANSPORT_TIMEOUT_SECONDS",
        description="Timeout applied to each channel transport call (seconds)",
    )
    tracker_max_attempts: int = Field(
        default=100,
        alias="DELIVERY_TRACKER_MAX_ATTEMPTS",
        description="Attempt history entries kept per delivery record",
    )
