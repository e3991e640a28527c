"""Per-notification context binding for structured logging.

Every log line emitted while a notification is routed and delivered carries
the notification id, recipient and a correlation id, so a single delivery
can be followed across the router, dispatcher, tracker and transports.

Usage:
    from infrastructure.logging import bind_delivery_context

    with bind_delivery_context(notification_id="n-1", user_id="u-1"):
        logger.info("notification_routed")

Dependencies:
    - structlog.contextvars
"""

import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional

import structlog


@contextmanager
def bind_delivery_context(
    notification_id: Optional[str] = None,
    user_id: Optional[str] = None,
    organization_id: Optional[str] = None,
    correlation_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[str, None, None]:
    """Bind notification-scoped context to all logs within the block.

    Args:
        notification_id: Notification being processed.
        user_id: Recipient user id.
        organization_id: Tenant the notification belongs to (if any).
        correlation_id: Correlation identifier. Auto-generated if not provided.
        **extra_context: Additional key-value pairs to include in logs.

    Yields:
        The correlation id bound for the block.

    Example:
        with bind_delivery_context(
            notification_id=notification.id,
            user_id=notification.user_id,
        ) as correlation_id:
            await dispatcher.deliver_to_channels(notification, channels)
    """
    context: dict[str, Any] = {}
    context["correlation_id"] = correlation_id or str(uuid.uuid4())

    if notification_id is not None:
        context["notification_id"] = notification_id

    if user_id is not None:
        context["user_id"] = user_id

    if organization_id is not None:
        context["organization_id"] = organization_id

    context.update(extra_context)

    tokens = structlog.contextvars.bind_contextvars(**context)
    try:
        yield context["correlation_id"]
    finally:
        # Restores values bound by an enclosing block
        structlog.contextvars.reset_contextvars(**tokens)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from the logging context.

    Returns:
        The correlation ID if set, None otherwise.
    """
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("correlation_id")


def clear_delivery_context() -> None:
    """Clear all bound context from the logging context."""
    structlog.contextvars.clear_contextvars()
