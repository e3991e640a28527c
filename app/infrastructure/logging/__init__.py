"""Structured logging infrastructure.

Centralized logging configuration and utilities for the notification
engine using structlog.

Public API:
    - configure_logging(): Initialize logging for the process
    - get_module_logger(): Get a logger for the calling module
    - bind_delivery_context(): Context manager for per-notification logging
    - get_correlation_id(): Get current correlation ID from context
    - clear_delivery_context(): Clear all bound context

Example:
    from infrastructure.logging import (
        configure_logging,
        get_module_logger,
        bind_delivery_context,
    )

    configure_logging()
    logger = get_module_logger()

    with bind_delivery_context(notification_id="n-123"):
        logger.info("notification_routed")
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_module_logger,
)

from infrastructure.logging.context import (
    bind_delivery_context,
    get_correlation_id,
    clear_delivery_context,
)

__all__ = [
    # Setup
    "configure_logging",
    "get_module_logger",
    # Context
    "bind_delivery_context",
    "get_correlation_id",
    "clear_delivery_context",
]
