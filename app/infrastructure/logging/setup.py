"""Structlog configuration and logger setup.

Configures structlog for the notification engine. Every event carries the
bound delivery context (correlation id, notification id, recipient), the
service name and deployed git sha, an ISO timestamp and its call site.
Development renders to the console, production emits one JSON object per
line.

Usage:
    from infrastructure.logging import configure_logging, get_module_logger

    # Configure logging at process startup
    configure_logging()

    # Get a logger for your module
    logger = get_module_logger()
    logger.info("delivery_attempt_failed", channel="email", error="timeout")

Dependencies:
    - infrastructure.configuration.settings
"""

import inspect
import logging
import sys
from typing import TYPE_CHECKING, Any, List, MutableMapping, Optional

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import Processor

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

SERVICE_NAME = "notification-engine"


def _is_test_environment() -> bool:
    """Detect if running in a test environment.

    Returns:
        True if pytest is in sys.modules, False otherwise
    """
    return "pytest" in sys.modules


def _service_context(git_sha: str) -> Processor:
    """Processor adding the service name and deployed revision to each event."""

    def add_service_context(
        _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", SERVICE_NAME)
        event_dict.setdefault("git_sha", git_sha)
        return event_dict

    return add_service_context


def _build_processors(prod_mode: bool, git_sha: str) -> List[Processor]:
    processors: List[Processor] = [
        # Delivery context bound with bind_delivery_context()
        structlog.contextvars.merge_contextvars,
        _service_context(git_sha),
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
                structlog.processors.CallsiteParameter.FUNC_NAME,
            ]
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if prod_mode:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
    settings: Optional["Settings"] = None,
) -> BoundLogger:
    """Configure structured logging.

    Args:
        log_level: Optional override for log level (DEBUG, INFO, WARNING, etc).
            Defaults to settings.LOG_LEVEL if not provided.
        is_production: Optional override for production mode. Defaults to
            settings.is_production. Controls JSON vs console output.
        settings: Settings to read defaults from. The process-wide
            ``infrastructure.configuration.settings`` when omitted.

    Returns:
        Configured logger instance

    Example:
        # At process startup
        logger = configure_logging()

        # With overrides
        logger = configure_logging(log_level="DEBUG", is_production=False)
    """
    # Suppress all logging during tests
    if _is_test_environment():
        logging.root.setLevel(logging.CRITICAL + 1)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            level=logging.CRITICAL + 1,
            force=True,
        )
        return structlog.stdlib.get_logger()

    if settings is None:
        from infrastructure.configuration import settings

    prod_mode = is_production if is_production is not None else settings.is_production

    structlog.configure(
        processors=_build_processors(prod_mode, settings.GIT_SHA),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    effective_log_level = log_level or settings.LOG_LEVEL
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, effective_log_level.upper(), logging.INFO),
    )

    return structlog.stdlib.get_logger()


# Module-level logger (auto-configured on import)
logger: BoundLogger = configure_logging()


def get_module_logger() -> BoundLogger:
    """Get a logger bound to the calling module.

    Binds ``component`` (last dotted segment) and ``module_path`` so events
    can be filtered per component, e.g. all dispatcher retries.

    Returns:
        Configured logger instance with module context

    Example:
        # In modules/notifications/dispatcher.py
        logger = get_module_logger()
        # context: {"component": "dispatcher",
        #           "module_path": "modules.notifications.dispatcher"}
    """
    current_frame = inspect.currentframe()
    if current_frame is None:
        return logger

    frame = current_frame.f_back
    if frame is None:
        return logger

    module = inspect.getmodule(frame)
    if module:
        module_name = module.__name__
        return logger.bind(component=module_name.split(".")[-1], module_path=module_name)

    return logger.bind(component="unknown")
