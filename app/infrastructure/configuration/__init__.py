"""Infrastructure configuration module - public API.

This module provides centralized configuration management for the
notification engine using Pydantic BaseSettings with domain-based
organization.

Exports:
    settings: Singleton Settings instance (main configuration object)
    Settings: Main settings class (for testing/overrides)
    DeliverySettings: Delivery retry/backoff settings class
    NotificationDefaultsSettings: Defaults for recipients without preferences
    WebhookSettings: Outbound webhook settings class

Example:
    ```python
    from infrastructure.configuration import settings

    max_attempts = settings.delivery.max_attempts
    default_channels = settings.notifications.default_channels

    if settings.is_production:
        # Production-specific logic...
    ```
"""

from infrastructure.configuration.settings import Settings, settings
from infrastructure.configuration.infrastructure.delivery import DeliverySettings
from infrastructure.configuration.features.notifications import (
    NotificationDefaultsSettings,
)
from infrastructure.configuration.integrations.webhook import WebhookSettings

__all__ = [
    "Settings",
    "settings",
    "DeliverySettings",
    "NotificationDefaultsSettings",
    "WebhookSettings",
]
