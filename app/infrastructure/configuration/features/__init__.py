"""Feature settings __init__ - exports all feature settings."""

from infrastructure.configuration.features.notifications import (
    NotificationDefaultsSettings,
)

__all__ = [
    "NotificationDefaultsSettings",
]
