"""Notification routing feature settings."""

from typing import List

from pydantic import Field

from infrastructure.configuration.base import FeatureSettings


class NotificationDefaultsSettings(FeatureSettings):
    """Defaults used when a recipient has no stored preferences.

    The preferences repository returns nothing for users who never saved
    their notification settings. The service substitutes a default
    preferences value built from these settings before routing.

    Environment Variables:
        NOTIFICATION_DEFAULT_CHANNELS: JSON list of channel types
            (default: ["in_app"])
        NOTIFICATION_DEFAULT_LANGUAGE: ISO 639-1 language code (default: "en")
        NOTIFICATION_DEFAULT_TIMEZONE: IANA timezone name (default: "UTC")

    Example:
        ```python
        from infrastructure.configuration import settings

        channels = settings.notifications.default_channels
        ```
    """

    default_channels: List[str] = Field(
        default_factory=lambda: ["in_app"],
        alias="NOTIFICATION_DEFAULT_CHANNELS",
        description="Channel types enabled for users without preferences",
    )
    default_language: str = Field(
        default="en",
        alias="NOTIFICATION_DEFAULT_LANGUAGE",
        description="Language assigned to substituted preferences",
    )
    default_timezone: str = Field(
        default="UTC",
        alias="NOTIFICATION_DEFAULT_TIMEZONE",
        description="Timezone assigned to substituted preferences",
    )
