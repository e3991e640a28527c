"""Notification engine configuration settings - main aggregator."""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Integration settings
from infrastructure.configuration.integrations import WebhookSettings

# Feature settings
from infrastructure.configuration.features import NotificationDefaultsSettings

# Infrastructure settings
from infrastructure.configuration.infrastructure import DeliverySettings


class Settings(BaseSettings):
    """Notification engine configuration settings - main aggregator.

    Aggregates all domain-specific settings into a single configuration object.
    Settings are organized by concern:

    - **Integrations**: Outbound transports (webhooks)
    - **Features**: Notification routing defaults
    - **Infrastructure**: Delivery retry, backoff and tracking

    Environment Variables:
        PREFIX: Environment prefix for multi-tenant deployments
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        GIT_SHA: Git commit SHA for deployment tracking

    Example:
        ```python
        from infrastructure.configuration import settings

        if settings.delivery.max_attempts > 1:
            # Retry enabled...

        if settings.is_production:
            # Production-specific logic...
        ```
    """

    # Application-level settings
    PREFIX: str = ""
    LOG_LEVEL: str = "INFO"
    GIT_SHA: str = "Unknown"

    # Integration settings
    webhook: WebhookSettings

    # Feature settings
    notifications: NotificationDefaultsSettings

    # Infrastructure settings
    delivery: DeliverySettings

    @property
    def is_production(self) -> bool:
        """Check if the application is running in production.

        Returns:
            True if PREFIX is empty (production), False otherwise.
        """
        return not bool(self.PREFIX)

    def __init__(self, **kwargs):
        """Initialize Settings with automatic subsettings instantiation.

        Args:
            **kwargs: Optional overrides for specific settings sections.
        """
        settings_map = {
            # Integrations
            "webhook": WebhookSettings,
            # Features
            "notifications": NotificationDefaultsSettings,
            # Infrastructure
            "delivery": DeliverySettings,
        }

        for setting_name, setting_class in settings_map.items():
            if setting_name not in kwargs:
                kwargs[setting_name] = setting_class()

        super().__init__(**kwargs)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Create the singleton settings instance
settings = Settings()
