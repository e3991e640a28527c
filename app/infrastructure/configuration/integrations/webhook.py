"""Outbound webhook integration settings."""

from pydantic import Field

from infrastructure.configuration.base import IntegrationSettings


class WebhookSettings(IntegrationSettings):
    """Outbound webhook delivery configuration.

    Environment Variables:
        WEBHOOK_TIMEOUT_SECONDS: HTTP request timeout (default: 10s)
        WEBHOOK_USER_AGENT: User-Agent header sent with every request
        WEBHOOK_SIGNING_SECRET: Optional secret used to sign request bodies
            with HMAC-SHA256 (sent as the X-Signature header)

    Example:
        ```python
        from infrastructure.configuration import settings

        timeout = settings.webhook.WEBHOOK_TIMEOUT_SECONDS
        ```
    """

    WEBHOOK_TIMEOUT_SECONDS: float = Field(
        default=10.0, alias="WEBHOOK_TIMEOUT_SECONDS"
    )
    WEBHOOK_USER_AGENT: str = Field(
        default="notification-engine/1.0", alias="WEBHOOK_USER_AGENT"
    )
    WEBHOOK_SIGNING_SECRET: str | None = Field(
        default=None, alias="WEBHOOK_SIGNING_SECRET"
    )
