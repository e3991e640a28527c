"""Unit tests for infrastructure.configuration settings.

Tests cover:
- DeliverySettings defaults and environment overrides
- NotificationDefaultsSettings defaults and overrides
- WebhookSettings defaults and overrides
- Settings aggregation
"""

import pytest

from infrastructure.configuration import (
    DeliverySettings,
    NotificationDefaultsSettings,
    Settings,
    WebhookSettings,
)


@pytest.mark.unit
class TestDeliverySettings:
    def test_defaults(self):
        delivery = DeliverySettings()

        assert delivery.max_attempts == 3
        assert delivery.base_delay_ms == 100
        assert delivery.max_delay_ms == 5000
        assert delivery.jitter_ratio == 0.02
        assert delivery.transport_timeout_seconds == 10.0
        assert delivery.tracker_max_attempts == 100

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("DELIVERY_MAX_ATTEMPTS", "5")
        monkeypatch.setenv("DELIVERY_BASE_DELAY_MS", "250")
        monkeypatch.setenv("DELIVERY_TRANSPORT_TIMEOUT_SECONDS", "2.5")

        delivery = DeliverySettings()

        assert delivery.max_attempts == 5
        assert delivery.base_delay_ms == 250
        assert delivery.transport_timeout_seconds == 2.5
        # Defaults preserved
        assert delivery.max_delay_ms == 5000

    def test_alias_keyword_override(self):
        delivery = DeliverySettings(DELIVERY_MAX_ATTEMPTS=1)

        assert delivery.max_attempts == 1


@pytest.mark.unit
class TestNotificationDefaultsSettings:
    def test_defaults(self):
        defaults = NotificationDefaultsSettings()

        assert defaults.default_channels == ["in_app"]
        assert defaults.default_language == "en"
        assert defaults.default_timezone == "UTC"

    def test_channels_from_json_environment(self, monkeypatch):
        monkeypatch.setenv("NOTIFICATION_DEFAULT_CHANNELS", '["in_app", "email"]')

        defaults = NotificationDefaultsSettings()

        assert defaults.default_channels == ["in_app", "email"]


@pytest.mark.unit
class TestWebhookSettings:
    def test_defaults(self):
        webhook = WebhookSettings()

        assert webhook.WEBHOOK_TIMEOUT_SECONDS == 10.0
        assert webhook.WEBHOOK_USER_AGENT == "notification-engine/1.0"
        assert webhook.WEBHOOK_SIGNING_SECRET is None

    def test_signing_secret_from_environment(self, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SIGNING_SECRET", "s3cret")

        assert WebhookSettings().WEBHOOK_SIGNING_SECRET == "s3cret"


@pytest.mark.unit
class TestSettings:
    def test_subsettings_instantiated(self):
        settings = Settings()

        assert isinstance(settings.delivery, DeliverySettings)
        assert isinstance(settings.notifications, NotificationDefaultsSettings)
        assert isinstance(settings.webhook, WebhookSettings)

    def test_section_override(self):
        delivery = DeliverySettings(DELIVERY_MAX_ATTEMPTS=7)

        settings = Settings(delivery=delivery)

        assert settings.delivery.max_attempts == 7

    @pytest.mark.parametrize("prefix,expected", [("", True), ("dev-", False)])
    def test_is_production(self, monkeypatch, prefix, expected):
        monkeypatch.setenv("PREFIX", prefix)

        assert Settings().is_production is expected
