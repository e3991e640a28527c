"""Unit tests for ChannelDescriptor."""

import pytest
from pydantic import ValidationError

from modules.notifications.domain import ChannelDescriptor, ChannelType


@pytest.mark.unit
class TestChannelDescriptorCreation:
    def test_factories_set_type(self):
        assert ChannelDescriptor.in_app().type == ChannelType.IN_APP
        assert ChannelDescriptor.email().type == ChannelType.EMAIL
        assert ChannelDescriptor.push().type == ChannelType.PUSH
        assert ChannelDescriptor.sms().type == ChannelType.SMS

    def test_create_accepts_string_type(self):
        channel = ChannelDescriptor.create("email", config={"to": "a@example.com"})

        assert channel.type == ChannelType.EMAIL
        assert channel.enabled is True
        assert channel.config == {"to": "a@example.com"}

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ChannelDescriptor.create("fax")

    def test_webhook_defaults_method_to_post(self):
        channel = ChannelDescriptor.webhook({"url": "https://example.com/hook"})

        assert channel.config["method"] == "POST"

    def test_webhook_keeps_explicit_method(self):
        channel = ChannelDescriptor.webhook(
            {"url": "https://example.com/hook", "method": "PUT"}
        )

        assert channel.config["method"] == "PUT"

    def test_webhook_without_url_fails_at_construction(self):
        with pytest.raises(ValidationError, match="Webhook URL is required"):
            ChannelDescriptor.webhook({"method": "POST"})

    def test_webhook_rejects_non_http_url(self):
        with pytest.raises(ValidationError, match="http"):
            ChannelDescriptor.webhook({"url": "ftp://example.com/hook"})

    def test_webhook_without_config_allowed(self):
        channel = ChannelDescriptor(type=ChannelType.WEBHOOK)

        assert channel.config is None

    def test_config_is_detached_from_caller(self):
        config = {"to": "a@example.com"}
        channel = ChannelDescriptor.email(config)
        config["to"] = "b@example.com"

        assert channel.config == {"to": "a@example.com"}


@pytest.mark.unit
class TestChannelDescriptorTransformations:
    def test_disable_returns_new_value(self):
        channel = ChannelDescriptor.email()

        disabled = channel.disable()

        assert disabled.enabled is False
        assert channel.enabled is True

    def test_enable(self):
        assert ChannelDescriptor.email().disable().enable().enabled is True

    def test_update_config_merges(self):
        channel = ChannelDescriptor.email({"to": "a@example.com"})

        updated = channel.update_config({"template": "report_ready"})

        assert updated.config == {"to": "a@example.com", "template": "report_ready"}
        assert channel.config == {"to": "a@example.com"}

    def test_update_config_revalidates_webhook_url(self):
        channel = ChannelDescriptor.webhook({"url": "https://example.com/hook"})

        with pytest.raises(ValidationError):
            channel.update_config({"url": ""})

    def test_descriptor_is_immutable(self):
        channel = ChannelDescriptor.email()

        with pytest.raises(ValidationError):
            channel.enabled = False

    def test_value_equality(self):
        assert ChannelDescriptor.email({"to": "x"}) == ChannelDescriptor.email({"to": "x"})
        assert ChannelDescriptor.email() != ChannelDescriptor.email().disable()

    def test_requires_external_service(self):
        assert ChannelDescriptor.in_app().requires_external_service() is False
        assert ChannelDescriptor.sms().requires_external_service() is True

    def test_str(self):
        assert str(ChannelDescriptor.email()) == "email (enabled)"
        assert str(ChannelDescriptor.push().disable()) == "push (disabled)"
