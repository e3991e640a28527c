"""Delivery channel value types.

A ChannelDescriptor says *how* a notification may be delivered: which
channel type, whether it is switched on, and any channel-specific settings
(a webhook URL, an email template, a push sound). Descriptors are immutable;
every transformation returns a new descriptor.
"""

import copy
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class ChannelType(Enum):
    """Closed set of delivery channels."""

    IN_APP = "in_app"
    EMAIL = "email"
    PUSH = "push"
    SMS = "sms"
    WEBHOOK = "webhook"


class ChannelDescriptor(BaseModel):
    """Immutable description of one delivery channel.

    Attributes:
        type: Channel type
        enabled: Whether delivery through this channel is switched on
        config: Optional channel-specific settings. WEBHOOK config, when
            given, must carry an http(s) ``url``.

    Example:
        email = ChannelDescriptor.email({"template": "report_ready"})
        hook = ChannelDescriptor.webhook({"url": "https://example.com/hook"})
        muted = email.disable()
    """

    model_config = ConfigDict(frozen=True)

    type: ChannelType
    enabled: bool = True
    config: Optional[Dict[str, Any]] = None

    @field_validator("config")
    @classmethod
    def copy_config(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Detach the config from the caller's dict."""
        if v is None:
            return None
        return copy.deepcopy(v)

    @model_validator(mode="after")
    def validate_webhook_url(self) -> "ChannelDescriptor":
        """Ensure WEBHOOK config carries a usable URL."""
        if self.type != ChannelType.WEBHOOK or self.config is None:
            return self

        url = self.config.get("url")
        if not url or not str(url).strip():
            raise ValueError("Webhook URL is required")
        if not str(url).startswith(("http://", "https://")):
            raise ValueError(f"Webhook URL must be an http(s) URL: {url}")
        return self

    @classmethod
    def create(
        cls,
        type: ChannelType | str,
        enabled: bool = True,
        config: Optional[Dict[str, Any]] = None,
    ) -> "ChannelDescriptor":
        """Build a descriptor, validating the channel type and config."""
        return cls(type=type, enabled=enabled, config=config)

    @classmethod
    def in_app(cls) -> "ChannelDescriptor":
        return cls(type=ChannelType.IN_APP)

    @classmethod
    def email(cls, config: Optional[Dict[str, Any]] = None) -> "ChannelDescriptor":
        return cls(type=ChannelType.EMAIL, config=config)

    @classmethod
    def push(cls, config: Optional[Dict[str, Any]] = None) -> "ChannelDescriptor":
        return cls(type=ChannelType.PUSH, config=config)

    @classmethod
    def sms(cls, config: Optional[Dict[str, Any]] = None) -> "ChannelDescriptor":
        return cls(type=ChannelType.SMS, config=config)

    @classmethod
    def webhook(cls, config: Dict[str, Any]) -> "ChannelDescriptor":
        """Webhook descriptor; ``method`` defaults to POST."""
        return cls(type=ChannelType.WEBHOOK, config={"method": "POST", **config})

    def enable(self) -> "ChannelDescriptor":
        return self.model_copy(update={"enabled": True})

    def disable(self) -> "ChannelDescriptor":
        return self.model_copy(update={"enabled": False})

    def update_config(self, config: Dict[str, Any]) -> "ChannelDescriptor":
        """Return a descriptor with ``config`` merged over the current one.

        The merged config goes through validation again, so a webhook URL
        cannot be blanked out.
        """
        merged = {**(self.config or {}), **config}
        return ChannelDescriptor(type=self.type, enabled=self.enabled, config=merged)

    def requires_external_service(self) -> bool:
        """In-app delivery is local; every other channel calls a provider."""
        return self.type != ChannelType.IN_APP

    def __str__(self) -> str:
        state = "enabled" if self.enabled else "disabled"
        return f"{self.type.value} ({state})"
