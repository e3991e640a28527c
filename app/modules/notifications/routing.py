"""Routing decision engine.

Decides whether a notification may be delivered now and through which of
its channels, given the recipient's preferences. Routing is a pure function
of ``(notification, preferences, now)``: it performs no I/O, keeps no state
and never raises for business outcomes. Those outcomes are reported through
``RoutingDecision.reason`` so callers can log or persist them.

Rules are evaluated in order and the first match wins:
  1. global notifications disabled
  2. category disabled
  3. notification expired
  4. notification scheduled for the future
  5. quiet hours (urgent notifications fall back to in-app channels)
  6. intersection of allowed and requested channels
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.notifications.domain.channels import ChannelDescriptor, ChannelType
from modules.notifications.domain.clock import ensure_utc
from modules.notifications.domain.errors import NotificationValidationError
from modules.notifications.domain.models import Notification, NotificationPriority
from modules.notifications.domain.preferences import RecipientPreferences

REASON_GLOBAL_DISABLED = "Global notifications disabled"
REASON_EXPIRED = "Notification expired"
REASON_SCHEDULED = "Notification scheduled for future"
REASON_QUIET_HOURS = "Notification delayed due to quiet hours"
REASON_NO_IN_APP_QUIET_HOURS = "No in-app channel available during quiet hours"
REASON_NO_MATCHING_CHANNELS = "No matching channels for category"


class RoutingDecision(BaseModel):
    """Outcome of routing one notification.

    Attributes:
        should_deliver: Whether delivery may proceed now
        channels: Channels to deliver through (empty when not delivering)
        reason: Machine-readable reason when delivery is withheld
        delay_until: Earliest instant worth routing again, when known
    """

    model_config = ConfigDict(frozen=True)

    should_deliver: bool
    channels: List[ChannelDescriptor] = Field(default_factory=list)
    reason: Optional[str] = None
    delay_until: Optional[datetime] = None

    @classmethod
    def deliver(cls, channels: List[ChannelDescriptor]) -> "RoutingDecision":
        return cls(should_deliver=True, channels=list(channels))

    @classmethod
    def skip(
        cls, reason: str, delay_until: Optional[datetime] = None
    ) -> "RoutingDecision":
        return cls(should_deliver=False, reason=reason, delay_until=delay_until)

    @property
    def channel_types(self) -> List[ChannelType]:
        return [channel.type for channel in self.channels]


class NotificationRouter:
    """Stateless routing engine; one instance can be shared by all callers."""

    def route(
        self,
        notification: Notification,
        preferences: RecipientPreferences,
        now: datetime,
    ) -> RoutingDecision:
        """Evaluate ``notification`` against ``preferences`` at ``now``."""
        now = ensure_utc(now)

        if not preferences.global_enabled:
            return RoutingDecision.skip(REASON_GLOBAL_DISABLED)

        if not preferences.is_category_enabled(notification.category):
            return RoutingDecision.skip(
                f"Category {notification.category.value} disabled"
            )

        if notification.is_expired(now):
            return RoutingDecision.skip(REASON_EXPIRED)

        if notification.is_scheduled(now):
            return RoutingDecision.skip(
                REASON_SCHEDULED, delay_until=notification.scheduled_at
            )

        if preferences.is_in_quiet_hours(now):
            return self._route_quiet_hours(notification, preferences, now)

        channels = self.matching_channels(notification, preferences)
        if not channels:
            return RoutingDecision.skip(REASON_NO_MATCHING_CHANNELS)
        return RoutingDecision.deliver(channels)

    def matching_channels(
        self, notification: Notification, preferences: RecipientPreferences
    ) -> List[ChannelDescriptor]:
        """Enabled notification channels allowed for its category.

        Order follows the notification's own channel list.
        """
        allowed = set(preferences.channels_for_category(notification.category))
        return [
            channel
            for channel in notification.enabled_channels()
            if channel.type in allowed
        ]

    def validate_routing_configuration(
        self,
        notification: Optional[Notification],
        preferences: Optional[RecipientPreferences],
    ) -> None:
        """Raise when the pair can never be routed, whatever the time.

        Raises:
            NotificationValidationError: Missing input, notification without
                channels, or no requested channel allowed for the category
        """
        if notification is None:
            raise NotificationValidationError(
                "notification", "Notification cannot be None"
            )
        if preferences is None:
            raise NotificationValidationError(
                "preferences", "Preferences cannot be None"
            )
        if not notification.channels:
            raise NotificationValidationError(
                "channels", "Notification must have at least one channel"
            )
        if not self.matching_channels(notification, preferences):
            category = notification.category.value
            raise NotificationValidationError(
                "channels",
                f"No valid channels for category {category} based on user preferences",
            )

    def _route_quiet_hours(
        self,
        notification: Notification,
        preferences: RecipientPreferences,
        now: datetime,
    ) -> RoutingDecision:
        if notification.priority != NotificationPriority.URGENT:
            return RoutingDecision.skip(
                REASON_QUIET_HOURS,
                delay_until=preferences.quiet_hours_end_after(now),
            )

        # Urgent notifications bypass category allow-lists but stay in-app
        in_app = [
            channel
            for channel in notification.enabled_channels()
            if channel.type == ChannelType.IN_APP
        ]
        if not in_app:
            return RoutingDecision.skip(REASON_NO_IN_APP_QUIET_HOURS)
        return RoutingDecision.deliver(in_app)
