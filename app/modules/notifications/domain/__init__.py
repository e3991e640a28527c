"""Notification domain values.

Immutable pydantic models shared by routing, delivery and persistence:
channels, notifications, recipient preferences and the domain errors.
"""

from modules.notifications.domain.channels import ChannelDescriptor, ChannelType
from modules.notifications.domain.clock import Clock, ensure_utc, utc_now
from modules.notifications.domain.errors import (
    DeliverySchedulingError,
    NotificationValidationError,
    TransportError,
)
from modules.notifications.domain.models import (
    Notification,
    NotificationCategory,
    NotificationPriority,
    NotificationStatus,
)
from modules.notifications.domain.preferences import (
    CategoryPreference,
    DigestFrequency,
    EmailDigest,
    QuietHours,
    RecipientPreferences,
)

__all__ = [
    "CategoryPreference",
    "ChannelDescriptor",
    "ChannelType",
    "Clock",
    "DeliverySchedulingError",
    "DigestFrequency",
    "EmailDigest",
    "Notification",
    "NotificationCategory",
    "NotificationPriority",
    "NotificationStatus",
    "NotificationValidationError",
    "QuietHours",
    "RecipientPreferences",
    "TransportError",
    "ensure_utc",
    "utc_now",
]
