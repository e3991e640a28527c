"""Test factories for the notifications module.

Factory functions for creating notifications, channels and recipient
preferences with sensible defaults. All factories return Pydantic models.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from modules.notifications.domain import (
    CategoryPreference,
    ChannelDescriptor,
    ChannelType,
    Notification,
    NotificationCategory,
    NotificationPriority,
    QuietHours,
    RecipientPreferences,
)

# Monday 2024-01-15 12:00 UTC
FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_channel(
    channel_type: ChannelType = ChannelType.IN_APP,
    enabled: bool = True,
    config: Optional[Dict[str, Any]] = None,
) -> ChannelDescriptor:
    """Create a test ChannelDescriptor.

    Example:
        >>> make_channel(ChannelType.EMAIL, config={"to": "alice@example.com"})
    """
    return ChannelDescriptor(type=channel_type, enabled=enabled, config=config)


def make_notification(
    user_id: str = "user-123",
    title: str = "Report ready",
    message: str = "Your monthly report has been generated",
    category: NotificationCategory = NotificationCategory.REPORT,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    channels: Optional[List[ChannelDescriptor]] = None,
    organization_id: Optional[str] = "org-1",
    scheduled_at: Optional[datetime] = None,
    expires_at: Optional[datetime] = None,
    created_at: Optional[datetime] = None,
    **kwargs: Any,
) -> Notification:
    """Create a pending test Notification.

    Built through the constructor so schedules and expiries relative to
    FIXED_NOW can be expressed freely. Channels default to in-app + email.

    Example:
        >>> make_notification(
        ...     priority=NotificationPriority.URGENT,
        ...     channels=[make_channel(ChannelType.IN_APP)],
        ... )
    """
    if channels is None:
        channels = [make_channel(ChannelType.IN_APP), make_channel(ChannelType.EMAIL)]
    return Notification(
        user_id=user_id,
        title=title,
        message=message,
        category=category,
        priority=priority,
        channels=channels,
        organization_id=organization_id,
        scheduled_at=scheduled_at,
        expires_at=expires_at,
        created_at=created_at or FIXED_NOW - timedelta(hours=1),
        **kwargs,
    )


def make_category_preference(
    category: NotificationCategory = NotificationCategory.REPORT,
    enabled: bool = True,
    channels: Optional[List[ChannelType]] = None,
) -> CategoryPreference:
    if channels is None:
        channels = [ChannelType.IN_APP, ChannelType.EMAIL] if enabled else []
    return CategoryPreference(
        category=category, enabled=enabled, channels=frozenset(channels)
    )


def make_preferences(
    user_id: str = "user-123",
    global_enabled: bool = True,
    category_preferences: Optional[List[CategoryPreference]] = None,
    default_channels: Optional[List[ChannelType]] = None,
    quiet_hours: Optional[QuietHours] = None,
    timezone: str = "UTC",
    language: str = "en",
) -> RecipientPreferences:
    """Create test RecipientPreferences.

    Defaults allow REPORT on in-app + email and fall back to in-app only.

    Example:
        >>> make_preferences(
        ...     quiet_hours=QuietHours(start="22:00", end="08:00"),
        ...     timezone="America/Toronto",
        ... )
    """
    if category_preferences is None:
        category_preferences = [make_category_preference()]
    return RecipientPreferences(
        user_id=user_id,
        global_enabled=global_enabled,
        category_preferences=category_preferences,
        default_channels=default_channels or [ChannelType.IN_APP],
        quiet_hours=quiet_hours,
        timezone=timezone,
        language=language,
    )
