"""Notification routing and delivery.

Routing decides whether and where a notification goes, given the
recipient's preferences and the current time. Delivery executes that plan
through channel transports with retry, backoff and an attempt ledger.

Usage:
    from modules.notifications import (
        DeliveryDispatcher,
        DeliveryTracker,
        NotificationRouter,
    )

    decision = NotificationRouter().route(notification, preferences, now)
    if decision.should_deliver:
        results = await dispatcher.deliver_to_channels(
            notification, decision.channels
        )
"""

from modules.notifications.dispatcher import DeliveryDispatcher, DeliveryResult
from modules.notifications.repositories import (
    InMemoryNotificationRepository,
    InMemoryPreferencesRepository,
    NotificationRepository,
    PreferencesRepository,
)
from modules.notifications.routing import NotificationRouter, RoutingDecision
from modules.notifications.service import NotificationService, ProcessingOutcome
from modules.notifications.tracker import (
    ChannelDeliveryStats,
    DeliveryAttempt,
    DeliveryRecord,
    DeliveryStats,
    DeliveryStatus,
    DeliveryTracker,
)

__all__ = [
    "ChannelDeliveryStats",
    "DeliveryAttempt",
    "DeliveryDispatcher",
    "DeliveryRecord",
    "DeliveryResult",
    "DeliveryStats",
    "DeliveryStatus",
    "DeliveryTracker",
    "InMemoryNotificationRepository",
    "InMemoryPreferencesRepository",
    "NotificationRepository",
    "NotificationRouter",
    "NotificationService",
    "PreferencesRepository",
    "ProcessingOutcome",
    "RoutingDecision",
]
