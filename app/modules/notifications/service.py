"""Notification processing service.

Ties the pieces together for one notification: load the recipient's
preferences, route, deliver every routed channel with retry, then record
the outcome on the notification and persist it.

Usage:
    from infrastructure.configuration import settings
    from modules.notifications import NotificationService

    service = NotificationService(
        settings,
        preferences_repository=InMemoryPreferencesRepository(),
        notification_repository=InMemoryNotificationRepository(),
    )
    outcome = await service.process(notification)
    if not outcome.decision.should_deliver:
        logger.info("notification_withheld", reason=outcome.decision.reason)
"""

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, List, Mapping, Optional

from infrastructure.logging import bind_delivery_context, get_module_logger
from modules.notifications.dispatcher import DeliveryDispatcher, DeliveryResult
from modules.notifications.domain.channels import ChannelType
from modules.notifications.domain.clock import Clock, utc_now
from modules.notifications.domain.errors import NotificationValidationError
from modules.notifications.domain.models import Notification, NotificationStatus
from modules.notifications.domain.preferences import RecipientPreferences
from modules.notifications.repositories import (
    NotificationRepository,
    PreferencesRepository,
)
from modules.notifications.routing import NotificationRouter, RoutingDecision
from modules.notifications.transports import (
    ChannelTransport,
    InAppInboxTransport,
    WebhookTransport,
)

if TYPE_CHECKING:
    from infrastructure.configuration import Settings

logger = get_module_logger()

UNPROCESSABLE_STATUSES = (NotificationStatus.READ, NotificationStatus.ARCHIVED)


@dataclass(frozen=True)
class ProcessingOutcome:
    """Result of processing one notification.

    Attributes:
        notification: Notification after delivery (sent/failed), or the
            input unchanged when routing withheld it
        decision: RoutingDecision that drove the delivery
        results: One DeliveryResult per routed channel
    """

    notification: Notification
    decision: RoutingDecision
    results: List[DeliveryResult] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return any(result.success for result in self.results)


class NotificationService:
    """Routes and delivers notifications for their recipients.

    Preferences come from the repository; users without stored preferences
    get defaults built from ``settings.notifications``. Delivery uses the
    given dispatcher or one built from ``settings.delivery`` with in-app and
    webhook transports.
    """

    def __init__(
        self,
        settings: "Settings",
        preferences_repository: PreferencesRepository,
        notification_repository: Optional[NotificationRepository] = None,
        dispatcher: Optional[DeliveryDispatcher] = None,
        router: Optional[NotificationRouter] = None,
        transports: Optional[Mapping[ChannelType, ChannelTransport]] = None,
        clock: Clock = utc_now,
    ):
        self.settings = settings
        self.preferences_repository = preferences_repository
        self.notification_repository = notification_repository
        self.router = router or NotificationRouter()
        self._clock = clock

        if dispatcher is None:
            if transports is None:
                transports = {
                    ChannelType.IN_APP: InAppInboxTransport(),
                    ChannelType.WEBHOOK: WebhookTransport(settings.webhook),
                }
            dispatcher = DeliveryDispatcher.from_settings(
                settings.delivery, transports=transports, clock=clock
            )
        self.dispatcher = dispatcher

    def preferences_for(self, user_id: str) -> RecipientPreferences:
        """Stored preferences of ``user_id``, or the configured defaults."""
        preferences = self.preferences_repository.find_by_user_id(user_id)
        if preferences is not None:
            return preferences

        defaults = self.settings.notifications
        logger.debug("default_preferences_substituted", user_id=user_id)
        return RecipientPreferences.create_default(
            user_id,
            default_channels=[ChannelType(c) for c in defaults.default_channels],
            language=defaults.default_language,
            timezone=defaults.default_timezone,
        )

    async def process(self, notification: Notification) -> ProcessingOutcome:
        """Route and deliver one notification.

        Raises:
            NotificationValidationError: The notification was already read
                or archived
            DeliverySchedulingError: A channel could not schedule its retry.
                Raised once every other channel has finished.
        """
        if notification.status in UNPROCESSABLE_STATUSES:
            raise NotificationValidationError(
                "status",
                f"Cannot process {notification.status.value} notification",
            )

        with bind_delivery_context(
            notification_id=notification.id,
            user_id=notification.user_id,
            organization_id=notification.organization_id,
        ):
            preferences = self.preferences_for(notification.user_id)
            decision = self.router.route(notification, preferences, self._clock())
            logger.info(
                "notification_routed",
                should_deliver=decision.should_deliver,
                channels=[c.value for c in decision.channel_types],
                reason=decision.reason,
                delay_until=decision.delay_until,
            )

            if not decision.should_deliver:
                return ProcessingOutcome(notification=notification, decision=decision)

            outcomes = await asyncio.gather(
                *(
                    self.dispatcher.deliver_to_channel_with_retry(notification, channel)
                    for channel in decision.channels
                ),
                return_exceptions=True,
            )
            # Every channel has settled before a failure is re-raised
            failures = [o for o in outcomes if isinstance(o, BaseException)]
            if failures:
                logger.error(
                    "notification_delivery_aborted",
                    error=str(failures[0]),
                    failed_channels=len(failures),
                )
                raise failures[0]
            results: List[DeliveryResult] = list(outcomes)
            updated = self._apply_results(notification, results)

            if self.notification_repository is not None:
                self.notification_repository.save(updated)

            logger.info(
                "notification_processed",
                status=updated.status.value,
                delivered_channels=sum(1 for r in results if r.success),
                failed_channels=sum(1 for r in results if not r.success),
            )
            return ProcessingOutcome(
                notification=updated, decision=decision, results=results
            )

    def _apply_results(
        self, notification: Notification, results: List[DeliveryResult]
    ) -> Notification:
        now = self._clock()
        if any(result.success for result in results):
            return notification.mark_as_sent(at=now)

        errors = [result.error for result in results if result.error]
        return notification.mark_as_failed(
            "; ".join(errors) or "Delivery failed", at=now
        )

    async def process_many(
        self, notifications: Iterable[Notification]
    ) -> List[ProcessingOutcome]:
        """Process notifications concurrently; outcomes follow input order."""
        return list(
            await asyncio.gather(*(self.process(n) for n in notifications))
        )
