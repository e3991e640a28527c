"""Delivery dispatcher with retry, backoff and attempt tracking.

Executes a routing plan: each routed channel is handed to the transport
registered for its type, every attempt is recorded in the DeliveryTracker,
and failures are returned as DeliveryResult values instead of raised.

Failure classification:
- unsupported channel type: permanent, never retried
- disabled channel: permanent, recorded without calling the transport
- missing transport, transport exception, timeout or success=False: transient

Usage Example:
    dispatcher = DeliveryDispatcher(
        transports={
            ChannelType.IN_APP: InAppInboxTransport(),
            ChannelType.WEBHOOK: WebhookTransport(settings.webhook),
        },
        tracker=DeliveryTracker(),
    )

    result = await dispatcher.deliver_to_channel_with_retry(
        notification, ChannelDescriptor.in_app(), max_attempts=3
    )
    if not result.success:
        logger.warning("delivery_failed", error=result.error)
"""

import asyncio
import time
import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict

from infrastructure.configuration import DeliverySettings
from infrastructure.logging import get_module_logger
from infrastructure.operations import (
    OperationResult,
    OperationStatus,
    classify_transport_error,
)
from infrastructure.resilience import BackoffPolicy
from modules.notifications.domain.channels import ChannelDescriptor, ChannelType
from modules.notifications.domain.clock import Clock, utc_now
from modules.notifications.domain.errors import (
    DeliverySchedulingError,
    NotificationValidationError,
)
from modules.notifications.domain.models import Notification
from modules.notifications.tracker import DeliveryStats, DeliveryStatus, DeliveryTracker
from modules.notifications.transports.base import ChannelTransport, TransportResponse

logger = get_module_logger()

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_TRANSPORT_TIMEOUT_SECONDS = 10.0

Sleep = Callable[[float], Awaitable[Any]]


class DeliveryResult(BaseModel):
    """Outcome of delivering one notification through one channel.

    Attributes:
        success: Whether the channel accepted the notification
        channel: Channel type (the raw value when the type is unsupported)
        status: OperationStatus classifying the outcome
        message_id: Provider message id on success
        error: Failure message
        delivered_at: Delivery instant on success
        failed_at: Failure instant
        attempts: Attempts made by the call that produced this result;
            the lifetime count lives in the tracker (check_delivery_status)
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    channel: ChannelType | str
    status: OperationStatus = OperationStatus.SUCCESS
    message_id: Optional[str] = None
    error: Optional[str] = None
    delivered_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    attempts: int = 0

    @property
    def is_retryable(self) -> bool:
        return not self.success and self.status == OperationStatus.TRANSIENT_ERROR


class DeliveryDispatcher:
    """Delivers notifications through registered channel transports.

    Attributes:
        tracker: DeliveryTracker recording every attempt
        backoff: BackoffPolicy used between retry attempts
        max_attempts: Default attempts for deliver_to_channel_with_retry
        transport_timeout: Seconds allowed for one transport send
    """

    def __init__(
        self,
        transports: Optional[Mapping[ChannelType, ChannelTransport]] = None,
        tracker: Optional[DeliveryTracker] = None,
        backoff: Optional[BackoffPolicy] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        transport_timeout: float = DEFAULT_TRANSPORT_TIMEOUT_SECONDS,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = utc_now,
    ):
        """Initialize the dispatcher.

        Args:
            transports: Transport per channel type
            tracker: Attempt ledger (a private one is created when omitted)
            backoff: Retry backoff policy (defaults: 100ms base, 5s cap, 2% jitter)
            max_attempts: Default attempts per channel when retrying
            transport_timeout: Timeout wrapped around each transport send
            sleep: Awaitable used to wait between attempts
            clock: Source of delivered_at/failed_at timestamps
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._transports: Dict[ChannelType, ChannelTransport] = dict(transports or {})
        self.tracker = tracker or DeliveryTracker(clock=clock)
        self.backoff = backoff or BackoffPolicy()
        self.max_attempts = max_attempts
        self.transport_timeout = transport_timeout
        self._sleep = sleep
        self._clock = clock

        logger.info(
            "initialized_delivery_dispatcher",
            transports=[channel_type.value for channel_type in self._transports],
            max_attempts=max_attempts,
        )

    @classmethod
    def from_settings(
        cls,
        delivery: DeliverySettings,
        transports: Optional[Mapping[ChannelType, ChannelTransport]] = None,
        tracker: Optional[DeliveryTracker] = None,
        **kwargs: Any,
    ) -> "DeliveryDispatcher":
        """Build a dispatcher from DeliverySettings."""
        return cls(
            transports=transports,
            tracker=tracker
            or DeliveryTracker(
                max_attempt_history=delivery.tracker_max_attempts,
                clock=kwargs.get("clock", utc_now),
            ),
            backoff=BackoffPolicy(
                base_delay_ms=delivery.base_delay_ms,
                max_delay_ms=delivery.max_delay_ms,
                jitter_ratio=delivery.jitter_ratio,
            ),
            max_attempts=delivery.max_attempts,
            transport_timeout=delivery.transport_timeout_seconds,
            **kwargs,
        )

    def register_transport(self, transport: ChannelTransport) -> None:
        self._transports[transport.channel_type] = transport

    @property
    def supported_channels(self) -> List[ChannelType]:
        return list(self._transports)

    # Delivery

    async def deliver_to_channel(
        self, notification: Notification, channel: ChannelDescriptor
    ) -> DeliveryResult:
        """Make one delivery attempt through ``channel``.

        Never raises for channel-level failures; they come back as a failed
        DeliveryResult and are recorded in the tracker.
        """
        try:
            channel_type = ChannelType(channel.type)
        except ValueError:
            raw_type = getattr(channel.type, "value", channel.type)
            logger.warning("unsupported_channel_type", channel=str(raw_type))
            return DeliveryResult(
                success=False,
                channel=str(raw_type),
                status=OperationStatus.PERMANENT_ERROR,
                error=f"Unsupported channel type: {raw_type}",
                failed_at=self._clock(),
                attempts=1,
            )

        log = logger.bind(notification_id=notification.id, channel=channel_type.value)

        if not channel.enabled:
            return self._record_failure(
                notification,
                channel_type,
                OperationResult.permanent_error(
                    f"Channel {channel_type.value} is not enabled",
                    error_code="CHANNEL_DISABLED",
                ),
            )

        transport = self._transports.get(channel_type)
        if transport is None:
            log.warning("transport_unavailable")
            return self._record_failure(
                notification,
                channel_type,
                OperationResult.transient_error(
                    f"{channel_type.value} transport unavailable",
                    error_code="TRANSPORT_UNAVAILABLE",
                ),
            )

        payload = self.build_payload(notification, channel)
        started = time.perf_counter()
        try:
            response: TransportResponse = await asyncio.wait_for(
                transport.send(payload), timeout=self.transport_timeout
            )
        except Exception as e:
            elapsed_ms = (time.perf_counter() - started) * 1000
            outcome = classify_transport_error(e)
            log.warning(
                "delivery_attempt_failed",
                error=outcome.message,
                error_code=outcome.error_code,
            )
            return self._record_failure(notification, channel_type, outcome, elapsed_ms)

        elapsed_ms = (time.perf_counter() - started) * 1000
        if not response.success:
            log.warning("delivery_attempt_rejected")
            return self._record_failure(
                notification,
                channel_type,
                OperationResult.transient_error(
                    f"{channel_type.value} transport reported failure",
                    error_code="TRANSPORT_REJECTED",
                ),
                elapsed_ms,
            )

        message_id = response.message_id or f"msg_{uuid.uuid4().hex}"
        self.tracker.record_delivery_attempt(
            notification.id,
            channel_type,
            success=True,
            message_id=message_id,
            delivery_time_ms=elapsed_ms,
        )
        log.info("delivery_attempt_succeeded", message_id=message_id)
        return DeliveryResult(
            success=True,
            channel=channel_type,
            message_id=message_id,
            delivered_at=self._clock(),
            attempts=1,
        )

    def _record_failure(
        self,
        notification: Notification,
        channel_type: ChannelType,
        outcome: OperationResult,
        elapsed_ms: Optional[float] = None,
    ) -> DeliveryResult:
        self.tracker.record_delivery_attempt(
            notification.id,
            channel_type,
            success=False,
            error=outcome.message,
            delivery_time_ms=elapsed_ms,
        )
        return DeliveryResult(
            success=False,
            channel=channel_type,
            status=outcome.status,
            error=outcome.message,
            failed_at=self._clock(),
            attempts=1,
        )

    async def deliver_to_channel_with_retry(
        self,
        notification: Notification,
        channel: ChannelDescriptor,
        max_attempts: Optional[int] = None,
    ) -> DeliveryResult:
        """Deliver with exponential backoff between failed attempts.

        Stops on the first success, on a permanent failure, or when the
        deliveries of the notification were cancelled meanwhile.

        Returns:
            The successful result, or the last failed one. ``attempts`` is
            the number of attempts made by this call.

        Raises:
            DeliverySchedulingError: The wait between attempts could not
                be scheduled
        """
        max_attempts = max_attempts if max_attempts is not None else self.max_attempts
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        # Only cancellations issued during this run stop it
        generation = self._cancel_generation(notification, channel)
        result: Optional[DeliveryResult] = None
        for attempt_index in range(max_attempts):
            if (
                attempt_index > 0
                and self._cancel_generation(notification, channel) != generation
            ):
                logger.info(
                    "delivery_retry_cancelled",
                    notification_id=notification.id,
                    channel=result.channel if result else None,
                )
                break

            result = await self.deliver_to_channel(notification, channel)
            result = result.model_copy(update={"attempts": attempt_index + 1})
            if result.success or result.status == OperationStatus.PERMANENT_ERROR:
                return result

            if attempt_index < max_attempts - 1:
                await self._wait_before_retry(attempt_index, notification, channel)

        logger.warning(
            "delivery_failed_after_retries",
            notification_id=notification.id,
            channel=str(getattr(result.channel, "value", result.channel)),
            attempts=result.attempts,
            error=result.error,
        )
        return result

    def _cancel_generation(
        self, notification: Notification, channel: ChannelDescriptor
    ) -> int:
        if not isinstance(channel.type, ChannelType):
            return 0
        return self.tracker.cancellation_generation(notification.id, channel.type)

    async def _wait_before_retry(
        self,
        attempt_index: int,
        notification: Notification,
        channel: ChannelDescriptor,
    ) -> None:
        try:
            delay = self.backoff.delay_seconds(attempt_index)
            await self._sleep(delay)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                "delivery_retry_schedule_failed",
                notification_id=notification.id,
                error=str(e),
            )
            raise DeliverySchedulingError(
                f"Failed to schedule retry for notification {notification.id}: {e}"
            ) from e

    async def deliver_to_channels(
        self, notification: Notification, channels: Iterable[ChannelDescriptor]
    ) -> List[DeliveryResult]:
        """One attempt per enabled channel, concurrently.

        Disabled channels are skipped. Results follow the input order.
        """
        enabled = [channel for channel in channels if channel.enabled]
        results = await asyncio.gather(
            *(self.deliver_to_channel(notification, channel) for channel in enabled)
        )
        return list(results)

    async def deliver_bulk(
        self,
        notifications: Iterable[Notification],
        channels: Iterable[ChannelDescriptor],
    ) -> List[DeliveryResult]:
        """Deliver many notifications through the same channels.

        Each notification is successful when at least one channel succeeded.
        Attempts are summed across channels and the message id and delivery
        time come from the first successful channel.
        """
        channels = list(channels)
        per_notification = await asyncio.gather(
            *(
                self.deliver_to_channels(notification, channels)
                for notification in notifications
            )
        )
        return [self._aggregate(results) for results in per_notification]

    def _aggregate(self, results: List[DeliveryResult]) -> DeliveryResult:
        first_success = next((r for r in results if r.success), None)
        attempts = sum(r.attempts for r in results)
        if first_success is not None:
            return DeliveryResult(
                success=True,
                channel=first_success.channel,
                message_id=first_success.message_id,
                delivered_at=first_success.delivered_at,
                attempts=attempts,
            )

        last_failure = results[-1] if results else None
        return DeliveryResult(
            success=False,
            channel=results[0].channel if results else ChannelType.IN_APP,
            status=(
                last_failure.status if last_failure else OperationStatus.PERMANENT_ERROR
            ),
            error=last_failure.error if last_failure else "No enabled channels",
            failed_at=self._clock(),
            attempts=attempts,
        )

    # Payloads

    def build_payload(
        self, notification: Notification, channel: ChannelDescriptor
    ) -> Dict[str, Any]:
        """Channel-specific payload handed to the transport."""
        config = channel.config or {}
        channel_type = ChannelType(channel.type)

        if channel_type == ChannelType.EMAIL:
            return {
                "to": config.get("to") or notification.user_id,
                "subject": notification.title,
                "body": notification.message,
            }
        if channel_type == ChannelType.PUSH:
            return {
                "user_id": notification.user_id,
                "title": notification.title,
                "body": notification.message,
            }
        if channel_type == ChannelType.SMS:
            return {
                "to": config.get("to") or notification.user_id,
                "message": f"{notification.title}: {notification.message}",
            }
        if channel_type == ChannelType.IN_APP:
            return {
                "user_id": notification.user_id,
                "notification": notification.model_dump(mode="json"),
            }
        return {
            "url": config.get("url"),
            "method": config.get("method", "POST"),
            "headers": dict(config.get("headers") or {}),
            "body": notification.model_dump(mode="json"),
        }

    # Tracker delegation

    def check_delivery_status(
        self, notification_id: str, channel: ChannelType
    ) -> Optional[DeliveryStatus]:
        return self.tracker.get_delivery_status(notification_id, channel)

    def get_delivery_stats(
        self,
        start: datetime,
        end: datetime,
        channel: Optional[ChannelType] = None,
    ) -> DeliveryStats:
        return self.tracker.get_delivery_stats(start, end, channel)

    def cancel_pending_deliveries(
        self,
        notification_id: str,
        channels: Optional[Iterable[ChannelType]] = None,
    ) -> int:
        """Cancel undelivered records of a notification.

        Raises:
            NotificationValidationError: Nothing was pending
        """
        cancelled = self.tracker.cancel_pending_deliveries(notification_id, channels)
        if cancelled == 0:
            raise NotificationValidationError(
                "notification_id",
                f"No pending deliveries found for notification {notification_id}",
            )
        return cancelled

    def health_check(self) -> Dict[ChannelType, OperationResult]:
        """Health of every registered transport."""
        health: Dict[ChannelType, OperationResult] = {}
        for channel_type, transport in self._transports.items():
            try:
                health[channel_type] = transport.health_check()
            except Exception as e:
                logger.error(
                    "transport_health_check_failed",
                    channel=channel_type.value,
                    error=str(e),
                )
                health[channel_type] = OperationResult.transient_error(
                    str(e), error_code="HEALTH_CHECK_FAILED"
                )
        return health
