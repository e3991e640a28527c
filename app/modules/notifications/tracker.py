"""Delivery attempt ledger.

The DeliveryTracker keeps one DeliveryRecord per ``(notification_id,
channel)`` pair with the ordered history of attempts made through that
channel. It is the only shared mutable state of the delivery path:

- the record map is guarded by one lock
- each record is mutated under its own lock, so attempts on the same key
  are serialized while different keys proceed independently
- a record lock may be held while taking the map lock, never the reverse

Records are never expired automatically; call ``clear_old_records`` to
sweep them.
"""

import threading
from collections import deque
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Deque, Dict, Iterable, List, Optional, Tuple

from infrastructure.logging import get_module_logger
from modules.notifications.domain.channels import ChannelType
from modules.notifications.domain.clock import Clock, ensure_utc, utc_now

logger = get_module_logger()

DEFAULT_MAX_ATTEMPT_HISTORY = 100
CANCELLED_ERROR = "Cancelled"

RecordKey = Tuple[str, ChannelType]


@dataclass(frozen=True)
class DeliveryAttempt:
    """One try of sending a notification through one channel.

    Fields:
        attempted_at: When the attempt finished
        success: Whether the transport accepted the notification
        error: Failure message (None on success)
        retry_count: Number of attempts recorded before this one
        delivery_time_ms: Transport latency, when measured
        message_id: Provider message id on success
    """

    attempted_at: datetime
    success: bool
    retry_count: int
    error: Optional[str] = None
    delivery_time_ms: Optional[float] = None
    message_id: Optional[str] = None


@dataclass
class DeliveryRecord:
    """Delivery state of one notification on one channel.

    ``attempts`` holds at most the configured history size (oldest entries
    dropped first) while ``total_attempts`` counts every recorded attempt.
    ``delivered``, ``delivered_at`` and ``message_id`` describe the latest
    successful attempt; ``error`` describes the latest failure and is
    cleared by a later success.
    """

    notification_id: str
    channel: ChannelType
    created_at: datetime
    updated_at: datetime
    attempts: Deque[DeliveryAttempt] = field(default_factory=deque)
    total_attempts: int = 0
    delivered: bool = False
    delivered_at: Optional[datetime] = None
    message_id: Optional[str] = None
    error: Optional[str] = None
    cancelled: bool = False
    cancel_generation: int = 0

    @property
    def last_attempt(self) -> Optional[DeliveryAttempt]:
        return self.attempts[-1] if self.attempts else None

    @property
    def is_pending(self) -> bool:
        return not self.delivered and not self.cancelled

    def snapshot(self) -> "DeliveryRecord":
        """Copy safe to hand out while the tracker keeps mutating the record."""
        return replace(self, attempts=deque(self.attempts, maxlen=self.attempts.maxlen))


@dataclass(frozen=True)
class DeliveryStatus:
    """Point-in-time view of one DeliveryRecord."""

    delivered: bool
    attempts: int
    delivered_at: Optional[datetime] = None
    last_attempt: Optional[DeliveryAttempt] = None
    error: Optional[str] = None
    message_id: Optional[str] = None
    cancelled: bool = False


@dataclass
class ChannelDeliveryStats:
    total: int = 0
    successful: int = 0
    failed: int = 0
    average_delivery_time_ms: float = 0.0

    @property
    def delivery_rate(self) -> float:
        return self.successful / self.total if self.total else 0.0


@dataclass
class DeliveryStats:
    """Aggregate delivery statistics over a time window.

    Fields:
        total_deliveries: Records created in the window
        successful_deliveries: Records delivered
        failed_deliveries: Undelivered records carrying an error
        average_delivery_time_ms: Mean of all measured attempt latencies
        delivery_rate: successful / total (0.0 when empty)
        by_channel: Same figures per channel, scoped to the window
    """

    total_deliveries: int = 0
    successful_deliveries: int = 0
    failed_deliveries: int = 0
    average_delivery_time_ms: float = 0.0
    delivery_rate: float = 0.0
    by_channel: Dict[ChannelType, ChannelDeliveryStats] = field(default_factory=dict)


class _LatencyAccumulator:
    def __init__(self) -> None:
        self.total = 0.0
        self.count = 0

    def add(self, attempts: Iterable[DeliveryAttempt]) -> None:
        for attempt in attempts:
            if attempt.delivery_time_ms is not None:
                self.total += attempt.delivery_time_ms
                self.count += 1

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


class DeliveryTracker:
    """Thread-safe in-memory ledger of delivery attempts.

    Construct one per process (or per test) and inject it into the
    dispatcher; there is no module-level instance.

    Attributes:
        max_attempt_history: Attempts kept per record
    """

    def __init__(
        self,
        max_attempt_history: int = DEFAULT_MAX_ATTEMPT_HISTORY,
        clock: Clock = utc_now,
    ) -> None:
        if max_attempt_history < 1:
            raise ValueError("max_attempt_history must be >= 1")
        self.max_attempt_history = max_attempt_history
        self._clock = clock
        self._records: Dict[str, Dict[ChannelType, DeliveryRecord]] = {}
        self._record_locks: Dict[RecordKey, threading.Lock] = {}
        self._lock = threading.Lock()

    def _get_or_create(
        self, notification_id: str, channel: ChannelType
    ) -> Tuple[DeliveryRecord, threading.Lock]:
        with self._lock:
            by_channel = self._records.setdefault(notification_id, {})
            record = by_channel.get(channel)
            if record is None:
                now = self._clock()
                record = DeliveryRecord(
                    notification_id=notification_id,
                    channel=channel,
                    created_at=now,
                    updated_at=now,
                    attempts=deque(maxlen=self.max_attempt_history),
                )
                by_channel[channel] = record
            key = (notification_id, channel)
            record_lock = self._record_locks.setdefault(key, threading.Lock())
            return record, record_lock

    def _find(
        self, notification_id: str, channel: ChannelType
    ) -> Tuple[Optional[DeliveryRecord], Optional[threading.Lock]]:
        with self._lock:
            record = self._records.get(notification_id, {}).get(channel)
            if record is None:
                return None, None
            return record, self._record_locks[(notification_id, channel)]

    def _is_tracked(self, record: DeliveryRecord) -> bool:
        with self._lock:
            by_channel = self._records.get(record.notification_id, {})
            return by_channel.get(record.channel) is record

    def _remove(self, record: DeliveryRecord) -> bool:
        """Unlink ``record`` from the map. Caller holds the map lock."""
        by_channel = self._records.get(record.notification_id)
        if by_channel is None or by_channel.get(record.channel) is not record:
            return False
        del by_channel[record.channel]
        self._record_locks.pop((record.notification_id, record.channel), None)
        if not by_channel:
            del self._records[record.notification_id]
        return True

    def _all_records(self) -> List[Tuple[DeliveryRecord, threading.Lock]]:
        with self._lock:
            return [
                (record, self._record_locks[(record.notification_id, record.channel)])
                for by_channel in self._records.values()
                for record in by_channel.values()
            ]

    def record_delivery_attempt(
        self,
        notification_id: str,
        channel: ChannelType,
        success: bool,
        message_id: Optional[str] = None,
        error: Optional[str] = None,
        delivery_time_ms: Optional[float] = None,
    ) -> DeliveryAttempt:
        """Append an attempt to the record for ``(notification_id, channel)``.

        Creates the record on first use, or again when a sweep removed it
        while this call waited for the record lock. Returns the appended
        attempt.
        """
        while True:
            record, record_lock = self._get_or_create(notification_id, channel)
            record_lock.acquire()
            if self._is_tracked(record):
                break
            record_lock.release()

        try:
            now = self._clock()
            attempt = DeliveryAttempt(
                attempted_at=now,
                success=success,
                retry_count=record.total_attempts,
                error=None if success else error,
                delivery_time_ms=delivery_time_ms,
                message_id=message_id if success else None,
            )
            record.attempts.append(attempt)
            record.total_attempts += 1
            record.updated_at = now

            if success:
                record.delivered = True
                record.delivered_at = now
                record.message_id = message_id
                record.error = None
                record.cancelled = False
            else:
                record.error = error
        finally:
            record_lock.release()

        return attempt

    def get_delivery_status(
        self, notification_id: str, channel: ChannelType
    ) -> Optional[DeliveryStatus]:
        """Status of one record, or None when nothing was attempted."""
        record, record_lock = self._find(notification_id, channel)
        if record is None:
            return None

        with record_lock:
            return DeliveryStatus(
                delivered=record.delivered,
                attempts=record.total_attempts,
                delivered_at=record.delivered_at,
                last_attempt=record.last_attempt,
                error=record.error,
                message_id=record.message_id,
                cancelled=record.cancelled,
            )

    def get_notification_deliveries(self, notification_id: str) -> List[DeliveryRecord]:
        """Snapshots of every record of a notification."""
        with self._lock:
            pairs = [
                (record, self._record_locks[(notification_id, channel)])
                for channel, record in self._records.get(notification_id, {}).items()
            ]

        snapshots = []
        for record, record_lock in pairs:
            with record_lock:
                snapshots.append(record.snapshot())
        return snapshots

    def has_pending_deliveries(self, notification_id: str) -> bool:
        return any(
            record.is_pending
            for record in self.get_notification_deliveries(notification_id)
        )

    def is_cancelled(self, notification_id: str, channel: ChannelType) -> bool:
        record, record_lock = self._find(notification_id, channel)
        if record is None:
            return False
        with record_lock:
            return record.cancelled

    def cancellation_generation(
        self, notification_id: str, channel: ChannelType
    ) -> int:
        """Number of times the record was cancelled (0 when untracked).

        Compare two readings to detect a cancellation issued in between.
        """
        record, record_lock = self._find(notification_id, channel)
        if record is None:
            return 0
        with record_lock:
            return record.cancel_generation

    def cancel_pending_deliveries(
        self,
        notification_id: str,
        channels: Optional[Iterable[ChannelType]] = None,
    ) -> int:
        """Mark undelivered records as cancelled.

        Args:
            notification_id: Notification whose deliveries to cancel
            channels: Restrict cancellation to these channels (default: all)

        Returns:
            Number of records cancelled by this call
        """
        wanted = set(channels) if channels is not None else None
        with self._lock:
            pairs = [
                (record, self._record_locks[(notification_id, channel)])
                for channel, record in self._records.get(notification_id, {}).items()
                if wanted is None or channel in wanted
            ]

        cancelled = 0
        for record, record_lock in pairs:
            with record_lock:
                if not record.is_pending:
                    continue
                record.cancelled = True
                record.cancel_generation += 1
                record.error = CANCELLED_ERROR
                record.updated_at = self._clock()
                cancelled += 1

        if cancelled:
            logger.info(
                "pending_deliveries_cancelled",
                notification_id=notification_id,
                count=cancelled,
            )
        return cancelled

    def get_delivery_stats(
        self,
        start: datetime,
        end: datetime,
        channel: Optional[ChannelType] = None,
    ) -> DeliveryStats:
        """Aggregate records whose ``created_at`` lies within ``[start, end]``."""
        start, end = ensure_utc(start), ensure_utc(end)
        stats = DeliveryStats()
        overall = _LatencyAccumulator()
        per_channel: Dict[ChannelType, _LatencyAccumulator] = {}

        for record, record_lock in self._all_records():
            with record_lock:
                if channel is not None and record.channel != channel:
                    continue
                if record.created_at < start or record.created_at > end:
                    continue

                channel_stats = stats.by_channel.setdefault(
                    record.channel, ChannelDeliveryStats()
                )
                stats.total_deliveries += 1
                channel_stats.total += 1
                if record.delivered:
                    stats.successful_deliveries += 1
                    channel_stats.successful += 1
                elif record.error:
                    stats.failed_deliveries += 1
                    channel_stats.failed += 1

                overall.add(record.attempts)
                per_channel.setdefault(record.channel, _LatencyAccumulator()).add(
                    record.attempts
                )

        stats.average_delivery_time_ms = overall.mean
        if stats.total_deliveries:
            stats.delivery_rate = stats.successful_deliveries / stats.total_deliveries
        for channel_type, accumulator in per_channel.items():
            stats.by_channel[channel_type].average_delivery_time_ms = accumulator.mean
        return stats

    def clear_old_records(self, older_than: datetime) -> int:
        """Drop records created before ``older_than``. Returns how many."""
        older_than = ensure_utc(older_than)
        cleared = 0
        # Record lock before map lock, the order record_delivery_attempt uses
        for record, record_lock in self._all_records():
            with record_lock:
                if record.created_at >= older_than:
                    continue
                with self._lock:
                    if self._remove(record):
                        cleared += 1

        logger.debug("delivery_records_cleared", count=cleared)
        return cleared

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._record_locks.clear()

    def total_tracked_notifications(self) -> int:
        with self._lock:
            return len(self._records)

    def total_delivery_records(self) -> int:
        with self._lock:
            return sum(len(by_channel) for by_channel in self._records.values())
