"""Notification entity and its enumerations.

A Notification is the unit of work routed and delivered by this module.
Values are immutable: lifecycle transitions (sent, read, failed, archived)
return a new Notification. Routing and delivery share instances across
concurrent tasks without locking.

Key distinctions:
  - Notification(...) rebuilds a stored notification and only checks
    structural invariants (non-empty title/message, consistent lifecycle
    markers, schedule before expiry)
  - Notification.create(...) is used for new notifications and additionally
    requires at least one channel and a schedule strictly in the future
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.notifications.domain.channels import ChannelDescriptor
from modules.notifications.domain.clock import ensure_utc, utc_now
from modules.notifications.domain.errors import NotificationValidationError

MAX_TITLE_LENGTH = 200
MAX_MESSAGE_LENGTH = 1000
MAX_RETRIES = 3


class NotificationPriority(Enum):
    """Notification priority levels.

    URGENT notifications are the only ones delivered during quiet hours,
    and then only through in-app channels.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class NotificationCategory(Enum):
    """Business category used to look up recipient preferences."""

    SYSTEM = "system"
    REPORT = "report"
    USER = "user"
    SECURITY = "security"
    BILLING = "billing"
    MARKETING = "marketing"


class NotificationStatus(Enum):
    """Lifecycle status of a notification."""

    PENDING = "pending"
    SENT = "sent"
    READ = "read"
    FAILED = "failed"
    ARCHIVED = "archived"


class Notification(BaseModel):
    """A notification addressed to one user.

    Attributes:
        id: Unique identifier (generated when omitted)
        user_id: Recipient user id
        organization_id: Tenant the notification belongs to
        title: Short title (1-200 characters, stripped)
        message: Body text (1-1000 characters, stripped)
        category: NotificationCategory used for preference lookup
        priority: NotificationPriority (default: MEDIUM)
        channels: Channels the sender wants to use
        metadata: Free-form context (report id, incident id, ...)
        action_url: Link opened when the user acts on the notification
        image_url: Optional illustration
        scheduled_at: Not deliverable before this instant
        expires_at: Not deliverable after this instant
        created_at: Creation instant
        sent_at / read_at / failed_at / archived_at: Lifecycle markers
        error_message: Last delivery error when status is FAILED
        retry_count: Number of failed delivery rounds
        status: NotificationStatus

    Example:
        notification = Notification.create(
            user_id="user-123",
            title="Report ready",
            message="Your monthly report has been generated",
            category=NotificationCategory.REPORT,
            channels=[ChannelDescriptor.in_app(), ChannelDescriptor.email()],
        )
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    organization_id: Optional[str] = None
    title: str
    message: str
    category: NotificationCategory
    priority: NotificationPriority = NotificationPriority.MEDIUM
    channels: List[ChannelDescriptor] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    action_url: Optional[str] = None
    image_url: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    error_message: Optional[str] = None
    retry_count: int = 0
    status: NotificationStatus = NotificationStatus.PENDING

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("User ID cannot be empty")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Ensure title is present and short enough."""
        if not v or not v.strip():
            raise ValueError("Notification title cannot be empty")
        if len(v.strip()) > MAX_TITLE_LENGTH:
            raise ValueError(
                f"Notification title cannot exceed {MAX_TITLE_LENGTH} characters"
            )
        return v.strip()

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Ensure message is present and short enough."""
        if not v or not v.strip():
            raise ValueError("Notification message cannot be empty")
        if len(v.strip()) > MAX_MESSAGE_LENGTH:
            raise ValueError(
                f"Notification message cannot exceed {MAX_MESSAGE_LENGTH} characters"
            )
        return v.strip()

    @field_validator(
        "scheduled_at",
        "expires_at",
        "created_at",
        "sent_at",
        "read_at",
        "failed_at",
        "archived_at",
    )
    @classmethod
    def normalize_timestamps(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_lifecycle(self) -> "Notification":
        """Check schedule ordering and lifecycle marker consistency."""
        if self.scheduled_at and self.expires_at:
            if self.scheduled_at >= self.expires_at:
                raise ValueError("Scheduled time must be before expiration time")

        # A notification that failed was never delivered, so it cannot be read
        if self.read_at is not None and self.failed_at is not None:
            raise ValueError("Notification cannot be both read and failed")

        required_marker = {
            NotificationStatus.SENT: self.sent_at,
            NotificationStatus.READ: self.read_at,
            NotificationStatus.FAILED: self.failed_at,
            NotificationStatus.ARCHIVED: self.archived_at,
        }
        if self.status in required_marker and required_marker[self.status] is None:
            raise ValueError(
                f"Status {self.status.value} requires its timestamp to be set"
            )
        if self.read_at is not None and self.sent_at is None:
            raise ValueError("Notification cannot be read before it was sent")
        return self

    @classmethod
    def create(
        cls,
        *,
        user_id: str,
        title: str,
        message: str,
        category: NotificationCategory,
        channels: List[ChannelDescriptor],
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        organization_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        action_url: Optional[str] = None,
        image_url: Optional[str] = None,
        scheduled_at: Optional[datetime] = None,
        expires_at: Optional[datetime] = None,
        id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "Notification":
        """Create a new pending notification.

        Args:
            now: Creation instant (defaults to the current UTC time). The
                schedule must be strictly later than this instant.

        Raises:
            NotificationValidationError: No channels, or schedule not in the future
            pydantic.ValidationError: Structural invariants violated
        """
        now = ensure_utc(now) or utc_now()

        if not channels:
            raise NotificationValidationError(
                "channels", "Notification must have at least one channel"
            )
        scheduled_at = ensure_utc(scheduled_at)
        if scheduled_at is not None and scheduled_at <= now:
            raise NotificationValidationError(
                "scheduled_at", "Scheduled time must be in the future"
            )

        fields: Dict[str, Any] = dict(
            user_id=user_id,
            organization_id=organization_id,
            title=title,
            message=message,
            category=category,
            priority=priority,
            channels=list(channels),
            metadata=dict(metadata) if metadata else None,
            action_url=action_url,
            image_url=image_url,
            scheduled_at=scheduled_at,
            expires_at=expires_at,
            created_at=now,
        )
        if id is not None:
            fields["id"] = id
        return cls(**fields)

    def _evolve(self, **changes: Any) -> "Notification":
        """Return a validated copy with ``changes`` applied."""
        return type(self).model_validate({**dict(self), **changes})

    # Lifecycle transitions

    def mark_as_sent(self, at: Optional[datetime] = None) -> "Notification":
        """Record a successful delivery round; clears a previous failure."""
        if self.status == NotificationStatus.ARCHIVED:
            raise NotificationValidationError(
                "status", "Cannot mark archived notification as sent"
            )
        if self.status == NotificationStatus.READ:
            return self
        return self._evolve(
            status=NotificationStatus.SENT,
            sent_at=at or utc_now(),
            failed_at=None,
            error_message=None,
        )

    def mark_as_read(self, at: Optional[datetime] = None) -> "Notification":
        if self.status == NotificationStatus.ARCHIVED:
            raise NotificationValidationError(
                "status", "Cannot mark archived notification as read"
            )
        if self.status == NotificationStatus.READ:
            return self
        if self.status == NotificationStatus.FAILED:
            raise NotificationValidationError(
                "status", "Cannot mark failed notification as read"
            )
        if not self.is_sent():
            raise NotificationValidationError(
                "status", "Cannot mark pending notification as read"
            )
        return self._evolve(status=NotificationStatus.READ, read_at=at or utc_now())

    def mark_as_failed(
        self, error: str, at: Optional[datetime] = None
    ) -> "Notification":
        """Record a failed delivery round and bump ``retry_count``."""
        if self.status == NotificationStatus.ARCHIVED:
            raise NotificationValidationError(
                "status", "Cannot mark archived notification as failed"
            )
        if self.status == NotificationStatus.READ:
            raise NotificationValidationError(
                "status", "Cannot mark read notification as failed"
            )
        return self._evolve(
            status=NotificationStatus.FAILED,
            failed_at=at or utc_now(),
            error_message=error,
            retry_count=self.retry_count + 1,
        )

    def archive(self, at: Optional[datetime] = None) -> "Notification":
        if self.status == NotificationStatus.ARCHIVED:
            return self
        return self._evolve(
            status=NotificationStatus.ARCHIVED, archived_at=at or utc_now()
        )

    def ensure_retryable(self, max_retries: int = MAX_RETRIES) -> None:
        """Raise when the notification already used up its delivery rounds."""
        if self.retry_count >= max_retries:
            raise NotificationValidationError(
                "retry_count", "Maximum retry attempts reached"
            )

    # Scheduling

    def schedule_for(
        self, when: datetime, now: Optional[datetime] = None
    ) -> "Notification":
        now = ensure_utc(now) or utc_now()
        when = ensure_utc(when)
        if when <= now:
            raise NotificationValidationError(
                "scheduled_at", "Scheduled time cannot be in the past"
            )
        if self.is_sent():
            raise NotificationValidationError(
                "scheduled_at", "Cannot reschedule after sending"
            )
        return self._evolve(scheduled_at=when)

    def cancel_schedule(self) -> "Notification":
        if self.is_sent():
            raise NotificationValidationError(
                "scheduled_at", "Cannot cancel schedule after sending"
            )
        return self._evolve(scheduled_at=None)

    # Content updates

    def with_metadata(self, metadata: Dict[str, Any]) -> "Notification":
        """Merge ``metadata`` into the existing metadata."""
        if self.status == NotificationStatus.ARCHIVED:
            raise NotificationValidationError(
                "status", "Cannot update archived notification"
            )
        return self._evolve(metadata={**(self.metadata or {}), **metadata})

    def without_metadata_key(self, key: str) -> "Notification":
        if not self.metadata or key not in self.metadata:
            return self
        remaining = {k: v for k, v in self.metadata.items() if k != key}
        return self._evolve(metadata=remaining)

    def with_priority(self, priority: NotificationPriority) -> "Notification":
        self._ensure_not_sent("priority")
        return self._evolve(priority=priority)

    def with_title(self, title: str) -> "Notification":
        self._ensure_not_sent("title")
        return self._evolve(title=title)

    def with_message(self, message: str) -> "Notification":
        self._ensure_not_sent("message")
        return self._evolve(message=message)

    def _ensure_not_sent(self, field: str) -> None:
        if self.is_sent():
            raise NotificationValidationError(
                field, f"Cannot update {field} after sending"
            )

    # Queries

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and ensure_utc(now) > self.expires_at

    def is_scheduled(self, now: datetime) -> bool:
        """True while the scheduled instant is still in the future."""
        return self.scheduled_at is not None and ensure_utc(now) < self.scheduled_at

    def is_ready(self, now: datetime) -> bool:
        """Deliverable now: schedule passed (if any) and not expired."""
        return not self.is_expired(now) and not self.is_scheduled(now)

    def is_pending(self) -> bool:
        return self.status == NotificationStatus.PENDING

    def is_sent(self) -> bool:
        return self.sent_at is not None

    def is_failed(self) -> bool:
        return self.status == NotificationStatus.FAILED

    def is_read(self) -> bool:
        return self.status == NotificationStatus.READ

    def is_archived(self) -> bool:
        return self.status == NotificationStatus.ARCHIVED

    def enabled_channels(self) -> List[ChannelDescriptor]:
        return [channel for channel in self.channels if channel.enabled]
