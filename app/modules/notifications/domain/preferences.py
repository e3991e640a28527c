"""Recipient preference values.

RecipientPreferences aggregate what a user allows: a global toggle, per
category channel allow-lists, an optional quiet-hours window and email
digest settings, plus locale and timezone. Like notifications they are
immutable; every ``update_*`` method returns a new value.
"""

import re
from datetime import datetime, time, timedelta, timezone
from enum import Enum
from typing import FrozenSet, List, Optional

import pytz
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.notifications.domain.channels import ChannelType
from modules.notifications.domain.clock import ensure_utc
from modules.notifications.domain.models import NotificationCategory

TIME_OF_DAY_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")
LANGUAGE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")


def _validate_time_of_day(value: str) -> str:
    if not TIME_OF_DAY_PATTERN.match(value or ""):
        raise ValueError(f"Invalid time format (expected HH:mm): {value}")
    return value


def _validate_timezone(value: str) -> str:
    try:
        pytz.timezone(value)
    except pytz.UnknownTimeZoneError as e:
        raise ValueError(f"Unknown timezone: {value}") from e
    return value


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class DigestFrequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    NEVER = "never"


class CategoryPreference(BaseModel):
    """Channel allow-list for one notification category."""

    model_config = ConfigDict(frozen=True)

    category: NotificationCategory
    enabled: bool = True
    channels: FrozenSet[ChannelType] = Field(default_factory=frozenset)

    @model_validator(mode="after")
    def validate_channels(self) -> "CategoryPreference":
        if self.enabled and not self.channels:
            raise ValueError(
                f"Enabled category {self.category.value} must have at least one channel"
            )
        return self


class QuietHours(BaseModel):
    """Daily window during which only urgent in-app delivery is allowed.

    The window is half-open: ``start`` is inside, ``end`` is outside. When
    ``end`` is earlier than ``start`` the window wraps midnight. Equal
    ``start`` and ``end`` describe an empty window.

    Attributes:
        start: Window start, "HH:mm" 24h
        end: Window end, "HH:mm" 24h
        timezone: IANA zone the times are expressed in; when omitted the
            owning preferences' timezone applies
    """

    model_config = ConfigDict(frozen=True)

    start: str
    end: str
    timezone: Optional[str] = None

    @field_validator("start", "end")
    @classmethod
    def validate_time_of_day(cls, v: str) -> str:
        return _validate_time_of_day(v)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        return _validate_timezone(v) if v is not None else None

    @property
    def start_minutes(self) -> int:
        return _minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return _minutes(self.end)

    @property
    def wraps_midnight(self) -> bool:
        return self.start_minutes > self.end_minutes

    def contains(self, now: datetime, default_timezone: str = "UTC") -> bool:
        """Whether ``now`` falls inside the window in its local timezone.

        The start minute is inside the window and the end minute is not, so
        the window is over exactly at ``end_after(now)``.
        """
        local = ensure_utc(now).astimezone(self._zone(default_timezone))
        current = local.hour * 60 + local.minute
        if self.wraps_midnight:
            return current >= self.start_minutes or current < self.end_minutes
        return self.start_minutes <= current < self.end_minutes

    def end_after(self, now: datetime, default_timezone: str = "UTC") -> datetime:
        """UTC instant at which the window containing ``now`` closes.

        For a window wrapping midnight that is entered before midnight the
        end falls on the following local day.
        """
        zone = self._zone(default_timezone)
        local = ensure_utc(now).astimezone(zone)
        current = local.hour * 60 + local.minute
        end_date = local.date()
        if self.wraps_midnight and current >= self.start_minutes:
            end_date += timedelta(days=1)
        end_hour, end_minute = divmod(self.end_minutes, 60)
        end_local = zone.localize(
            datetime.combine(end_date, time(end_hour, end_minute))
        )
        return zone.normalize(end_local).astimezone(timezone.utc)

    def _zone(self, default_timezone: str):
        return pytz.timezone(self.timezone or default_timezone)


class EmailDigest(BaseModel):
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    frequency: DigestFrequency = DigestFrequency.DAILY
    time: str = "09:00"

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_time_of_day(v)


class RecipientPreferences(BaseModel):
    """Delivery preferences of one user.

    A category without an explicit CategoryPreference is enabled and uses
    ``default_channels``. Only an explicit ``enabled=False`` entry disables
    a category.

    Attributes:
        user_id: Owner of the preferences
        global_enabled: Master switch for all notifications
        category_preferences: Per-category overrides (unique categories)
        default_channels: Channels for categories without an override
        quiet_hours: Optional QuietHours window
        email_digest: Optional EmailDigest settings
        language: ISO 639-1 code with optional region ("en", "fr-CA")
        timezone: IANA timezone of the user
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    global_enabled: bool = True
    category_preferences: List[CategoryPreference] = Field(default_factory=list)
    default_channels: List[ChannelType] = Field(
        default_factory=lambda: [ChannelType.IN_APP]
    )
    quiet_hours: Optional[QuietHours] = None
    email_digest: Optional[EmailDigest] = None
    language: str = "en"
    timezone: str = "UTC"

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("User ID cannot be empty")
        return v

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        if not LANGUAGE_PATTERN.match(v or ""):
            raise ValueError(f"Invalid language code: {v}")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        return _validate_timezone(v)

    @model_validator(mode="after")
    def validate_unique_categories(self) -> "RecipientPreferences":
        seen = set()
        for preference in self.category_preferences:
            if preference.category in seen:
                raise ValueError(
                    f"Duplicate category preference: {preference.category.value}"
                )
            seen.add(preference.category)
        return self

    @classmethod
    def create_default(
        cls,
        user_id: str,
        default_channels: Optional[List[ChannelType]] = None,
        language: str = "en",
        timezone: str = "UTC",
    ) -> "RecipientPreferences":
        """Preferences used when a user never saved any: global on, in-app only."""
        return cls(
            user_id=user_id,
            default_channels=list(default_channels or [ChannelType.IN_APP]),
            language=language,
            timezone=timezone,
        )

    def _evolve(self, **changes) -> "RecipientPreferences":
        return type(self).model_validate({**dict(self), **changes})

    # Transformations

    def update_category_preference(
        self,
        category: NotificationCategory,
        enabled: bool,
        channels: List[ChannelType],
    ) -> "RecipientPreferences":
        """Replace (or add) the override for ``category``."""
        updated = CategoryPreference(
            category=category, enabled=enabled, channels=frozenset(channels)
        )
        others = [p for p in self.category_preferences if p.category != category]
        return self._evolve(category_preferences=others + [updated])

    def enable_global(self) -> "RecipientPreferences":
        return self._evolve(global_enabled=True)

    def disable_global(self) -> "RecipientPreferences":
        return self._evolve(global_enabled=False)

    def update_quiet_hours(
        self, start: str, end: str, timezone: Optional[str] = None
    ) -> "RecipientPreferences":
        return self._evolve(
            quiet_hours=QuietHours(start=start, end=end, timezone=timezone)
        )

    def remove_quiet_hours(self) -> "RecipientPreferences":
        return self._evolve(quiet_hours=None)

    def update_email_digest(
        self,
        enabled: bool,
        frequency: DigestFrequency = DigestFrequency.DAILY,
        time: str = "09:00",
    ) -> "RecipientPreferences":
        return self._evolve(
            email_digest=EmailDigest(enabled=enabled, frequency=frequency, time=time)
        )

    def update_language(self, language: str) -> "RecipientPreferences":
        return self._evolve(language=language)

    def update_timezone(self, timezone: str) -> "RecipientPreferences":
        return self._evolve(timezone=timezone)

    # Queries

    def category_preference(
        self, category: NotificationCategory
    ) -> Optional[CategoryPreference]:
        for preference in self.category_preferences:
            if preference.category == category:
                return preference
        return None

    def is_category_enabled(self, category: NotificationCategory) -> bool:
        preference = self.category_preference(category)
        return preference is None or preference.enabled

    def channels_for_category(self, category: NotificationCategory) -> List[ChannelType]:
        """Allowed channels for ``category``, in ChannelType declaration order."""
        preference = self.category_preference(category)
        if preference is None:
            return list(self.default_channels)
        return [channel for channel in ChannelType if channel in preference.channels]

    def is_channel_enabled_for_category(
        self, channel: ChannelType, category: NotificationCategory
    ) -> bool:
        if not self.global_enabled or not self.is_category_enabled(category):
            return False
        return channel in self.channels_for_category(category)

    def is_in_quiet_hours(self, now: datetime) -> bool:
        if self.quiet_hours is None:
            return False
        return self.quiet_hours.contains(now, default_timezone=self.timezone)

    def quiet_hours_end_after(self, now: datetime) -> Optional[datetime]:
        """End of the quiet-hours window containing ``now``, or None outside one."""
        if not self.is_in_quiet_hours(now):
            return None
        return self.quiet_hours.end_after(now, default_timezone=self.timezone)
