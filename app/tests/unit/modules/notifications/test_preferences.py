"""Unit tests for RecipientPreferences and related values."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from modules.notifications.domain import (
    CategoryPreference,
    ChannelType,
    DigestFrequency,
    EmailDigest,
    NotificationCategory,
    QuietHours,
    RecipientPreferences,
)


@pytest.mark.unit
class TestPreferenceValidation:
    def test_enabled_category_requires_channels(self):
        with pytest.raises(ValidationError, match="at least one channel"):
            CategoryPreference(category=NotificationCategory.REPORT, channels=[])

    def test_disabled_category_may_have_no_channels(self):
        preference = CategoryPreference(
            category=NotificationCategory.REPORT, enabled=False
        )

        assert preference.channels == frozenset()

    def test_duplicate_categories_rejected(self, category_preference_factory):
        with pytest.raises(ValidationError, match="Duplicate category"):
            RecipientPreferences(
                user_id="user-123",
                category_preferences=[
                    category_preference_factory(),
                    category_preference_factory(channels=[ChannelType.SMS]),
                ],
            )

    @pytest.mark.parametrize("value", ["24:00", "7:30", "12:60", "noon", ""])
    def test_quiet_hours_time_format(self, value):
        with pytest.raises(ValidationError, match="HH:mm"):
            QuietHours(start=value, end="08:00")

    def test_digest_time_format(self):
        with pytest.raises(ValidationError):
            EmailDigest(enabled=True, time="9am")

    def test_unknown_timezone_rejected(self, preferences_factory):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            preferences_factory(timezone="Mars/Olympus_Mons")

    def test_unknown_quiet_hours_timezone_rejected(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            QuietHours(start="22:00", end="08:00", timezone="Nowhere/City")

    @pytest.mark.parametrize("language", ["en", "fr", "fr-CA"])
    def test_valid_languages(self, preferences_factory, language):
        assert preferences_factory(language=language).language == language

    @pytest.mark.parametrize("language", ["english", "EN", "fr-ca", "f"])
    def test_invalid_languages(self, preferences_factory, language):
        with pytest.raises(ValidationError, match="language"):
            preferences_factory(language=language)


@pytest.mark.unit
class TestPreferenceDefaults:
    def test_create_default(self):
        preferences = RecipientPreferences.create_default("user-123")

        assert preferences.global_enabled is True
        assert preferences.default_channels == [ChannelType.IN_APP]
        assert preferences.category_preferences == []
        assert preferences.quiet_hours is None
        assert preferences.timezone == "UTC"

    def test_create_default_with_channels(self):
        preferences = RecipientPreferences.create_default(
            "user-123", default_channels=[ChannelType.IN_APP, ChannelType.EMAIL]
        )

        assert preferences.default_channels == [ChannelType.IN_APP, ChannelType.EMAIL]


@pytest.mark.unit
class TestPreferenceTransformations:
    def test_update_category_preference_adds(self, preferences_factory):
        preferences = preferences_factory()

        updated = preferences.update_category_preference(
            NotificationCategory.BILLING, True, [ChannelType.EMAIL]
        )

        assert updated.channels_for_category(NotificationCategory.BILLING) == [
            ChannelType.EMAIL
        ]
        assert preferences.category_preference(NotificationCategory.BILLING) is None

    def test_update_category_preference_replaces(self, preferences_factory):
        updated = preferences_factory().update_category_preference(
            NotificationCategory.REPORT, False, []
        )

        assert len(updated.category_preferences) == 1
        assert updated.is_category_enabled(NotificationCategory.REPORT) is False

    def test_global_toggle(self, preferences_factory):
        disabled = preferences_factory().disable_global()

        assert disabled.global_enabled is False
        assert disabled.enable_global().global_enabled is True

    def test_quiet_hours_update_and_remove(self, preferences_factory):
        updated = preferences_factory().update_quiet_hours("22:00", "07:00")

        assert updated.quiet_hours == QuietHours(start="22:00", end="07:00")
        assert updated.remove_quiet_hours().quiet_hours is None

    def test_update_quiet_hours_validates(self, preferences_factory):
        with pytest.raises(ValidationError):
            preferences_factory().update_quiet_hours("25:00", "07:00")

    def test_update_email_digest(self, preferences_factory):
        updated = preferences_factory().update_email_digest(
            True, DigestFrequency.WEEKLY, "08:30"
        )

        assert updated.email_digest == EmailDigest(
            enabled=True, frequency=DigestFrequency.WEEKLY, time="08:30"
        )

    def test_update_language_and_timezone(self, preferences_factory):
        updated = preferences_factory().update_language("fr-CA").update_timezone(
            "America/Montreal"
        )

        assert updated.language == "fr-CA"
        assert updated.timezone == "America/Montreal"

    def test_update_timezone_validates(self, preferences_factory):
        with pytest.raises(ValidationError):
            preferences_factory().update_timezone("Not/AZone")


@pytest.mark.unit
class TestPreferenceQueries:
    def test_category_absent_is_enabled(self, preferences_factory):
        assert preferences_factory().is_category_enabled(
            NotificationCategory.MARKETING
        ) is True

    def test_channels_for_category_in_declaration_order(
        self, preferences_factory, category_preference_factory
    ):
        preferences = preferences_factory(
            category_preferences=[
                category_preference_factory(
                    channels=[ChannelType.WEBHOOK, ChannelType.EMAIL, ChannelType.IN_APP]
                )
            ]
        )

        assert preferences.channels_for_category(NotificationCategory.REPORT) == [
            ChannelType.IN_APP,
            ChannelType.EMAIL,
            ChannelType.WEBHOOK,
        ]

    def test_is_channel_enabled_for_category(
        self, preferences_factory, category_preference_factory
    ):
        preferences = preferences_factory(
            category_preferences=[
                category_preference_factory(channels=[ChannelType.EMAIL]),
                category_preference_factory(
                    category=NotificationCategory.MARKETING, enabled=False
                ),
            ]
        )

        assert preferences.is_channel_enabled_for_category(
            ChannelType.EMAIL, NotificationCategory.REPORT
        )
        assert not preferences.is_channel_enabled_for_category(
            ChannelType.IN_APP, NotificationCategory.REPORT
        )
        assert not preferences.is_channel_enabled_for_category(
            ChannelType.EMAIL, NotificationCategory.MARKETING
        )
        assert preferences.is_channel_enabled_for_category(
            ChannelType.IN_APP, NotificationCategory.SYSTEM
        )
        assert not preferences.disable_global().is_channel_enabled_for_category(
            ChannelType.EMAIL, NotificationCategory.REPORT
        )

    def test_no_quiet_hours(self, preferences_factory, now):
        preferences = preferences_factory()

        assert preferences.is_in_quiet_hours(now) is False
        assert preferences.quiet_hours_end_after(now) is None


@pytest.mark.unit
class TestQuietHours:
    @pytest.mark.parametrize(
        "hour,minute,expected",
        [
            (21, 59, False),
            (22, 0, True),
            (23, 59, True),
            (0, 0, True),
            (7, 59, True),
            (8, 0, False),
            (12, 0, False),
        ],
    )
    def test_wrapping_window_boundaries(self, hour, minute, expected):
        window = QuietHours(start="22:00", end="08:00")
        instant = datetime(2024, 1, 15, hour, minute, tzinfo=timezone.utc)

        assert window.contains(instant) is expected

    @pytest.mark.parametrize(
        "hour,minute,expected",
        [(10, 59, False), (11, 0, True), (13, 29, True), (13, 30, False)],
    )
    def test_same_day_window_boundaries(self, hour, minute, expected):
        window = QuietHours(start="11:00", end="13:30")
        instant = datetime(2024, 1, 15, hour, minute, tzinfo=timezone.utc)

        assert window.contains(instant) is expected

    @pytest.mark.parametrize(
        "start,end,instant,expected_end",
        [
            # 23:00 EST, window closes 08:00 EST next day
            (
                "22:00",
                "08:00",
                datetime(2024, 1, 16, 4, 0, tzinfo=timezone.utc),
                datetime(2024, 1, 16, 13, 0, tzinfo=timezone.utc),
            ),
            # 12:00 EST, window closes 13:30 EST
            (
                "11:00",
                "13:30",
                datetime(2024, 1, 15, 17, 0, tzinfo=timezone.utc),
                datetime(2024, 1, 15, 18, 30, tzinfo=timezone.utc),
            ),
        ],
    )
    def test_window_is_over_at_its_end(self, start, end, instant, expected_end):
        window = QuietHours(start=start, end=end, timezone="America/Toronto")

        end_at = window.end_after(instant)

        assert end_at == expected_end
        assert window.contains(instant) is True
        assert window.contains(end_at - timedelta(minutes=1)) is True
        assert window.contains(end_at) is False

    def test_equal_start_and_end_is_empty(self):
        window = QuietHours(start="09:00", end="09:00")

        assert window.contains(datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)) is False

    def test_window_timezone_overrides_default(self):
        window = QuietHours(start="22:00", end="08:00", timezone="Asia/Tokyo")
        # 23:00 in Tokyo (UTC+9), 14:00 UTC
        instant = datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc)

        assert window.contains(instant, default_timezone="UTC") is True

    def test_end_after_crosses_dst_change(self):
        window = QuietHours(start="22:00", end="08:00", timezone="America/Toronto")
        # 23:00 EST on 2024-03-09; DST starts on 2024-03-10 at 02:00
        instant = datetime(2024, 3, 10, 4, 0, tzinfo=timezone.utc)

        # 08:00 EDT (UTC-4) on 2024-03-10
        assert window.end_after(instant) == datetime(
            2024, 3, 10, 12, 0, tzinfo=timezone.utc
        )
