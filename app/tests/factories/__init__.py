"""Test data factories for deterministic test data generation."""

from tests.factories.notifications import (
    FIXED_NOW,
    make_category_preference,
    make_channel,
    make_notification,
    make_preferences,
)

__all__ = [
    "FIXED_NOW",
    "make_category_preference",
    "make_channel",
    "make_notification",
    "make_preferences",
]
