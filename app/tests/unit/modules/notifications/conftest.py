"""Test fixtures for the notifications module."""

from datetime import datetime, timedelta
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from infrastructure.operations import OperationResult
from infrastructure.resilience import BackoffPolicy
from modules.notifications.dispatcher import DeliveryDispatcher
from modules.notifications.domain import ChannelType
from modules.notifications.routing import NotificationRouter
from modules.notifications.tracker import DeliveryTracker
from modules.notifications.transports import ChannelTransport, TransportResponse
from tests.factories.notifications import (
    FIXED_NOW,
    make_category_preference,
    make_channel,
    make_notification,
    make_preferences,
)


class FakeClock:
    """Callable clock returning a controllable instant."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: Any) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def notification_factory():
    """Factory for creating Notification instances.

    Example:
        notification = notification_factory(priority=NotificationPriority.URGENT)
    """
    return make_notification


@pytest.fixture
def preferences_factory():
    """Factory for creating RecipientPreferences instances."""
    return make_preferences


@pytest.fixture
def category_preference_factory():
    return make_category_preference


@pytest.fixture
def channel_factory():
    return make_channel


@pytest.fixture
def router():
    return NotificationRouter()


@pytest.fixture
def tracker(clock):
    return DeliveryTracker(clock=clock)


@pytest.fixture
def recorded_sleep():
    """AsyncMock standing in for asyncio.sleep; records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def no_jitter_backoff():
    return BackoffPolicy(random_source=lambda: 0.0)


@pytest.fixture
def mock_transport_factory():
    """Factory for mock channel transports.

    Returns:
        Factory creating a MagicMock(spec=ChannelTransport) whose ``send`` is
        an AsyncMock. Pass ``side_effect`` for failures or sequences.

    Example:
        flaky = mock_transport_factory(
            ChannelType.EMAIL,
            side_effect=[RuntimeError("down"), TransportResponse(success=True)],
        )
    """

    def _factory(
        channel_type: ChannelType = ChannelType.IN_APP,
        message_id: Optional[str] = "msg-123",
        side_effect: Any = None,
    ) -> MagicMock:
        transport = MagicMock(spec=ChannelTransport)
        transport.channel_type = channel_type
        transport.send = AsyncMock(
            return_value=TransportResponse(success=True, message_id=message_id),
            side_effect=side_effect,
        )
        transport.health_check.return_value = OperationResult.success(
            message=f"{channel_type.value} ok"
        )
        return transport

    return _factory


@pytest.fixture
def dispatcher_factory(tracker, recorded_sleep, no_jitter_backoff, clock):
    """Factory for DeliveryDispatcher wired with test doubles.

    Example:
        dispatcher = dispatcher_factory({ChannelType.IN_APP: transport})
    """

    def _factory(transports=None, **kwargs: Any) -> DeliveryDispatcher:
        options = dict(
            tracker=tracker,
            backoff=no_jitter_backoff,
            sleep=recorded_sleep,
            clock=clock,
        )
        options.update(kwargs)
        return DeliveryDispatcher(transports=transports or {}, **options)

    return _factory
