"""Persistence boundaries for notifications and recipient preferences.

The routing and delivery core never talks to storage itself. The service
facade reads preferences and writes notifications through these protocols;
production deployments plug in a database-backed implementation, tests and
single-process setups use the in-memory ones below.
"""

import threading
from typing import Dict, List, Optional, Protocol

from modules.notifications.domain.models import Notification, NotificationStatus
from modules.notifications.domain.preferences import RecipientPreferences


class PreferencesRepository(Protocol):
    """Storage interface for recipient preferences.

    Methods:
        find_by_user_id: Preferences of a user, or None if never saved
        save: Insert or replace the preferences of a user
        delete: Remove the preferences of a user
    """

    def find_by_user_id(self, user_id: str) -> Optional[RecipientPreferences]:
        ...

    def save(self, preferences: RecipientPreferences) -> None:
        ...

    def delete(self, user_id: str) -> bool:
        ...


class NotificationRepository(Protocol):
    """Storage interface for notifications.

    Methods:
        save: Insert or replace a notification
        find_by_id: Notification by id, or None
        find_by_user_id: Notifications of a user, newest first
    """

    def save(self, notification: Notification) -> None:
        ...

    def find_by_id(self, notification_id: str) -> Optional[Notification]:
        ...

    def find_by_user_id(
        self,
        user_id: str,
        status: Optional[NotificationStatus] = None,
        limit: Optional[int] = None,
    ) -> List[Notification]:
        ...


class InMemoryPreferencesRepository:
    """Thread-safe in-memory PreferencesRepository."""

    def __init__(self) -> None:
        self._store: Dict[str, RecipientPreferences] = {}
        self._lock = threading.Lock()

    def find_by_user_id(self, user_id: str) -> Optional[RecipientPreferences]:
        with self._lock:
            return self._store.get(user_id)

    def save(self, preferences: RecipientPreferences) -> None:
        with self._lock:
            self._store[preferences.user_id] = preferences

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self._store.pop(user_id, None) is not None


class InMemoryNotificationRepository:
    """Thread-safe in-memory NotificationRepository."""

    def __init__(self) -> None:
        self._store: Dict[str, Notification] = {}
        self._lock = threading.Lock()

    def save(self, notification: Notification) -> None:
        with self._lock:
            self._store[notification.id] = notification

    def find_by_id(self, notification_id: str) -> Optional[Notification]:
        with self._lock:
            return self._store.get(notification_id)

    def find_by_user_id(
        self,
        user_id: str,
        status: Optional[NotificationStatus] = None,
        limit: Optional[int] = None,
    ) -> List[Notification]:
        with self._lock:
            matches = [
                n
                for n in self._store.values()
                if n.user_id == user_id and (status is None or n.status == status)
            ]
        matches.sort(key=lambda n: n.created_at, reverse=True)
        return matches[:limit] if limit is not None else matches

    def count_unread(self, user_id: str) -> int:
        return sum(
            1
            for n in self.find_by_user_id(user_id)
            if n.status == NotificationStatus.SENT
        )
