"""In-app inbox transport.

Keeps delivered notifications in a per-user, in-process inbox that the UI
layer reads from. No external service is involved, which is why in-app is
the channel kept open during quiet hours.
"""

import threading
import uuid
from typing import Any, Dict, List

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from modules.notifications.domain.channels import ChannelType
from modules.notifications.domain.errors import TransportError
from modules.notifications.transports.base import ChannelTransport, TransportResponse

logger = get_module_logger()


class InAppInboxTransport(ChannelTransport):
    """Per-user inbox held in memory.

    Attributes:
        max_inbox_size: Entries kept per user, oldest dropped first
    """

    def __init__(self, max_inbox_size: int = 500) -> None:
        self.max_inbox_size = max_inbox_size
        self._inboxes: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.IN_APP

    async def send(self, payload: Dict[str, Any]) -> TransportResponse:
        user_id = payload.get("user_id")
        if not user_id:
            raise TransportError("In-app payload has no user_id", retryable=False)

        message_id = f"inapp_{uuid.uuid4().hex}"
        entry = {"message_id": message_id, "notification": payload.get("notification")}
        with self._lock:
            inbox = self._inboxes.setdefault(user_id, [])
            inbox.append(entry)
            if len(inbox) > self.max_inbox_size:
                del inbox[: len(inbox) - self.max_inbox_size]

        logger.debug("in_app_notification_stored", user_id=user_id, message_id=message_id)
        return TransportResponse(success=True, message_id=message_id)

    def inbox(self, user_id: str) -> List[Dict[str, Any]]:
        """Entries delivered to ``user_id``, oldest first."""
        with self._lock:
            return list(self._inboxes.get(user_id, []))

    def clear(self, user_id: str) -> int:
        with self._lock:
            return len(self._inboxes.pop(user_id, []))

    def health_check(self) -> OperationResult:
        with self._lock:
            users = len(self._inboxes)
        return OperationResult.success(
            data={"users": users}, message="In-app inbox available"
        )
