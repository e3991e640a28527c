"""Channel transport abstract base class.

A transport is the provider-facing edge of one channel type (an email API,
a push gateway, an SMS provider, the in-app inbox, outbound webhooks). The
dispatcher only relies on the contract below, never on provider request or
response shapes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from infrastructure.operations import OperationResult
from modules.notifications.domain.channels import ChannelType


class TransportResponse(BaseModel):
    """What a transport reports back for one send.

    Attributes:
        success: Whether the provider accepted the payload
        message_id: Provider message id, when the provider returns one
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    message_id: Optional[str] = None


class ChannelTransport(ABC):
    """Abstract base class for channel transports.

    Payload shapes built by the dispatcher:
    - email: {"to", "subject", "body"}
    - push: {"user_id", "title", "body"}
    - sms: {"to", "message"}
    - in_app: {"user_id", "notification"}
    - webhook: {"url", "method", "headers", "body"}

    ``send`` may raise; the exception message ends up verbatim in the
    DeliveryResult error. Raise TransportError(retryable=False) for
    failures that repeating the same payload cannot fix.

    Example Implementation:
        class PushTransport(ChannelTransport):

            @property
            def channel_type(self) -> ChannelType:
                return ChannelType.PUSH

            async def send(self, payload):
                receipt = await self._gateway.push(payload["user_id"], payload["body"])
                return TransportResponse(success=True, message_id=receipt.id)

            def health_check(self):
                return OperationResult.success(message="push gateway reachable")
    """

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Channel type served by this transport."""
        pass

    @abstractmethod
    async def send(self, payload: Dict[str, Any]) -> TransportResponse:
        """Send one payload to the provider.

        Args:
            payload: Channel-specific payload (see class docstring)

        Returns:
            TransportResponse with success flag and optional message id

        Raises:
            TransportError: Provider rejected or could not be reached
        """
        pass

    @abstractmethod
    def health_check(self) -> OperationResult:
        """Check provider reachability and credentials.

        Returns:
            OperationResult indicating transport health
        """
        pass
