"""Outbound webhook transport.

Posts the notification to a recipient-configured URL with ``requests``.
The blocking call runs in a worker thread via ``asyncio.to_thread`` so the
event loop keeps serving other deliveries.

When a signing secret is configured every request carries an
``X-Signature`` header: the hex HMAC-SHA256 of the exact body bytes.
"""

import asyncio
import hashlib
import hmac
import json
from typing import Any, Dict, Optional

import requests

from infrastructure.configuration import WebhookSettings
from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult
from modules.notifications.domain.channels import ChannelType
from modules.notifications.domain.errors import TransportError
from modules.notifications.transports.base import ChannelTransport, TransportResponse

logger = get_module_logger()

SIGNATURE_HEADER = "X-Signature"
MESSAGE_ID_HEADERS = ("X-Message-Id", "X-Request-Id")

# Client errors worth retrying: request timeout and rate limiting
RETRYABLE_CLIENT_STATUSES = {408, 429}


def sign_body(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 signature of ``body``."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


class WebhookTransport(ChannelTransport):
    """HTTP webhook transport.

    Attributes:
        timeout: Request timeout in seconds
        signing_secret: Secret for the X-Signature header (None disables signing)

    Example:
        transport = WebhookTransport(settings.webhook)
        response = await transport.send(
            {
                "url": "https://example.com/hooks/notifications",
                "method": "POST",
                "headers": {},
                "body": {"id": "n-1", "title": "Report ready"},
            }
        )
    """

    def __init__(
        self,
        webhook_settings: Optional[WebhookSettings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        webhook_settings = webhook_settings or WebhookSettings()
        self.timeout = webhook_settings.WEBHOOK_TIMEOUT_SECONDS
        self.signing_secret = webhook_settings.WEBHOOK_SIGNING_SECRET
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": webhook_settings.WEBHOOK_USER_AGENT,
                "Content-Type": "application/json",
            }
        )

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.WEBHOOK

    async def send(self, payload: Dict[str, Any]) -> TransportResponse:
        url = payload.get("url")
        if not url:
            raise TransportError("Webhook URL is required", retryable=False)

        method = str(payload.get("method") or "POST").upper()
        body = json.dumps(payload.get("body", {}), default=str).encode("utf-8")
        headers = dict(payload.get("headers") or {})
        if self.signing_secret:
            headers[SIGNATURE_HEADER] = sign_body(self.signing_secret, body)

        response = await asyncio.to_thread(self._request, method, url, body, headers)
        return self._handle_response(response, url)

    def _request(
        self, method: str, url: str, body: bytes, headers: Dict[str, str]
    ) -> requests.Response:
        try:
            return self._session.request(
                method, url, data=body, headers=headers, timeout=self.timeout
            )
        except requests.Timeout as e:
            logger.warning("webhook_timeout", url=url, timeout=self.timeout)
            raise TransportError("Request timeout") from e
        except requests.RequestException as e:
            logger.warning("webhook_request_error", url=url, error=str(e))
            raise TransportError(f"Webhook request failed: {e}") from e

    def _handle_response(self, response: requests.Response, url: str) -> TransportResponse:
        status = response.status_code
        if 200 <= status < 300:
            message_id = next(
                (response.headers.get(h) for h in MESSAGE_ID_HEADERS if response.headers.get(h)),
                None,
            )
            logger.info("webhook_delivered", url=url, status=status)
            return TransportResponse(success=True, message_id=message_id)

        retryable = status >= 500 or status in RETRYABLE_CLIENT_STATUSES
        logger.warning("webhook_rejected", url=url, status=status, retryable=retryable)
        raise TransportError(
            f"Webhook responded with status {status}",
            retryable=retryable,
            status_code=status,
        )

    def health_check(self) -> OperationResult:
        # Endpoints are per recipient, so there is no single URL to probe
        return OperationResult.success(
            data={"signed": bool(self.signing_secret)},
            message="Webhook transport configured",
        )
