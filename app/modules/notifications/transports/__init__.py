"""Channel transports.

Usage:
    from modules.notifications.transports import (
        ChannelTransport,
        InAppInboxTransport,
        WebhookTransport,
    )
"""

from modules.notifications.transports.base import ChannelTransport, TransportResponse
from modules.notifications.transports.in_app import InAppInboxTransport
from modules.notifications.transports.webhook import WebhookTransport, sign_body

__all__ = [
    "ChannelTransport",
    "InAppInboxTransport",
    "TransportResponse",
    "WebhookTransport",
    "sign_body",
]
