"""Gitea webhook ingestion and fan-out."""

from hookrelay.webhooks.decoder import DecodeError, decode
from hookrelay.webhooks.dispatcher import DeliveryOutcome, DeliveryStatus, Dispatcher
from hookrelay.webhooks.formatters import format_event
from hookrelay.webhooks.models import EventType, RenderedNotification, WebhookEvent
from hookrelay.webhooks.server import WebhookServer
from hookrelay.webhooks.tokens import expected_token, verify_token

__all__ = [
    "DecodeError",
    "DeliveryOutcome",
    "DeliveryStatus",
    "Dispatcher",
    "EventType",
    "RenderedNotification",
    "WebhookEvent",
    "WebhookServer",
    "decode",
    "expected_token",
    "format_event",
    "verify_token",
]
