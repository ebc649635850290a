"""
lists_sync/schemas package marker.
"""

from lists_sync.schemas.health import HealthResponse
from lists_sync.schemas.slack import SlashCommand, SlashCommandResponse
from lists_sync.schemas.webhook import PushEventPayload, WebhookAcknowledgement

__all__ = [
    "HealthResponse",
    "SlashCommand",
    "SlashCommandResponse",
    "PushEventPayload",
    "WebhookAcknowledgement",
]
