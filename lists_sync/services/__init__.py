"""
lists_sync/services package marker.
"""

from lists_sync.services.config_resolver import (
    ConfigurationResolver,
    DrMapStore,
    get_configuration_resolver,
    get_dr_map_store,
)
from lists_sync.services.ingestion_pipeline import IngestionPipeline, get_ingestion_pipeline
from lists_sync.services.slack_command_service import SlackCommandService, get_slack_command_service
from lists_sync.services.webhook_service import WebhookService, get_webhook_service

__all__ = [
    "ConfigurationResolver",
    "DrMapStore",
    "get_configuration_resolver",
    "get_dr_map_store",
    "IngestionPipeline",
    "get_ingestion_pipeline",
    "SlackCommandService",
    "get_slack_command_service",
    "WebhookService",
    "get_webhook_service",
]
