"""
lists_sync/api/routers package marker.
"""

from lists_sync.api.routers.slack_router import router as slack_router
from lists_sync.api.routers.webhook_router import router as webhook_router

__all__ = [
    "slack_router",
    "webhook_router",
]
