"""
lists_sync/schemas/health.py

Response schema for the health endpoint.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: datetime
    service: str = "lists-sync"
    lists_environment: str
    list_counts: dict[str, int] = Field(default_factory=dict)
