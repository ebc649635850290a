"""
lists_sync/schemas/webhook.py

Request and response schemas for the GitHub webhook endpoint.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class PushCommit(BaseModel):
    """
    One commit of a push event; only the touched paths are used.
    """

    id: str | None = None
    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)

    @field_validator("added", "modified", "removed", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class PushRepository(BaseModel):
    full_name: str


class PushHeadCommit(BaseModel):
    id: str


class PushEventPayload(BaseModel):
    """
    Subset of the GitHub push event payload consumed by the webhook adapter.
    """

    ref: str
    after: str | None = None
    repository: PushRepository
    commits: list[PushCommit] = Field(default_factory=list)
    head_commit: PushHeadCommit | None = None


class WebhookAcknowledgement(BaseModel):
    """
    Immediate response sent before background processing starts.
    """

    status: str = "accepted"
    event: str | None = None
    delivery_id: str | None = None
