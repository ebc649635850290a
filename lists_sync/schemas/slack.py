"""
lists_sync/schemas/slack.py

Slash command request fields and immediate responses.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class SlashCommand(BaseModel):
    command: str
    text: str = ""
    user_id: str | None = None
    user_name: str | None = None
    channel_id: str | None = None


class SlashCommandResponse(BaseModel):
    response_type: str = Field(default="ephemeral")
    text: str
