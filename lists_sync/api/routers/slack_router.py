"""
Slack slash command endpoint.
"""

from __future__ import annotations

from urllib.parse import parse_qs

from fastapi import APIRouter, BackgroundTasks, Depends

from lists_sync.api.dependencies import get_verified_slack_body
from lists_sync.schemas.slack import SlashCommand, SlashCommandResponse
from lists_sync.services.reload_runner import FastAPIBackgroundTaskExecutor
from lists_sync.services.slack_command_service import SlackCommandService, get_slack_command_service

router = APIRouter(tags=["slack"])


def _parse_slash_command(body: bytes) -> SlashCommand:
    fields = {key: values[0] for key, values in parse_qs(body.decode("utf-8")).items() if values}
    return SlashCommand(
        command=fields.get("command", ""),
        text=fields.get("text", ""),
        user_id=fields.get("user_id"),
        user_name=fields.get("user_name"),
        channel_id=fields.get("channel_id"),
    )


@router.post("/slack/events", response_model=SlashCommandResponse)
def receive_slash_command(
    background_tasks: BackgroundTasks,
    body: bytes = Depends(get_verified_slack_body),
    service: SlackCommandService = Depends(get_slack_command_service),
) -> SlashCommandResponse:
    return service.dispatch(_parse_slash_command(body), FastAPIBackgroundTaskExecutor(background_tasks))
