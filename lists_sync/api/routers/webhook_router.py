"""
GitHub webhook endpoint.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, status
from pydantic import ValidationError

from lists_sync.api.dependencies import get_verified_github_body
from lists_sync.domain.push_event import PushEvent
from lists_sync.schemas.webhook import PushEventPayload, WebhookAcknowledgement
from lists_sync.services.reload_runner import FastAPIBackgroundTaskExecutor
from lists_sync.services.webhook_service import WebhookService, get_webhook_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["webhook"])


@router.post("/webhook", response_model=WebhookAcknowledgement)
def receive_webhook(
    background_tasks: BackgroundTasks,
    body: bytes = Depends(get_verified_github_body),
    x_github_event: str | None = Header(default=None),
    x_github_delivery: str | None = Header(default=None),
    service: WebhookService = Depends(get_webhook_service),
) -> WebhookAcknowledgement:
    try:
        payload = json.loads(body)
    except ValueError as exc:
        logger.error("Malformed webhook body delivery=%s error=%s", x_github_delivery, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request") from exc

    acknowledgement = WebhookAcknowledgement(event=x_github_event, delivery_id=x_github_delivery)
    if x_github_event != "push":
        logger.info("Ignoring webhook event=%s delivery=%s", x_github_event, x_github_delivery)
        return acknowledgement

    try:
        push_payload = PushEventPayload.model_validate(payload)
    except ValidationError as exc:
        logger.error("Invalid push payload delivery=%s error=%s", x_github_delivery, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request") from exc

    executor = FastAPIBackgroundTaskExecutor(background_tasks)
    executor.submit(service.handle_push, PushEvent.from_payload(push_payload))
    return acknowledgement
