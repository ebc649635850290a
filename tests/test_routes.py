"""
tests/test_routes.py

HTTP contract tests for /webhook, /slack/events and /health.

The lifespan is not entered, so no initial drs.json load happens.
Startup behaviour is covered in test_startup.py.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from collections.abc import Iterator
from urllib.parse import urlencode

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lists_sync.api.dependencies import compute_github_signature, verify_github_signature
from lists_sync.config import get_github_settings, get_slack_settings
from lists_sync.domain.push_event import PushEvent
from lists_sync.main import create_app
from lists_sync.schemas.slack import SlashCommand, SlashCommandResponse
from lists_sync.services.slack_command_service import get_slack_command_service
from lists_sync.services.webhook_service import get_webhook_service

PUSH_PAYLOAD = {
    "ref": "refs/heads/main",
    "after": "after-sha",
    "repository": {"full_name": "example-org/lists-data"},
    "head_commit": {"id": "head-sha"},
    "commits": [{"id": "c1", "added": ["imported_GoogleSheets/Foo/1.csv"], "modified": [], "removed": []}],
}


class RecordingWebhookService:
    def __init__(self) -> None:
        self.pushes: list[PushEvent] = []

    def handle_push(self, push: PushEvent) -> None:
        self.pushes.append(push)


class RecordingCommandService:
    def __init__(self) -> None:
        self.commands: list[SlashCommand] = []

    def dispatch(self, command: SlashCommand, executor) -> SlashCommandResponse:
        self.commands.append(command)
        return SlashCommandResponse(text=f"ok {command.command}")


@pytest.fixture()
def webhook_service() -> RecordingWebhookService:
    return RecordingWebhookService()


@pytest.fixture()
def command_service() -> RecordingCommandService:
    return RecordingCommandService()


@pytest.fixture()
def app(webhook_service, command_service) -> Iterator[FastAPI]:
    application = create_app()
    application.dependency_overrides[get_webhook_service] = lambda: webhook_service
    application.dependency_overrides[get_slack_command_service] = lambda: command_service
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def _github_headers(body: bytes, event: str = "push", signature: str | None = None) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "X-GitHub-Event": event,
        "X-GitHub-Delivery": "delivery-1",
        "X-Hub-Signature-256": signature
        if signature is not None
        else compute_github_signature(body, get_github_settings().webhook_secret),
    }


def _slack_headers(body: bytes, secret: str | None = None, timestamp: int | None = None) -> dict[str, str]:
    ts = str(timestamp if timestamp is not None else int(time.time()))
    secret = secret or get_slack_settings().signing_secret
    base = f"v0:{ts}:{body.decode('utf-8')}".encode("utf-8")
    signature = "v0=" + hmac.new(secret.encode("utf-8"), base, hashlib.sha256).hexdigest()
    return {
        "Content-Type": "application/x-www-form-urlencoded",
        "X-Slack-Request-Timestamp": ts,
        "X-Slack-Signature": signature,
    }


class TestGitHubSignature:
    def test_accepts_matching_signature(self) -> None:
        body = b'{"zen": "Keep it simple."}'
        assert verify_github_signature(body, compute_github_signature(body, "s3cret"), "s3cret")

    def test_rejects_tampered_body_and_missing_header(self) -> None:
        signature = compute_github_signature(b"original", "s3cret")
        assert not verify_github_signature(b"tampered", signature, "s3cret")
        assert not verify_github_signature(b"original", None, "s3cret")


class TestWebhookRoute:
    def test_valid_push_is_acknowledged_and_processed(self, client, webhook_service) -> None:
        body = json.dumps(PUSH_PAYLOAD).encode("utf-8")

        response = client.post("/webhook", content=body, headers=_github_headers(body))

        assert response.status_code == 200
        assert response.json() == {"status": "accepted", "event": "push", "delivery_id": "delivery-1"}
        assert len(webhook_service.pushes) == 1
        push = webhook_service.pushes[0]
        assert push.branch == "main"
        assert push.head_sha == "head-sha"
        assert push.added == ["imported_GoogleSheets/Foo/1.csv"]

    def test_bad_signature_is_rejected_without_work(self, client, webhook_service) -> None:
        body = json.dumps(PUSH_PAYLOAD).encode("utf-8")

        response = client.post("/webhook", content=body, headers=_github_headers(body, signature="sha256=deadbeef"))

        assert response.status_code == 401
        assert webhook_service.pushes == []

    def test_missing_signature_is_rejected(self, client, webhook_service) -> None:
        body = json.dumps(PUSH_PAYLOAD).encode("utf-8")
        headers = _github_headers(body)
        headers.pop("X-Hub-Signature-256")

        assert client.post("/webhook", content=body, headers=headers).status_code == 401

    def test_malformed_json_is_bad_request(self, client, webhook_service) -> None:
        body = b"{not json"

        response = client.post("/webhook", content=body, headers=_github_headers(body))

        assert response.status_code == 400
        assert webhook_service.pushes == []

    def test_ping_event_is_ignored(self, client, webhook_service) -> None:
        body = json.dumps({"zen": "Design for failure."}).encode("utf-8")

        response = client.post("/webhook", content=body, headers=_github_headers(body, event="ping"))

        assert response.status_code == 200
        assert response.json()["event"] == "ping"
        assert webhook_service.pushes == []

    def test_push_without_repository_is_bad_request(self, client, webhook_service) -> None:
        body = json.dumps({"ref": "refs/heads/main"}).encode("utf-8")

        response = client.post("/webhook", content=body, headers=_github_headers(body))

        assert response.status_code == 400
        assert webhook_service.pushes == []


class TestSlackRoute:
    def test_signed_command_is_dispatched(self, client, command_service) -> None:
        body = urlencode({"command": "/reload", "text": "Foo", "user_name": "operator"}).encode("utf-8")

        response = client.post("/slack/events", content=body, headers=_slack_headers(body))

        assert response.status_code == 200
        assert response.json() == {"response_type": "ephemeral", "text": "ok /reload"}
        assert command_service.commands[0].text == "Foo"
        assert command_service.commands[0].user_name == "operator"

    def test_bad_signature_is_rejected(self, client, command_service) -> None:
        body = urlencode({"command": "/reload", "text": "Foo"}).encode("utf-8")

        response = client.post("/slack/events", content=body, headers=_slack_headers(body, secret="wrong"))

        assert response.status_code == 401
        assert command_service.commands == []

    def test_stale_timestamp_is_rejected(self, client, command_service) -> None:
        body = urlencode({"command": "/clean", "text": "1.1"}).encode("utf-8")

        response = client.post(
            "/slack/events",
            content=body,
            headers=_slack_headers(body, timestamp=int(time.time()) - 3600),
        )

        assert response.status_code == 401


class TestHealthRoute:
    def test_reports_service_and_environment(self, client) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        payload = response.json()
        assert payload["status"] == "healthy"
        assert payload["service"] == "lists-sync"
        assert payload["lists_environment"] == "test"
        assert set(payload["list_counts"]) == {"prod", "test"}
        assert payload["timestamp"]
