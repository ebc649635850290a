"""
lists_sync/api/dependencies.py

Shared FastAPI dependencies for request signature verification.
"""

from __future__ import annotations

import hashlib
import hmac
import logging

from fastapi import Depends, HTTPException, Request, status
from slack_sdk.signature import SignatureVerifier

from lists_sync.config import GitHubSettings, SlackSettings, get_github_settings, get_slack_settings

logger = logging.getLogger(__name__)

GITHUB_SIGNATURE_HEADER = "x-hub-signature-256"
GITHUB_SIGNATURE_PREFIX = "sha256="


def compute_github_signature(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{GITHUB_SIGNATURE_PREFIX}{digest}"


def verify_github_signature(body: bytes, signature_header: str | None, secret: str) -> bool:
    """
    Constant-time check of ``x-hub-signature-256`` against the raw body.
    """

    if not signature_header or not secret:
        return False
    expected = compute_github_signature(body, secret)
    return hmac.compare_digest(expected.encode("utf-8"), signature_header.strip().encode("utf-8"))


async def get_verified_github_body(
    request: Request,
    settings: GitHubSettings = Depends(get_github_settings),
) -> bytes:
    """
    Return the raw webhook body after signature verification, or reject with 401.
    """

    body = await request.body()
    if not verify_github_signature(body, request.headers.get(GITHUB_SIGNATURE_HEADER), settings.webhook_secret):
        logger.error("Invalid webhook signature delivery=%s", request.headers.get("x-github-delivery"))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return body


def get_slack_signature_verifier(
    settings: SlackSettings = Depends(get_slack_settings),
) -> SignatureVerifier:
    return SignatureVerifier(signing_secret=settings.signing_secret)


async def get_verified_slack_body(
    request: Request,
    verifier: SignatureVerifier = Depends(get_slack_signature_verifier),
) -> bytes:
    body = await request.body()
    if not verifier.is_valid_request(body, dict(request.headers)):
        logger.error("Invalid Slack request signature")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return body
