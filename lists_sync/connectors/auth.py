"""
lists_sync/connectors/auth.py

Client-credentials token cache for the Lists API.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

import requests

from lists_sync.config import (
    ExternalHTTPSettings,
    ListsAPISettings,
    get_external_http_settings,
    get_lists_api_settings,
)
from lists_sync.connectors.base import BaseConnector
from lists_sync.errors import AuthError, ConnectorRequestError

logger = logging.getLogger(__name__)

REFRESH_MARGIN_SECONDS = 5 * 60


@dataclass(frozen=True)
class CachedToken:
    access_token: str
    expires_at: float


class TokenCache(BaseConnector):
    """
    Holds one bearer token per process and refreshes it before expiry.

    The cached token is replaced by a single assignment. Refreshes are
    serialised so that callers racing on an expired token fetch it once.
    """

    def __init__(
        self,
        *,
        settings: ListsAPISettings,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(source="lists_auth", http_settings=http_settings, session=session)
        self._settings = settings
        self._clock = clock
        self._cached: CachedToken | None = None
        self._refresh_lock = threading.Lock()

    def get_access_token(self) -> str:
        cached = self._valid_cached_token()
        if cached is not None:
            logger.debug("Using cached Lists access token")
            return cached

        with self._refresh_lock:
            cached = self._valid_cached_token()
            if cached is not None:
                return cached
            token = self._fetch_token()
            self._cached = token
            return token.access_token

    def _valid_cached_token(self) -> str | None:
        cached = self._cached
        if cached is not None and self._clock() < cached.expires_at - REFRESH_MARGIN_SECONDS:
            return cached.access_token
        return None

    def _fetch_token(self) -> CachedToken:
        logger.info("Fetching new Lists M2M access token")
        now = self._clock()
        try:
            response = self._request(
                method="POST",
                url=self._settings.token_url,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data={
                    "grant_type": "client_credentials",
                    "scope": self._settings.scope,
                },
                auth=(self._settings.client_id, self._settings.client_secret),
            )
        except ConnectorRequestError as exc:
            raise AuthError(f"Failed to fetch access token: {exc}") from exc

        if not self._is_success(response):
            raise AuthError(
                f"Failed to fetch access token: {response.status_code}. Response: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        payload = self._response_json(response)
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            raise AuthError(
                "Token endpoint response did not contain an access_token.",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            expires_in = float(payload.get("expires_in", 0))
        except (TypeError, ValueError):
            expires_in = 0.0

        logger.info("New Lists access token acquired expires_in=%s", int(expires_in))
        return CachedToken(access_token=access_token, expires_at=now + expires_in)


@lru_cache(maxsize=1)
def get_token_cache() -> TokenCache:
    return TokenCache(
        settings=get_lists_api_settings(),
        http_settings=get_external_http_settings(),
    )
