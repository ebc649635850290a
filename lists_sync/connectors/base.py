"""
lists_sync/connectors/base.py

Shared HTTP mechanics for outbound connectors.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from lists_sync.config import ExternalHTTPSettings
from lists_sync.errors import ConnectorRequestError

logger = logging.getLogger(__name__)


class BaseConnector:
    """
    Connector base with per-call timeouts and transport-level retries.

    HTTP status codes are not interpreted here: every caller decides what a
    non-success response means for its own step.
    """

    source: str

    def __init__(
        self,
        *,
        source: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
    ) -> None:
        self.source = source
        self._session = session or requests.Session()
        self._timeout_seconds = http_settings.timeout_seconds
        self._max_retries = http_settings.max_retries
        self._backoff_initial_seconds = http_settings.backoff_initial_seconds
        self._backoff_multiplier = http_settings.backoff_multiplier

    def _request(
        self,
        *,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        data: Any = None,
        files: Any = None,
        auth: Any = None,
        max_retries: int | None = None,
    ) -> requests.Response:
        """
        Execute an HTTP request, retrying timeouts and connection errors.

        ``max_retries`` overrides the configured retry count; pass 0 for
        requests that must not be replayed.
        """

        retries = self._max_retries if max_retries is None else max(0, max_retries)
        last_error: Exception | None = None
        for attempt in range(retries + 1):
            try:
                return self._session.request(
                    method=method,
                    url=url,
                    params=params,
                    headers=headers,
                    data=data,
                    files=files,
                    auth=auth,
                    timeout=self._timeout_seconds,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            except requests.RequestException as exc:
                logger.error(
                    "Connector request failed source=%s method=%s url=%s error=%s",
                    self.source,
                    method,
                    url,
                    exc,
                )
                raise ConnectorRequestError(f"{self.source}: request failed.") from exc

            if attempt >= retries:
                break

            backoff_seconds = self._backoff_initial_seconds * (self._backoff_multiplier**attempt)
            logger.warning(
                "Connector request retry source=%s attempt=%s/%s wait_seconds=%.2f url=%s",
                self.source,
                attempt + 1,
                retries,
                backoff_seconds,
                url,
            )
            time.sleep(backoff_seconds)

        logger.error(
            "Connector request exhausted retries source=%s url=%s error=%s",
            self.source,
            url,
            last_error,
        )
        raise ConnectorRequestError(f"{self.source}: request failed after retries.") from last_error

    @staticmethod
    def _is_success(response: requests.Response) -> bool:
        return 200 <= response.status_code < 300

    @staticmethod
    def _response_json(response: requests.Response) -> Any:
        """
        Parse a JSON body, returning ``None`` when it is not valid JSON.
        """

        try:
            return response.json()
        except ValueError:
            return None
