"""
lists_sync/connectors/lists_api_connector.py

Lists API connector: species list metadata, upload, ingest and progress.
"""

from __future__ import annotations

import logging
import time
from functools import lru_cache

import requests

from lists_sync.config import (
    ExternalHTTPSettings,
    ListsAPISettings,
    get_external_http_settings,
    get_lists_api_settings,
)
from lists_sync.connectors.auth import TokenCache, get_token_cache
from lists_sync.connectors.base import BaseConnector
from lists_sync.domain.ingestion import IngestProgress, SpeciesListMetadata, UploadResult
from lists_sync.errors import RemoteApiError

logger = logging.getLogger(__name__)


class ListsStep:
    METADATA = "metadata"
    UPLOAD = "upload"
    INGEST = "ingest"
    PROGRESS = "progress"


class ListsAPIClient(BaseConnector):
    """
    Authenticated calls against the Lists API ``/v2`` endpoints.

    Every call asks the token cache for a bearer token first, so an
    AuthError surfaces before any Lists request is sent.
    """

    def __init__(
        self,
        *,
        settings: ListsAPISettings,
        http_settings: ExternalHTTPSettings,
        token_cache: TokenCache,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="lists_api", http_settings=http_settings, session=session)
        self._settings = settings
        self._token_cache = token_cache

    def fetch_species_list(self, data_resource_uid: str) -> SpeciesListMetadata:
        logger.info("Fetching species list info data_resource_uid=%s", data_resource_uid)
        response = self._request(
            method="GET",
            url=self._url(f"/v2/speciesList/{data_resource_uid}"),
            headers={"accept": "application/json", **self._auth_headers()},
        )
        payload = self._success_json(ListsStep.METADATA, response)
        if payload.get("id") is None:
            raise RemoteApiError(ListsStep.METADATA, response.status_code, response.text)

        metadata = SpeciesListMetadata(
            id=str(payload["id"]),
            title=payload.get("title"),
            version=payload.get("version"),
            row_count=payload.get("rowCount"),
        )
        logger.info(
            "Found species list title=%r id=%s version=%s",
            metadata.title,
            metadata.id,
            metadata.version,
        )
        return metadata

    def upload_file(self, list_name: str, file_content: str) -> UploadResult:
        """
        Upload CSV content; validation errors are returned, not raised.
        """

        logger.info("Uploading file content list=%s characters=%s", list_name, len(file_content))
        filename = f"{int(time.time() * 1000)}.csv"
        response = self._request(
            method="POST",
            url=self._url("/v2/upload"),
            headers=self._auth_headers(),
            files={"file": (filename, file_content.encode("utf-8"), "text/csv")},
            max_retries=0,
        )
        payload = self._success_json(ListsStep.UPLOAD, response)
        local_file = payload.get("localFile")
        validation_errors = [str(error) for error in payload.get("validationErrors") or [] if error]
        if not local_file and not validation_errors:
            raise RemoteApiError(ListsStep.UPLOAD, response.status_code, response.text)

        return UploadResult(
            local_file=local_file or "",
            row_count=payload.get("rowCount"),
            validation_errors=validation_errors,
        )

    def ingest_file(self, species_list_id: str, local_file: str) -> None:
        logger.info("Starting ingestion local_file=%s species_list_id=%s", local_file, species_list_id)
        response = self._request(
            method="POST",
            url=self._url(f"/v2/ingest/{species_list_id}"),
            headers=self._auth_headers(),
            files={"file": (None, local_file)},
            max_retries=0,
        )
        if not self._is_success(response):
            raise RemoteApiError(ListsStep.INGEST, response.status_code, response.text)

    def fetch_progress(self, species_list_id: str) -> IngestProgress:
        """
        Return the ingest progress snapshot.

        Raises RemoteApiError on non-success so the poller can log and retry.
        """

        response = self._request(
            method="GET",
            url=self._url(f"/v2/ingest/{species_list_id}/progress"),
            headers=self._auth_headers(),
        )
        payload = self._success_json(ListsStep.PROGRESS, response)
        return IngestProgress.from_payload(payload)

    def _success_json(self, step: str, response: requests.Response) -> dict:
        if not self._is_success(response):
            raise RemoteApiError(step, response.status_code, response.text)
        payload = self._response_json(response)
        if not isinstance(payload, dict):
            raise RemoteApiError(step, response.status_code, response.text)
        return payload

    def _auth_headers(self) -> dict[str, str]:
        return {"authorization": f"Bearer {self._token_cache.get_access_token()}"}

    def _url(self, path: str) -> str:
        return f"{self._settings.api_endpoint}{path}"


@lru_cache(maxsize=1)
def get_lists_api_client() -> ListsAPIClient:
    """
    Build and cache the Lists API connector with the shared token cache.
    """

    return ListsAPIClient(
        settings=get_lists_api_settings(),
        http_settings=get_external_http_settings(),
        token_cache=get_token_cache(),
    )
