"""
lists_sync/connectors/github_connector.py

GitHub contents API connector for list files and drs.json.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import logging
import zlib
from functools import lru_cache
from typing import Any
from urllib.parse import quote

import requests

from lists_sync.config import (
    ExternalHTTPSettings,
    GitHubSettings,
    get_external_http_settings,
    get_github_settings,
    get_import_settings,
)
from lists_sync.connectors.base import BaseConnector
from lists_sync.domain.push_event import RepoFile, is_import_file_name, list_folder_path
from lists_sync.errors import ConnectorRequestError

logger = logging.getLogger(__name__)

COMPRESSED_SUFFIXES: tuple[str, ...] = (".gz",)


class GitHubContentClient(BaseConnector):
    """
    Reads file content and directory listings from the monitored repository.
    """

    def __init__(
        self,
        *,
        settings: GitHubSettings,
        http_settings: ExternalHTTPSettings,
        import_root: str,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(source="github", http_settings=http_settings, session=session)
        self._settings = settings
        self._import_root = import_root

    def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> str | None:
        """
        Return the decoded text of ``path`` at ``ref``.

        Returns ``None`` for directories and whenever the content cannot be
        fetched or decoded; the cause is only logged.
        """

        try:
            entry = self._get_contents(owner, repo, path, ref=ref)
            if not isinstance(entry, dict) or entry.get("type") != "file":
                return None

            inline = entry.get("content")
            if inline and inline.strip():
                raw = base64.b64decode(inline)
                return self._decode(path, raw)

            download_url = entry.get("download_url")
            if download_url:
                logger.info("File too large for inline content path=%s url=%s", path, download_url)
                response = self._request(method="GET", url=download_url, headers=self._auth_headers())
                if not self._is_success(response):
                    raise ConnectorRequestError(
                        f"Failed to download file: {response.status_code} {response.reason}"
                    )
                return self._decode(path, response.content)

            return None
        except (
            ConnectorRequestError,
            binascii.Error,
            OSError,
            EOFError,
            UnicodeDecodeError,
            zlib.error,
        ) as exc:
            logger.error("Failed to fetch content path=%s ref=%s error=%s", path, ref, exc)
            return None

    def list_directory(self, owner: str, repo: str, path: str, ref: str | None = None) -> list[dict[str, Any]]:
        """
        Return the entries of a repository directory.

        Raises ConnectorRequestError when the path is missing or is not a directory.
        """

        entries = self._get_contents(owner, repo, path, ref=ref)
        if not isinstance(entries, list):
            raise ConnectorRequestError(f"{self.source}: '{path}' is not a directory.")
        return [entry for entry in entries if isinstance(entry, dict)]

    def find_latest_file_for_list(
        self,
        owner: str,
        repo: str,
        list_name: str,
        ref: str | None = None,
    ) -> RepoFile | None:
        """
        Pick the newest import file in a list folder.

        File names start with a sortable timestamp, so the lexicographically
        greatest name is treated as the most recent.
        """

        folder = list_folder_path(list_name, self._import_root)
        try:
            entries = self.list_directory(owner, repo, folder, ref=ref)
        except ConnectorRequestError as exc:
            logger.error("Failed to list folder path=%s error=%s", folder, exc)
            return None

        candidates = [
            entry
            for entry in entries
            if entry.get("type") == "file" and is_import_file_name(str(entry.get("name", "")))
        ]
        if not candidates:
            return None

        latest = max(candidates, key=lambda entry: entry["name"])
        return RepoFile(name=latest["name"], path=latest.get("path") or f"{folder}/{latest['name']}")

    def _get_contents(self, owner: str, repo: str, path: str, ref: str | None = None) -> Any:
        url = f"{self._settings.api_url}/repos/{owner}/{repo}/contents/{quote(path)}"
        params = {"ref": ref} if ref else None
        response = self._request(
            method="GET",
            url=url,
            params=params,
            headers={"Accept": "application/vnd.github+json", **self._auth_headers()},
        )
        if not self._is_success(response):
            raise ConnectorRequestError(
                f"{self.source}: contents request for '{path}' returned {response.status_code}."
            )
        payload = self._response_json(response)
        if payload is None:
            raise ConnectorRequestError(f"{self.source}: response was not valid JSON.")
        return payload

    def _auth_headers(self) -> dict[str, str]:
        if not self._settings.token:
            return {}
        return {"Authorization": f"Bearer {self._settings.token}"}

    @staticmethod
    def _decode(path: str, raw: bytes) -> str:
        if path.endswith(COMPRESSED_SUFFIXES):
            logger.info("Decompressing gzipped file path=%s", path)
            raw = gzip.decompress(raw)
        return raw.decode("utf-8")


@lru_cache(maxsize=1)
def get_github_content_client() -> GitHubContentClient:
    """
    Build and cache the GitHub connector.
    """

    return GitHubContentClient(
        settings=get_github_settings(),
        http_settings=get_external_http_settings(),
        import_root=get_import_settings().import_root,
    )
