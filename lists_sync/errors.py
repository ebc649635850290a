"""
lists_sync/errors.py

Exceptions raised by the reload pipeline and its connectors.

Hierarchy:
    ListsSyncError
    ├── ConnectorRequestError      transport failure after retries
    ├── AuthError                  token exchange failed
    ├── RemoteApiError             Lists API returned non-success
    ├── UploadValidationError      upload accepted but content rejected
    ├── UnknownListError           no drs.json entry for the list
    ├── IngestTimeoutError         progress polling exhausted
    ├── IngestCancelledError       progress polling cancelled
    └── ConfigLoadError            drs.json missing or malformed
"""

from __future__ import annotations

from collections.abc import Sequence


class ListsSyncError(Exception):
    """Base class for all lists-sync errors."""


class ConnectorRequestError(ListsSyncError):
    """
    Raised when a connector cannot complete an HTTP request after retries.
    """


class AuthError(ListsSyncError):
    """Raised when the client-credentials token exchange fails.

    Attributes:
        status_code: HTTP status from the token endpoint, ``None`` when the
            request never produced a response.
        body: Response body text, if any.
    """

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class RemoteApiError(ListsSyncError):
    """Raised when a Lists API call returns a non-success status.

    Attributes:
        step: Pipeline step that issued the call (metadata, upload, ingest).
        status_code: HTTP status returned by the Lists API.
        body: Response body text.
    """

    def __init__(self, step: str, status_code: int, body: str = "") -> None:
        self.step = step
        self.status_code = status_code
        self.body = body
        super().__init__(f"Lists API {step} request failed: {status_code}. Response: {body}")


class UploadValidationError(ListsSyncError):
    """
    Raised when the upload endpoint reports validation errors for the file.
    """

    def __init__(self, messages: Sequence[str]) -> None:
        self.messages = list(messages)
        numbered = "\n".join(f"{index}. {message}" for index, message in enumerate(self.messages, start=1))
        super().__init__(f"Upload validation errors:\n{numbered}")


class UnknownListError(ListsSyncError):
    """
    Raised when a list name has no resource identifier in the active environment.
    """

    def __init__(self, list_name: str, available: Sequence[str], environment: str) -> None:
        self.list_name = list_name
        self.available = list(available)
        self.environment = environment
        available_text = ", ".join(self.available) if self.available else "none"
        super().__init__(
            f"No dataResourceUid found for list: {list_name} ({environment}). "
            f"Available lists: {available_text}"
        )


class IngestTimeoutError(ListsSyncError):
    """
    Raised when ingest progress never reports completion within the polling budget.
    """

    def __init__(self, attempts: int, ceiling_seconds: float) -> None:
        self.attempts = attempts
        self.ceiling_seconds = ceiling_seconds
        super().__init__(
            f"File processing did not complete within {ceiling_seconds:g} seconds "
            f"({attempts} attempts)"
        )


class IngestCancelledError(ListsSyncError):
    """
    Raised when progress polling is cancelled before completion.
    """

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Ingest progress polling cancelled after {attempts} attempts")


class ConfigLoadError(ListsSyncError):
    """
    Raised when drs.json cannot be fetched or parsed.
    """
