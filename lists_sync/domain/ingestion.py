"""
lists_sync/domain/ingestion.py

Domain models for one list reload pipeline run.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Union


class PipelineState:
    RESOLVING = "resolving"
    FETCHING_METADATA = "fetching_metadata"
    UPLOADING = "uploading"
    INGESTING = "ingesting"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class IngestionJob:
    """
    Mutable record of a single pipeline run. Never persisted.
    """

    list_name: str
    state: str = PipelineState.RESOLVING
    data_resource_uid: str | None = None
    species_list_id: str | None = None
    local_file: str | None = None
    row_count: int | None = None
    completed: bool = False
    poll_attempts: int = 0
    error: str | None = None
    started_at: float = field(default_factory=time.time)

    @property
    def elapsed_seconds(self) -> int:
        return round(time.time() - self.started_at)


@dataclass(frozen=True)
class SpeciesListMetadata:
    """
    Subset of the Lists API species list record used by the pipeline.
    """

    id: str
    title: str | None = None
    version: int | None = None
    row_count: int | None = None


@dataclass(frozen=True)
class UploadResult:
    """
    Response of the Lists API upload endpoint.
    """

    local_file: str
    row_count: int | None = None
    validation_errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class IngestProgress:
    """
    One progress snapshot for an asynchronous ingest.
    """

    completed: bool
    row_count: int | None = None
    mongo_total: int | None = None
    elastic_total: int | None = None
    started: int | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> IngestProgress:
        return cls(
            completed=payload.get("completed") is True,
            row_count=payload.get("rowCount"),
            mongo_total=payload.get("mongoTotal"),
            elastic_total=payload.get("elasticTotal"),
            started=payload.get("started"),
        )


@dataclass(frozen=True)
class IngestCompleted:
    attempts: int
    progress: IngestProgress


@dataclass(frozen=True)
class IngestTimedOut:
    attempts: int
    ceiling_seconds: float


@dataclass(frozen=True)
class IngestCancelled:
    attempts: int


PollOutcome = Union[IngestCompleted, IngestTimedOut, IngestCancelled]
