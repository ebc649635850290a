"""
lists_sync/services/ingestion_pipeline.py

Reload pipeline: resolve, fetch metadata, upload, ingest, poll.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from functools import lru_cache

from lists_sync.config import PollingSettings, get_lists_api_settings, get_polling_settings
from lists_sync.connectors.lists_api_connector import ListsAPIClient, get_lists_api_client
from lists_sync.domain.drs import DataResourceMap
from lists_sync.domain.ingestion import (
    IngestCancelled,
    IngestCompleted,
    IngestionJob,
    IngestTimedOut,
    PipelineState,
    PollOutcome,
)
from lists_sync.errors import (
    ConnectorRequestError,
    IngestCancelledError,
    IngestTimeoutError,
    RemoteApiError,
    UnknownListError,
    UploadValidationError,
)
from lists_sync.logging_utils import log_event

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[IngestionJob], None]


class IngestionPipeline:
    """
    Runs one list reload against the Lists API.

    Each run reads the mapping snapshot it was given and never the live
    store, so a concurrent configuration swap cannot change it mid-run.
    """

    def __init__(
        self,
        *,
        lists_client: ListsAPIClient,
        environment: str,
        polling: PollingSettings,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._lists = lists_client
        self.environment = environment
        self.polling = polling
        self._cancel_event = cancel_event

    def resolve(self, list_name: str, dr_map: DataResourceMap) -> str:
        partition = dr_map.partition(self.environment)
        data_resource_uid = partition.get(list_name)
        if not data_resource_uid:
            raise UnknownListError(list_name, sorted(partition), self.environment)
        return data_resource_uid

    def run(
        self,
        list_name: str,
        file_content: str,
        dr_map: DataResourceMap,
        *,
        on_transition: TransitionCallback | None = None,
        cancel_event: threading.Event | None = None,
    ) -> IngestionJob:
        """
        Execute every state in order and return the completed job.

        On any error the job enters FAILED, ``on_transition`` sees it, and
        the error is re-raised to the caller.
        """

        job = IngestionJob(list_name=list_name)
        logger.info("Starting list reload list=%s environment=%s", list_name, self.environment)

        try:
            self._enter(job, PipelineState.RESOLVING, on_transition)
            job.data_resource_uid = self.resolve(list_name, dr_map)

            self._enter(job, PipelineState.FETCHING_METADATA, on_transition)
            metadata = self._lists.fetch_species_list(job.data_resource_uid)
            job.species_list_id = metadata.id

            self._enter(job, PipelineState.UPLOADING, on_transition)
            upload = self._lists.upload_file(list_name, file_content)
            if upload.validation_errors:
                raise UploadValidationError(upload.validation_errors)
            job.local_file = upload.local_file
            job.row_count = upload.row_count

            self._enter(job, PipelineState.INGESTING, on_transition)
            self._lists.ingest_file(job.species_list_id, job.local_file)

            self._enter(job, PipelineState.POLLING, on_transition)
            outcome = self.poll_until_complete(
                job.species_list_id,
                cancel_event=cancel_event,
                job=job,
            )
            if isinstance(outcome, IngestTimedOut):
                raise IngestTimeoutError(outcome.attempts, outcome.ceiling_seconds)
            if isinstance(outcome, IngestCancelled):
                raise IngestCancelledError(outcome.attempts)

            job.completed = True
            self._enter(job, PipelineState.COMPLETED, on_transition)
        except Exception as exc:
            job.error = str(exc)
            logger.error(
                "Failed to reload list=%s after %ss error=%s: %s",
                list_name,
                job.elapsed_seconds,
                type(exc).__name__,
                exc,
            )
            self._enter(job, PipelineState.FAILED, on_transition)
            raise

        logger.info("Successfully completed list reload list=%s in %ss", list_name, job.elapsed_seconds)
        return job

    def poll_until_complete(
        self,
        species_list_id: str,
        *,
        cancel_event: threading.Event | None = None,
        job: IngestionJob | None = None,
    ) -> PollOutcome:
        """
        Wait one interval, then check progress, up to ``max_attempts`` times.

        Progress request failures are logged and count as an incomplete
        attempt. AuthError is not caught.
        """

        event = cancel_event if cancel_event is not None else self._cancel_event
        if event is None:
            event = threading.Event()

        interval = self.polling.interval_seconds
        max_attempts = self.polling.max_attempts
        attempts = 0
        while attempts < max_attempts:
            if event.wait(interval):
                logger.warning(
                    "Ingest polling cancelled species_list_id=%s attempts=%s",
                    species_list_id,
                    attempts,
                )
                return IngestCancelled(attempts=attempts)

            attempts += 1
            if job is not None:
                job.poll_attempts = attempts

            try:
                progress = self._lists.fetch_progress(species_list_id)
            except (RemoteApiError, ConnectorRequestError) as exc:
                logger.warning(
                    "Failed to check ingest progress attempt=%s/%s error=%s",
                    attempts,
                    max_attempts,
                    exc,
                )
                continue

            logger.info(
                "Ingest progress attempt=%s/%s completed=%s row_count=%s mongo_total=%s elastic_total=%s",
                attempts,
                max_attempts,
                progress.completed,
                progress.row_count,
                progress.mongo_total,
                progress.elastic_total,
            )
            if progress.completed:
                return IngestCompleted(attempts=attempts, progress=progress)

        return IngestTimedOut(attempts=attempts, ceiling_seconds=max_attempts * interval)

    def _enter(
        self,
        job: IngestionJob,
        state: str,
        on_transition: TransitionCallback | None,
    ) -> None:
        previous = job.state
        job.state = state
        log_event(
            logger,
            logging.ERROR if state == PipelineState.FAILED else logging.INFO,
            "pipeline_transition",
            list_name=job.list_name,
            from_state=previous,
            to_state=state,
            data_resource_uid=job.data_resource_uid,
            species_list_id=job.species_list_id,
            elapsed_seconds=job.elapsed_seconds,
            error=job.error,
        )
        if on_transition is not None:
            on_transition(job)


@lru_cache(maxsize=1)
def get_shutdown_event() -> threading.Event:
    """
    Process-wide event set when the application shuts down.
    """

    return threading.Event()


@lru_cache(maxsize=1)
def get_ingestion_pipeline() -> IngestionPipeline:
    return IngestionPipeline(
        lists_client=get_lists_api_client(),
        environment=get_lists_api_settings().environment,
        polling=get_polling_settings(),
        cancel_event=get_shutdown_event(),
    )
