"""
lists_sync/services/notifications.py

Slack message text for configuration diffs and reload progress.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from lists_sync.config import ListsEnvironment
from lists_sync.connectors.slack_connector import SlackMessageRef, SlackNotifier
from lists_sync.domain.drs import DrMapChange, DrMapChangeKind
from lists_sync.domain.ingestion import IngestionJob, PipelineState

logger = logging.getLogger(__name__)

PARTITION_HEADINGS: tuple[tuple[str, str], ...] = (
    (ListsEnvironment.PROD, ":factory: *Production*"),
    (ListsEnvironment.TEST, ":test_tube: *Testing*"),
)


def _format_change(change: DrMapChange) -> str:
    if change.kind == DrMapChangeKind.ADDED:
        return f"• Added: `{change.key}` → `{change.new_value}`"
    if change.kind == DrMapChangeKind.CHANGED:
        return f"• Changed: `{change.key}` → `{change.old_value}` to `{change.new_value}`"
    return f"• Removed: `{change.key}` (was `{change.old_value}`)"


def format_dr_map_changes(changes: Sequence[DrMapChange]) -> str:
    """
    Render the configuration diff notification, one section per partition.
    """

    sections = [":arrows_counterclockwise: *DRS Configuration Updated*"]
    for partition, heading in PARTITION_HEADINGS:
        lines = [_format_change(change) for change in changes if change.partition == partition]
        sections.append("\n".join([heading, *(lines or ["• No changes"])]))
    return "\n\n".join(sections)


def format_dr_map_error(error: Exception) -> str:
    return f":x: *Error updating DRS configuration*\nFailed to load updated drs.json: {error}"


def format_state(job: IngestionJob) -> str:
    """
    One status line for the current pipeline state of ``job``.
    """

    if job.state == PipelineState.RESOLVING:
        return ":rocket: Starting list reload process..."
    if job.state == PipelineState.FETCHING_METADATA:
        return f":mag: Fetching species list info for `{job.data_resource_uid}`..."
    if job.state == PipelineState.UPLOADING:
        return ":arrow_up: Uploading file content..."
    if job.state == PipelineState.INGESTING:
        rows = f" ({job.row_count} rows)" if job.row_count is not None else ""
        return f":inbox_tray: Ingesting uploaded file{rows}..."
    if job.state == PipelineState.POLLING:
        return ":hourglass_flowing_sand: Waiting for ingestion to complete..."
    if job.state == PipelineState.COMPLETED:
        return f":white_check_mark: List reload completed successfully in {job.elapsed_seconds}s!"
    return format_failure(job.list_name, job.error or "unknown error")


def format_failure(list_name: str, reason: str) -> str:
    return f":x: List reload failed for: *{list_name}*\n\n*Error:* {reason}"


@dataclass(frozen=True)
class ProgressMessage:
    """
    Fixed title and links of a progress message; only the status changes.
    """

    title: str
    links: list[tuple[str, str]] = field(default_factory=list)

    def render(self, status: str) -> str:
        parts = [f"*{self.title}*", status]
        if self.links:
            parts.append(" | ".join(f"<{url}|{label}>" for label, url in self.links))
        return "\n\n".join(parts)


class ProgressReporter:
    """
    Keeps one Slack message per run and edits it in place.

    The first update posts the message; later updates edit it. If the
    initial post failed, the next update tries to post again.
    """

    def __init__(self, notifier: SlackNotifier, message: ProgressMessage) -> None:
        self._notifier = notifier
        self.message = message
        self.ref: SlackMessageRef | None = None

    def update(self, status: str) -> None:
        text = self.message.render(status)
        if self.ref is None:
            self.ref = self._notifier.post_message(text)
            return
        if not self._notifier.update_message(self.ref, text):
            logger.warning("Progress message update failed ts=%s", self.ref.ts)

    def report_job(self, job: IngestionJob) -> None:
        self.update(format_state(job))
