"""
lists_sync/services/reload_runner.py

Shared reload execution for the webhook and slash-command triggers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import lru_cache
from typing import Any, Protocol

from fastapi import BackgroundTasks

from lists_sync.config import (
    GitHubSettings,
    ListsAPISettings,
    get_github_settings,
    get_import_settings,
    get_lists_api_settings,
)
from lists_sync.connectors.slack_connector import SlackNotifier, get_slack_notifier
from lists_sync.domain.drs import DataResourceMap
from lists_sync.domain.ingestion import IngestionJob
from lists_sync.errors import ListsSyncError
from lists_sync.services.ingestion_pipeline import IngestionPipeline, get_ingestion_pipeline
from lists_sync.services.notifications import ProgressMessage, ProgressReporter, format_failure

logger = logging.getLogger(__name__)


class IngestionTaskExecutor(Protocol):
    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        ...


class FastAPIBackgroundTaskExecutor:
    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self._background_tasks = background_tasks

    def submit(self, task: Callable[..., None], *args: Any, **kwargs: Any) -> None:
        self._background_tasks.add_task(task, *args, **kwargs)


class ReloadRunner:
    """
    Runs the pipeline for a trigger and mirrors every state into one Slack message.
    """

    def __init__(
        self,
        *,
        pipeline: IngestionPipeline,
        notifier: SlackNotifier,
        github_settings: GitHubSettings,
        lists_settings: ListsAPISettings,
        import_root: str,
    ) -> None:
        self.pipeline = pipeline
        self._notifier = notifier
        self._github_settings = github_settings
        self._lists_settings = lists_settings
        self._import_root = import_root

    def new_reporter(self, title: str, list_name: str, dr_map: DataResourceMap) -> ProgressReporter:
        """
        Build a progress reporter linking the list folder and, when mapped, the list page.
        """

        links = [("GitHub", self.github_folder_url(list_name))]
        data_resource_uid = dr_map.partition(self.pipeline.environment).get(list_name)
        if data_resource_uid:
            links.append(("Lists", f"{self._lists_settings.ui_url}/list/{data_resource_uid}"))
        return ProgressReporter(self._notifier, ProgressMessage(title=title, links=links))

    def github_folder_url(self, list_name: str) -> str:
        settings = self._github_settings
        return f"{settings.web_url}/{settings.repo}/tree/{settings.branch}/{self._import_root}/{list_name}"

    def run(
        self,
        list_name: str,
        file_content: str,
        dr_map: DataResourceMap,
        reporter: ProgressReporter,
    ) -> IngestionJob | None:
        """
        Run one reload. Failures are reported on ``reporter`` and logged; returns None.
        """

        try:
            return self.pipeline.run(
                list_name,
                file_content,
                dr_map,
                on_transition=reporter.report_job,
            )
        except ListsSyncError as exc:
            logger.error("List reload failed list=%s error=%s", list_name, exc)
        except Exception:
            logger.exception("Unexpected error during list reload list=%s", list_name)
        return None

    @staticmethod
    def report_failure(reporter: ProgressReporter, list_name: str, reason: str) -> None:
        logger.error("List reload failed list=%s reason=%s", list_name, reason)
        reporter.update(format_failure(list_name, reason))


@lru_cache(maxsize=1)
def get_reload_runner() -> ReloadRunner:
    return ReloadRunner(
        pipeline=get_ingestion_pipeline(),
        notifier=get_slack_notifier(),
        github_settings=get_github_settings(),
        lists_settings=get_lists_api_settings(),
        import_root=get_import_settings().import_root,
    )
