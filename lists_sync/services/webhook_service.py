"""
lists_sync/services/webhook_service.py

Reacts to GitHub push events on the monitored repository.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from lists_sync.config import get_github_settings, get_import_settings
from lists_sync.connectors.github_connector import GitHubContentClient, get_github_content_client
from lists_sync.connectors.slack_connector import SlackNotifier, get_slack_notifier
from lists_sync.domain.push_event import PushEvent, is_import_file, list_name_for_path
from lists_sync.errors import ConfigLoadError
from lists_sync.services.config_resolver import ConfigurationResolver, get_configuration_resolver
from lists_sync.services.notifications import format_dr_map_changes, format_dr_map_error
from lists_sync.services.reload_runner import ReloadRunner, get_reload_runner

logger = logging.getLogger(__name__)

MAX_IMPORTS_PER_PUSH = 1


class WebhookService:
    """
    Handles one verified push event: configuration reload, then list imports.
    """

    def __init__(
        self,
        *,
        resolver: ConfigurationResolver,
        github: GitHubContentClient,
        runner: ReloadRunner,
        notifier: SlackNotifier,
        branch: str,
        import_root: str,
    ) -> None:
        self._resolver = resolver
        self._github = github
        self._runner = runner
        self._notifier = notifier
        self.branch = branch
        self.import_root = import_root

    def handle_push(self, push: PushEvent) -> None:
        try:
            self._handle_push(push)
        except Exception:
            logger.exception(
                "Webhook processing error repo=%s/%s head_sha=%s",
                push.owner,
                push.repo,
                push.head_sha,
            )

    def select_import_files(self, push: PushEvent) -> list[str]:
        """
        Added paths under the import folder, capped at MAX_IMPORTS_PER_PUSH.
        """

        matching = [path for path in push.added if is_import_file(path, self.import_root)]
        if len(matching) > MAX_IMPORTS_PER_PUSH:
            logger.info(
                "Push added %s import files; processing first %s only",
                len(matching),
                MAX_IMPORTS_PER_PUSH,
            )
        return matching[:MAX_IMPORTS_PER_PUSH]

    def _handle_push(self, push: PushEvent) -> None:
        if push.branch != self.branch:
            logger.info("Ignoring push to branch=%s expected=%s", push.branch, self.branch)
            return

        logger.info(
            "Push received repo=%s/%s head_sha=%s added=%s modified=%s removed=%s",
            push.owner,
            push.repo,
            push.head_sha,
            len(push.added),
            len(push.modified),
            len(push.removed),
        )

        if push.touches(self._resolver.config_path):
            self._reload_configuration(push)

        for path in self.select_import_files(push):
            self._process_import(push, path)

    def _reload_configuration(self, push: PushEvent) -> None:
        logger.info("%s was modified, reloading mapping", self._resolver.config_path)
        try:
            result = self._resolver.reload(push.owner, push.repo, push.head_sha)
        except ConfigLoadError as exc:
            logger.error("Failed to reload mapping; keeping previous snapshot error=%s", exc)
            self._notifier.post_message(format_dr_map_error(exc))
            return

        logger.info("Mapping reloaded changes=%s", len(result.changes))
        self._notifier.post_message(format_dr_map_changes(result.changes))

    def _process_import(self, push: PushEvent, path: str) -> None:
        list_name = list_name_for_path(path, self.import_root)
        if list_name is None:
            return

        file_name = path.rsplit("/", 1)[-1]
        dr_map = self._resolver.store.current()
        reporter = self._runner.new_reporter(f"List push: {list_name}", list_name, dr_map)
        reporter.update(f":file_folder: Pushed file `{file_name}`, downloading and processing...")

        logger.info("Processing new import file path=%s list=%s", path, list_name)
        content = self._github.get_file_content(push.owner, push.repo, path, push.head_sha or push.branch)
        if content is None:
            self._runner.report_failure(reporter, list_name, f"Failed to fetch content for: `{file_name}`")
            return

        self._runner.run(list_name, content, dr_map, reporter)


@lru_cache(maxsize=1)
def get_webhook_service() -> WebhookService:
    return WebhookService(
        resolver=get_configuration_resolver(),
        github=get_github_content_client(),
        runner=get_reload_runner(),
        notifier=get_slack_notifier(),
        branch=get_github_settings().branch,
        import_root=get_import_settings().import_root,
    )
