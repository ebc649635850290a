"""
lists_sync/services/slack_command_service.py

Slash commands: ``/reload <listName>`` and ``/clean <ts,ts,...>``.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from lists_sync.config import GitHubSettings, get_github_settings, get_import_settings
from lists_sync.connectors.github_connector import GitHubContentClient, get_github_content_client
from lists_sync.connectors.slack_connector import SlackNotifier, get_slack_notifier
from lists_sync.domain.push_event import list_folder_path
from lists_sync.errors import UnknownListError
from lists_sync.schemas.slack import SlashCommand, SlashCommandResponse
from lists_sync.services.config_resolver import DrMapStore, get_dr_map_store
from lists_sync.services.reload_runner import IngestionTaskExecutor, ReloadRunner, get_reload_runner

logger = logging.getLogger(__name__)

RELOAD_COMMAND = "/reload"
CLEAN_COMMAND = "/clean"

RELOAD_USAGE = "Usage: `/reload <listName>`"
CLEAN_USAGE = "Usage: `/clean <ts>[,<ts>...]`"


def parse_reload_argument(text: str | None) -> str | None:
    list_name = (text or "").strip()
    return list_name or None


def parse_clean_argument(text: str | None) -> list[str]:
    """
    Split a comma separated list of message timestamps, dropping blanks.
    """

    return [ts.strip() for ts in (text or "").split(",") if ts.strip()]


class SlackCommandService:
    def __init__(
        self,
        *,
        store: DrMapStore,
        github: GitHubContentClient,
        runner: ReloadRunner,
        notifier: SlackNotifier,
        github_settings: GitHubSettings,
        import_root: str,
    ) -> None:
        self._store = store
        self._github = github
        self._runner = runner
        self._notifier = notifier
        self._github_settings = github_settings
        self._import_root = import_root

    def dispatch(self, command: SlashCommand, executor: IngestionTaskExecutor) -> SlashCommandResponse:
        """
        Validate a slash command, schedule its work and return the immediate reply.
        """

        if command.command == RELOAD_COMMAND:
            list_name = parse_reload_argument(command.text)
            if list_name is None:
                return SlashCommandResponse(text=RELOAD_USAGE)
            logger.info("Reload requested list=%s user=%s", list_name, command.user_name)
            executor.submit(self.reload_list, list_name)
            return SlashCommandResponse(text=f"Reloading list *{list_name}*, progress will be posted in the channel.")

        if command.command == CLEAN_COMMAND:
            timestamps = parse_clean_argument(command.text)
            if not timestamps:
                return SlashCommandResponse(text=CLEAN_USAGE)
            executor.submit(self.clean_messages, command.text)
            return SlashCommandResponse(text=f"Deleting {len(timestamps)} message(s).")

        logger.warning("Unsupported slash command command=%s", command.command)
        return SlashCommandResponse(text=f"Unsupported command: `{command.command}`")

    def reload_list(self, list_name: str) -> None:
        try:
            self._reload_list(list_name)
        except Exception:
            logger.exception("Slash command reload failed list=%s", list_name)

    def clean_messages(self, text: str) -> int:
        deleted = 0
        timestamps = parse_clean_argument(text)
        for ts in timestamps:
            if self._notifier.delete_message(ts):
                deleted += 1
        logger.info("Clean command finished deleted=%s requested=%s", deleted, len(timestamps))
        return deleted

    def _reload_list(self, list_name: str) -> None:
        dr_map = self._store.current()
        reporter = self._runner.new_reporter(f"List reload: {list_name}", list_name, dr_map)

        try:
            self._runner.pipeline.resolve(list_name, dr_map)
        except UnknownListError as exc:
            self._runner.report_failure(reporter, list_name, str(exc))
            return

        owner, repo = self._github_settings.owner_and_name
        branch = self._github_settings.branch
        reporter.update(":mag: Looking up the latest file for this list...")
        latest = self._github.find_latest_file_for_list(owner, repo, list_name, ref=branch)
        if latest is None:
            folder = list_folder_path(list_name, self._import_root)
            self._runner.report_failure(reporter, list_name, f"No import file found in `{folder}`")
            return

        reporter.update(f":file_folder: Found file `{latest.name}`, downloading and processing...")
        content = self._github.get_file_content(owner, repo, latest.path, branch)
        if content is None:
            self._runner.report_failure(reporter, list_name, f"Failed to fetch content for: `{latest.name}`")
            return

        self._runner.run(list_name, content, dr_map, reporter)


@lru_cache(maxsize=1)
def get_slack_command_service() -> SlackCommandService:
    return SlackCommandService(
        store=get_dr_map_store(),
        github=get_github_content_client(),
        runner=get_reload_runner(),
        notifier=get_slack_notifier(),
        github_settings=get_github_settings(),
        import_root=get_import_settings().import_root,
    )
