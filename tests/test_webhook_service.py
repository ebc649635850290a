"""
tests/test_webhook_service.py

Tests for push handling: configuration reloads and list imports.
"""

from __future__ import annotations

import json

import pytest

from lists_sync.config import ListsEnvironment
from lists_sync.domain.drs import parse_dr_map
from lists_sync.domain.ingestion import IngestProgress
from lists_sync.domain.push_event import PushEvent
from lists_sync.services.config_resolver import ConfigurationResolver, DrMapStore
from lists_sync.services.ingestion_pipeline import IngestionPipeline
from lists_sync.services.reload_runner import ReloadRunner
from lists_sync.services.webhook_service import WebhookService
from tests.fakes import FakeGitHub, FakeListsClient, FakeNotifier

INITIAL = {"prod": {"Foo": "A"}, "test": {"Foo": "dr-test-foo", "Bar": "dr-test-bar"}}


class Harness:
    def __init__(self, github_settings, lists_settings, fast_polling) -> None:
        self.github = FakeGitHub()
        self.notifier = FakeNotifier()
        self.lists_client = FakeListsClient()
        self.store = DrMapStore(parse_dr_map(INITIAL))
        runner = ReloadRunner(
            pipeline=IngestionPipeline(
                lists_client=self.lists_client,
                environment=ListsEnvironment.TEST,
                polling=fast_polling,
            ),
            notifier=self.notifier,
            github_settings=github_settings,
            lists_settings=lists_settings,
            import_root="imported_GoogleSheets",
        )
        self.service = WebhookService(
            resolver=ConfigurationResolver(github=self.github, store=self.store, config_path="drs.json"),
            github=self.github,
            runner=runner,
            notifier=self.notifier,
            branch="main",
            import_root="imported_GoogleSheets",
        )


@pytest.fixture()
def harness(github_settings, lists_settings, fast_polling) -> Harness:
    return Harness(github_settings, lists_settings, fast_polling)


def _push(*, added=(), modified=(), branch="main") -> PushEvent:
    return PushEvent(
        owner="example-org",
        repo="lists-data",
        branch=branch,
        head_sha="head-sha",
        added=list(added),
        modified=list(modified),
    )


class TestConfigurationReload:
    def test_changed_value_reported_once_in_production(self, harness: Harness) -> None:
        new_config = {"prod": {"Foo": "B"}, "test": INITIAL["test"]}
        harness.github.files["drs.json"] = json.dumps(new_config)

        harness.service.handle_push(_push(modified=["drs.json"]))

        assert harness.store.current().prod["Foo"] == "B"
        assert len(harness.notifier.posted) == 1
        production, testing = harness.notifier.posted[0].split("*Testing*")
        assert production.count("• Changed: `Foo` → `A` to `B`") == 1
        assert "• No changes" in testing
        assert harness.github.content_requests == [("drs.json", "head-sha")]

    def test_load_failure_keeps_previous_mapping(self, harness: Harness) -> None:
        harness.github.files["drs.json"] = "{not json"
        before = harness.store.current()

        harness.service.handle_push(_push(modified=["drs.json"]))

        assert harness.store.current() is before
        assert "Error updating DRS configuration" in harness.notifier.posted[0]

    def test_added_config_file_also_triggers_reload(self, harness: Harness) -> None:
        harness.github.files["drs.json"] = json.dumps(INITIAL)

        harness.service.handle_push(_push(added=["drs.json"]))

        assert "No changes" in harness.notifier.posted[0]


class TestImports:
    def test_only_first_import_file_is_processed(self, harness: Harness) -> None:
        harness.github.files["imported_GoogleSheets/Foo/1.csv"] = "a\n"
        harness.github.files["imported_GoogleSheets/Bar/2.csv"] = "b\n"

        harness.service.handle_push(
            _push(added=["imported_GoogleSheets/Foo/1.csv", "imported_GoogleSheets/Bar/2.csv"])
        )

        assert harness.github.content_requests == [("imported_GoogleSheets/Foo/1.csv", "head-sha")]
        assert harness.lists_client.calls.count("upload:Foo") == 1
        assert "upload:Bar" not in harness.lists_client.calls

    def test_non_import_paths_are_ignored(self, harness: Harness) -> None:
        harness.service.handle_push(_push(added=["README.md", "imported_GoogleSheets/top.csv"]))

        assert harness.github.content_requests == []
        assert harness.notifier.posted == []

    def test_successful_import_updates_one_message(self, harness: Harness) -> None:
        harness.github.files["imported_GoogleSheets/Foo/1.csv"] = "a\n"

        harness.service.handle_push(_push(added=["imported_GoogleSheets/Foo/1.csv"]))

        assert len(harness.notifier.posted) == 1
        assert "List push: Foo" in harness.notifier.posted[0]
        assert "https://github.com/example-org/lists-data/tree/main/imported_GoogleSheets/Foo" in harness.notifier.posted[0]
        assert "https://lists.test.ala.org.au/list/dr-test-foo" in harness.notifier.posted[0]
        assert "completed successfully" in harness.notifier.last_text

    def test_missing_content_reports_failure(self, harness: Harness) -> None:
        harness.service.handle_push(_push(added=["imported_GoogleSheets/Foo/1.csv"]))

        assert "Failed to fetch content for: `1.csv`" in harness.notifier.last_text
        assert harness.lists_client.calls == []

    def test_pipeline_failure_is_reported(self, harness: Harness) -> None:
        harness.github.files["imported_GoogleSheets/Foo/1.csv"] = "a\n"
        harness.lists_client.progress = [IngestProgress(completed=False)]

        harness.service.handle_push(_push(added=["imported_GoogleSheets/Foo/1.csv"]))

        assert "List reload failed for: *Foo*" in harness.notifier.last_text
        assert "did not complete" in harness.notifier.last_text

    def test_unmapped_list_is_reported(self, harness: Harness) -> None:
        harness.github.files["imported_GoogleSheets/Unknown/1.csv"] = "a\n"

        harness.service.handle_push(_push(added=["imported_GoogleSheets/Unknown/1.csv"]))

        assert "No dataResourceUid found for list: Unknown" in harness.notifier.last_text
        assert harness.lists_client.calls == []

    def test_import_uses_reloaded_mapping_from_same_push(self, harness: Harness) -> None:
        new_config = {"prod": {}, "test": {"Foo": "dr-new-foo"}}
        harness.github.files["drs.json"] = json.dumps(new_config)
        harness.github.files["imported_GoogleSheets/Foo/1.csv"] = "a\n"

        harness.service.handle_push(_push(added=["imported_GoogleSheets/Foo/1.csv"], modified=["drs.json"]))

        assert harness.lists_client.calls[0] == "metadata:dr-new-foo"


class TestBranchFilter:
    def test_other_branches_are_ignored(self, harness: Harness) -> None:
        harness.github.files["drs.json"] = json.dumps({"prod": {}, "test": {}})

        harness.service.handle_push(
            _push(added=["imported_GoogleSheets/Foo/1.csv"], modified=["drs.json"], branch="feature/x")
        )

        assert harness.github.content_requests == []
        assert harness.notifier.posted == []
