"""
lists_sync/domain/push_event.py

Push event aggregation and the monitored folder convention.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from lists_sync.schemas.webhook import PushEventPayload

IMPORT_FILE_SUFFIXES: tuple[str, ...] = (".csv", ".csv.gz")
BRANCH_REF_PREFIX = "refs/heads/"


@dataclass(frozen=True)
class RepoFile:
    """
    A file entry in the monitored repository.
    """

    name: str
    path: str


@dataclass(frozen=True)
class PushEvent:
    """
    Push event with touched paths aggregated across every commit.
    """

    owner: str
    repo: str
    branch: str
    head_sha: str | None
    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: PushEventPayload) -> PushEvent:
        owner, _, repo = payload.repository.full_name.partition("/")
        branch = payload.ref
        if branch.startswith(BRANCH_REF_PREFIX):
            branch = branch[len(BRANCH_REF_PREFIX):]

        added: list[str] = []
        modified: list[str] = []
        removed: list[str] = []
        for commit in payload.commits:
            added.extend(commit.added)
            modified.extend(commit.modified)
            removed.extend(commit.removed)

        head_sha = payload.head_commit.id if payload.head_commit else payload.after
        return cls(
            owner=owner,
            repo=repo,
            branch=branch,
            head_sha=head_sha,
            added=added,
            modified=modified,
            removed=removed,
        )

    def touches(self, path: str) -> bool:
        """
        True when ``path`` was added or modified by this push.
        """

        return path in self.modified or path in self.added


def is_import_file_name(name: str) -> bool:
    return name.endswith(IMPORT_FILE_SUFFIXES)


def list_name_for_path(path: str, import_root: str) -> str | None:
    """
    Return the list folder name for ``<import_root>/<list>/<file>.csv[.gz]``.
    """

    if not is_import_file_name(path):
        return None
    parts = path.split("/")
    if len(parts) < 3 or parts[0] != import_root or not parts[1]:
        return None
    return parts[1]


def is_import_file(path: str, import_root: str) -> bool:
    return list_name_for_path(path, import_root) is not None


def list_folder_path(list_name: str, import_root: str) -> str:
    return f"{import_root}/{list_name}"
