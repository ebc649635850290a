"""
lists_sync/services/config_resolver.py

Loads drs.json from the monitored repository and owns the active mapping.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache

from lists_sync.config import get_import_settings
from lists_sync.connectors.github_connector import GitHubContentClient, get_github_content_client
from lists_sync.domain.drs import DataResourceMap, DrMapChange, compare_mappings, parse_dr_map
from lists_sync.errors import ConfigLoadError

logger = logging.getLogger(__name__)


class DrMapStore:
    """
    Holds the active mapping snapshot.

    Readers take the current reference and keep using it for a whole run;
    writers swap in a new snapshot with one assignment.
    """

    def __init__(self, initial: DataResourceMap | None = None) -> None:
        self._current = initial or DataResourceMap()

    def current(self) -> DataResourceMap:
        return self._current

    def replace(self, new_map: DataResourceMap) -> DataResourceMap:
        previous = self._current
        self._current = new_map
        return previous


@dataclass(frozen=True)
class DrMapReload:
    previous: DataResourceMap
    current: DataResourceMap
    changes: list[DrMapChange]


def load_dr_map(
    github: GitHubContentClient,
    owner: str,
    repo: str,
    ref: str | None = None,
    *,
    path: str = "drs.json",
) -> DataResourceMap:
    """
    Fetch and parse drs.json at ``ref`` (``HEAD`` when omitted).

    Raises ConfigLoadError when the file is missing, unreadable or malformed.
    """

    content = github.get_file_content(owner, repo, path, ref or "HEAD")
    if content is None:
        raise ConfigLoadError(f"Failed to load {path} from GitHub: content unavailable")

    try:
        dr_map = parse_dr_map(json.loads(content))
    except ValueError as exc:
        raise ConfigLoadError(f"Failed to load {path} from GitHub: {exc}") from exc

    logger.info(
        "Loaded %s ref=%s prod_lists=%s test_lists=%s",
        path,
        ref or "HEAD",
        len(dr_map.prod),
        len(dr_map.test),
    )
    return dr_map


class ConfigurationResolver:
    """
    Single write path for the mapping: initial load and push-triggered reloads.
    """

    def __init__(
        self,
        *,
        github: GitHubContentClient,
        store: DrMapStore,
        config_path: str,
    ) -> None:
        self._github = github
        self.store = store
        self.config_path = config_path

    def load_initial(self, owner: str, repo: str) -> DataResourceMap:
        dr_map = load_dr_map(self._github, owner, repo, path=self.config_path)
        self.store.replace(dr_map)
        return dr_map

    def reload(self, owner: str, repo: str, ref: str | None = None) -> DrMapReload:
        """
        Load a new snapshot and swap it in.

        On ConfigLoadError the previous snapshot stays active.
        """

        new_map = load_dr_map(self._github, owner, repo, ref, path=self.config_path)
        previous = self.store.replace(new_map)
        return DrMapReload(
            previous=previous,
            current=new_map,
            changes=compare_mappings(previous, new_map),
        )


@lru_cache(maxsize=1)
def get_dr_map_store() -> DrMapStore:
    return DrMapStore()


@lru_cache(maxsize=1)
def get_configuration_resolver() -> ConfigurationResolver:
    return ConfigurationResolver(
        github=get_github_content_client(),
        store=get_dr_map_store(),
        config_path=get_import_settings().drs_config_path,
    )
