"""
lists_sync/domain/drs.py

Configuration mapping from list name to data resource UID, and its diff.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from lists_sync.config import ListsEnvironment

PARTITIONS: tuple[str, ...] = (ListsEnvironment.PROD, ListsEnvironment.TEST)


class DrMapChangeKind:
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


def _frozen(values: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class DataResourceMap:
    """
    Immutable drs.json snapshot partitioned by Lists environment.

    Instances are shared by reference between concurrent reloads, so the
    partitions are read-only views over private copies.
    """

    prod: Mapping[str, str] = field(default_factory=dict)
    test: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "prod", _frozen(self.prod))
        object.__setattr__(self, "test", _frozen(self.test))

    def partition(self, environment: str) -> Mapping[str, str]:
        if environment == ListsEnvironment.PROD:
            return self.prod
        if environment == ListsEnvironment.TEST:
            return self.test
        raise ValueError(f"Unknown Lists environment '{environment}'.")

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"prod": dict(self.prod), "test": dict(self.test)}


@dataclass(frozen=True)
class DrMapChange:
    """
    One difference between two mapping snapshots.
    """

    partition: str
    kind: str
    key: str
    old_value: str | None = None
    new_value: str | None = None


def parse_dr_map(payload: Any) -> DataResourceMap:
    """
    Validate a decoded drs.json document and build a mapping snapshot.

    Raises ValueError describing the first shape violation found.
    """

    if not isinstance(payload, dict):
        raise ValueError("drs.json must contain a JSON object.")

    partitions: dict[str, dict[str, str]] = {}
    for name in PARTITIONS:
        section = payload.get(name, {})
        if section is None:
            section = {}
        if not isinstance(section, dict):
            raise ValueError(f"drs.json '{name}' must be an object of list name to UID.")
        for key, value in section.items():
            if not isinstance(value, str):
                raise ValueError(f"drs.json '{name}.{key}' must be a string UID.")
        partitions[name] = section

    return DataResourceMap(prod=partitions["prod"], test=partitions["test"])


def _compare_partition(
    partition: str,
    old_section: Mapping[str, str],
    new_section: Mapping[str, str],
) -> list[DrMapChange]:
    changes: list[DrMapChange] = []

    for key, value in new_section.items():
        if key not in old_section:
            changes.append(DrMapChange(partition, DrMapChangeKind.ADDED, key, new_value=value))
        elif old_section[key] != value:
            changes.append(
                DrMapChange(
                    partition,
                    DrMapChangeKind.CHANGED,
                    key,
                    old_value=old_section[key],
                    new_value=value,
                )
            )

    for key, value in old_section.items():
        if key not in new_section:
            changes.append(DrMapChange(partition, DrMapChangeKind.REMOVED, key, old_value=value))

    return changes


def compare_mappings(old: DataResourceMap, new: DataResourceMap) -> list[DrMapChange]:
    """
    Diff two snapshots partition by partition (prod, then test).

    Within a partition, additions and changes follow ``new`` insertion
    order, then removals follow ``old`` insertion order.
    """

    changes: list[DrMapChange] = []
    for partition in PARTITIONS:
        changes.extend(
            _compare_partition(partition, old.partition(partition), new.partition(partition))
        )
    return changes
