"""
lists_sync/domain package marker.
"""

from lists_sync.domain.drs import DataResourceMap, DrMapChange, DrMapChangeKind, compare_mappings, parse_dr_map
from lists_sync.domain.ingestion import IngestionJob, PipelineState
from lists_sync.domain.push_event import PushEvent, RepoFile

__all__ = [
    "DataResourceMap",
    "DrMapChange",
    "DrMapChangeKind",
    "compare_mappings",
    "parse_dr_map",
    "IngestionJob",
    "PipelineState",
    "PushEvent",
    "RepoFile",
]
