"""
Incremental sync engine.

Walks a remote folder tree, decides per file whether it changed since the
last run, streams changed files to the sink and records each outcome in the
watermark table.
"""

from drivesync.sync.detector import ChangeDetector
from drivesync.sync.runner import SyncRunner
from drivesync.sync.transfer import TransferPipeline, sink_key
from drivesync.sync.walker import TreeWalker
from drivesync.sync.watermark import (
    ExecutionStatus,
    PriorRecords,
    WatermarkKey,
    WatermarkRecord,
    WatermarkStore,
)
from drivesync.types import (
    JobKind,
    NodeKind,
    RemoteNode,
    SyncAction,
    SyncContext,
    SyncDecision,
    SyncJob,
    SyncSummary,
    TransferOutcome,
    TransferResult,
)

__all__ = [
    "ChangeDetector",
    "ExecutionStatus",
    "JobKind",
    "NodeKind",
    "PriorRecords",
    "RemoteNode",
    "SyncAction",
    "SyncContext",
    "SyncDecision",
    "SyncJob",
    "SyncRunner",
    "SyncSummary",
    "TransferOutcome",
    "TransferPipeline",
    "TransferResult",
    "TreeWalker",
    "WatermarkKey",
    "WatermarkRecord",
    "WatermarkStore",
    "sink_key",
]
