"""
Change detection for remote leaves.

Decides per file whether to create a new watermark, update an existing one,
or skip the file. Pure: no I/O beyond the node snapshot and the prior
records passed in.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from drivesync.config.settings import DEFAULT_TIMEZONE_SKEW
from drivesync.sync.watermark import PriorRecords, WatermarkKey
from drivesync.types import RemoteNode, SyncAction, SyncDecision


class ChangeDetector:
    """
    Compares a leaf's remote modification time with its stored watermark.

    A file is stale when ``last_execution_time < modified_at - skew``.
    """

    def __init__(self, skew: timedelta = DEFAULT_TIMEZONE_SKEW):
        self.skew = skew

    def decide(self, node: RemoteNode, folder_id: str, prior: PriorRecords | None) -> SyncDecision:
        """
        Classify one leaf.

        Args:
            node: Leaf snapshot from the listing call
            folder_id: Id of the folder the leaf was listed under
            prior: Watermark records for the job's connection, or None for
                a full import

        Returns:
            CREATE_NEW, CREATE_UPDATE (with the matched record) or SKIP
        """
        if prior is None:
            return SyncDecision(SyncAction.CREATE_NEW, "Full import")

        record = prior.find(WatermarkKey(folder_id, node.name))
        if record is None:
            return SyncDecision(SyncAction.CREATE_NEW, "No prior watermark")

        if record.last_execution_time is None or node.modified_at is None:
            return SyncDecision(SyncAction.CREATE_UPDATE, "Watermark has no timestamp", record)

        stored = _as_utc(record.last_execution_time)
        adjusted = _as_utc(node.modified_at) - self.skew
        if stored < adjusted:
            return SyncDecision(SyncAction.CREATE_UPDATE, "Remote file changed since last sync", record)
        return SyncDecision(SyncAction.SKIP, "Unchanged since last sync", record)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
