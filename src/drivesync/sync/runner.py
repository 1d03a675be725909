"""
Job runner: wires the walker, detector, pipeline and watermark store for one
parsed job.
"""

from __future__ import annotations

import asyncio

from drivesync.config.settings import SyncSettings
from drivesync.connections.storage import BaseStorageConnection
from drivesync.exceptions import WatermarkError
from drivesync.sources.base import RemoteTreeSource
from drivesync.sync.detector import ChangeDetector
from drivesync.sync.transfer import TransferPipeline
from drivesync.sync.walker import TreeWalker
from drivesync.sync.watermark import PriorRecords, WatermarkStore
from drivesync.types import JobKind, SyncContext, SyncJob, SyncSummary
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.sync.runner")


class SyncRunner:
    """
    Runs jobs to completion, one at a time per caller.

    FULL_IMPORT walks with no prior records, so every leaf is new.
    INCREMENTAL_SYNC first loads the connection's watermark records.
    """

    def __init__(
        self,
        source: RemoteTreeSource,
        sink: BaseStorageConnection,
        store: WatermarkStore,
        settings: SyncSettings | None = None,
    ):
        self.settings = settings or SyncSettings()
        self.store = store
        self.pipeline = TransferPipeline(source, sink, store, key_suffix=self.settings.key_suffix)
        self.walker = TreeWalker(
            source,
            ChangeDetector(self.settings.timezone_skew),
            self.pipeline,
            max_concurrent_transfers=self.settings.max_concurrent_transfers,
        )

    async def run(self, job: SyncJob) -> SyncSummary:
        """
        Run one job.

        Returns:
            Summary counters; failures show up in ``errors`` rather than raising
        """
        summary = SyncSummary(job=job)
        prior: PriorRecords | None = None

        if job.kind == JobKind.INCREMENTAL_SYNC:
            try:
                records = await asyncio.to_thread(self.store.load_for_connection, job.connection_id)
            except WatermarkError as e:
                summary.errors += 1
                logger.error(f"Error loading watermarks for connection {job.connection_id}: {e}")
                return summary
            prior = PriorRecords(records, match_key=self.settings.match_key)
            logger.info(f"Loaded {len(prior)} watermark(s) for connection {job.connection_id}")

        context = SyncContext(job=job, prior=prior, forward_prior_records=self.settings.forward_prior_records)
        logger.info(f"Starting {job.kind.name} of folder {job.root_folder_id} (connection {job.connection_id})")
        await self.walker.walk(job.root_folder_id, context, summary)

        logger.info(
            f"Finished {job.kind.name} of folder {job.root_folder_id}: created={summary.created} "
            f"updated={summary.updated} skipped={summary.skipped} errors={summary.errors}"
        )
        return summary
