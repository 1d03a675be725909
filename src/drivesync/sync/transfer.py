"""
Per-file transfer: remote content -> sink store, with watermark bookkeeping.

Each call walks the same states:

1. open the source stream (CSV export for documents, raw bytes otherwise)
2. pre-commit the watermark (insert, or advance the matched record) and
   keep the affected record id
3. stream the bytes into the sink
4. commit the outcome (Successful or Error) on that record id

Errors other than ConfigurationError never escape; they are logged and
reported in the result.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Iterator

from drivesync.connections.storage import BaseStorageConnection
from drivesync.exceptions import ConfigurationError, DriveSyncError, WatermarkError
from drivesync.sources.base import CSV_MIME_TYPE, RemoteTreeSource
from drivesync.sync.watermark import ExecutionStatus, WatermarkKey, WatermarkStore
from drivesync.types import (
    RemoteNode,
    SyncAction,
    SyncDecision,
    SyncJob,
    TransferOutcome,
    TransferResult,
)
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.sync.transfer")


def sink_key(job: SyncJob, folder_id: str, node: RemoteNode, suffix: str = ".csv") -> str:
    """``<ownerId>/<folderId>/<fileName><suffix>``; the suffix never depends on content."""
    return f"{job.owner_id}/{folder_id}/{node.name}{suffix}"


class TransferPipeline:
    """Streams one leaf into the sink and records the outcome."""

    def __init__(
        self,
        source: RemoteTreeSource,
        sink: BaseStorageConnection,
        store: WatermarkStore,
        *,
        key_suffix: str = ".csv",
        clock: Callable[[], datetime] | None = None,
    ):
        self.source = source
        self.sink = sink
        self.store = store
        self.key_suffix = key_suffix
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def transfer(
        self,
        node: RemoteNode,
        folder_id: str,
        job: SyncJob,
        decision: SyncDecision,
    ) -> TransferResult:
        """
        Transfer one leaf according to ``decision``.

        Returns:
            TransferResult with SUCCESSFUL or ERROR (SKIPPED for SKIP decisions)
        """
        if not decision.should_transfer:
            return TransferResult(TransferOutcome.SKIPPED, record_id=decision.record.id if decision.record else None)

        key = sink_key(job, folder_id, node, self.key_suffix)
        record_id: int | None = None
        try:
            stream = await asyncio.to_thread(self.source.open_content, node)
            record_id = await asyncio.to_thread(self._pre_commit, node, folder_id, job, decision)
            location = await asyncio.to_thread(self._upload, key, stream)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(
                f"Transfer failed file={node.name} folder={folder_id} record={record_id}: {e}",
                exc_info=not isinstance(e, DriveSyncError),
            )
            if record_id is not None:
                await self._commit(record_id, ExecutionStatus.ERROR, node)
            return TransferResult(TransferOutcome.ERROR, record_id=record_id, error=str(e))

        logger.info(f"Uploaded {node.name} to {location}")
        await self._commit(record_id, ExecutionStatus.SUCCESSFUL, node)
        return TransferResult(TransferOutcome.SUCCESSFUL, record_id=record_id, location=location)

    def _pre_commit(self, node: RemoteNode, folder_id: str, job: SyncJob, decision: SyncDecision) -> int:
        if decision.action == SyncAction.CREATE_UPDATE and decision.record is not None:
            return self.store.mark_updated(decision.record.id, node.modified_at)
        record = self.store.insert_new(job.connection_id, WatermarkKey(folder_id, node.name), node)
        return record.id

    def _upload(self, key: str, stream: Iterator[bytes]) -> str:
        return self.sink.put_stream(key, stream, content_type=CSV_MIME_TYPE)

    async def _commit(self, record_id: int, status: ExecutionStatus, node: RemoteNode) -> None:
        try:
            await asyncio.to_thread(self.store.record_outcome, record_id, status, self.clock())
        except WatermarkError as e:
            logger.error(f"Could not record {status.value} for file={node.name} record={record_id}: {e}")
