"""
Recursive walk over a remote folder tree.

Folders recurse, transferable leaves go through change detection and then
the transfer pipeline, everything else is counted and ignored.
"""

from __future__ import annotations

import asyncio

from drivesync.exceptions import ConfigurationError
from drivesync.sources.base import RemoteTreeSource
from drivesync.sync.detector import ChangeDetector
from drivesync.sync.transfer import TransferPipeline
from drivesync.types import (
    NodeKind,
    RemoteNode,
    SyncAction,
    SyncContext,
    SyncSummary,
    TransferOutcome,
)
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.sync.walker")


class TreeWalker:
    """
    Walks one folder subtree per call.

    A failed listing aborts only the subtree it belongs to; folders reached
    from a higher listing carry on. With ``max_concurrent_transfers`` above 1
    the leaves of one folder are transferred concurrently; the default of 1
    keeps the walk strictly sequential.
    """

    def __init__(
        self,
        source: RemoteTreeSource,
        detector: ChangeDetector,
        pipeline: TransferPipeline,
        *,
        max_concurrent_transfers: int = 1,
    ):
        self.source = source
        self.detector = detector
        self.pipeline = pipeline
        self.max_concurrent_transfers = max_concurrent_transfers

    async def walk(self, folder_id: str, context: SyncContext, summary: SyncSummary) -> None:
        """
        Sync every leaf below ``folder_id`` into ``summary``.

        Never raises for remote or storage failures; those are logged and
        counted in ``summary.errors``. ConfigurationError propagates.
        """
        summary.folders += 1
        try:
            children = await asyncio.to_thread(lambda: list(self.source.list_children(folder_id)))
        except ConfigurationError:
            raise
        except Exception as e:
            summary.errors += 1
            logger.error(f"Error listing folder {folder_id} (path='{context.path or '/'}'): {e}")
            return

        summary.listed += len(children)
        logger.debug(f"Listed {len(children)} item(s) in {folder_id} (path='{context.path or '/'}')")

        leaves: list[RemoteNode] = []
        for child in children:
            if child.kind == NodeKind.FOLDER:
                await self._flush(leaves, folder_id, context, summary)
                leaves = []
                await self.walk(child.id, context.descend(child), summary)
            elif child.kind.is_leaf:
                leaves.append(child)
                if self.max_concurrent_transfers == 1:
                    await self._flush(leaves, folder_id, context, summary)
                    leaves = []
            else:
                summary.unsupported += 1
                logger.debug(f"Skipping {child.name} ({child.mime_type}): not a folder, spreadsheet or CSV")

        await self._flush(leaves, folder_id, context, summary)

    async def _flush(
        self,
        leaves: list[RemoteNode],
        folder_id: str,
        context: SyncContext,
        summary: SyncSummary,
    ) -> None:
        if not leaves:
            return
        if len(leaves) == 1:
            await self._sync_leaf(leaves[0], folder_id, context, summary)
            return

        semaphore = asyncio.Semaphore(self.max_concurrent_transfers)

        async def bounded(leaf: RemoteNode) -> None:
            async with semaphore:
                await self._sync_leaf(leaf, folder_id, context, summary)

        await asyncio.gather(*(bounded(leaf) for leaf in leaves))

    async def _sync_leaf(self, node: RemoteNode, folder_id: str, context: SyncContext, summary: SyncSummary) -> None:
        decision = self.detector.decide(node, folder_id, context.prior)
        if decision.action == SyncAction.SKIP:
            summary.skipped += 1
            logger.debug(f"Skipping {node.name}: {decision.reason}")
            return

        logger.debug(f"{decision.action.value} {node.name}: {decision.reason}")
        result = await self.pipeline.transfer(node, folder_id, context.job, decision)
        if result.outcome == TransferOutcome.SUCCESSFUL:
            if decision.action == SyncAction.CREATE_UPDATE:
                summary.updated += 1
            else:
                summary.created += 1
            if result.location:
                summary.add_output(result.location)
        else:
            summary.errors += 1
