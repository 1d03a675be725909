"""
Queue consumer: pull a payload, run the job, acknowledge.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from drivesync.exceptions import ConfigurationError, JobParseError
from drivesync.intake.adapters.base import Message, MessageAdapter
from drivesync.intake.job import parse_job
from drivesync.sync.runner import SyncRunner
from drivesync.types import SyncSummary
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.intake.consumer")


class JobConsumer:
    """
    Runs queued jobs one at a time.

    Malformed payloads are logged and acknowledged so they don't come back.
    A job that completes, even with per-file errors in its summary, is
    acknowledged. A job that raises is left unacknowledged unless
    ``ack_failed_jobs`` is set, so the queue can redeliver it.
    ConfigurationError is never swallowed.
    """

    def __init__(
        self,
        adapter: MessageAdapter,
        runner: SyncRunner,
        *,
        topic: str = "jobs",
        ack_failed_jobs: bool = False,
        on_summary: Callable[[SyncSummary], Awaitable[None] | None] | None = None,
    ):
        self.adapter = adapter
        self.runner = runner
        self.topic = topic
        self.ack_failed_jobs = ack_failed_jobs
        self.on_summary = on_summary
        self.processed = 0
        self.rejected = 0
        self.failed = 0

    async def run(self, max_messages: int | None = None) -> None:
        """Consume until the adapter stops or ``max_messages`` have been handled."""
        logger.info(f"Consuming jobs from {self.topic}")
        handled = 0
        async for message in self.adapter.consume(self.topic):
            await self.handle(message)
            handled += 1
            if max_messages is not None and handled >= max_messages:
                await self.adapter.stop()
                break

    async def handle(self, message: Message) -> SyncSummary | None:
        try:
            job = parse_job(message.value)
        except JobParseError as e:
            self.rejected += 1
            logger.error(f"Dropping malformed job message {message.message_id}: {e}")
            await self.adapter.ack(message)
            return None

        try:
            summary = await self.runner.run(job)
        except ConfigurationError:
            raise
        except Exception as e:
            self.failed += 1
            logger.error(f"Job {job.kind.name} for connection {job.connection_id} failed: {e}", exc_info=True)
            if self.ack_failed_jobs:
                await self.adapter.ack(message)
            return None

        self.processed += 1
        await self.adapter.ack(message)
        if self.on_summary is not None:
            result = self.on_summary(summary)
            if result is not None:
                await result
        return summary
