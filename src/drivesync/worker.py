"""
Worker startup and lifecycle.

Initializes components in order:
1. Config (with validation)
2. Logging
3. Secrets
4. Connections (watermark database and sink)
5. Watermark table
6. Remote source and sync runner

Any failure in these steps raises ConfigurationError and the worker never
becomes ready.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Any

from drivesync.config.loader import Config, load_config
from drivesync.config.settings import SyncSettings
from drivesync.connections.manager import ConnectionManager
from drivesync.exceptions import ConfigurationError, DriveSyncError
from drivesync.intake.adapters import MessageAdapter, create_adapter
from drivesync.intake.consumer import JobConsumer
from drivesync.intake.job import parse_job
from drivesync.secrets import SecretsProvider
from drivesync.sources.base import RemoteTreeSource
from drivesync.sources.gdrive import GoogleDriveSource
from drivesync.sync.runner import SyncRunner
from drivesync.sync.watermark import WatermarkStore
from drivesync.types import SyncSummary
from drivesync.utils.logging import get_logger, setup_logging_from_config

logger = get_logger("drivesync.worker")


class Worker:
    """Owns the connection manager, source and runner for one process."""

    def __init__(
        self,
        project_dir: Path | None = None,
        env: str | None = None,
        *,
        config: Config | None = None,
        source: RemoteTreeSource | None = None,
    ):
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.env = env or os.environ.get("DRIVESYNC_ENV", "dev")
        self.config = config
        self.source = source

        self.settings: SyncSettings | None = None
        self.manager: ConnectionManager | None = None
        self.store: WatermarkStore | None = None
        self._secrets: dict[str, Any] = {}
        self.runner: SyncRunner | None = None

    @property
    def ready(self) -> bool:
        return self.runner is not None and self.manager is not None and self.manager.ready

    async def open_store(self, *, ensure_schema: bool = True) -> WatermarkStore:
        """
        Load config, fetch secrets and open the watermark database.

        Raises:
            ConfigurationError: If config, secrets or connections cannot be
                set up
        """
        if self.store is not None:
            return self.store

        if self.config is None:
            self.config = load_config(self.project_dir, env=self.env)
        else:
            self.config.validate()
        data = self.config.data
        setup_logging_from_config(data, self.project_dir)

        self.settings = SyncSettings.from_config(data.get("sync"))
        self._secrets = await SecretsProvider(data.get("secrets")).fetch()

        self.manager = ConnectionManager(data, self._secrets)
        await self.manager.open()

        store = WatermarkStore(
            self.manager.state_connection,
            schema=self.settings.watermark_schema,
            table=self.settings.watermark_table,
        )
        if ensure_schema:
            try:
                await asyncio.to_thread(store.ensure_schema)
            except DriveSyncError as e:
                raise ConfigurationError(f"Cannot prepare watermark table {store.table}: {e}") from e
        self.store = store
        return store

    async def initialize(self) -> Worker:
        """
        Build every component.

        Raises:
            ConfigurationError: If config, secrets, connections or the
                remote source cannot be set up
        """
        if self.ready:
            return self

        await self.open_store()
        if self.source is None:
            self.source = GoogleDriveSource.from_config(self.config.get("remote") or {}, self._secrets)
        await asyncio.to_thread(self.source.check)

        self.runner = SyncRunner(self.source, self.manager.sink, self.store, self.settings)
        logger.info(f"Worker ready (env={self.env})")
        return self

    async def run_payload(self, payload: str | bytes | dict[str, Any]) -> SyncSummary:
        """Parse and run one job payload. Raises JobParseError for a bad payload."""
        job = parse_job(payload)
        await self.initialize()
        return await self.runner.run(job)

    async def serve(self, adapter: MessageAdapter | None = None, *, max_messages: int | None = None) -> None:
        """Consume the configured queue until stopped."""
        await self.initialize()
        queue_config = self.config.get("queue") or {}
        adapter = adapter or create_adapter(queue_config)
        topic = queue_config.get("url") or queue_config.get("topic") or "jobs"
        consumer = JobConsumer(
            adapter,
            self.runner,
            topic=topic,
            ack_failed_jobs=bool(queue_config.get("ack_failed_jobs", False)),
        )
        async with adapter:
            await consumer.run(max_messages=max_messages)

    def close(self) -> None:
        if self.source is not None:
            self.source.close()
        if self.manager is not None:
            self.manager.close()
        self.runner = None
        self.store = None
