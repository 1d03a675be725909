"""
End-to-end runs: in-memory tree, DuckDB watermarks and a recording sink.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from drivesync.config.settings import SyncSettings
from drivesync.exceptions import ConfigurationError, WatermarkError
from drivesync.sources.base import CSV_MIME_TYPE
from drivesync.sources.gdrive import GoogleDriveSource
from drivesync.sync.runner import SyncRunner
from drivesync.types import JobKind, SyncJob

MODIFIED = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)


def _job(kind, folder="F1"):
    return SyncJob(kind, owner_id="180", connection_id="359", root_folder_id=folder)


class TestScenarios:
    @pytest.mark.asyncio
    async def test_full_import_single_file(self, source, sink, store):
        source.add_file("F1", "a.csv", b"x,y\n1,2\n", modified_at=MODIFIED)

        summary = await SyncRunner(source, sink, store).run(_job(JobKind.FULL_IMPORT))

        assert summary.created == 1
        assert summary.errors == 0
        assert sink.objects == {"180/F1/a.csv.csv": b"x,y\n1,2\n"}
        (record,) = store.load_for_connection("359")
        assert record.name == "F1-a.csv"
        assert record.event_type == "a.csv"
        assert record.last_execution_status == "Successful"
        assert record.last_execution_time == MODIFIED

    @pytest.mark.asyncio
    async def test_sync_unchanged_file_is_skipped(self, source, sink, store):
        source.add_file("F1", "a.csv", b"x,y\n1,2\n", modified_at=MODIFIED)
        runner = SyncRunner(source, sink, store)
        await runner.run(_job(JobKind.FULL_IMPORT))
        (before,) = store.load_for_connection("359")
        sink.writes.clear()

        summary = await runner.run(_job(JobKind.INCREMENTAL_SYNC))

        assert summary.skipped == 1
        assert summary.transferred == 0
        assert sink.writes == []
        (after,) = store.load_for_connection("359")
        assert after == before

    @pytest.mark.asyncio
    async def test_nested_document_is_exported(self, source, sink, store):
        source.add_folder("F1", "reports", node_id="F2")
        source.add_document("F2", "b", b"col\n1\n", node_id="b")

        summary = await SyncRunner(source, sink, store).run(_job(JobKind.FULL_IMPORT))

        assert source.listing_calls() == ["F1", "F2"]
        assert [c for c in source.calls if c[0] == "export"] == [("export", "b", CSV_MIME_TYPE)]
        assert list(sink.objects) == ["180/F2/b.csv"]
        assert summary.created == 1

    @pytest.mark.asyncio
    async def test_repeated_full_import_keeps_one_record_per_file(self, source, sink, store):
        source.add_file("F1", "a.csv", b"x,y\n1,2\n", modified_at=MODIFIED)
        runner = SyncRunner(source, sink, store)

        await runner.run(_job(JobKind.FULL_IMPORT))
        summary = await runner.run(_job(JobKind.FULL_IMPORT))

        assert summary.created == 1
        (record,) = store.load_for_connection("359")
        assert record.name == "F1-a.csv"
        assert record.last_execution_status == "Successful"

    @pytest.mark.asyncio
    async def test_invalid_drive_credentials_raise(self, sink, store):
        source = GoogleDriveSource(credentials_info={"type": "service_account"})

        with pytest.raises(ConfigurationError, match="Invalid Google service account credentials"):
            await SyncRunner(source, sink, store).run(_job(JobKind.FULL_IMPORT))
        assert sink.writes == []


class TestIncremental:
    @pytest.mark.asyncio
    async def test_changed_file_updates_existing_record(self, source, sink, store):
        node = source.add_file("F1", "a.csv", b"v1", node_id="a", modified_at=MODIFIED)
        runner = SyncRunner(source, sink, store)
        await runner.run(_job(JobKind.FULL_IMPORT))

        newer = MODIFIED + timedelta(days=1)
        source._children["F1"] = [replace(node, modified_at=newer)]
        source._content["a"] = b"v2"

        summary = await runner.run(_job(JobKind.INCREMENTAL_SYNC))

        assert summary.updated == 1
        assert sink.objects["180/F1/a.csv.csv"] == b"v2"
        (record,) = store.load_for_connection("359")
        assert record.last_execution_time == newer
        assert record.last_execution_status == "Successful"

    @pytest.mark.asyncio
    async def test_new_file_in_sync_is_created(self, source, sink, store):
        source.add_file("F1", "a.csv", b"a", modified_at=MODIFIED)
        runner = SyncRunner(source, sink, store)
        await runner.run(_job(JobKind.FULL_IMPORT))
        source.add_file("F1", "b.csv", b"b", modified_at=MODIFIED)

        summary = await runner.run(_job(JobKind.INCREMENTAL_SYNC))

        assert (summary.created, summary.skipped) == (1, 1)
        assert len(store.load_for_connection("359")) == 2

    @pytest.mark.asyncio
    async def test_same_name_in_sibling_folders_tracked_separately(self, source, sink, store):
        source.add_folder("F1", "one", node_id="F2")
        source.add_folder("F1", "two", node_id="F3")
        source.add_file("F2", "data.csv", b"2", modified_at=MODIFIED)
        source.add_file("F3", "data.csv", b"3", modified_at=MODIFIED)
        runner = SyncRunner(source, sink, store)
        await runner.run(_job(JobKind.FULL_IMPORT))

        summary = await runner.run(_job(JobKind.INCREMENTAL_SYNC))

        assert summary.skipped == 2
        assert {r.name for r in store.load_for_connection("359")} == {"F2-data.csv", "F3-data.csv"}

    @pytest.mark.asyncio
    async def test_prior_records_reach_nested_folders(self, source, sink, store):
        source.add_folder("F1", "sub", node_id="F2")
        source.add_file("F2", "b.csv", b"b", modified_at=MODIFIED)
        runner = SyncRunner(source, sink, store)
        await runner.run(_job(JobKind.FULL_IMPORT))

        summary = await runner.run(_job(JobKind.INCREMENTAL_SYNC))

        assert summary.skipped == 1
        assert len(store.load_for_connection("359")) == 1

    @pytest.mark.asyncio
    async def test_legacy_mode_drops_prior_records_below_root(self, source, sink, store):
        source.add_folder("F1", "sub", node_id="F2")
        source.add_file("F2", "b.csv", b"b", modified_at=MODIFIED)
        runner = SyncRunner(source, sink, store, SyncSettings(forward_prior_records=False))
        await runner.run(_job(JobKind.FULL_IMPORT))

        summary = await runner.run(_job(JobKind.INCREMENTAL_SYNC))

        assert summary.created == 1
        assert summary.skipped == 0
        assert len(store.load_for_connection("359")) == 2

    @pytest.mark.asyncio
    async def test_watermark_load_failure_reports_error(self, source, sink):
        store = MagicMock()
        store.load_for_connection.side_effect = WatermarkError("db down")
        source.add_file("F1", "a.csv", b"a")

        summary = await SyncRunner(source, sink, store).run(_job(JobKind.INCREMENTAL_SYNC))

        assert summary.errors == 1
        assert source.listing_calls() == []
        assert sink.writes == []

    @pytest.mark.asyncio
    async def test_other_connections_ignored(self, source, sink, store):
        source.add_file("F1", "a.csv", b"a", modified_at=MODIFIED)
        runner = SyncRunner(source, sink, store)
        await runner.run(SyncJob(JobKind.FULL_IMPORT, "180", "999", "F1"))

        summary = await runner.run(_job(JobKind.INCREMENTAL_SYNC))

        assert summary.created == 1
        assert summary.skipped == 0
