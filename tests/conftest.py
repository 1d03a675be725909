"""
Shared fixtures: in-memory DuckDB watermark store, in-memory tree and a
recording sink.
"""

from datetime import datetime, timezone

import pytest

from drivesync.connections.duckdb import DuckDBConnection
from drivesync.connections.storage import BaseStorageConnection, ChunkReader
from drivesync.exceptions import TransferError
from drivesync.sources.memory import InMemoryTreeSource
from drivesync.sync.watermark import WatermarkStore

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class RecordingSink(BaseStorageConnection):
    """Sink that keeps every object in a dict."""

    def __init__(self, fail_keys=()):
        super().__init__("recording", {"type": "memory"})
        self.objects: dict[str, bytes] = {}
        self.writes: list[str] = []
        self.content_types: dict[str, str | None] = {}
        self.fail_keys = set(fail_keys)

    def put_stream(self, key, chunks, *, content_type=None):
        self.writes.append(key)
        if key in self.fail_keys:
            raise TransferError(f"simulated sink failure for {key}")
        self.objects[key] = ChunkReader(chunks).read()
        self.content_types[key] = content_type
        return f"memory://{key}"


@pytest.fixture
def duckdb_connection():
    conn = DuckDBConnection("watermarks", {"type": "duckdb", "config": {"path": ":memory:"}})
    yield conn
    conn.close()


@pytest.fixture
def store(duckdb_connection):
    store = WatermarkStore(duckdb_connection)
    store.ensure_schema()
    return store


@pytest.fixture
def source():
    return InMemoryTreeSource()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
