"""
Watermark table accessors.

One row per distinct leaf file ever seen under a connection, recording the
remote modification time of the last synced version and the outcome of the
last attempt. Rows are never deleted here.

Reads and writes are separate statements with no transaction around them,
so two jobs syncing the same connection concurrently can race on
read-then-upsert. Run one job per connection at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from drivesync.connections.base import BaseConnection
from drivesync.exceptions import WatermarkError
from drivesync.types import RemoteNode
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.sync.watermark")

RECORD_STATUS_ACTIVE = "Active"
FLOW_TYPE_HISTORICAL = "HISTORICAL"

_COLUMNS = (
    "id",
    "name",
    "connection_id",
    "status",
    "event_type",
    "flow_type",
    "last_execution_time",
    "last_execution_status",
    "last_modified",
)


class ExecutionStatus(str, Enum):
    IN_PROGRESS = "In Progress"
    SUCCESSFUL = "Successful"
    ERROR = "Error"


@dataclass(frozen=True)
class WatermarkKey:
    """Composite identity of a leaf within a connection."""

    folder_id: str
    file_name: str

    @property
    def name(self) -> str:
        return f"{self.folder_id}-{self.file_name}"


@dataclass
class WatermarkRecord:
    id: int
    connection_id: str
    name: str
    event_type: str
    status: str = RECORD_STATUS_ACTIVE
    flow_type: str = FLOW_TYPE_HISTORICAL
    last_execution_time: datetime | None = None
    last_execution_status: str | None = None
    last_modified: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> WatermarkRecord:
        return cls(
            id=int(row["id"]),
            connection_id=str(row["connection_id"]),
            name=row["name"],
            event_type=row["event_type"],
            status=row.get("status") or RECORD_STATUS_ACTIVE,
            flow_type=row.get("flow_type") or FLOW_TYPE_HISTORICAL,
            last_execution_time=_from_db_time(row.get("last_execution_time")),
            last_execution_status=row.get("last_execution_status"),
            last_modified=_from_db_time(row.get("last_modified")),
        )


class PriorRecords:
    """
    Lookup index over the watermark rows loaded for one connection.

    ``match_key="composite"`` finds a record by folder id and file name;
    ``"event_type"`` matches on the file name alone and returns the first
    hit, which can pick up a same-named file from a sibling folder.
    """

    def __init__(self, records: Iterable[WatermarkRecord], match_key: str = "composite"):
        self.records = list(records)
        self.match_key = match_key
        self._by_name: dict[str, WatermarkRecord] = {}
        self._by_event_type: dict[str, WatermarkRecord] = {}
        for record in self.records:
            self._by_name.setdefault(record.name, record)
            self._by_event_type.setdefault(record.event_type, record)

    def find(self, key: WatermarkKey) -> WatermarkRecord | None:
        if self.match_key == "event_type":
            return self._by_event_type.get(key.file_name)
        return self._by_name.get(key.name)

    def __len__(self) -> int:
        return len(self.records)


class WatermarkStore:
    """Parameterized reads and writes against the watermark table."""

    def __init__(self, connection: BaseConnection, *, schema: str = "api_connectors", table: str = "flows"):
        self.connection = connection
        self.schema = schema
        self.table = f"{schema}.{table}"
        self.sequence = f"{schema}.{table}_id_seq"

    def _run(self, query: str, params: tuple = (), *, fetch: bool = False, **context: Any) -> list[dict[str, Any]]:
        try:
            return self.connection.execute_params(query, params, fetch=fetch)
        except Exception as e:
            raise WatermarkError(f"Watermark query failed on {self.table}: {e}", details=context) from e

    def ensure_schema(self) -> None:
        """Create the schema, id sequence and table if they don't exist."""
        self._run(f"CREATE SCHEMA IF NOT EXISTS {self.schema}")
        self._run(f"CREATE SEQUENCE IF NOT EXISTS {self.sequence}")
        self._run(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id BIGINT DEFAULT nextval('{self.sequence}') PRIMARY KEY,
                name VARCHAR,
                connection_id VARCHAR,
                status VARCHAR,
                event_type VARCHAR,
                flow_type VARCHAR,
                last_execution_time TIMESTAMP,
                last_execution_status VARCHAR,
                last_modified TIMESTAMP
            )
            """
        )
        logger.debug(f"Watermark table {self.table} ready")

    def load_for_connection(self, connection_id: str) -> list[WatermarkRecord]:
        rows = self._run(
            f"SELECT {', '.join(_COLUMNS)} FROM {self.table} WHERE connection_id = %s ORDER BY id",
            (str(connection_id),),
            fetch=True,
            connection_id=connection_id,
        )
        return [WatermarkRecord.from_row(row) for row in rows]

    def get(self, record_id: int) -> WatermarkRecord | None:
        rows = self._run(
            f"SELECT {', '.join(_COLUMNS)} FROM {self.table} WHERE id = %s",
            (record_id,),
            fetch=True,
            record_id=record_id,
        )
        return WatermarkRecord.from_row(rows[0]) if rows else None

    def insert_new(self, connection_id: str, key: WatermarkKey, node: RemoteNode) -> WatermarkRecord:
        """
        Insert an In Progress record for a file seen for the first time.

        A connection keeps one record per name, so a file that is already
        tracked (a repeated full import, a redelivered job) gets its existing
        record reset to In Progress instead of a second row.
        """
        existing = self._run(
            f"SELECT id FROM {self.table} WHERE connection_id = %s AND name = %s ORDER BY id LIMIT 1",
            (str(connection_id), key.name),
            fetch=True,
            connection_id=connection_id,
            name=key.name,
        )
        if existing:
            return self._reset(existing[0]["id"], key, node)

        rows = self._run(
            f"""
            INSERT INTO {self.table} (
                name, connection_id, status, event_type, flow_type, last_execution_time, last_execution_status
            ) VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING {', '.join(_COLUMNS)}
            """,
            (
                key.name,
                str(connection_id),
                RECORD_STATUS_ACTIVE,
                key.file_name,
                FLOW_TYPE_HISTORICAL,
                _to_db_time(node.modified_at),
                ExecutionStatus.IN_PROGRESS.value,
            ),
            fetch=True,
            connection_id=connection_id,
            name=key.name,
        )
        if not rows:
            raise WatermarkError(f"Insert into {self.table} returned no row", details={"name": key.name})
        return WatermarkRecord.from_row(rows[0])

    def _reset(self, record_id: int, key: WatermarkKey, node: RemoteNode) -> WatermarkRecord:
        self._run(
            f"""
            UPDATE {self.table}
            SET status = %s, event_type = %s, flow_type = %s, last_execution_time = %s, last_execution_status = %s
            WHERE id = %s
            """,
            (
                RECORD_STATUS_ACTIVE,
                key.file_name,
                FLOW_TYPE_HISTORICAL,
                _to_db_time(node.modified_at),
                ExecutionStatus.IN_PROGRESS.value,
                record_id,
            ),
            record_id=record_id,
            name=key.name,
        )
        record = self.get(record_id)
        if record is None:
            raise WatermarkError(f"Record {record_id} vanished from {self.table}", details={"record_id": record_id})
        logger.debug(f"Reusing watermark {record_id} for {key.name}")
        return record

    def mark_updated(self, record_id: int, modified_at: datetime | None) -> int:
        """Advance a record's watermark to the version being synced; returns its id."""
        self._run(
            f"UPDATE {self.table} SET last_execution_time = %s, last_execution_status = %s WHERE id = %s",
            (_to_db_time(modified_at), ExecutionStatus.IN_PROGRESS.value, record_id),
            record_id=record_id,
        )
        return record_id

    def record_outcome(self, record_id: int, status: ExecutionStatus, now: datetime | None = None) -> None:
        now = now or datetime.now(timezone.utc)
        self._run(
            f"UPDATE {self.table} SET last_execution_status = %s, last_modified = %s WHERE id = %s",
            (status.value, _to_db_time(now), record_id),
            record_id=record_id,
            status=status.value,
        )


def _to_db_time(value: datetime | None) -> datetime | None:
    """Timestamps are stored as naive UTC."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_time(value: Any) -> datetime | None:
    if value is None:
        return None
    if hasattr(value, "to_pydatetime"):
        value = value.to_pydatetime()
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
