"""
Connection management.

Relational connections for the watermark table (Postgres, DuckDB) and
storage connections for the sink (S3, Filesystem).
"""

from drivesync.connections.base import BaseConnection
from drivesync.connections.duckdb import DuckDBConnection
from drivesync.connections.filesystem import FilesystemConnection
from drivesync.connections.manager import ConnectionManager
from drivesync.connections.postgres import PostgresConnection
from drivesync.connections.s3 import S3Connection
from drivesync.connections.storage import BaseStorageConnection, ChunkReader

__all__ = [
    "BaseConnection",
    "BaseStorageConnection",
    "ChunkReader",
    "ConnectionManager",
    "DuckDBConnection",
    "PostgresConnection",
    "S3Connection",
    "FilesystemConnection",
]
