"""
Connection manager.

Built once at process start from config plus fetched secrets, then passed by
reference to every component that needs the watermark database or the sink.
"""

from __future__ import annotations

import asyncio
from typing import Any

from drivesync.connections.base import BaseConnection
from drivesync.connections.duckdb import DuckDBConnection
from drivesync.connections.filesystem import FilesystemConnection
from drivesync.connections.postgres import PostgresConnection
from drivesync.connections.s3 import S3Connection
from drivesync.connections.storage import BaseStorageConnection
from drivesync.exceptions import ConfigurationError
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.connections.manager")

CONNECTION_TYPES: dict[str, type] = {
    "postgres": PostgresConnection,
    "duckdb": DuckDBConnection,
    "s3": S3Connection,
    "filesystem": FilesystemConnection,
}


class ConnectionManager:
    """
    Holds the named connections and the state/sink role assignments.

    ``ready`` turns true only after :meth:`open` has reached the state
    database. A connection config may name a secret entry with ``secret:``;
    the entry's keys fill the connection's ``config`` block without
    overriding keys set explicitly.

    Config example:
        state:
          connection: watermarks
        sink:
          connection: s3_sink
        connections:
          watermarks:
            type: postgres
            secret: DB_CREDENTIALS
          s3_sink:
            type: s3
            config: {bucket: my-bucket}
    """

    def __init__(self, config: dict[str, Any], secrets: dict[str, Any] | None = None):
        self.config = config
        self.secrets = secrets or {}
        self._connections: dict[str, Any] = {}
        self._ready = False
        self._load_connections()

        self.state_name = (config.get("state") or {}).get("connection")
        self.sink_name = (config.get("sink") or {}).get("connection")
        if not self.state_name:
            raise ConfigurationError("state.connection must name the watermark database connection")
        if not self.sink_name:
            raise ConfigurationError("sink.connection must name the sink store connection")
        if not isinstance(self.get(self.state_name), BaseConnection):
            raise ConfigurationError(f"State connection '{self.state_name}' is not a relational connection")
        if not isinstance(self.get(self.sink_name), BaseStorageConnection):
            raise ConfigurationError(f"Sink connection '{self.sink_name}' is not a storage connection")

    def _load_connections(self) -> None:
        connections_config = self.config.get("connections") or {}
        for name, conn_config in connections_config.items():
            if not isinstance(conn_config, dict):
                raise ConfigurationError(f"Connection '{name}' must be a mapping")
            conn_type = conn_config.get("type")
            conn_class = CONNECTION_TYPES.get(conn_type)  # type: ignore[arg-type]
            if conn_class is None:
                raise ConfigurationError(
                    f"Connection '{name}' has unsupported type '{conn_type}'. "
                    f"Available: {sorted(CONNECTION_TYPES)}"
                )
            try:
                self._connections[name] = conn_class(name, self._with_secret(name, conn_config))
            except ConfigurationError:
                raise
            except Exception as e:
                raise ConfigurationError(f"Connection '{name}': {e}") from e

    def _with_secret(self, name: str, conn_config: dict[str, Any]) -> dict[str, Any]:
        secret_key = conn_config.get("secret")
        if not secret_key:
            return conn_config
        secret = self.secrets.get(secret_key)
        if not isinstance(secret, dict):
            raise ConfigurationError(f"Connection '{name}' references missing secret '{secret_key}'")
        merged = dict(conn_config)
        merged["config"] = {**secret, **(conn_config.get("config") or {})}
        return merged

    def get(self, name: str) -> Any:
        """Get connection by name."""
        if name not in self._connections:
            raise ConfigurationError(f"Connection not found: {name}", details={"connection": name})
        return self._connections[name]

    @property
    def state_connection(self) -> BaseConnection:
        return self.get(self.state_name)

    @property
    def sink(self) -> BaseStorageConnection:
        return self.get(self.sink_name)

    @property
    def ready(self) -> bool:
        return self._ready

    async def open(self) -> "ConnectionManager":
        """
        Reach the state database once so later failures are not config errors.

        Raises:
            ConfigurationError: If the state database cannot be opened
        """
        if self._ready:
            return self
        try:
            await asyncio.to_thread(lambda: self.state_connection.connection)
        except Exception as e:
            raise ConfigurationError(
                f"State database '{self.state_name}' unavailable: {e}",
                details={"connection": self.state_name},
            ) from e
        self._ready = True
        logger.info(f"Connections ready (state={self.state_name}, sink={self.sink_name})")
        return self

    def close(self) -> None:
        for name, conn in self._connections.items():
            try:
                conn.close()
            except Exception as e:
                logger.warning(f"Error closing connection {name}: {e}")
        self._ready = False
