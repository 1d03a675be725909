"""
DuckDB connection via ibis.

Local stand-in for the Postgres watermark database, used in development
and tests.
"""

import re
from pathlib import Path

import ibis

from drivesync.connections.base import BaseConnection
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.connections.duckdb")


class DuckDBConnection(BaseConnection):
    """DuckDB connection wrapper using ibis."""

    placeholder = "?"

    def _connect(self) -> ibis.BaseBackend:
        path = self.config.get("config", {}).get("path", ":memory:")

        if path == ":memory:":
            return ibis.duckdb.connect()

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        try:
            backend = ibis.duckdb.connect(path)
        except Exception as e:
            error_str = str(e)
            if "lock" in error_str.lower() or "conflicting" in error_str.lower():
                pid_match = re.search(r"PID\s+(\d+)", error_str)
                pid_info = f" (PID: {pid_match.group(1)})" if pid_match else ""
                raise RuntimeError(
                    f"Cannot connect to DuckDB database '{path}': File is locked by another process{pid_info}."
                ) from e
            raise RuntimeError(f"Cannot connect to DuckDB database '{path}': {error_str}") from e

        logger.debug(f"Opened DuckDB database {path}")
        return backend
