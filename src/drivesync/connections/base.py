"""
Abstract base connection class for ibis-backed relational connections.
"""

import threading
from abc import ABC, abstractmethod
from typing import Any, Sequence

import ibis

from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.connections.base")


class BaseConnection(ABC):
    """
    Base class for relational connections using ibis.

    The ibis backend is created lazily on first access. Statements are run
    through the backend's DB-API handle with bound parameters, written with
    ``%s`` placeholders; subclasses translate the placeholder style when
    their driver expects something else.
    """

    placeholder = "%s"

    def __init__(self, name: str, config: dict[str, Any]):
        """
        Initialize connection.

        Args:
            name: Connection name (from config)
            config: Connection configuration dictionary
        """
        self.name = name
        self.config = config
        self._connection: ibis.BaseBackend | None = None
        self._lock = threading.Lock()

    @property
    def connection(self) -> ibis.BaseBackend:
        """Get the ibis backend, creating it on first access."""
        if self._connection is None:
            with self._lock:
                if self._connection is None:
                    self._connection = self._connect()
        return self._connection

    @abstractmethod
    def _connect(self) -> ibis.BaseBackend:
        """Create the ibis backend for this connection."""
        pass

    def _cursor(self) -> Any:
        backend = self.connection
        # The raw handle is shared; one cursor per statement, created under the lock
        with self._lock:
            return backend.con.cursor()

    def execute_params(self, query: str, params: Sequence[Any] = (), *, fetch: bool = False) -> list[dict[str, Any]]:
        """
        Execute a parameterized statement.

        Args:
            query: SQL with ``%s`` placeholders
            params: Values bound to the placeholders, in order
            fetch: Return result rows as dicts keyed by column name

        Returns:
            Result rows when ``fetch`` is set, otherwise an empty list
        """
        if self.placeholder != "%s":
            query = query.replace("%s", self.placeholder)

        cursor = self._cursor()
        try:
            cursor.execute(query, list(params))
            rows: list[dict[str, Any]] = []
            if fetch and cursor.description:
                columns = [col[0] for col in cursor.description]
                rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            raw = self.connection.con
            if not getattr(raw, "autocommit", True):
                raw.commit()
            return rows
        finally:
            cursor.close()

    def close(self) -> None:
        """Close connection and cleanup resources."""
        if self._connection is not None:
            if hasattr(self._connection, "disconnect"):
                try:
                    self._connection.disconnect()
                except Exception as e:
                    logger.debug(f"Error during disconnect() for {self.name}: {e}")
            self._connection = None

    def __enter__(self) -> "BaseConnection":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        try:
            self.close()
        except Exception as e:
            # Don't override the original exception if one occurred
            if exc_type is None:
                raise
            logger.warning(f"Error closing connection {self.name} during context exit: {e}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
