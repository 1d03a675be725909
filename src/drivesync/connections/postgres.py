"""
Postgres connection via ibis.

One backend (one psycopg connection) per process, created lazily and
shared by every component that talks to the watermark table.
"""

from typing import Any

import ibis

from drivesync.connections.base import BaseConnection
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.connections.postgres")


class PostgresConnection(BaseConnection):
    """
    Postgres connection wrapper using ibis.

    Config example:
        connections:
          watermarks:
            type: postgres
            config:
              host: localhost
              port: 5432
              user: ${PGUSER}
              password: ${PGPASSWORD}
              database: connectors
              connect_timeout: 10
    """

    def __init__(self, name: str, config: dict[str, Any]):
        super().__init__(name, config)
        db_config = self.config.get("config", {})
        self.host = db_config.get("host", "localhost")
        self.port = int(db_config.get("port", 5432))
        self.user = db_config.get("user", "")
        self.password = db_config.get("password", "")
        self.database = db_config.get("database", "")
        self.connect_timeout = db_config.get("connect_timeout")

    def _connect(self) -> ibis.BaseBackend:
        kwargs: dict[str, Any] = {}
        if self.connect_timeout is not None:
            kwargs["connect_timeout"] = int(self.connect_timeout)

        backend = ibis.postgres.connect(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            database=self.database,
            **kwargs,
        )
        logger.info(f"Connected to Postgres {self.host}:{self.port}/{self.database}")
        return backend

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', host='{self.host}', database='{self.database}')"
