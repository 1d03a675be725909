"""
Tests for the connection manager and secrets provider.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from drivesync.connections import (
    ConnectionManager,
    DuckDBConnection,
    FilesystemConnection,
    PostgresConnection,
    S3Connection,
)
from drivesync.exceptions import ConfigurationError
from drivesync.secrets import SecretsProvider, parse_secrets


def _config(tmp_path, **overrides):
    config = {
        "connections": {
            "watermarks": {"type": "duckdb", "config": {"path": ":memory:"}},
            "local": {"type": "filesystem", "config": {"root_path": str(tmp_path)}},
        },
        "state": {"connection": "watermarks"},
        "sink": {"connection": "local"},
    }
    config.update(overrides)
    return config


class TestConnectionManager:
    def test_roles(self, tmp_path):
        manager = ConnectionManager(_config(tmp_path))
        assert isinstance(manager.state_connection, DuckDBConnection)
        assert isinstance(manager.sink, FilesystemConnection)
        assert not manager.ready

    @pytest.mark.asyncio
    async def test_open_sets_ready(self, tmp_path):
        manager = ConnectionManager(_config(tmp_path))
        assert await manager.open() is manager
        assert manager.ready
        manager.close()
        assert not manager.ready

    @pytest.mark.asyncio
    async def test_open_failure_is_configuration_error(self, tmp_path):
        manager = ConnectionManager(_config(tmp_path))
        with patch.object(DuckDBConnection, "_connect", side_effect=RuntimeError("refused")):
            with pytest.raises(ConfigurationError, match="refused"):
                await manager.open()
        assert not manager.ready

    def test_unknown_type(self, tmp_path):
        config = _config(tmp_path)
        config["connections"]["odd"] = {"type": "mongodb"}
        with pytest.raises(ConfigurationError, match="unsupported type 'mongodb'"):
            ConnectionManager(config)

    def test_missing_roles(self, tmp_path):
        with pytest.raises(ConfigurationError, match="state.connection"):
            ConnectionManager(_config(tmp_path, state={}))
        with pytest.raises(ConfigurationError, match="sink.connection"):
            ConnectionManager(_config(tmp_path, sink={}))

    def test_role_type_mismatch(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not a storage connection"):
            ConnectionManager(_config(tmp_path, sink={"connection": "watermarks"}))
        with pytest.raises(ConfigurationError, match="not a relational connection"):
            ConnectionManager(_config(tmp_path, state={"connection": "local"}))

    def test_invalid_connection_wrapped(self, tmp_path):
        config = _config(tmp_path)
        config["connections"]["bucket"] = {"type": "s3", "config": {}}
        with pytest.raises(ConfigurationError, match="bucket"):
            ConnectionManager(config)

    def test_get_unknown(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Connection not found"):
            ConnectionManager(_config(tmp_path)).get("nope")

    def test_secret_fills_postgres_config(self, tmp_path):
        config = _config(tmp_path)
        config["connections"]["pg"] = {"type": "postgres", "secret": "DB_CREDENTIALS", "config": {"port": 6543}}
        secrets = {
            "DB_CREDENTIALS": {"host": "db.internal", "user": "sync", "password": "pw", "database": "conn", "port": 5432}
        }
        pg = ConnectionManager(config, secrets).get("pg")
        assert isinstance(pg, PostgresConnection)
        assert (pg.host, pg.user, pg.database) == ("db.internal", "sync", "conn")
        assert pg.port == 6543

    def test_missing_secret(self, tmp_path):
        config = _config(tmp_path)
        config["connections"]["pg"] = {"type": "postgres", "secret": "DB_CREDENTIALS"}
        with pytest.raises(ConfigurationError, match="missing secret 'DB_CREDENTIALS'"):
            ConnectionManager(config, {})

    def test_s3_sink(self, tmp_path):
        config = _config(tmp_path, sink={"connection": "s3"})
        config["connections"]["s3"] = {"type": "s3", "config": {"bucket": "drive-sync"}}
        assert isinstance(ConnectionManager(config).sink, S3Connection)


class TestParseSecrets:
    def test_nested_json_decoded(self):
        raw = json.dumps({"DB_CREDENTIALS": json.dumps({"host": "db"}), "PLAIN": {"a": 1}})
        assert parse_secrets(raw) == {"DB_CREDENTIALS": {"host": "db"}, "PLAIN": {"a": 1}}

    def test_invalid_outer(self):
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            parse_secrets("{nope")

    def test_invalid_inner(self):
        with pytest.raises(ConfigurationError, match="DB_CREDENTIALS"):
            parse_secrets(json.dumps({"DB_CREDENTIALS": "{nope"}))

    def test_not_object(self):
        with pytest.raises(ConfigurationError):
            parse_secrets("[1]")


class TestSecretsProvider:
    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError, match="vault"):
            SecretsProvider({"backend": "vault"})

    @pytest.mark.asyncio
    async def test_config_backend(self):
        provider = SecretsProvider({"backend": "config", "values": {"DB_CREDENTIALS": {"host": "h"}}})
        assert await provider.fetch() == {"DB_CREDENTIALS": {"host": "h"}}

    @pytest.mark.asyncio
    async def test_aws_backend_fetches_once(self):
        client = MagicMock()
        client.get_secret_value.return_value = {"SecretString": json.dumps({"GOOGLE_CREDENTIALS": "{\"a\": 1}"})}
        provider = SecretsProvider({"backend": "aws", "secret_id": "dev/envs", "region": "us-west-2"})

        with patch("boto3.client", return_value=client) as make_client:
            first = await provider.fetch()
            second = await provider.fetch()

        assert first == {"GOOGLE_CREDENTIALS": {"a": 1}}
        assert second is first
        make_client.assert_called_once_with("secretsmanager", region_name="us-west-2")
        client.get_secret_value.assert_called_once_with(SecretId="dev/envs")

    @pytest.mark.asyncio
    async def test_aws_empty_secret(self):
        client = MagicMock()
        client.get_secret_value.return_value = {}
        provider = SecretsProvider({"backend": "aws", "secret_id": "dev/envs"})
        with patch("boto3.client", return_value=client):
            with pytest.raises(ConfigurationError, match="empty"):
                await provider.fetch()

    @pytest.mark.asyncio
    async def test_aws_requires_secret_id(self):
        with pytest.raises(ConfigurationError, match="secret_id"):
            await SecretsProvider({"backend": "aws"}).fetch()

    @pytest.mark.asyncio
    async def test_aws_client_error(self):
        with patch("boto3.client", side_effect=RuntimeError("no credentials")):
            with pytest.raises(ConfigurationError, match="no credentials"):
                await SecretsProvider({"backend": "aws", "secret_id": "x"}).fetch()
