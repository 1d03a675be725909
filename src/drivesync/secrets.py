"""
Credential retrieval.

Secrets are fetched once per process and cached. The AWS backend reads a
Secrets Manager entry whose value is a JSON object of JSON-encoded strings,
for example::

    {"DB_CREDENTIALS": "{\"host\": \"db\", \"user\": \"sync\", ...}",
     "GOOGLE_CREDENTIALS": "{\"type\": \"service_account\", ...}"}
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from drivesync.exceptions import ConfigurationError
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.secrets")


def parse_secrets(secret_string: str) -> dict[str, Any]:
    """
    Decode a secret string, then decode each string value one level deeper.

    Raises:
        ConfigurationError: If either level is not valid JSON
    """
    try:
        parsed = json.loads(secret_string)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Secret is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ConfigurationError(f"Secret must be a JSON object, got {type(parsed).__name__}")

    result: dict[str, Any] = {}
    for key, value in parsed.items():
        if isinstance(value, str):
            try:
                result[key] = json.loads(value)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Secret entry '{key}' is not valid JSON: {e}") from e
        else:
            result[key] = value
    return result


class SecretsProvider:
    """
    Fetches credentials at most once per process.

    Config example:
        secrets:
          backend: aws            # or "config"
          secret_id: dev/envs
          region: us-west-2
          values:                 # used by the "config" backend
            DB_CREDENTIALS: {host: localhost, ...}
    """

    BACKENDS = ("aws", "config")

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}
        self.backend = self.config.get("backend", "config")
        if self.backend not in self.BACKENDS:
            raise ConfigurationError(f"Unknown secrets backend '{self.backend}'. Available: {list(self.BACKENDS)}")
        self._cache: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    async def fetch(self) -> dict[str, Any]:
        """Return the credential mapping, fetching it on first call."""
        async with self._lock:
            if self._cache is None:
                if self.backend == "aws":
                    self._cache = await asyncio.to_thread(self._fetch_aws)
                else:
                    self._cache = dict(self.config.get("values") or {})
                logger.info(f"Loaded {len(self._cache)} secret entries from '{self.backend}' backend")
            return self._cache

    def _fetch_aws(self) -> dict[str, Any]:
        import boto3

        secret_id = self.config.get("secret_id")
        if not secret_id:
            raise ConfigurationError("secrets.secret_id is required for the aws backend")

        kwargs: dict[str, Any] = {}
        if self.config.get("region"):
            kwargs["region_name"] = self.config["region"]

        try:
            client = boto3.client("secretsmanager", **kwargs)
            response = client.get_secret_value(SecretId=secret_id)
        except Exception as e:
            raise ConfigurationError(f"Error retrieving secret '{secret_id}': {e}") from e

        secret_string = response.get("SecretString")
        if not secret_string:
            raise ConfigurationError(f"Secret '{secret_id}' has an empty SecretString")
        return parse_secrets(secret_string)
