"""
S3 connection for the sink store.

Provides a lazily created boto3 client and streaming uploads.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from drivesync.connections.storage import BaseStorageConnection, ChunkReader
from drivesync.exceptions import TransferError
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.connections.s3")


class S3Connection(BaseStorageConnection):
    """
    S3 connection wrapper for the sink store.

    Supports AWS credentials from config, environment, or IAM role.

    Config example:
        connections:
          s3_sink:
            type: s3
            config:
              bucket: my-bucket
              region: us-west-2
              access_key_id: AKIA...  # Optional, uses env/IAM if not set
              secret_access_key: ...   # Optional
              session_token: ...       # Optional (for temp creds)
              endpoint_url: ...        # Optional (for S3-compatible services)
              multipart_chunk_size: 8388608
              storage:
                base_path: raw         # Optional prefix for all keys
    """

    def __init__(self, name: str, config: dict[str, Any]):
        super().__init__(name, config)
        self._client = None
        if not self._cfg.get("bucket"):
            raise ValueError(
                f"S3 connection '{name}' requires 'bucket' in config. "
                f"Example: connections.{name}.config.bucket = 'my-bucket'"
            )

    @property
    def bucket(self) -> str:
        return self._cfg["bucket"]

    @property
    def region(self) -> Optional[str]:
        return self._cfg.get("region")

    @property
    def endpoint_url(self) -> Optional[str]:
        """Custom endpoint URL (for S3-compatible services like MinIO)."""
        return self._cfg.get("endpoint_url")

    @property
    def _cfg(self) -> dict[str, Any]:
        return self.config.get("config", {})

    def _get_client_kwargs(self) -> dict[str, Any]:
        """Build kwargs for boto3 client initialization."""
        kwargs: dict[str, Any] = {}

        if self.region:
            kwargs["region_name"] = self.region
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url

        # Explicit credentials from config (override env/IAM)
        access_key = self._cfg.get("access_key_id")
        secret_key = self._cfg.get("secret_access_key")
        session_token = self._cfg.get("session_token")
        if access_key and secret_key:
            kwargs["aws_access_key_id"] = access_key
            kwargs["aws_secret_access_key"] = secret_key
            if session_token:
                kwargs["aws_session_token"] = session_token

        return kwargs

    @property
    def client(self):
        """boto3 S3 client (lazy initialization)."""
        if self._client is None:
            import boto3

            self._client = boto3.client("s3", **self._get_client_kwargs())
        return self._client

    def _full_key(self, key: str) -> str:
        """Prepend base_path to key if configured."""
        if self.base_path:
            return f"{self.base_path.strip('/')}/{key.lstrip('/')}"
        return key.lstrip("/")

    def put_stream(self, key: str, chunks: Iterable[bytes], *, content_type: str | None = None) -> str:
        """
        Stream chunks to ``s3://bucket/<base_path>/<key>``.

        boto3 switches to a multipart upload once the stream passes the
        multipart threshold, reading the source in part-sized pieces.
        """
        from boto3.s3.transfer import TransferConfig

        full_key = self._full_key(key)
        extra_args = {"ContentType": content_type} if content_type else None
        transfer_config = TransferConfig(
            multipart_chunksize=int(self._cfg.get("multipart_chunk_size", 8 * 1024 * 1024)),
            use_threads=False,
        )

        reader = ChunkReader(chunks)
        try:
            self.client.upload_fileobj(
                reader,
                self.bucket,
                full_key,
                ExtraArgs=extra_args,
                Config=transfer_config,
            )
        except TransferError:
            raise
        except Exception as e:
            raise TransferError(
                f"Upload to s3://{self.bucket}/{full_key} failed: {e}",
                details={"bucket": self.bucket, "key": full_key},
            ) from e

        logger.debug(f"Uploaded {reader.bytes_read} bytes to s3://{self.bucket}/{full_key}")
        return f"s3://{self.bucket}/{full_key}"

    def close(self) -> None:
        # boto3 clients don't require explicit closing, but reset for consistency
        self._client = None
