"""
Storage connection base class.

Sink stores accept a stream of byte chunks under a flat key and return the
location they wrote to.
"""

import io
from abc import ABC, abstractmethod
from typing import Any, Iterable, Iterator


class ChunkReader(io.RawIOBase):
    """
    Read-only file object over an iterator of byte chunks.

    Holds at most one chunk at a time, so a consumer that reads in parts
    (boto3 multipart upload, shutil.copyfileobj) never sees the whole file
    in memory.
    """

    def __init__(self, chunks: Iterable[bytes]):
        self._chunks: Iterator[bytes] = iter(chunks)
        self._pending = b""
        self.bytes_read = 0

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        self.bytes_read += size
        return size


class BaseStorageConnection(ABC):
    """
    Base class for storage connections.

    Different storage backends have different interfaces:
    - S3: bucket + base_path
    - Local filesystem: root_path + base_path
    """

    def __init__(self, name: str, config: dict[str, Any]):
        """
        Initialize storage connection.

        Args:
            name: Connection name (from config)
            config: Connection configuration dictionary
        """
        self.name = name
        self.config = config

    @property
    def base_path(self) -> str:
        """Prefix for every key written through this connection."""
        storage = self.config.get("config", {}).get("storage", {})
        return storage.get("base_path", "")  # type: ignore[no-any-return]

    @abstractmethod
    def put_stream(self, key: str, chunks: Iterable[bytes], *, content_type: str | None = None) -> str:
        """
        Write a stream of chunks under ``key``.

        Returns:
            URI of the written object

        Raises:
            TransferError: If the write fails
        """

    def close(self) -> None:
        """Release client resources."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
