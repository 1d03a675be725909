"""
Local filesystem connection for the sink store.
"""

import os
import shutil
from pathlib import Path
from typing import Iterable

from drivesync.connections.storage import BaseStorageConnection, ChunkReader
from drivesync.exceptions import TransferError


class FilesystemConnection(BaseStorageConnection):
    """
    Local filesystem sink, laid out exactly like the object store keys.

    Used for local development in place of S3.
    """

    @property
    def root_path(self) -> Path:
        root = self.config.get("config", {}).get("root_path", "data")
        return Path(root)

    @property
    def full_path(self) -> Path:
        """
        Full storage path (root_path + base_path).

        Raises:
            ValueError: If base_path attempts path traversal outside root_path
        """
        return self._contained(self.root_path, self.base_path)

    @staticmethod
    def _contained(root: Path, relative: str) -> Path:
        root_resolved = root.resolve()
        if not relative:
            return root_resolved
        full_resolved = (root / relative).resolve()
        try:
            full_resolved.relative_to(root_resolved)
        except ValueError as e:
            raise ValueError(f"Path traversal detected: '{relative}' escapes '{root}'") from e
        return full_resolved

    def put_stream(self, key: str, chunks: Iterable[bytes], *, content_type: str | None = None) -> str:
        try:
            target = self._contained(self.full_path, key.lstrip("/"))
        except ValueError as e:
            raise TransferError(str(e), details={"key": key}) from e

        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(target.name + ".part")
        try:
            with open(tmp, "wb") as out:
                shutil.copyfileobj(ChunkReader(chunks), out)
            os.replace(tmp, target)
        except Exception as e:
            if tmp.exists():
                tmp.unlink()
            raise TransferError(f"Writing {target} failed: {e}", details={"key": key}) from e

        return f"file://{target}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', root_path='{self.root_path}')"
