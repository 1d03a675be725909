"""
Google Drive tree source built on the Drive v3 API.

Folders are walked with ``files.list`` (all pages), spreadsheets are exported
to CSV and CSV files are downloaded raw. Content is streamed chunk by chunk
with ``MediaIoBaseDownload``.
"""

from __future__ import annotations

import io
import threading
from datetime import datetime
from typing import Any, Callable, Iterator, Mapping

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload

from drivesync.exceptions import ConfigurationError, ListingError, TransferError
from drivesync.sources.base import CSV_MIME_TYPE, RemoteTreeSource
from drivesync.types import NodeKind, RemoteNode
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.sources.gdrive")

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"

DEFAULT_SCOPES = ("https://www.googleapis.com/auth/drive",)
LIST_FIELDS = "nextPageToken, files(id, name, mimeType, size, modifiedTime)"


def classify_mime_type(mime_type: str | None) -> NodeKind:
    if mime_type == FOLDER_MIME_TYPE:
        return NodeKind.FOLDER
    if mime_type == SPREADSHEET_MIME_TYPE:
        return NodeKind.DOCUMENT
    if mime_type == CSV_MIME_TYPE:
        return NodeKind.PLAIN_FILE
    return NodeKind.UNSUPPORTED


def parse_drive_time(value: str | None) -> datetime | None:
    """Parse an RFC 3339 ``modifiedTime`` such as ``2024-03-01T10:15:00.000Z``."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def node_from_file(item: Mapping[str, Any]) -> RemoteNode:
    size = item.get("size")
    return RemoteNode(
        id=item["id"],
        name=item["name"],
        kind=classify_mime_type(item.get("mimeType")),
        modified_at=parse_drive_time(item.get("modifiedTime")),
        size_hint=int(size) if size is not None else None,
        mime_type=item.get("mimeType"),
    )


class GoogleDriveSource(RemoteTreeSource):
    """
    Drive v3 client authenticated with a service account.

    Config example:
        remote:
          type: gdrive
          secret: GOOGLE_CREDENTIALS     # service account info from secrets
          key_file: google-security.json # or a key file on disk
          scopes: [https://www.googleapis.com/auth/drive]
          page_size: 100
          chunk_size: 1048576
          num_retries: 3
    """

    def __init__(
        self,
        *,
        credentials_info: Mapping[str, Any] | None = None,
        key_file: str | None = None,
        scopes: tuple[str, ...] = DEFAULT_SCOPES,
        page_size: int = 100,
        chunk_size: int = 1024 * 1024,
        num_retries: int = 3,
        service: Any = None,
    ):
        if service is None and credentials_info is None and key_file is None:
            raise ConfigurationError("Google Drive source needs credentials_info or key_file")
        self.credentials_info = credentials_info
        self.key_file = key_file
        self.scopes = tuple(scopes)
        self.page_size = page_size
        self.chunk_size = chunk_size
        self.num_retries = num_retries
        self._shared_service = service
        self._resolved_credentials: Any = None
        # googleapiclient's transport is not thread-safe; one service per thread
        self._local = threading.local()

    @classmethod
    def from_config(cls, remote_config: Mapping[str, Any], secrets: Mapping[str, Any]) -> GoogleDriveSource:
        credentials_info = None
        secret_key = remote_config.get("secret")
        if secret_key:
            credentials_info = secrets.get(secret_key)
            if not isinstance(credentials_info, Mapping):
                raise ConfigurationError(f"remote.secret '{secret_key}' is missing from secrets")
        scopes = remote_config.get("scopes") or DEFAULT_SCOPES
        return cls(
            credentials_info=credentials_info,
            key_file=remote_config.get("key_file"),
            scopes=tuple(str(scope) for scope in scopes),
            page_size=int(remote_config.get("page_size", 100)),
            chunk_size=int(remote_config.get("chunk_size", 1024 * 1024)),
            num_retries=int(remote_config.get("num_retries", 3)),
        )

    @property
    def service(self) -> Any:
        if self._shared_service is not None:
            return self._shared_service
        service = getattr(self._local, "service", None)
        if service is None:
            service = build("drive", "v3", credentials=self._credentials(), cache_discovery=False)
            self._local.service = service
        return service

    def check(self) -> None:
        if self._shared_service is None:
            self._credentials()

    def _credentials(self) -> Any:
        if self._resolved_credentials is not None:
            return self._resolved_credentials
        try:
            if self.credentials_info is not None:
                credentials = service_account.Credentials.from_service_account_info(
                    dict(self.credentials_info), scopes=list(self.scopes)
                )
            else:
                credentials = service_account.Credentials.from_service_account_file(
                    self.key_file, scopes=list(self.scopes)
                )
        except (ValueError, OSError) as e:
            raise ConfigurationError(f"Invalid Google service account credentials: {e}") from e
        self._resolved_credentials = credentials
        return credentials

    def list_children(self, node_id: str) -> Iterator[RemoteNode]:
        query = f"'{_escape_query(node_id)}' in parents and trashed = false"
        page_token = None
        while True:
            try:
                response = (
                    self.service.files()
                    .list(
                        q=query,
                        fields=LIST_FIELDS,
                        pageSize=self.page_size,
                        pageToken=page_token,
                        supportsAllDrives=True,
                        includeItemsFromAllDrives=True,
                    )
                    .execute(num_retries=self.num_retries)
                )
            except HttpError as e:
                raise ListingError(node_id, str(e), cause=e) from e

            for item in response.get("files", []):
                yield node_from_file(item)

            page_token = response.get("nextPageToken")
            if not page_token:
                break

    def export_content(self, node_id: str, target_mime: str) -> Iterator[bytes]:
        return self._stream(lambda files: files.export_media(fileId=node_id, mimeType=target_mime), node_id)

    def fetch_content(self, node_id: str) -> Iterator[bytes]:
        return self._stream(lambda files: files.get_media(fileId=node_id, supportsAllDrives=True), node_id)

    def _stream(self, make_request: Callable[[Any], Any], node_id: str) -> Iterator[bytes]:
        # The request binds the service of the thread that consumes the stream
        request = make_request(self.service.files())
        buffer = io.BytesIO()
        downloader = MediaIoBaseDownload(buffer, request, chunksize=self.chunk_size)
        done = False
        while not done:
            try:
                _, done = downloader.next_chunk(num_retries=self.num_retries)
            except HttpError as e:
                raise TransferError(f"Downloading '{node_id}' failed: {e}", details={"node_id": node_id}) from e
            data = buffer.getvalue()
            if data:
                yield data
            buffer.seek(0)
            buffer.truncate(0)
