"""
Remote tree source interface.

A source lists the children of a folder and streams leaf content. Calls are
blocking; the sync engine runs them off the event loop.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator

from drivesync.exceptions import TransferError
from drivesync.types import NodeKind, RemoteNode

CSV_MIME_TYPE = "text/csv"


class RemoteTreeSource(ABC):
    """Hierarchical file provider consumed by the tree walker."""

    @abstractmethod
    def list_children(self, node_id: str) -> Iterator[RemoteNode]:
        """
        Yield every child of a folder, following pagination to the end.

        Raises:
            ListingError: If the provider rejects any page request
        """

    @abstractmethod
    def export_content(self, node_id: str, target_mime: str) -> Iterator[bytes]:
        """Yield a document's content converted to ``target_mime``."""

    @abstractmethod
    def fetch_content(self, node_id: str) -> Iterator[bytes]:
        """Yield a file's raw bytes."""

    def open_content(self, node: RemoteNode) -> Iterator[bytes]:
        """
        Open the byte stream for a transferable leaf.

        Documents are exported as CSV; plain files are fetched as-is.

        Raises:
            TransferError: If the node kind has no content to transfer
        """
        if node.kind == NodeKind.DOCUMENT:
            return self.export_content(node.id, CSV_MIME_TYPE)
        if node.kind == NodeKind.PLAIN_FILE:
            return self.fetch_content(node.id)
        raise TransferError(
            f"Node '{node.name}' of kind {node.kind.value} is not transferable",
            details={"node_id": node.id},
        )

    def check(self) -> None:
        """
        Resolve credentials before the first job.

        Raises:
            ConfigurationError: If the source cannot authenticate
        """

    def close(self) -> None:
        """Release client resources."""
