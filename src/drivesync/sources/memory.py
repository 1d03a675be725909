"""
In-memory remote tree for testing.

Example:
    source = InMemoryTreeSource()
    source.add_file("F1", "a.csv", b"x,y\\n1,2\\n", node_id="a")
    sub = source.add_folder("F1", "reports", node_id="F2")
    source.add_document("F2", "b", b"col\\n1\\n", node_id="b")
"""

from __future__ import annotations

import itertools
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterator

from drivesync.exceptions import ListingError, TransferError
from drivesync.sources.base import RemoteTreeSource
from drivesync.types import NodeKind, RemoteNode


class InMemoryTreeSource(RemoteTreeSource):
    """
    Remote tree held in dictionaries.

    Every provider call is appended to ``calls`` so tests can assert order,
    e.g. ``("list", "F1")``, ``("export", "b", "text/csv")``,
    ``("fetch", "a")``. Ids listed in ``fail_listing`` / ``fail_content``
    raise the matching error.
    """

    def __init__(self, *, page_size: int = 100, chunk_size: int = 4):
        self.page_size = page_size
        self.chunk_size = chunk_size
        self._children: dict[str, list[RemoteNode]] = defaultdict(list)
        self._content: dict[str, bytes] = {}
        self._ids = itertools.count(1)
        self.calls: list[tuple[str, ...]] = []
        self.fail_listing: set[str] = set()
        self.fail_content: set[str] = set()

    def _add(
        self,
        parent_id: str,
        name: str,
        kind: NodeKind,
        *,
        node_id: str | None = None,
        modified_at: datetime | None = None,
        content: bytes | None = None,
        mime_type: str | None = None,
    ) -> RemoteNode:
        node = RemoteNode(
            id=node_id or f"node-{next(self._ids)}",
            name=name,
            kind=kind,
            modified_at=modified_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
            size_hint=len(content) if content is not None else None,
            mime_type=mime_type,
        )
        self._children[parent_id].append(node)
        if content is not None:
            self._content[node.id] = content
        return node

    def add_folder(self, parent_id: str, name: str, **kwargs) -> RemoteNode:
        return self._add(parent_id, name, NodeKind.FOLDER, **kwargs)

    def add_file(self, parent_id: str, name: str, content: bytes = b"", **kwargs) -> RemoteNode:
        return self._add(parent_id, name, NodeKind.PLAIN_FILE, content=content, mime_type="text/csv", **kwargs)

    def add_document(self, parent_id: str, name: str, content: bytes = b"", **kwargs) -> RemoteNode:
        return self._add(
            parent_id,
            name,
            NodeKind.DOCUMENT,
            content=content,
            mime_type="application/vnd.google-apps.spreadsheet",
            **kwargs,
        )

    def add_other(self, parent_id: str, name: str, **kwargs) -> RemoteNode:
        return self._add(parent_id, name, NodeKind.UNSUPPORTED, mime_type="application/pdf", **kwargs)

    def list_children(self, node_id: str) -> Iterator[RemoteNode]:
        self.calls.append(("list", node_id))
        if node_id in self.fail_listing:
            raise ListingError(node_id, "simulated listing failure")
        children = list(self._children.get(node_id, []))
        # Page boundaries mimic the provider; callers just see one stream
        for start in range(0, len(children), self.page_size):
            yield from children[start : start + self.page_size]

    def export_content(self, node_id: str, target_mime: str) -> Iterator[bytes]:
        self.calls.append(("export", node_id, target_mime))
        return self._stream(node_id)

    def fetch_content(self, node_id: str) -> Iterator[bytes]:
        self.calls.append(("fetch", node_id))
        return self._stream(node_id)

    def _stream(self, node_id: str) -> Iterator[bytes]:
        if node_id in self.fail_content:
            raise TransferError(f"simulated content failure for {node_id}", details={"node_id": node_id})
        data = self._content.get(node_id, b"")
        return iter([data[i : i + self.chunk_size] for i in range(0, len(data), self.chunk_size)])

    def listing_calls(self) -> list[str]:
        return [call[1] for call in self.calls if call[0] == "list"]
