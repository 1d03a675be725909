"""
Type definitions for sync jobs, remote nodes and sync decisions.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from drivesync.sync.watermark import PriorRecords, WatermarkRecord


class JobKind(str, Enum):
    """Queued job shapes; values are the wire ``type`` strings."""

    FULL_IMPORT = "CREATE"
    INCREMENTAL_SYNC = "SYNC"


@dataclass(frozen=True)
class SyncJob:
    """A parsed job. Immutable, consumed once."""

    kind: JobKind
    owner_id: str
    connection_id: str
    root_folder_id: str


class NodeKind(str, Enum):
    FOLDER = "folder"
    DOCUMENT = "document"
    PLAIN_FILE = "plain_file"
    UNSUPPORTED = "unsupported"

    @property
    def is_leaf(self) -> bool:
        return self in (NodeKind.DOCUMENT, NodeKind.PLAIN_FILE)


@dataclass(frozen=True)
class RemoteNode:
    """
    Read-only snapshot of a remote file or folder from one listing call.

    DOCUMENT nodes are exported to CSV; PLAIN_FILE nodes are fetched raw.
    """

    id: str
    name: str
    kind: NodeKind
    modified_at: datetime | None = None
    size_hint: int | None = None
    mime_type: str | None = None


class SyncAction(str, Enum):
    CREATE_NEW = "create_new"
    CREATE_UPDATE = "create_update"
    SKIP = "skip"


@dataclass(frozen=True)
class SyncDecision:
    """Change detector verdict for one leaf."""

    action: SyncAction
    reason: str
    record: WatermarkRecord | None = None

    @property
    def should_transfer(self) -> bool:
        return self.action != SyncAction.SKIP


class TransferOutcome(str, Enum):
    SUCCESSFUL = "Successful"
    ERROR = "Error"
    SKIPPED = "Skipped"


@dataclass(frozen=True)
class TransferResult:
    outcome: TransferOutcome
    record_id: int | None = None
    location: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class SyncContext:
    """
    Job-scoped state handed down every level of the tree walk.

    ``prior`` is None for a full import, in which case every leaf is new.
    """

    job: SyncJob
    prior: PriorRecords | None = None
    path: str = ""
    forward_prior_records: bool = True

    def descend(self, folder: RemoteNode) -> SyncContext:
        """Context for a nested folder."""
        prior = self.prior if self.forward_prior_records else None
        return replace(self, prior=prior, path=f"{self.path}/{folder.name}")


@dataclass
class SyncSummary:
    """Per-job counters for logs and the CLI."""

    job: SyncJob
    folders: int = 0
    listed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    unsupported: int = 0
    errors: int = 0
    outputs: list[str] = field(default_factory=list)

    def add_output(self, location: str) -> None:
        if len(self.outputs) < 25:
            self.outputs.append(location)

    @property
    def transferred(self) -> int:
        return self.created + self.updated

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.job.kind.name,
            "connection_id": self.job.connection_id,
            "root_folder_id": self.job.root_folder_id,
            "folders": self.folders,
            "listed": self.listed,
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "unsupported": self.unsupported,
            "errors": self.errors,
            "outputs": list(self.outputs),
        }
