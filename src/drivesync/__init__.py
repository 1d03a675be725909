"""
drivesync - Incremental Google Drive to S3 sync worker.

Walks a Drive folder tree, exports spreadsheets and copies CSV files to an
object store, and records a per-file watermark so later syncs only move
files that changed.
"""

__version__ = "0.1.0"

from drivesync.config.loader import Config, load_config
from drivesync.config.settings import DEFAULT_TIMEZONE_SKEW, SyncSettings
from drivesync.connections.manager import ConnectionManager

# Exceptions
from drivesync.exceptions import (
    ConfigError,
    ConfigurationError,
    DriveSyncError,
    JobParseError,
    ListingError,
    TransferError,
    WatermarkError,
)
from drivesync.intake import JobConsumer, parse_job
from drivesync.sources import GoogleDriveSource, InMemoryTreeSource, RemoteTreeSource
from drivesync.sync import ChangeDetector, SyncRunner, TransferPipeline, TreeWalker, WatermarkStore
from drivesync.types import JobKind, NodeKind, RemoteNode, SyncJob, SyncSummary

# Logging utilities
from drivesync.utils.logging import get_logger, setup_logging, setup_logging_from_config
from drivesync.worker import Worker

__all__ = [
    "__version__",
    # Engine
    "ChangeDetector",
    "SyncRunner",
    "TransferPipeline",
    "TreeWalker",
    "WatermarkStore",
    # Types
    "JobKind",
    "NodeKind",
    "RemoteNode",
    "SyncJob",
    "SyncSummary",
    # Sources
    "GoogleDriveSource",
    "InMemoryTreeSource",
    "RemoteTreeSource",
    # Intake and wiring
    "ConnectionManager",
    "JobConsumer",
    "Worker",
    "parse_job",
    # Config
    "Config",
    "DEFAULT_TIMEZONE_SKEW",
    "SyncSettings",
    "load_config",
    # Exceptions
    "ConfigError",
    "ConfigurationError",
    "DriveSyncError",
    "JobParseError",
    "ListingError",
    "TransferError",
    "WatermarkError",
    # Logging
    "get_logger",
    "setup_logging",
    "setup_logging_from_config",
]
