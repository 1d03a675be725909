"""
Remote tree sources.
"""

from drivesync.sources.base import CSV_MIME_TYPE, RemoteTreeSource
from drivesync.sources.gdrive import GoogleDriveSource, classify_mime_type
from drivesync.sources.memory import InMemoryTreeSource

__all__ = [
    "RemoteTreeSource",
    "GoogleDriveSource",
    "InMemoryTreeSource",
    "CSV_MIME_TYPE",
    "classify_mime_type",
]
