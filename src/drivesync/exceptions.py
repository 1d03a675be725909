"""
drivesync exception hierarchy.

All domain-specific exceptions inherit from DriveSyncError, making it easy
to catch any sync error with a single base class while still allowing
fine-grained handling when needed.

Hierarchy::

    DriveSyncError
    ├── ConfigurationError        - credentials, config, connection pool (fatal)
    ├── JobParseError             - queued job payload could not be decoded
    ├── ListingError              - remote folder enumeration failed
    ├── TransferError             - content fetch or sink upload failed
    └── WatermarkError            - watermark table read/write failed
"""

from __future__ import annotations


class DriveSyncError(Exception):
    """Base exception for all drivesync errors."""

    def __init__(self, message: str, *, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- Configuration -----------------------------------------------------------


class ConfigurationError(DriveSyncError):
    """Raised when credentials, configuration or the state pool are unavailable.

    This is the only fatal error class: a worker that hits it cannot serve any
    job and must not report itself ready.
    """


# Short alias used by the worker entry points
ConfigError = ConfigurationError


# --- Intake ------------------------------------------------------------------


class JobParseError(DriveSyncError):
    """Raised when a queued job payload cannot be decoded into a SyncJob."""

    def __init__(self, message: str, *, payload: str | None = None) -> None:
        super().__init__(message, details={"payload": payload})
        self.payload = payload


# --- Remote tree -------------------------------------------------------------


class ListingError(DriveSyncError):
    """Raised when listing the children of a remote folder fails."""

    def __init__(self, folder_id: str, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(f"Listing folder '{folder_id}' failed: {message}", details={"folder_id": folder_id})
        self.folder_id = folder_id
        if cause is not None:
            self.__cause__ = cause


class TransferError(DriveSyncError):
    """Raised when content retrieval or the sink upload fails."""


# --- Watermark store ---------------------------------------------------------


class WatermarkError(DriveSyncError):
    """Raised when the watermark table cannot be read or written."""
