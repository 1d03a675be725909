"""
Tests for the exception hierarchy.
"""

import pytest

from drivesync.exceptions import (
    ConfigError,
    ConfigurationError,
    DriveSyncError,
    JobParseError,
    ListingError,
    TransferError,
    WatermarkError,
)


class TestHierarchy:
    """Verify all exceptions inherit from DriveSyncError."""

    @pytest.mark.parametrize(
        "exc_class",
        [ConfigurationError, JobParseError, ListingError, TransferError, WatermarkError],
    )
    def test_inherits_from_drivesync_error(self, exc_class):
        assert issubclass(exc_class, DriveSyncError)

    def test_config_alias(self):
        assert ConfigError is ConfigurationError


class TestAttributes:
    def test_details_default_empty(self):
        err = TransferError("upload failed")
        assert err.message == "upload failed"
        assert err.details == {}
        assert str(err) == "upload failed"

    def test_details_kept(self):
        err = WatermarkError("boom", details={"record_id": 7})
        assert err.details["record_id"] == 7

    def test_listing_error_carries_folder(self):
        cause = RuntimeError("403")
        err = ListingError("F1", "forbidden", cause=cause)
        assert err.folder_id == "F1"
        assert "F1" in str(err)
        assert err.__cause__ is cause

    def test_job_parse_error_keeps_payload(self):
        err = JobParseError("bad json", payload="{nope")
        assert err.payload == "{nope"
        assert err.details["payload"] == "{nope"

    def test_catch_all_with_base(self):
        with pytest.raises(DriveSyncError):
            raise ListingError("F1", "gone")
