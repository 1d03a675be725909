"""
Typed sync settings built from the ``sync`` config section.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from drivesync.exceptions import ConfigurationError

# Remote modifiedTime and the stored watermark disagree by a fixed 5 hours.
# This likely hides a timezone-normalization bug upstream rather than being
# an intended tolerance window; keep it explicit until that is resolved.
DEFAULT_TIMEZONE_SKEW = timedelta(hours=5)

MATCH_KEYS = ("composite", "event_type")


@dataclass(frozen=True)
class SyncSettings:
    """
    Knobs for the sync engine.

    Attributes:
        timezone_skew: Subtracted from the remote modification time before
            comparing against a stored watermark
        forward_prior_records: Keep prior watermark records when descending
            into nested folders. False treats every nested folder as a
            full import, as the legacy connector did
        match_key: "composite" matches records on (folder id, file name);
            "event_type" matches on file name alone
        key_suffix: Appended to every sink object key
        max_concurrent_transfers: Leaf transfers allowed in flight per folder
        watermark_schema: Schema of the watermark table
        watermark_table: Name of the watermark table
    """

    timezone_skew: timedelta = DEFAULT_TIMEZONE_SKEW
    forward_prior_records: bool = True
    match_key: str = "composite"
    key_suffix: str = ".csv"
    max_concurrent_transfers: int = 1
    watermark_schema: str = "api_connectors"
    watermark_table: str = "flows"

    def __post_init__(self):
        if self.match_key not in MATCH_KEYS:
            raise ConfigurationError(f"sync.match_key must be one of {MATCH_KEYS}, got '{self.match_key}'")
        if self.max_concurrent_transfers < 1:
            raise ConfigurationError("sync.max_concurrent_transfers must be >= 1")
        for label, ident in (("schema", self.watermark_schema), ("table", self.watermark_table)):
            if not ident.replace("_", "").isalnum():
                raise ConfigurationError(
                    f"sync.watermark.{label} '{ident}' must be alphanumeric with underscores only"
                )

    @classmethod
    def from_config(cls, sync_config: dict[str, Any] | None) -> "SyncSettings":
        """Build settings from the ``sync`` section, falling back to defaults."""
        cfg = sync_config or {}
        watermark = cfg.get("watermark", {}) or {}
        try:
            skew_hours = float(cfg.get("timezone_skew_hours", DEFAULT_TIMEZONE_SKEW.total_seconds() / 3600))
            max_concurrent = int(cfg.get("max_concurrent_transfers", 1))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid numeric value in sync config: {e}") from e

        return cls(
            timezone_skew=timedelta(hours=skew_hours),
            forward_prior_records=bool(cfg.get("forward_prior_records", True)),
            match_key=str(cfg.get("match_key", "composite")),
            key_suffix=str(cfg.get("key_suffix", ".csv")),
            max_concurrent_transfers=max_concurrent,
            watermark_schema=str(watermark.get("schema", "api_connectors")),
            watermark_table=str(watermark.get("table", "flows")),
        )
