"""
Job payload decoding.

Payloads look like::

    {"type": "CREATE" | "SYNC", "body": {"userId": 180, "connectionId": 359, "folderId": "1MzT..."}}

and may arrive wrapped in stray quote characters, or JSON-encoded twice.
"""

from __future__ import annotations

import json
import re
from typing import Any

from drivesync.exceptions import JobParseError
from drivesync.types import JobKind, SyncJob

_WRAPPING_QUOTES = re.compile(r"^\"?'?|\"?'?$")


def unwrap_payload(payload: str) -> str:
    """Strip one layer of leading/trailing ``"`` and ``'`` characters."""
    return _WRAPPING_QUOTES.sub("", payload.strip())


def parse_job(payload: str | bytes | dict[str, Any]) -> SyncJob:
    """
    Decode a queued payload into a SyncJob.

    Raises:
        JobParseError: If the payload is not JSON, has an unknown type, or
            is missing body fields
    """
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")

    raw = payload if isinstance(payload, str) else None
    data: Any = payload
    if isinstance(payload, str):
        data = _decode(payload)

    if not isinstance(data, dict):
        raise JobParseError(f"Job payload must be a JSON object, got {type(data).__name__}", payload=raw)

    type_value = data.get("type")
    try:
        kind = JobKind(type_value)
    except ValueError:
        raise JobParseError(
            f"Unknown job type {type_value!r}; expected one of {[k.value for k in JobKind]}", payload=raw
        ) from None

    body = data.get("body")
    if not isinstance(body, dict):
        raise JobParseError("Job payload has no 'body' object", payload=raw)

    missing = [field for field in ("userId", "connectionId", "folderId") if body.get(field) in (None, "")]
    if missing:
        raise JobParseError(f"Job body is missing {', '.join(missing)}", payload=raw)

    return SyncJob(
        kind=kind,
        owner_id=str(body["userId"]),
        connection_id=str(body["connectionId"]),
        root_folder_id=str(body["folderId"]),
    )


def _decode(text: str) -> Any:
    try:
        data = json.loads(unwrap_payload(text))
    except json.JSONDecodeError:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise JobParseError(f"Job payload is not valid JSON: {e}", payload=text) from None
    # Producers sometimes JSON-encode the object a second time
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise JobParseError(f"Job payload is not valid JSON: {e}", payload=text) from None
    return data
