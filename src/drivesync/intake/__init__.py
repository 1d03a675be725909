"""
Job intake: payload parsing, queue adapters and the consumer loop.
"""

from drivesync.intake.adapters import (
    InMemoryAdapter,
    Message,
    MessageAdapter,
    SQSAdapter,
    create_adapter,
)
from drivesync.intake.consumer import JobConsumer
from drivesync.intake.job import parse_job, unwrap_payload

__all__ = [
    "InMemoryAdapter",
    "JobConsumer",
    "Message",
    "MessageAdapter",
    "SQSAdapter",
    "create_adapter",
    "parse_job",
    "unwrap_payload",
]
