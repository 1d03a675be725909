"""
Job queue adapters.
"""

from typing import Any

from drivesync.exceptions import ConfigurationError
from drivesync.intake.adapters.base import Message, MessageAdapter
from drivesync.intake.adapters.memory import InMemoryAdapter
from drivesync.intake.adapters.sqs import SQSAdapter

ADAPTER_TYPES = {
    "sqs": SQSAdapter,
    "memory": InMemoryAdapter,
}


def create_adapter(queue_config: dict[str, Any]) -> MessageAdapter:
    """Build the adapter named by ``queue.type``."""
    adapter_type = queue_config.get("type", "sqs")
    if adapter_type == "sqs":
        return SQSAdapter.from_config(queue_config)
    if adapter_type == "memory":
        return InMemoryAdapter()
    raise ConfigurationError(f"Unknown queue type '{adapter_type}'. Available: {sorted(ADAPTER_TYPES)}")


__all__ = [
    "ADAPTER_TYPES",
    "InMemoryAdapter",
    "Message",
    "MessageAdapter",
    "SQSAdapter",
    "create_adapter",
]
