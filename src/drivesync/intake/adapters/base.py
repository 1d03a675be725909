"""
Base message adapter interface.

Job queues (SQS, in-memory for tests) implement this interface so the
consumer can pull payloads and acknowledge them without knowing where they
came from.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator


@dataclass
class Message:
    """
    A message pulled from a job queue.

    ``receipt`` is whatever the adapter needs to acknowledge the message
    later (an SQS receipt handle, an offset for the in-memory adapter).
    """

    value: Any = None
    message_id: str | None = None
    receipt: Any = None
    timestamp: datetime | None = None
    topic: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


class MessageAdapter(ABC):
    """
    Abstract base class for job queue adapters.

    Implementations provided:
    - SQSAdapter: Amazon SQS long polling (boto3)
    - InMemoryAdapter: In-process testing adapter

    Example:
        async with SQSAdapter(queue_url=url) as adapter:
            async for msg in adapter.consume(url):
                ...
                await adapter.ack(msg)
    """

    def __init__(self):
        self._running = False

    @abstractmethod
    async def connect(self) -> None:
        """Establish connection to the messaging system."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Gracefully disconnect from the messaging system."""
        ...

    @abstractmethod
    def consume(self, topic: str) -> AsyncIterator[Message]:
        """
        Consume messages from a queue until stopped.

        Args:
            topic: Queue name or URL

        Yields:
            Message objects
        """
        ...

    @abstractmethod
    async def ack(self, message: Message) -> None:
        """Remove a handled message from the queue."""
        ...

    async def stop(self) -> None:
        """Stop consuming after the current message."""
        self._running = False

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, *exc):
        await self.stop()
        await self.disconnect()

    @property
    def is_running(self) -> bool:
        return self._running
