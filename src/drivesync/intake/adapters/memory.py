"""
In-memory message adapter for testing.

Example:
    adapter = InMemoryAdapter()

    async with adapter:
        await adapter.produce("jobs", '{"type": "CREATE", "body": {...}}')
        adapter.close_topic("jobs")

        async for msg in adapter.consume("jobs"):
            await adapter.ack(msg)
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from drivesync.intake.adapters.base import Message, MessageAdapter

_CLOSED = object()


class InMemoryAdapter(MessageAdapter):
    """
    In-memory job queue for tests and local runs.

    Messages wait in a per-topic asyncio queue. ``close_topic`` makes
    ``consume`` finish once everything queued before it has been delivered.
    Acknowledged messages are recorded in ``acked``.
    """

    def __init__(self, *, poll_timeout: float = 1.0):
        super().__init__()
        self.poll_timeout = poll_timeout
        self._queues: dict[str, asyncio.Queue] = defaultdict(asyncio.Queue)
        self._offsets: dict[str, int] = defaultdict(int)
        self.acked: list[Message] = []
        self._connected = False

    async def connect(self) -> None:
        """No-op for in-memory adapter."""
        self._connected = True

    async def disconnect(self) -> None:
        self._queues.clear()
        self._connected = False

    async def produce(self, topic: str, value: Any) -> Message:
        message = Message(
            value=value,
            message_id=f"{topic}-{self._offsets[topic]}",
            receipt=self._offsets[topic],
            timestamp=datetime.now(timezone.utc),
            topic=topic,
        )
        self._offsets[topic] += 1
        await self._queues[topic].put(message)
        return message

    def close_topic(self, topic: str) -> None:
        self._queues[topic].put_nowait(_CLOSED)

    async def consume(self, topic: str) -> AsyncIterator[Message]:
        queue = self._queues[topic]
        self._running = True
        while self._running:
            try:
                item = await asyncio.wait_for(queue.get(), timeout=self.poll_timeout)
            except asyncio.TimeoutError:
                continue
            if item is _CLOSED:
                break
            yield item

    async def ack(self, message: Message) -> None:
        self.acked.append(message)

    def pending(self, topic: str) -> int:
        """Messages still waiting in a topic (for testing)."""
        return self._queues[topic].qsize()
