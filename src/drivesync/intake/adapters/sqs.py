"""
Amazon SQS adapter using boto3.

Long-polls ``receive_message`` in a worker thread and deletes each message
on ack. A message that is never acked reappears after its visibility
timeout.

Config example:
    queue:
      type: sqs
      url: https://sqs.us-west-2.amazonaws.com/123456789012/drive-sync
      region: us-west-2
      wait_time_seconds: 20
      max_messages: 1
      visibility_timeout: 900
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from drivesync.exceptions import ConfigurationError
from drivesync.intake.adapters.base import Message, MessageAdapter
from drivesync.utils.logging import get_logger

logger = get_logger("drivesync.intake.sqs")


class SQSAdapter(MessageAdapter):
    def __init__(
        self,
        queue_url: str,
        *,
        region: str | None = None,
        wait_time_seconds: int = 20,
        max_messages: int = 1,
        visibility_timeout: int | None = None,
        endpoint_url: str | None = None,
        client: Any = None,
    ):
        super().__init__()
        if not queue_url:
            raise ConfigurationError("queue.url is required for the sqs adapter")
        if not 1 <= max_messages <= 10:
            raise ConfigurationError("queue.max_messages must be between 1 and 10")
        self.queue_url = queue_url
        self.region = region
        self.wait_time_seconds = wait_time_seconds
        self.max_messages = max_messages
        self.visibility_timeout = visibility_timeout
        self.endpoint_url = endpoint_url
        self._client = client

    @classmethod
    def from_config(cls, queue_config: dict[str, Any]) -> SQSAdapter:
        return cls(
            queue_url=queue_config.get("url", ""),
            region=queue_config.get("region"),
            wait_time_seconds=int(queue_config.get("wait_time_seconds", 20)),
            max_messages=int(queue_config.get("max_messages", 1)),
            visibility_timeout=queue_config.get("visibility_timeout"),
            endpoint_url=queue_config.get("endpoint_url"),
        )

    async def connect(self) -> None:
        if self._client is None:
            import boto3

            kwargs: dict[str, Any] = {}
            if self.region:
                kwargs["region_name"] = self.region
            if self.endpoint_url:
                kwargs["endpoint_url"] = self.endpoint_url
            self._client = boto3.client("sqs", **kwargs)
        logger.info(f"Connected to SQS queue {self.queue_url}")

    async def disconnect(self) -> None:
        self._client = None

    def _receive(self) -> list[dict[str, Any]]:
        kwargs: dict[str, Any] = {
            "QueueUrl": self.queue_url,
            "MaxNumberOfMessages": self.max_messages,
            "WaitTimeSeconds": self.wait_time_seconds,
            "AttributeNames": ["All"],
        }
        if self.visibility_timeout is not None:
            kwargs["VisibilityTimeout"] = int(self.visibility_timeout)
        response = self._client.receive_message(**kwargs)
        return response.get("Messages", [])

    async def consume(self, topic: str | None = None) -> AsyncIterator[Message]:
        if self._client is None:
            await self.connect()
        self._running = True
        while self._running:
            try:
                batch = await asyncio.to_thread(self._receive)
            except Exception as e:
                logger.error(f"Error receiving from {self.queue_url}: {e}")
                await asyncio.sleep(min(self.wait_time_seconds, 5) or 1)
                continue

            for raw in batch:
                yield Message(
                    value=raw.get("Body"),
                    message_id=raw.get("MessageId"),
                    receipt=raw.get("ReceiptHandle"),
                    timestamp=datetime.now(timezone.utc),
                    topic=topic or self.queue_url,
                    attributes=raw.get("Attributes", {}),
                )

    async def ack(self, message: Message) -> None:
        if self._client is None or message.receipt is None:
            return
        await asyncio.to_thread(
            self._client.delete_message,
            QueueUrl=self.queue_url,
            ReceiptHandle=message.receipt,
        )
