"""
Click queue backends.

The redirect path publishes ClickEvents; ClickWorker fetches them as a
ClickBatch, applies the batch and acks it. A batch that is fetched but never
acked is delivered again, so clicks are counted at least once.
"""

import itertools
import logging
import os
import socket
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Dict, List, Tuple

import redis
from pydantic import ValidationError

from .models import ClickBatch, ClickEvent


logger = logging.getLogger(__name__)


class QueueStrategy(ABC):
    """
    Abstract base class for click queues.

    shared tells whether a worker in another process can drain what this
    process publishes.
    """

    shared: bool = True

    @abstractmethod
    async def publish(self, queue_name: str, event: ClickEvent) -> bool:
        """
        Append one click.

        Returns:
            True if the click was queued, False otherwise
        """
        pass

    @abstractmethod
    async def fetch(self, queue_name: str, batch_size: int = 100, block_ms: int = 1000) -> ClickBatch:
        """
        Hand out up to batch_size unacknowledged clicks.

        Args:
            queue_name: Name of the queue
            batch_size: Maximum number of events in the batch
            block_ms: How long a backend may wait for new events
        """
        pass

    @abstractmethod
    async def ack(self, batch: ClickBatch) -> bool:
        """Mark every event of an applied batch as done."""
        pass


class RedisStreamQueue(QueueStrategy):
    """
    Redis Streams backend on an asyncio client.

    1. The redirect path appends with XADD
    2. The worker first reclaims entries left pending longer than
       reclaim_idle_ms (XAUTOCLAIM), otherwise reads new ones (XREADGROUP >)
    3. The worker acks with XACK once the batch is committed
    """

    def __init__(
        self,
        redis_client,
        consumer_group: str = "click_workers",
        consumer_name: str = None,
        reclaim_idle_ms: int = 30000,
    ):
        self.redis = redis_client
        self.consumer_group = consumer_group
        self.consumer_name = consumer_name or f"{socket.gethostname()}-{os.getpid()}"
        self.reclaim_idle_ms = reclaim_idle_ms
        self._initialized_streams = set()

    async def _ensure_group(self, queue_name: str):
        if queue_name in self._initialized_streams:
            return

        try:
            # MKSTREAM creates the stream if it doesn't exist
            await self.redis.xgroup_create(
                name=queue_name,
                groupname=self.consumer_group,
                id="0",
                mkstream=True,
            )
            logger.info("Created consumer group %s on %s", self.consumer_group, queue_name)
        except redis.ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

        self._initialized_streams.add(queue_name)

    async def publish(self, queue_name: str, event: ClickEvent) -> bool:
        try:
            await self._ensure_group(queue_name)
            await self.redis.xadd(queue_name, {"data": event.model_dump_json()})
            return True
        except redis.RedisError:
            logger.exception("Redis publish to %s failed", queue_name)
            return False

    async def fetch(self, queue_name: str, batch_size: int = 100, block_ms: int = 1000) -> ClickBatch:
        await self._ensure_group(queue_name)

        entries = await self._reclaim(queue_name, batch_size)
        if not entries:
            response = await self.redis.xreadgroup(
                groupname=self.consumer_group,
                consumername=self.consumer_name,
                streams={queue_name: ">"},
                count=batch_size,
                block=block_ms,
            )
            entries = [entry for _stream, stream_entries in response or [] for entry in stream_entries]

        return ClickBatch(queue_name, await self._decode(queue_name, entries))

    async def _reclaim(self, queue_name: str, batch_size: int) -> List[Tuple]:
        """Take over entries another (or a crashed) consumer never acked."""
        response = await self.redis.xautoclaim(
            queue_name,
            self.consumer_group,
            self.consumer_name,
            min_idle_time=self.reclaim_idle_ms,
            start_id="0-0",
            count=batch_size,
        )
        claimed = list(response[1]) if response else []
        if claimed:
            logger.info("Reclaimed %d pending clicks from %s", len(claimed), queue_name)
        return claimed

    async def _decode(self, queue_name: str, entries: List[Tuple]) -> List[ClickEvent]:
        events = []
        dropped = []
        for message_id, fields in entries:
            if message_id is None:
                continue
            if isinstance(message_id, bytes):
                message_id = message_id.decode("utf-8")
            payload = (fields or {}).get(b"data")
            if payload is None:
                dropped.append(message_id)
                continue
            try:
                event = ClickEvent.model_validate_json(payload)
            except ValidationError:
                logger.warning("Dropping malformed click message %s", message_id)
                dropped.append(message_id)
                continue
            event.message_id = message_id
            events.append(event)

        # Unusable entries are acked so they don't come back on every reclaim
        if dropped:
            await self.redis.xack(queue_name, self.consumer_group, *dropped)
        return events

    async def ack(self, batch: ClickBatch) -> bool:
        message_ids = batch.message_ids
        if not message_ids:
            return True
        try:
            await self.redis.xack(batch.queue_name, self.consumer_group, *message_ids)
            return True
        except redis.RedisError:
            logger.exception("Redis ack on %s failed", batch.queue_name)
            return False


class InMemoryQueue(QueueStrategy):
    """
    Process-local queue for development and tests.

    Events stay queued until acked, so a failed batch is handed out again on
    the next fetch. Only one worker may drain it, and it must run in the
    process that publishes. Publishing fails once max_pending clicks wait.
    """

    shared = False

    def __init__(self, max_pending: int = 10000):
        self.max_pending = max_pending
        self._streams: Dict[str, "OrderedDict[str, ClickEvent]"] = {}
        self._ids = itertools.count(1)

    def _stream(self, queue_name: str) -> "OrderedDict[str, ClickEvent]":
        return self._streams.setdefault(queue_name, OrderedDict())

    async def publish(self, queue_name: str, event: ClickEvent) -> bool:
        stream = self._stream(queue_name)
        if len(stream) >= self.max_pending:
            logger.warning("In-memory click queue %s is full", queue_name)
            return False
        message_id = str(next(self._ids))
        queued = event.model_copy()
        queued.message_id = message_id
        stream[message_id] = queued
        return True

    async def fetch(self, queue_name: str, batch_size: int = 100, block_ms: int = 1000) -> ClickBatch:
        """block_ms is ignored; an empty queue returns an empty batch right away."""
        events = list(itertools.islice(self._stream(queue_name).values(), batch_size))
        return ClickBatch(queue_name, events)

    async def ack(self, batch: ClickBatch) -> bool:
        stream = self._stream(batch.queue_name)
        for message_id in batch.message_ids:
            stream.pop(message_id, None)
        return True
