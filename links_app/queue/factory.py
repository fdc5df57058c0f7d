"""
Builds the process-wide click queue from settings.
"""

import logging
from enum import Enum

from .strategies import InMemoryQueue, QueueStrategy, RedisStreamQueue
from links_app.config import settings


logger = logging.getLogger(__name__)


class QueueBackend(Enum):
    """Available queue backends"""
    REDIS_STREAMS = "redis_streams"
    MEMORY = "memory"


class QueueFactory:
    """
    Creates the click queue once per process.

    An unreachable Redis degrades to a process-local InMemoryQueue; callers
    check QueueStrategy.shared to know whether an out-of-process worker can
    drain it.
    """

    _instance: QueueStrategy = None

    @classmethod
    def create(cls, backend: QueueBackend) -> QueueStrategy:
        if cls._instance is not None:
            return cls._instance

        if backend == QueueBackend.REDIS_STREAMS:
            cls._instance = cls._redis_or_memory()
        elif backend == QueueBackend.MEMORY:
            cls._instance = InMemoryQueue(settings.queue_memory_limit)
            logger.info("In-memory click queue initialized")
        else:
            raise ValueError(f"Unknown queue backend: {backend}")

        return cls._instance

    @classmethod
    def _redis_or_memory(cls) -> QueueStrategy:
        import redis
        from redis import asyncio as redis_async

        # Check reachability once synchronously; the queue itself talks through the asyncio client
        sync_client = redis.from_url(settings.redis_url, socket_connect_timeout=2, socket_timeout=2)
        try:
            sync_client.ping()
        except redis.RedisError as e:
            logger.warning(
                "Redis unreachable (%s), clicks go to a process-local in-memory queue", e
            )
            return InMemoryQueue(settings.queue_memory_limit)
        finally:
            sync_client.close()

        client = redis_async.from_url(
            settings.redis_url,
            decode_responses=False,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        logger.info("Redis click queue initialized")
        return RedisStreamQueue(
            client,
            consumer_group=settings.queue_consumer_group,
            reclaim_idle_ms=settings.queue_reclaim_idle_ms,
        )

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
