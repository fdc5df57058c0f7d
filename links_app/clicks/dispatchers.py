"""
Click dispatch strategies.

The resolver hands every successful lookup to a dispatcher. Dispatchers only
schedule the increment; none of them waits for it, and none lets a failure
reach the redirect.
"""

import logging
from abc import ABC, abstractmethod

from fastapi import BackgroundTasks
from sqlalchemy.orm import sessionmaker

from links_app.queue.models import ClickEvent
from links_app.queue.strategies import QueueStrategy
from links_app.store.link_store import LinkStore


logger = logging.getLogger(__name__)


def record_click(session_factory: sessionmaker, link_id: int) -> None:
    """
    Bump click_count in a session of its own.

    Failures are logged and swallowed: nobody is waiting on this.
    """
    db = session_factory()
    try:
        LinkStore(db).increment_click_count(link_id)
    except Exception:
        logger.exception("Failed to increment click count for link %s", link_id)
    finally:
        db.close()


class ClickDispatcher(ABC):
    @abstractmethod
    async def dispatch(self, link_id: int, short_code: str) -> None:
        """Schedule one click for link_id without waiting for it."""
        pass


class BackgroundClickDispatcher(ClickDispatcher):
    """
    Runs record_click as a FastAPI background task, i.e. after the redirect
    response has been sent.
    """

    def __init__(self, background_tasks: BackgroundTasks, session_factory: sessionmaker):
        self.background_tasks = background_tasks
        self.session_factory = session_factory

    async def dispatch(self, link_id: int, short_code: str) -> None:
        self.background_tasks.add_task(record_click, self.session_factory, link_id)


class QueueClickDispatcher(ClickDispatcher):
    """Publishes a ClickEvent; ClickWorker applies it later."""

    def __init__(self, queue: QueueStrategy, queue_name: str):
        self.queue = queue
        self.queue_name = queue_name

    async def dispatch(self, link_id: int, short_code: str) -> None:
        event = ClickEvent(link_id=link_id, short_code=short_code)
        try:
            published = await self.queue.publish(self.queue_name, event)
        except Exception:
            logger.exception("Failed to publish click for link %s", link_id)
            return
        if not published:
            logger.warning("Click for link %s was not queued", link_id)
