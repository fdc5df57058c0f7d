"""
Click Worker

Drains click events published by the redirect path (click_dispatch=queue)
and applies them to links.click_count.

Architecture:
- Fetches a ClickBatch from the queue
- Adds the clicks per link in one transaction
- Acks the batch only after that transaction committed; a batch that failed
  is redelivered whole, so nothing from it was counted yet

A Redis queue is drained by this module run as its own process. A
process-local queue is drained by local_click_worker inside the web app.

Usage:
    python -m links_app.clicks.click_worker
"""

import asyncio
import contextlib
import logging
import signal
import sys

from links_app.config import settings
from links_app.database.connection import SessionLocal
from links_app.queue.models import ClickBatch
from links_app.queue.strategies import QueueStrategy
from links_app.store.link_store import LinkStore


logger = logging.getLogger(__name__)


class ClickWorker:
    def __init__(
        self,
        queue: QueueStrategy,
        db_session_factory=SessionLocal,
        queue_name: str = None,
        batch_size: int = None,
        block_ms: int = 1000,
    ):
        self.queue = queue
        self.db_session_factory = db_session_factory
        self.queue_name = queue_name or settings.queue_name
        self.batch_size = batch_size or settings.queue_batch_size
        self.block_ms = block_ms
        self.running = False
        self.processed_count = 0

    async def start(self):
        """Poll until stop() is called or the task is cancelled."""
        self.running = True
        logger.info("Click worker started (queue=%s, batch=%s)", self.queue_name, self.batch_size)

        while self.running:
            try:
                processed = await self.run_once()
                if not processed:
                    await asyncio.sleep(settings.queue_worker_interval)
            except asyncio.CancelledError:
                logger.info("Click worker task cancelled")
                break
            except Exception:
                logger.exception("Error processing click batch")
                await asyncio.sleep(1)

        logger.info("Click worker stopped")

    async def run_once(self) -> int:
        """
        Process one batch. Returns the number of events applied.

        Raises if the batch could not be applied; it stays unacked.
        """
        batch = await self.queue.fetch(self.queue_name, batch_size=self.batch_size, block_ms=self.block_ms)
        if not batch:
            return 0

        self._apply(batch)

        if not await self.queue.ack(batch):
            logger.warning("%d clicks were applied but not acked and may be counted again", len(batch))

        self.processed_count += len(batch)
        logger.info("Processed %d clicks. Total: %d", len(batch), self.processed_count)
        return len(batch)

    def _apply(self, batch: ClickBatch):
        db = self.db_session_factory()
        try:
            # Deleted links simply match no row
            LinkStore(db).apply_click_counts(batch.click_counts())
        finally:
            db.close()

    def _signal_handler(self, signum, frame):
        logger.info("Received signal %s. Shutting down gracefully...", signum)
        self.stop()

    def stop(self):
        self.running = False


@contextlib.asynccontextmanager
async def local_click_worker(queue: QueueStrategy, db_session_factory):
    """Run a ClickWorker as a task of the current event loop while the block is open."""
    worker = ClickWorker(queue, db_session_factory=db_session_factory)
    task = asyncio.create_task(worker.start())
    try:
        yield worker
    finally:
        worker.stop()
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task


async def main():
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    logger.info("Environment: %s, queue backend: %s", settings.environment, settings.queue_backend)

    from links_app.queue.factory import QueueBackend, QueueFactory
    queue = QueueFactory.create(QueueBackend(settings.queue_backend))
    if not queue.shared:
        logger.error("Click queue is process-local; the web app drains it itself, nothing to do here")
        sys.exit(1)

    worker = ClickWorker(queue=queue)
    signal.signal(signal.SIGINT, worker._signal_handler)
    signal.signal(signal.SIGTERM, worker._signal_handler)

    try:
        await worker.start()
    except Exception:
        logger.exception("Fatal error in click worker")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
