"""
Click counting: fire-and-forget dispatch from the redirect path plus the
queue worker that applies queued clicks.
"""

from .dispatchers import (
    BackgroundClickDispatcher,
    ClickDispatcher,
    QueueClickDispatcher,
    record_click,
)

__all__ = [
    "BackgroundClickDispatcher",
    "ClickDispatcher",
    "QueueClickDispatcher",
    "record_click",
]
