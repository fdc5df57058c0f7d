"""
Short code resolution for the public redirect path.

A lookup ends in exactly one of four outcomes. Only RESOLVED counts a click,
and the click is handed to a dispatcher without waiting for the increment:
a lost click is acceptable, a failed redirect is not.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from links_app.clicks.dispatchers import ClickDispatcher
from links_app.store.link_store import LinkStore


logger = logging.getLogger(__name__)


class ResolveOutcome(Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Resolution:
    outcome: ResolveOutcome
    url: Optional[str] = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they are stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """Expired only when strictly in the past; expires_at == now still resolves."""
    if expires_at is None:
        return False
    return as_utc(expires_at) < as_utc(now)


class Resolver:
    def __init__(
        self,
        store: LinkStore,
        dispatcher: ClickDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.clock = clock

    async def resolve(self, short_code: str) -> Resolution:
        link = self.store.find_by_short_code(short_code)

        if link is None:
            return Resolution(ResolveOutcome.NOT_FOUND)

        # Inactive wins over expired
        if not link.is_active:
            return Resolution(ResolveOutcome.INACTIVE)

        if is_expired(link.expires_at, self.clock()):
            return Resolution(ResolveOutcome.EXPIRED)

        try:
            await self.dispatcher.dispatch(link.id, link.short_code)
        except Exception:
            logger.exception("Failed to dispatch click for link %s", link.id)

        return Resolution(ResolveOutcome.RESOLVED, link.original_url)
