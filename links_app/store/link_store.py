"""
SQLAlchemy-backed persistence for link records.

Every owner mutation is a single statement plus commit. Owner-scoped mutations
filter on id AND user_id in the statement itself, so a call that skips the
service layer still cannot touch another user's rows.
"""

import contextlib
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from links_app.models.link import Link, utcnow


# Driver messages that signal a unique-constraint violation
DUPLICATE_KEY_SIGNALS = (
    "duplicate key value",       # PostgreSQL
    "UNIQUE constraint failed",  # SQLite
    "Duplicate entry",           # MySQL
)


class ConflictError(Exception):
    """A write collided with the unique constraint on short_code."""


def is_duplicate_key_error(exc: IntegrityError) -> bool:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return any(signal in message for signal in DUPLICATE_KEY_SIGNALS)


class LinkStore:
    """Link table access. One instance per session."""

    def __init__(self, db: Session):
        self.db = db

    @contextlib.contextmanager
    def _write(self):
        """
        Run statements and commit, rolling back on any failure.

        The driver may report a duplicate key at execute or at commit time,
        both surface as ConflictError.
        """
        try:
            yield
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if is_duplicate_key_error(exc):
                raise ConflictError(str(exc.orig)) from exc
            raise
        except Exception:
            self.db.rollback()
            raise

    def insert(self, values: Dict[str, Any]) -> Link:
        link = Link(**values)
        with self._write():
            self.db.add(link)
        self.db.refresh(link)
        return link

    def update_by_id(self, link_id: int, owner_id: str, fields: Dict[str, Any]) -> Optional[Link]:
        """
        Apply a partial update to the owner's link.

        Returns None when no link with that id belongs to owner_id.
        """
        values = dict(fields)
        values["updated_at"] = utcnow()
        with self._write():
            result = self.db.execute(
                update(Link)
                .where(Link.id == link_id, Link.user_id == owner_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount == 0:
            return None
        return self.find_by_id(link_id)

    def delete_by_id(self, link_id: int, owner_id: str) -> bool:
        with self._write():
            result = self.db.execute(
                delete(Link)
                .where(Link.id == link_id, Link.user_id == owner_id)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount > 0

    def find_by_id(self, link_id: int) -> Optional[Link]:
        return self.db.get(Link, link_id, populate_existing=True)

    def find_by_short_code(self, short_code: str) -> Optional[Link]:
        return self.db.scalars(
            select(Link).where(Link.short_code == short_code)
        ).first()

    def find_by_owner(self, user_id: str) -> List[Link]:
        """Owner's links, newest first."""
        return list(
            self.db.scalars(
                select(Link)
                .where(Link.user_id == user_id)
                .order_by(Link.created_at.desc(), Link.id.desc())
            )
        )

    def increment_click_count(self, link_id: int) -> None:
        """Atomic counter bump; the database does the +1."""
        with self._write():
            self.db.execute(
                update(Link)
                .where(Link.id == link_id)
                .values(click_count=Link.click_count + 1)
                .execution_options(synchronize_session=False)
            )

    def apply_click_counts(self, counts: Mapping[int, int]) -> None:
        """
        Add queued clicks per link in one transaction.

        Either every increment in counts lands or none does.
        """
        with self._write():
            for link_id, clicks in counts.items():
                self.db.execute(
                    update(Link)
                    .where(Link.id == link_id)
                    .values(click_count=Link.click_count + clicks)
                    .execution_options(synchronize_session=False)
                )
