from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from links_app.database.connection import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Link(Base):
    """
    One row per short code.

    click_count is only ever changed by LinkStore.increment_click_count,
    and user_id is fixed at creation.
    """
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # unique=True creates the index backing the duplicate-key check
    short_code = Column(String(10), unique=True, nullable=False, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    original_url = Column(Text, nullable=False)
    title = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    click_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    # Assigned in Python so ordering keeps sub-second precision on SQLite
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Link id={self.id} short_code={self.short_code!r} user_id={self.user_id!r}>"
