"""
Data models for queue messages.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ClickEvent(BaseModel):
    """
    Published when a short code resolves; the worker turns each event into
    one atomic click_count increment.
    """

    link_id: int = Field(..., description="Primary key of the resolved link")
    short_code: str = Field(..., description="The short code that was visited")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the visit happened",
    )

    # Set by the queue on fetch, used for acknowledgment; never serialized
    message_id: Optional[str] = Field(None, exclude=True)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "link_id": 42,
                "short_code": "mylink",
                "timestamp": "2025-10-29T10:30:00Z",
            }
        }
    )


@dataclass
class ClickBatch:
    """
    Events handed to the worker in one fetch.

    The worker applies the whole batch in one transaction and then acks it
    through the queue that produced it; an unacked batch is delivered again.
    """

    queue_name: str
    events: List[ClickEvent] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.events)

    @property
    def message_ids(self) -> List[str]:
        return [event.message_id for event in self.events if event.message_id]

    def click_counts(self) -> Dict[int, int]:
        """Clicks per link_id, for one UPDATE per link."""
        return dict(Counter(event.link_id for event in self.events))
