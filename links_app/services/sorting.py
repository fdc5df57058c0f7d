"""
In-memory re-sorting of an already fetched link list.

Python's sort is stable (also with reverse=True), so links that compare
equal keep the order they came in, i.e. the store's newest-first order.
"""

from enum import Enum
from typing import Callable, Dict, List, Sequence, Tuple

from links_app.models.link import Link


UNTITLED = "Untitled Link"


class SortOption(str, Enum):
    """Available sort orders for a link list"""
    TITLE_ASC = "title-asc"
    TITLE_DESC = "title-desc"
    DATE_NEWEST = "date-newest"
    DATE_OLDEST = "date-oldest"
    CLICKS_HIGH = "clicks-high"
    CLICKS_LOW = "clicks-low"
    ACTIVE = "active"
    INACTIVE = "inactive"


def _title_key(link: Link) -> str:
    return (link.title or UNTITLED).casefold()


def _date_key(link: Link):
    return link.created_at


def _clicks_key(link: Link) -> int:
    return link.click_count


def _active_key(link: Link) -> bool:
    return bool(link.is_active)


# option -> (key, reverse)
_COMPARATORS: Dict[SortOption, Tuple[Callable[[Link], object], bool]] = {
    SortOption.TITLE_ASC: (_title_key, False),
    SortOption.TITLE_DESC: (_title_key, True),
    SortOption.DATE_NEWEST: (_date_key, True),
    SortOption.DATE_OLDEST: (_date_key, False),
    SortOption.CLICKS_HIGH: (_clicks_key, True),
    SortOption.CLICKS_LOW: (_clicks_key, False),
    SortOption.ACTIVE: (_active_key, True),
    SortOption.INACTIVE: (_active_key, False),
}


def sort_links(links: Sequence[Link], option: SortOption) -> List[Link]:
    """Return a new list ordered by option; the input is left untouched."""
    key, reverse = _COMPARATORS[SortOption(option)]
    return sorted(links, key=key, reverse=reverse)
