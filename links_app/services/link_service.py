import logging
from typing import List, Optional

from links_app.exceptions import DuplicateShortCodeError, LinkNotFoundError
from links_app.models.link import Link
from links_app.schemas.link import LinkCreate, LinkUpdate
from links_app.services.sorting import SortOption, sort_links
from links_app.store.link_store import ConflictError, LinkStore


logger = logging.getLogger(__name__)


class LinkService:
    """
    Owner-scoped CRUD over the link store.

    The owner identity is always passed in by the caller; the service never
    looks it up. Payloads arrive already validated as LinkCreate / LinkUpdate,
    so by the time a method runs nothing is left to reject except store
    conflicts and missing rows.
    """

    def __init__(self, store: LinkStore):
        self.store = store

    def create_link(self, owner_id: str, data: LinkCreate) -> Link:
        """
        Create a link owned by owner_id.

        New links always start active with zero clicks.

        Raises:
            DuplicateShortCodeError: short_code is already in use
        """
        values = data.model_dump()
        values.update(user_id=owner_id, is_active=True, click_count=0)
        try:
            link = self.store.insert(values)
        except ConflictError:
            logger.info("Short code %r already taken (owner=%s)", data.short_code, owner_id)
            raise DuplicateShortCodeError()

        logger.info("Created link %s -> %s (owner=%s)", link.short_code, link.original_url, owner_id)
        return link

    def update_link(self, owner_id: str, link_id: int, data: LinkUpdate) -> Link:
        """
        Apply the fields present in data to the owner's link.

        Raises:
            LinkNotFoundError: no link with this id belongs to owner_id
            DuplicateShortCodeError: the new short_code is already in use
        """
        changes = data.changes()
        if not changes:
            link = self.store.find_by_id(link_id)
            if link is None or link.user_id != owner_id:
                raise LinkNotFoundError()
            return link

        try:
            link = self.store.update_by_id(link_id, owner_id, changes)
        except ConflictError:
            logger.info("Short code %r already taken (owner=%s)", changes.get("short_code"), owner_id)
            raise DuplicateShortCodeError()

        if link is None:
            raise LinkNotFoundError()

        logger.info("Updated link %s fields=%s (owner=%s)", link_id, sorted(changes), owner_id)
        return link

    def delete_link(self, owner_id: str, link_id: int) -> None:
        """Hard delete. Raises LinkNotFoundError if the owner has no such link."""
        if not self.store.delete_by_id(link_id, owner_id):
            raise LinkNotFoundError()
        logger.info("Deleted link %s (owner=%s)", link_id, owner_id)

    def list_links(self, owner_id: str, sort: Optional[SortOption] = None) -> List[Link]:
        """Owner's links newest first, optionally re-sorted in memory."""
        links = self.store.find_by_owner(owner_id)
        if sort is None:
            return links
        return sort_links(links, sort)
