import pytest
from pydantic import ValidationError

from links_app.exceptions import DuplicateShortCodeError, LinkNotFoundError
from links_app.schemas.link import LinkCreate, LinkUpdate, first_error_message
from links_app.services.sorting import SortOption
from links_app.store.link_store import ConflictError

ALICE = "user_alice"
BOB = "user_bob"


def validation_message(model, **payload) -> str:
    with pytest.raises(ValidationError) as exc_info:
        model.model_validate(payload)
    return first_error_message(exc_info.value)


class TestValidation:
    """Fail-fast field validation"""

    @pytest.mark.parametrize("short_code", ["abc", "ABC123", "a_b-c", "0123456789", "__-"])
    def test_valid_short_codes(self, short_code):
        assert LinkCreate(short_code=short_code, original_url="https://x.io").short_code == short_code

    @pytest.mark.parametrize("short_code, message", [
        ("ab", "Short code must be at least 3 characters"),
        ("abcdefghijk", "Short code must be at most 10 characters"),
        ("bad code", "Short code can only contain letters, numbers, hyphens, and underscores"),
        ("héllo", "Short code can only contain letters, numbers, hyphens, and underscores"),
    ])
    def test_invalid_short_codes(self, short_code, message):
        assert validation_message(LinkCreate, short_code=short_code, original_url="https://x.io") == message

    def test_invalid_url(self):
        assert validation_message(LinkCreate, short_code="mylink", original_url="not-a-url") == "Please enter a valid URL"

    def test_url_kept_as_submitted(self):
        assert LinkCreate(short_code="mylink", original_url="https://x.io").original_url == "https://x.io"

    def test_title_length(self):
        assert LinkCreate(short_code="mylink", original_url="https://x.io", title="t" * 255).title == "t" * 255
        message = validation_message(LinkCreate, short_code="mylink", original_url="https://x.io", title="t" * 256)
        assert message == "Title must be at most 255 characters"

    def test_first_failing_field_wins(self):
        message = validation_message(LinkCreate, short_code="ab", original_url="nope", title="t" * 300)
        assert message == "Short code must be at least 3 characters"

    def test_update_only_tracks_sent_fields(self):
        assert LinkUpdate.model_validate({"title": "New"}).changes() == {"title": "New"}
        assert LinkUpdate.model_validate({"expires_at": None}).changes() == {"expires_at": None}

    def test_update_drops_unknown_fields(self):
        assert LinkUpdate.model_validate({"click_count": 1000, "user_id": "someone"}).changes() == {}

    def test_update_rejects_null_for_required_fields(self):
        assert validation_message(LinkUpdate, original_url=None) == "URL cannot be empty"
        assert validation_message(LinkUpdate, is_active=None) == "Active flag cannot be empty"


class TestLinkService:
    def test_create_defaults(self, make_link):
        link = make_link(short_code="mylink", title="Example")

        assert link.id is not None
        assert link.user_id == ALICE
        assert link.click_count == 0
        assert link.is_active is True
        assert link.created_at is not None
        assert link.updated_at is not None

    def test_duplicate_short_code(self, make_link):
        make_link(short_code="mylink")

        with pytest.raises(DuplicateShortCodeError) as exc_info:
            make_link(short_code="mylink", owner=BOB)
        assert exc_info.value.message == "This short code is already taken"

    def test_duplicate_regardless_of_order(self, make_link, link_service):
        make_link(short_code="zzz", owner=BOB)
        with pytest.raises(DuplicateShortCodeError):
            make_link(short_code="zzz", owner=ALICE)
        # Exactly one row made it
        assert len(link_service.list_links(BOB)) == 1
        assert link_service.list_links(ALICE) == []

    def test_service_usable_after_conflict(self, make_link):
        make_link(short_code="mylink")
        with pytest.raises(DuplicateShortCodeError):
            make_link(short_code="mylink")
        # Session was rolled back, next write goes through
        assert make_link(short_code="other").short_code == "other"

    def test_update_applies_only_present_fields(self, make_link, link_service):
        link = make_link(title="Old", description="Keep")

        updated = link_service.update_link(ALICE, link.id, LinkUpdate(title="New"))

        assert updated.title == "New"
        assert updated.description == "Keep"
        assert updated.original_url == "https://example.com"

    def test_update_bumps_updated_at(self, make_link, link_service):
        link = make_link()
        before = link.updated_at

        updated = link_service.update_link(ALICE, link.id, LinkUpdate(is_active=False))
        assert updated.updated_at >= before
        assert updated.is_active is False

    def test_empty_update_returns_link(self, make_link, link_service):
        link = make_link()
        assert link_service.update_link(ALICE, link.id, LinkUpdate()).id == link.id

    def test_update_other_owner(self, make_link, link_service):
        link = make_link()

        with pytest.raises(LinkNotFoundError):
            link_service.update_link(BOB, link.id, LinkUpdate(title="Hijacked"))
        with pytest.raises(LinkNotFoundError):
            link_service.update_link(BOB, link.id, LinkUpdate())

    def test_update_to_taken_code(self, make_link, link_service):
        make_link(short_code="taken")
        link = make_link(short_code="mine")

        with pytest.raises(DuplicateShortCodeError):
            link_service.update_link(ALICE, link.id, LinkUpdate(short_code="taken"))

    def test_delete(self, make_link, link_service, store):
        link = make_link(short_code="bye")

        link_service.delete_link(ALICE, link.id)

        assert store.find_by_short_code("bye") is None
        with pytest.raises(LinkNotFoundError):
            link_service.delete_link(ALICE, link.id)

    def test_delete_other_owner(self, make_link, link_service, store):
        link = make_link(short_code="mine")

        with pytest.raises(LinkNotFoundError):
            link_service.delete_link(BOB, link.id)
        assert store.find_by_short_code("mine") is not None

    def test_list_newest_first(self, make_link, link_service):
        for code in ("one", "two", "three"):
            make_link(short_code=code)
        make_link(short_code="bobs", owner=BOB)

        assert [link.short_code for link in link_service.list_links(ALICE)] == ["three", "two", "one"]

    def test_list_with_sort(self, make_link, link_service):
        make_link(short_code="one", title="banana")
        make_link(short_code="two", title="Apple")

        links = link_service.list_links(ALICE, SortOption.TITLE_ASC)
        assert [link.short_code for link in links] == ["two", "one"]


class TestLinkStore:
    def test_insert_conflict(self, store):
        store.insert({"short_code": "dup", "user_id": ALICE, "original_url": "https://x.io"})

        with pytest.raises(ConflictError):
            store.insert({"short_code": "dup", "user_id": BOB, "original_url": "https://y.io"})

    def test_update_filters_by_owner(self, store):
        link = store.insert({"short_code": "own", "user_id": ALICE, "original_url": "https://x.io"})

        assert store.update_by_id(link.id, BOB, {"title": "nope"}) is None
        assert store.update_by_id(link.id, ALICE, {"title": "yes"}).title == "yes"

    def test_increment_is_relative(self, store, db_session):
        link = store.insert({"short_code": "cnt", "user_id": ALICE, "original_url": "https://x.io"})

        for _ in range(3):
            store.increment_click_count(link.id)

        db_session.refresh(link)
        assert link.click_count == 3

    def test_increment_does_not_touch_updated_at(self, store, db_session):
        link = store.insert({"short_code": "cnt", "user_id": ALICE, "original_url": "https://x.io"})
        before = link.updated_at

        store.increment_click_count(link.id)

        db_session.refresh(link)
        assert link.updated_at == before

    def test_increment_missing_link_is_noop(self, store):
        store.increment_click_count(424242)

    def test_apply_click_counts(self, store, db_session):
        first = store.insert({"short_code": "one", "user_id": ALICE, "original_url": "https://x.io"})
        second = store.insert({"short_code": "two", "user_id": ALICE, "original_url": "https://y.io"})
        store.increment_click_count(first.id)

        store.apply_click_counts({first.id: 4, second.id: 2, 424242: 1})

        db_session.refresh(first)
        db_session.refresh(second)
        assert (first.click_count, second.click_count) == (5, 2)
