"""Tests for CollectionManager: collections, their entries and action items."""
import pytest
from datetime import date

from bujo.core.exceptions import ValidationError
from bujo.database.models import CollectionType, EntryType, LogType


@pytest.fixture
def meetings(collection_manager, user_id):
    return collection_manager.get_by_type(user_id, "meetings")


@pytest.fixture
def note(meeting_manager, meetings, user_id):
    return meeting_manager.create(
        user_id, {"collection_id": meetings.id, "date": "2024-03-04", "title": "Weekly sync"}
    )


class TestBuiltinCollections:
    """meetings and ideas are created on first access."""

    def test_get_by_type_creates_once(self, collection_manager, user_id):
        first = collection_manager.get_by_type(user_id, "ideas")
        second = collection_manager.get_by_type(user_id, CollectionType.IDEAS)

        assert first.id == second.id
        assert first.name == "Ideas"
        assert first.icon == "💡"
        assert first.is_builtin

    def test_meetings_defaults(self, meetings):
        assert meetings.name == "Meeting Notes"
        assert meetings.type == CollectionType.MEETINGS

    def test_custom_never_created_implicitly(self, collection_manager, user_id):
        assert collection_manager.get_by_type(user_id, "custom") is None

    def test_per_user(self, collection_manager, user_id, other_user):
        mine = collection_manager.get_by_type(user_id, "ideas")
        theirs = collection_manager.get_by_type(other_user, "ideas")
        assert mine.id != theirs.id
        assert collection_manager.get(other_user, mine.id) is None

    def test_unknown_type(self, collection_manager, user_id):
        with pytest.raises(ValidationError):
            collection_manager.get_by_type(user_id, "recipes")


class TestCollectionCrud:
    """create / update / get_all."""

    def test_create_custom(self, collection_manager, user_id):
        books = collection_manager.create(
            user_id, {"name": " Books ", "icon": "📚", "template": {"columns": ["title"]}}
        )
        assert books.name == "Books"
        assert books.type == CollectionType.CUSTOM
        assert books.template == {"columns": ["title"]}
        assert collection_manager.get_by_type(user_id, "custom").id == books.id

    def test_create_requires_name(self, collection_manager, user_id):
        with pytest.raises(ValidationError):
            collection_manager.create(user_id, {"name": ""})

    def test_second_builtin_rejected(self, collection_manager, user_id, meetings):
        with pytest.raises(ValidationError, match="already exists"):
            collection_manager.create(user_id, {"name": "More meetings", "type": "meetings"})

    def test_template_must_be_mapping(self, collection_manager, user_id):
        with pytest.raises(ValidationError):
            collection_manager.create(user_id, {"name": "Books", "template": ["title"]})

    def test_update(self, collection_manager, user_id):
        books = collection_manager.create(user_id, {"name": "Books"})
        assert collection_manager.update(user_id, books.id, {"name": "Reading", "icon": "📖"})
        assert (books.name, books.icon) == ("Reading", "📖")
        with pytest.raises(ValidationError):
            collection_manager.update(user_id, books.id, {"name": " "})
        assert collection_manager.update(user_id, "nope", {"name": "x"}) is False

    def test_get_all(self, collection_manager, user_id, other_user):
        collection_manager.create(user_id, {"name": "Books"})
        collection_manager.get_by_type(user_id, "ideas")
        collection_manager.get_by_type(other_user, "ideas")
        assert len(collection_manager.get_all(user_id)) == 2


class TestCollectionEntries:
    """Entries living in a collection."""

    def test_create_entry(self, collection_manager, user_id):
        ideas = collection_manager.get_by_type(user_id, "ideas")
        first = collection_manager.create_entry(
            user_id, ideas.id, {"type": "note", "content": "Bike rack", "date": "2024-03-05"}
        )
        second = collection_manager.create_entry(
            user_id, ideas.id, {"type": "note", "content": "Herb garden", "date": "2024-03-05"}
        )

        assert first.log_type == LogType.COLLECTION
        assert first.collection_id == ideas.id
        assert first.anchor_id is None
        assert first.chain_id != second.chain_id
        assert (first.position, second.position) == (0, 1)
        assert collection_manager.entries(user_id, ideas.id) == [first, second]

    def test_create_entry_defaults_to_today(self, collection_manager, user_id):
        ideas = collection_manager.get_by_type(user_id, "ideas")
        entry = collection_manager.create_entry(user_id, ideas.id, {"type": "task", "content": "x"})
        assert entry.date == date.today()

    def test_create_entry_unknown_collection(self, collection_manager, user_id):
        assert collection_manager.create_entry(
            user_id, "nope", {"type": "note", "content": "x"}
        ) is None


class TestActionItems:
    """Meeting action items are monthly task anchors."""

    def test_create_action_item(self, collection_manager, meetings, note, user_id):
        item = collection_manager.create_action_item(
            user_id, meetings.id, note.id, "Send minutes", today=date(2024, 3, 20)
        )

        assert item.type == EntryType.TASK
        assert item.log_type == LogType.MONTHLY
        assert item.date == date(2024, 3, 1)
        assert item.tags == [f"meeting:{note.id}"]
        assert item.collection_id == meetings.id
        assert collection_manager.action_items(user_id, note.id, meetings.id) == [item]

    def test_action_item_can_be_planned(self, collection_manager, lifecycle, meetings, note, user_id):
        item = collection_manager.create_action_item(
            user_id, meetings.id, note.id, "Send minutes", today=date(2024, 3, 20)
        )
        daily = lifecycle.plan_to_day(user_id, item.id, date(2024, 3, 21))
        assert daily.chain_id == item.chain_id
        assert daily.tags == item.tags

    def test_action_items_filtered_by_note(self, collection_manager, meeting_manager, meetings, note, user_id):
        other = meeting_manager.create(
            user_id, {"collection_id": meetings.id, "date": "2024-03-11", "title": "Retro"}
        )
        collection_manager.create_action_item(user_id, meetings.id, other.id, "Fix CI")
        mine = collection_manager.create_action_item(user_id, meetings.id, note.id, "Send minutes")

        assert collection_manager.action_items(user_id, note.id, meetings.id) == [mine]

    def test_unknown_note_or_collection(self, collection_manager, meetings, note, user_id):
        assert collection_manager.create_action_item(user_id, meetings.id, "nope", "x") is None
        assert collection_manager.create_action_item(user_id, "nope", note.id, "x") is None


class TestCollectionDelete:
    """Deleting a collection removes its entries' whole chains."""

    def test_delete_removes_everything(
        self, collection_manager, lifecycle, entry_manager, meeting_manager, meetings, note, user_id
    ):
        item = collection_manager.create_action_item(
            user_id, meetings.id, note.id, "Send minutes", today=date(2024, 3, 20)
        )
        daily = lifecycle.plan_to_day(user_id, item.id, date(2024, 3, 21))
        unrelated = lifecycle.create(
            user_id, {"type": "task", "content": "Buy milk", "log_type": "daily", "date": "2024-03-21"}
        )

        assert collection_manager.delete(user_id, meetings.id) is True

        assert collection_manager.get(user_id, meetings.id) is None
        assert meeting_manager.get(user_id, note.id) is None
        assert entry_manager.get(user_id, item.id) is None
        assert entry_manager.get(user_id, daily.id) is None
        assert entry_manager.get(user_id, unrelated.id) is not None

    def test_delete_unknown(self, collection_manager, user_id):
        assert collection_manager.delete(user_id, "nope") is False
