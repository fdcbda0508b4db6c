#!/usr/bin/env python3
"""
collection_manager.py
--------------------
Manages Collection containers and the entries that live in them.

Collections sit beside the daily/monthly/future logs. Two of them,
``meetings`` and ``ideas``, are singletons created the first time they
are asked for; any number of ``custom`` collections can be created.

Entries owned by a collection are ordinary Entry rows in the
``collection`` log. Meeting action items are monthly task anchors
tagged ``meeting:<meeting note id>`` so they show up in the monthly log
and take part in planning and migration like any other task.

Key Features:
    - CRUD for collections, with built-in singletons auto-created
    - Collection entries (fresh chain each)
    - Meeting action items
    - Collection delete that removes its entries' whole chains

Usage:
    coll_mgr = CollectionManager(session, logger)

    ideas = coll_mgr.get_by_type(user_id, "ideas")
    coll_mgr.create_entry(user_id, ideas.id, {"type": "note", "content": "Bike rack"})
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlalchemy.orm import Session

from bujo.core.exceptions import ValidationError
from bujo.core.logging_manager import BujoLogger
from bujo.core.validators import DataValidator
from bujo.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from bujo.database.models import (
    Collection,
    CollectionType,
    Entry,
    EntryType,
    LogType,
    MeetingNote,
)
from bujo.utils.dates import month_start
from . import linkage
from .base_manager import BaseManager
from .entry_manager import EntryManager


class CollectionManager(BaseManager):
    """
    Manages Collection rows and their entries.

    Attributes:
        store: EntryManager used for entry rows
    """

    def __init__(
        self,
        session: Session,
        logger: Optional[BujoLogger] = None,
        store: Optional[EntryManager] = None,
    ):
        super().__init__(session, logger)
        self.store = store or EntryManager(session, logger)

    # =========================================================================
    # COLLECTION OPERATIONS
    # =========================================================================

    @handle_db_errors
    @log_database_operation("get_all_collections")
    def get_all(self, user_id: str) -> List[Collection]:
        """All collections of a user, oldest first."""
        return self._get_all_owned(
            Collection, user_id, order_by=[Collection.created_at, Collection.name]
        )

    @handle_db_errors
    @log_database_operation("get_collection")
    def get(self, user_id: str, collection_id: str) -> Optional[Collection]:
        """Retrieve a collection by id."""
        return self._get_owned(Collection, user_id, collection_id)

    @handle_db_errors
    @log_database_operation("get_collection_by_type")
    def get_by_type(self, user_id: str, collection_type: Any) -> Optional[Collection]:
        """
        Retrieve the collection of a type.

        The built-in types (meetings, ideas) are created on first
        access. For ``custom`` the oldest custom collection is returned,
        or None; custom collections are never created implicitly.
        """
        user_id = self._require_user(user_id)
        ctype = DataValidator.normalize_enum(collection_type, CollectionType)
        if ctype is None:
            raise ValidationError("Collection type is required")

        existing = (
            self.session.query(Collection)
            .filter_by(user_id=user_id, type=ctype)
            .order_by(Collection.created_at)
            .first()
        )
        if existing is not None or not ctype.is_builtin:
            return existing

        collection = Collection(
            user_id=user_id,
            name=ctype.default_name,
            type=ctype,
            icon=ctype.default_icon,
        )
        self.session.add(collection)
        self.session.flush()
        self.log.log_info(
            f"Created built-in collection: {collection.name}",
            {"collection_id": collection.id, "type": ctype.value},
        )
        return collection

    @handle_db_errors
    @log_database_operation("create_collection")
    @validate_metadata(["name"])
    def create(self, user_id: str, metadata: Dict[str, Any]) -> Collection:
        """
        Create a collection.

        Args:
            user_id: Owner
            metadata: Dictionary with keys:
                Required: name
                Optional: type (default custom), icon, template

        Returns:
            Created Collection

        Raises:
            ValidationError: If the name is empty, or a built-in
                collection of that type already exists
        """
        user_id = self._require_user(user_id)
        name = DataValidator.normalize_string(metadata.get("name"))
        if not name:
            raise ValidationError(f"Invalid collection name: {metadata.get('name')}")

        ctype = (
            DataValidator.normalize_enum(metadata.get("type"), CollectionType)
            or CollectionType.CUSTOM
        )
        if ctype.is_builtin and self._count_owned(
            Collection, user_id, Collection.type == ctype
        ):
            raise ValidationError(f"A {ctype.value} collection already exists")

        template = metadata.get("template")
        if template is not None and not isinstance(template, dict):
            raise ValidationError("Collection template must be a mapping")

        collection = Collection(
            user_id=user_id,
            name=name,
            type=ctype,
            icon=DataValidator.normalize_string(metadata.get("icon")) or ctype.default_icon,
            template=template,
        )
        self.session.add(collection)
        self.session.flush()

        self.log.log_debug(f"Created collection: {name}", {"collection_id": collection.id})
        return collection

    @handle_db_errors
    @log_database_operation("update_collection")
    def update(
        self, user_id: str, collection_id: str, metadata: Dict[str, Any]
    ) -> bool:
        """
        Rename a collection or change its icon.

        Returns:
            True if the collection exists and was updated
        """
        collection = self.get(user_id, collection_id)
        if collection is None:
            return False

        if "name" in metadata and not DataValidator.normalize_string(metadata["name"]):
            raise ValidationError("Collection name cannot be empty")

        self._update_scalar_fields(
            collection,
            metadata,
            [
                ("name", DataValidator.normalize_string),
                ("icon", DataValidator.normalize_string),
            ],
        )
        self.session.flush()
        return True

    @handle_db_errors
    @log_database_operation("delete_collection")
    def delete(self, user_id: str, collection_id: str) -> bool:
        """
        Delete a collection with everything in it.

        Every chain that has a row in the collection is deleted whole,
        so planned or migrated action items leave nothing behind. Meeting
        notes go next, then the collection itself.

        Returns:
            True if the collection existed
        """
        collection = self.get(user_id, collection_id)
        if collection is None:
            return False

        with self._atomic():
            chain_ids = {e.chain_id for e in self.store.by_collection(user_id, collection_id)}
            removed = self.store.delete_chains(user_id, chain_ids)

            self.session.execute(
                delete(MeetingNote)
                .where(
                    MeetingNote.user_id == user_id,
                    MeetingNote.collection_id == collection_id,
                )
                .execution_options(synchronize_session="fetch")
            )
            self.session.delete(collection)

        self.log.log_operation(
            "collection_deleted",
            {"collection_id": collection_id, "chains": len(chain_ids), "rows": removed},
        )
        return True

    # =========================================================================
    # COLLECTION ENTRIES
    # =========================================================================

    @handle_db_errors
    @log_database_operation("get_collection_entries")
    def entries(self, user_id: str, collection_id: str) -> List[Entry]:
        """Entries of a collection, by position."""
        return self.store.by_collection(user_id, collection_id)

    @handle_db_errors
    @log_database_operation("create_collection_entry")
    @validate_metadata(["type", "content"])
    def create_entry(
        self, user_id: str, collection_id: str, metadata: Dict[str, Any]
    ) -> Optional[Entry]:
        """
        Add an entry to a collection.

        The row goes to the ``collection`` log, dated today, on a fresh
        chain.

        Args:
            user_id: Owner
            collection_id: Target collection
            metadata: Dictionary with keys:
                Required: type, content
                Optional: tags, position (defaults to the current count)

        Returns:
            Created Entry, or None if the collection does not exist
        """
        if self.get(user_id, collection_id) is None:
            return None

        position = metadata.get("position")
        if position is None:
            position = self.store.count_in_collection(user_id, collection_id)

        return self.store.insert(
            user_id,
            {
                "type": metadata["type"],
                "content": metadata["content"],
                "log_type": LogType.COLLECTION,
                "collection_id": collection_id,
                "date": metadata.get("date") or date.today(),
                "position": position,
                "tags": metadata.get("tags"),
                "chain_id": linkage.new_chain(),
            },
        )

    # =========================================================================
    # MEETING ACTION ITEMS
    # =========================================================================

    @handle_db_errors
    @log_database_operation("get_action_items")
    def action_items(
        self, user_id: str, meeting_note_id: str, collection_id: str
    ) -> List[Entry]:
        """Entries of a collection tagged with a meeting's action item tag."""
        tag = f"meeting:{meeting_note_id}"
        return [e for e in self.store.by_collection(user_id, collection_id) if e.has_tag(tag)]

    @handle_db_errors
    @log_database_operation("create_action_item")
    def create_action_item(
        self,
        user_id: str,
        collection_id: str,
        meeting_note_id: str,
        content: str,
        position: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Optional[Entry]:
        """
        Record an action item of a meeting.

        The item is a monthly task dated on the first of the current
        month, tagged ``meeting:<meeting_note_id>`` and starting its own
        chain.

        Returns:
            Created Entry, or None if the collection or meeting note is
            not found
        """
        note = self._get_owned(MeetingNote, user_id, meeting_note_id)
        if self.get(user_id, collection_id) is None or note is None:
            return None

        first = month_start(today or date.today())
        if position is None:
            position = self.store.count_monthly_in_month(user_id, first)

        item = self.store.insert(
            user_id,
            {
                "type": EntryType.TASK,
                "content": content,
                "log_type": LogType.MONTHLY,
                "collection_id": collection_id,
                "date": first,
                "position": position,
                "tags": [note.action_item_tag],
                "chain_id": linkage.new_chain(),
            },
        )
        self.log.log_debug(
            "Created action item",
            {"entry_id": item.id, "meeting_note_id": meeting_note_id},
        )
        return item
