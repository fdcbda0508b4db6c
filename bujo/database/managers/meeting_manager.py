#!/usr/bin/env python3
"""
meeting_manager.py
--------------------
Manages MeetingNote entities.

A meeting note belongs to one collection (the user's ``meetings``
collection in practice). Action items are not stored here: they are
monthly tasks tagged ``meeting:<id>``, see CollectionManager.

Usage:
    meeting_mgr = MeetingManager(session, logger)
    note = meeting_mgr.create(user_id, {
        "collection_id": meetings.id,
        "date": "2024-03-05",
        "title": "Weekly sync",
        "attendees": ["Ana", "Raj"],
    })
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from bujo.core.exceptions import ValidationError
from bujo.core.validators import DataValidator
from bujo.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from bujo.database.models import Collection, MeetingNote
from .base_manager import BaseManager


class MeetingManager(BaseManager):
    """Manages MeetingNote table operations."""

    @handle_db_errors
    @log_database_operation("get_all_meeting_notes")
    def get_all(self, user_id: str, collection_id: str) -> List[MeetingNote]:
        """
        Meeting notes of a collection.

        Returns:
            Notes ordered newest meeting first
        """
        return self._get_all_owned(
            MeetingNote,
            user_id,
            order_by=[MeetingNote.date.desc(), MeetingNote.created_at.desc()],
            collection_id=collection_id,
        )

    @handle_db_errors
    @log_database_operation("get_meeting_note")
    def get(self, user_id: str, note_id: str) -> Optional[MeetingNote]:
        """Retrieve a meeting note by id."""
        return self._get_owned(MeetingNote, user_id, note_id)

    @handle_db_errors
    @log_database_operation("create_meeting_note")
    @validate_metadata(["collection_id", "date", "title"])
    def create(self, user_id: str, metadata: Dict[str, Any]) -> MeetingNote:
        """
        Create a meeting note.

        Args:
            user_id: Owner
            metadata: Dictionary with keys:
                Required: collection_id, date, title
                Optional: attendees (list or comma-separated), agenda, notes

        Returns:
            Created MeetingNote

        Raises:
            ValidationError: If the collection is unknown or a field is invalid
        """
        user_id = self._require_user(user_id)
        collection = self._get_owned(Collection, user_id, metadata["collection_id"])
        if collection is None:
            raise ValidationError(f"No collection found with id: {metadata['collection_id']}")

        title = DataValidator.normalize_string(metadata["title"])
        if not title:
            raise ValidationError("Meeting title cannot be empty")

        note = MeetingNote(
            collection_id=collection.id,
            user_id=user_id,
            date=DataValidator.require_date(metadata["date"]),
            title=title,
            attendees=DataValidator.normalize_string_list(metadata.get("attendees")),
            agenda=DataValidator.normalize_string(metadata.get("agenda")),
            notes=DataValidator.normalize_string(metadata.get("notes")),
        )
        self.session.add(note)
        self.session.flush()

        self.log.log_debug(f"Created meeting note: {title}", {"note_id": note.id})
        return note

    @handle_db_errors
    @log_database_operation("update_meeting_note")
    def update(self, user_id: str, note_id: str, metadata: Dict[str, Any]) -> bool:
        """
        Update a meeting note.

        Args:
            metadata: Dictionary with optional keys title, date,
                attendees, agenda, notes. Agenda and notes may be
                cleared with an empty value.

        Returns:
            True if the note exists and was updated
        """
        note = self.get(user_id, note_id)
        if note is None:
            return False

        if "title" in metadata and not DataValidator.normalize_string(metadata["title"]):
            raise ValidationError("Meeting title cannot be empty")
        if "attendees" in metadata:
            note.attendees = DataValidator.normalize_string_list(metadata["attendees"])

        self._update_scalar_fields(
            note,
            metadata,
            [
                ("title", DataValidator.normalize_string),
                ("date", DataValidator.normalize_date),
                ("agenda", DataValidator.normalize_string, True),
                ("notes", DataValidator.normalize_string, True),
            ],
        )
        self.session.flush()
        return True

    @handle_db_errors
    @log_database_operation("delete_meeting_note")
    def delete(self, user_id: str, note_id: str) -> bool:
        """
        Delete a meeting note.

        Its action items are left in place; they are ordinary tasks.
        """
        note = self.get(user_id, note_id)
        if note is None:
            return False
        self.session.delete(note)
        self.session.flush()
        return True
