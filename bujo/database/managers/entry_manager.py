#!/usr/bin/env python3
"""
entry_manager.py
--------------------
The entry store: user-scoped reads and writes of Entry rows.

This manager holds no lifecycle rules. It inserts, updates and deletes
rows and answers the indexed lookups the lifecycle engine is built on:
by (user, date), (user, log type), chain id and anchor id.

Key Features:
    - Point get / insert / update / delete, always filtered by user
    - Day, month, monthly-panel and future-log views
    - Anchor descendants and unassigned anchors
    - Chain history and chain resolution lookups
    - Bucket counts used for append-style positions

Usage:
    entries = EntryManager(session, logger)
    today = entries.for_date(user_id, date(2024, 3, 5))
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from bujo.core.exceptions import EntryNotFoundError, ValidationError
from bujo.core.logging_manager import BujoLogger
from bujo.core.validators import DataValidator
from bujo.database.decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from bujo.database.models import (
    Entry,
    EntrySource,
    EntryStatus,
    EntryType,
    LogType,
    new_uuid,
)
from bujo.utils.dates import month_bounds, month_start
from .base_manager import BaseManager


class EntryManager(BaseManager):
    """
    User-scoped storage operations for Entry rows.

    Every public method takes the caller's user id first; rows owned by
    other users are invisible.
    """

    # Fields a plain update may touch. Content and type go through the
    # lifecycle manager so linked rows stay in sync; status goes through
    # the explicit transitions.
    UPDATABLE_FIELDS = ("position", "tags", "collection_id", "external_event_id", "source")

    def __init__(self, session: Session, logger: Optional[BujoLogger] = None):
        super().__init__(session, logger)

    # -------------------------------------------------------------------------
    # Point Operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("entry_exists")
    def exists(self, user_id: str, entry_id: str) -> bool:
        """Check if an entry exists for this user."""
        return self._get_owned(Entry, user_id, entry_id) is not None

    @handle_db_errors
    @log_database_operation("get_entry")
    def get(self, user_id: str, entry_id: str) -> Optional[Entry]:
        """
        Retrieve an entry by id.

        Returns:
            Entry if found under this user, None otherwise
        """
        return self._get_owned(Entry, user_id, entry_id)

    def get_required(self, user_id: str, entry_id: str) -> Entry:
        """
        Retrieve an entry that must exist.

        Raises:
            EntryNotFoundError: If the id does not resolve for this user
        """
        entry = self.get(user_id, entry_id)
        if entry is None:
            raise EntryNotFoundError(f"No entry found with id: {entry_id}", entry_id)
        return entry

    @handle_db_errors
    @log_database_operation("insert_entry")
    @validate_metadata(["type", "content", "log_type", "date"])
    def insert(self, user_id: str, metadata: Dict[str, Any]) -> Entry:
        """
        Insert one row exactly as described, with no lifecycle logic.

        Args:
            user_id: Owner
            metadata: Dictionary with keys:
                Required: type, content, log_type, date
                Optional: status, position, anchor_id, chain_id,
                    collection_id, tags, source, external_event_id

        Returns:
            The flushed Entry (id assigned)

        Raises:
            ValidationError: If a field is missing or malformed
        """
        user_id = self._require_user(user_id)
        content = DataValidator.normalize_string(metadata["content"])
        if not content:
            raise ValidationError("Entry content cannot be empty")

        position = DataValidator.normalize_int(metadata.get("position")) or 0
        if position < 0:
            raise ValidationError(f"Position must be non-negative, got {position}")

        entry = Entry(
            id=new_uuid(),
            user_id=user_id,
            type=DataValidator.normalize_enum(metadata["type"], EntryType),
            content=content,
            status=DataValidator.normalize_enum(metadata.get("status"), EntryStatus)
            or EntryStatus.OPEN,
            log_type=DataValidator.normalize_enum(metadata["log_type"], LogType),
            date=DataValidator.require_date(metadata["date"]),
            position=position,
            anchor_id=metadata.get("anchor_id"),
            chain_id=metadata.get("chain_id") or new_uuid(),
            collection_id=metadata.get("collection_id"),
            tags=DataValidator.normalize_tags(metadata.get("tags")),
            source=DataValidator.normalize_enum(metadata.get("source"), EntrySource)
            or EntrySource.USER,
            external_event_id=DataValidator.normalize_string(
                metadata.get("external_event_id")
            ),
        )
        self.session.add(entry)
        self.session.flush()

        self.log.log_debug(
            "Inserted entry",
            {
                "entry_id": entry.id,
                "log_type": entry.log_type.value,
                "date": entry.date,
                "chain_id": entry.chain_id,
            },
        )
        return entry

    @handle_db_errors
    @log_database_operation("update_entry")
    def update(self, user_id: str, entry_id: str, metadata: Dict[str, Any]) -> bool:
        """
        Update display and provenance fields of one row.

        Only ``position``, ``tags``, ``collection_id``,
        ``external_event_id`` and ``source`` are accepted here.

        Returns:
            True if the row was found and updated, False otherwise

        Raises:
            ValidationError: If a field outside the allowed set is given
        """
        unknown = set(metadata) - set(self.UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Fields not updatable through the store: {', '.join(sorted(unknown))}"
            )

        entry = self.get(user_id, entry_id)
        if entry is None:
            return False
        if entry.is_migrated:
            self.log.log_warning("Refused update of migrated entry", {"entry_id": entry_id})
            return False

        if "tags" in metadata:
            entry.tags = DataValidator.normalize_tags(metadata["tags"])
        if "source" in metadata:
            entry.source = DataValidator.normalize_enum(metadata["source"], EntrySource)
        self._update_scalar_fields(
            entry,
            metadata,
            [
                ("position", DataValidator.normalize_int),
                ("collection_id", DataValidator.normalize_string, True),
                ("external_event_id", DataValidator.normalize_string, True),
            ],
        )
        self.session.flush()
        return True

    @handle_db_errors
    @log_database_operation("delete_entry")
    def delete(self, user_id: str, entry_id: str) -> bool:
        """
        Delete a single row.

        Migrated rows and anchors that still have daily descendants are
        part of a chain's history and are only removed with the whole
        chain (see LifecycleManager.delete_chain).

        Returns:
            True if the row was deleted, False if it was not found or
            may not be deleted on its own
        """
        entry = self.get(user_id, entry_id)
        if entry is None:
            return False

        if entry.is_migrated:
            self.log.log_warning(
                "Refused single delete of migrated entry", {"entry_id": entry_id}
            )
            return False

        if entry.is_anchor and self.descendants(user_id, entry.id):
            self.log.log_warning(
                "Refused single delete of anchor with daily descendants",
                {"entry_id": entry_id},
            )
            return False

        self.session.delete(entry)
        self.session.flush()
        return True

    def delete_rows(self, user_id: str, entry_ids: Iterable[str]) -> int:
        """
        Delete rows by id in one statement. Lifecycle-internal.

        Returns:
            Number of rows deleted
        """
        ids = list(entry_ids)
        if not ids:
            return 0
        result = self._execute_with_retry(
            lambda: self.session.execute(
                delete(Entry)
                .where(Entry.user_id == user_id, Entry.id.in_(ids))
                .execution_options(synchronize_session="fetch")
            )
        )
        self.session.flush()
        return result.rowcount or 0

    def delete_chains(self, user_id: str, chain_ids: Iterable[str]) -> int:
        """
        Delete every row of the given chains in one statement.

        Anchors and the daily rows pointing at them go together, so the
        self-reference never dangles.

        Returns:
            Number of rows deleted
        """
        ids = list(dict.fromkeys(c for c in chain_ids if c))
        if not ids:
            return 0
        with DatabaseOperation(self.logger, "delete_chains", {"chains": len(ids)}):
            result = self._execute_with_retry(
                lambda: self.session.execute(
                    delete(Entry)
                    .where(Entry.user_id == user_id, Entry.chain_id.in_(ids))
                    .execution_options(synchronize_session="fetch")
                )
            )
            self.session.flush()
        return result.rowcount or 0

    # -------------------------------------------------------------------------
    # Day / Month Views
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("entries_for_date")
    def for_date(self, user_id: str, on_date: Any) -> List[Entry]:
        """Daily rows on one date, in display order."""
        on_date = DataValidator.require_date(on_date)
        return (
            self.session.query(Entry)
            .filter(
                Entry.user_id == user_id,
                Entry.log_type == LogType.DAILY,
                Entry.date == on_date,
            )
            .order_by(Entry.position, Entry.created_at)
            .all()
        )

    @handle_db_errors
    @log_database_operation("entries_for_month")
    def for_month(self, user_id: str, year: int, month: int) -> List[Entry]:
        """Daily rows in a calendar month, by date then position."""
        start, end = month_bounds(year, month)
        return (
            self.session.query(Entry)
            .filter(
                Entry.user_id == user_id,
                Entry.log_type == LogType.DAILY,
                Entry.date >= start,
                Entry.date <= end,
            )
            .order_by(Entry.date, Entry.position, Entry.created_at)
            .all()
        )

    @handle_db_errors
    @log_database_operation("monthly_entries")
    def monthly_entries(self, user_id: str, year: int, month: int) -> List[Entry]:
        """
        Monthly-panel rows for a month.

        Both ``monthly`` and ``future`` rows dated inside the month are
        shown in the monthly panel.
        """
        start, end = month_bounds(year, month)
        return (
            self.session.query(Entry)
            .filter(
                Entry.user_id == user_id,
                Entry.log_type.in_(LogType.anchor_types()),
                Entry.date >= start,
                Entry.date <= end,
            )
            .order_by(Entry.position, Entry.created_at)
            .all()
        )

    @handle_db_errors
    @log_database_operation("future_entries")
    def future_entries(self, user_id: str, today: Optional[date] = None) -> List[Entry]:
        """
        Future-log rows: monthly/future rows from the current month on.

        Args:
            user_id: Owner
            today: Reference date (defaults to date.today())
        """
        start = month_start(today or date.today())
        return (
            self.session.query(Entry)
            .filter(
                Entry.user_id == user_id,
                Entry.log_type.in_(LogType.anchor_types()),
                Entry.date >= start,
            )
            .order_by(Entry.date, Entry.position, Entry.created_at)
            .all()
        )

    @handle_db_errors
    @log_database_operation("incomplete_before")
    def incomplete_before(self, user_id: str, before: Any) -> List[Entry]:
        """Open daily tasks dated strictly before a date, oldest first."""
        before = DataValidator.require_date(before)
        return (
            self.session.query(Entry)
            .filter(
                Entry.user_id == user_id,
                Entry.log_type == LogType.DAILY,
                Entry.type == EntryType.TASK,
                Entry.status == EntryStatus.OPEN,
                Entry.date < before,
            )
            .order_by(Entry.date, Entry.position, Entry.created_at)
            .all()
        )

    # -------------------------------------------------------------------------
    # Anchor Lookups
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("anchor_descendants")
    def descendants(
        self, user_id: str, anchor_id: str, active_only: bool = False
    ) -> List[Entry]:
        """
        Daily rows that reference an anchor.

        Args:
            user_id: Owner
            anchor_id: Anchor id
            active_only: Exclude migrated rows

        Returns:
            Daily rows ordered by date
        """
        query = self.session.query(Entry).filter(
            Entry.user_id == user_id,
            Entry.anchor_id == anchor_id,
            Entry.log_type == LogType.DAILY,
        )
        if active_only:
            query = query.filter(Entry.status != EntryStatus.MIGRATED)
        return query.order_by(Entry.date, Entry.created_at).all()

    @handle_db_errors
    @log_database_operation("assigned_days")
    def assigned_days(self, user_id: str, anchor_id: str) -> List[date]:
        """Dates of an anchor's active daily descendants."""
        return [d.date for d in self.descendants(user_id, anchor_id, active_only=True)]

    @handle_db_errors
    @log_database_operation("unassigned_anchors")
    def unassigned_anchors(self, user_id: str, year: int, month: int) -> List[Entry]:
        """
        Open task anchors of a month that are not planned to any day.

        "Assigned" is derived, never stored: an anchor is assigned when
        at least one non-migrated daily row references it.
        """
        start, end = month_bounds(year, month)
        assigned = select(Entry.anchor_id).where(
            Entry.user_id == user_id,
            Entry.log_type == LogType.DAILY,
            Entry.status != EntryStatus.MIGRATED,
            Entry.anchor_id.is_not(None),
        )
        return (
            self.session.query(Entry)
            .filter(
                Entry.user_id == user_id,
                Entry.log_type.in_(LogType.anchor_types()),
                Entry.type == EntryType.TASK,
                Entry.status == EntryStatus.OPEN,
                Entry.date >= start,
                Entry.date <= end,
                Entry.id.not_in(assigned),
            )
            .order_by(Entry.position, Entry.created_at)
            .all()
        )

    # -------------------------------------------------------------------------
    # Chain Lookups
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("chain_history")
    def chain(self, user_id: str, chain_id: str) -> List[Entry]:
        """Every row of one chain, oldest first."""
        return (
            self.session.query(Entry)
            .filter(Entry.user_id == user_id, Entry.chain_id == chain_id)
            .order_by(Entry.date, Entry.created_at)
            .all()
        )

    @handle_db_errors
    @log_database_operation("chain_rows_with_status")
    def in_chains(
        self,
        user_id: str,
        chain_ids: Sequence[str],
        statuses: Optional[Sequence[EntryStatus]] = None,
    ) -> List[Entry]:
        """Rows belonging to any of the given chains, optionally by status."""
        if not chain_ids:
            return []
        query = self.session.query(Entry).filter(
            Entry.user_id == user_id, Entry.chain_id.in_(list(chain_ids))
        )
        if statuses:
            query = query.filter(Entry.status.in_(list(statuses)))
        return query.order_by(Entry.date, Entry.created_at).all()

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("collection_entries")
    def by_collection(self, user_id: str, collection_id: str) -> List[Entry]:
        """Rows tagged with a collection, in display order."""
        return (
            self.session.query(Entry)
            .filter(Entry.user_id == user_id, Entry.collection_id == collection_id)
            .order_by(Entry.position, Entry.created_at)
            .all()
        )

    # -------------------------------------------------------------------------
    # Bucket Counts
    # -------------------------------------------------------------------------

    def count_for_date(self, user_id: str, on_date: date) -> int:
        """Number of daily rows on a date (next append position)."""
        return self._count_owned(
            Entry, user_id, Entry.log_type == LogType.DAILY, Entry.date == on_date
        )

    def count_monthly_in_month(self, user_id: str, in_month: date) -> int:
        """Number of monthly/future rows in the month of a date."""
        start, end = month_bounds(in_month.year, in_month.month)
        return self._count_owned(
            Entry,
            user_id,
            Entry.log_type.in_(LogType.anchor_types()),
            Entry.date >= start,
            Entry.date <= end,
        )

    def count_in_collection(self, user_id: str, collection_id: str) -> int:
        """Number of rows tagged with a collection."""
        return self._count_owned(Entry, user_id, Entry.collection_id == collection_id)
