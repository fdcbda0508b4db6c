#!/usr/bin/env python3
"""
lifecycle_manager.py
--------------------
The entry lifecycle engine.

One logical task lives as several rows: a monthly (or future) anchor,
at most one active daily instance pointing at it, migrated history rows,
and fresh anchors in later months once the task is carried forward.
This manager owns every operation that touches more than one of those
rows, and runs each of them inside a savepoint so a failure halfway
leaves nothing behind.

Operations:
    create                  insert, auto-creating the monthly anchor of a daily task
    complete / cancel       status change synced to anchor and peers
    complete_anchor / cancel_anchor
                            status change synced down to daily instances
    update_with_sync        content/type edit synced across linked rows
    plan_to_day             assign an anchor to a day
    migrate_entry           move a daily task to another day of the month
    migrate_to_month        carry a task into another month
    migrate_all_incomplete  bulk same-day migration of overdue tasks
    delete_chain            remove every row of a chain
    fetch_chain_resolutions done/cancelled lookup per chain

Mutating operations return None/False when the target is missing,
frozen (migrated) or breaks the anchor invariant. The reason is logged.

Usage:
    with db.session_scope():
        daily = db.lifecycle.create(user_id, {
            "type": "task", "content": "Buy milk",
            "log_type": "daily", "date": "2024-03-05",
        })
        db.lifecycle.migrate_entry(user_id, daily.id, "2024-03-10")
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from bujo.core.exceptions import (
    DatabaseError,
    InvariantViolation,
    LifecycleError,
    ReadOnlyViolation,
    ValidationError,
)
from bujo.core.logging_manager import BujoLogger
from bujo.core.validators import DataValidator
from bujo.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from bujo.database.models import Entry, EntryStatus, EntryType, LogType
from bujo.utils.dates import month_start, same_month
from . import linkage
from .base_manager import BaseManager
from .entry_manager import EntryManager


class LifecycleManager(BaseManager):
    """
    Chain and anchor aware operations on entries.

    Attributes:
        store: EntryManager used for all row access
    """

    SYNCED_FIELDS = ("content", "type")

    def __init__(
        self,
        session: Session,
        logger: Optional[BujoLogger] = None,
        store: Optional[EntryManager] = None,
    ):
        super().__init__(session, logger)
        self.store = store or EntryManager(session, logger)

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("create_entry")
    @validate_metadata(["type", "content", "log_type", "date"])
    def create(self, user_id: str, metadata: Dict[str, Any]) -> Entry:
        """
        Create an entry.

        A daily task created without an anchor gets one: a monthly row
        with the same content, dated on the task's real day, is inserted
        first and both rows share a fresh chain id.

        Args:
            user_id: Owner
            metadata: Dictionary with keys:
                Required: type, content, log_type, date
                Optional: position (defaults to the bucket's current count),
                    anchor_id, chain_id, collection_id, tags, source,
                    external_event_id

        Returns:
            The created entry (the daily row when an anchor was added)

        Raises:
            ValidationError: If a field is missing or malformed
            InvariantViolation: If a supplied anchor_id cannot anchor this row
                or already has an active daily entry
        """
        user_id = self._require_user(user_id)
        entry_type = DataValidator.normalize_enum(metadata["type"], EntryType)
        log_type = DataValidator.normalize_enum(metadata["log_type"], LogType)
        on_date = DataValidator.require_date(metadata["date"])
        anchor_id = metadata.get("anchor_id")

        if anchor_id and not linkage.needs_anchor(entry_type, log_type):
            raise ValidationError(
                f"Only daily tasks may reference an anchor (got {entry_type.value}/{log_type.value})"
            )

        fields = dict(metadata, type=entry_type, log_type=log_type, date=on_date)

        with self._atomic():
            if linkage.needs_anchor(entry_type, log_type):
                if anchor_id:
                    anchor = self.store.get(user_id, anchor_id)
                    if not fields.get("chain_id") and anchor is not None:
                        fields["chain_id"] = anchor.chain_id
                    linkage.check_anchor(anchor, user_id, fields.get("chain_id"))
                    if self.store.descendants(user_id, anchor.id, active_only=True):
                        raise InvariantViolation(
                            f"Anchor {anchor.id} already has an active daily entry; "
                            "plan or migrate it instead"
                        )
                else:
                    anchor = self._create_anchor_for(user_id, fields)
                    fields["anchor_id"] = anchor.id
                    fields["chain_id"] = anchor.chain_id

            if fields.get("position") is None:
                fields["position"] = self._next_position(user_id, log_type, on_date)

            entry = self.store.insert(user_id, fields)

        self.log.log_operation(
            "entry_created",
            {
                "entry_id": entry.id,
                "log_type": entry.log_type.value,
                "chain_id": entry.chain_id,
                "anchor_id": entry.anchor_id,
            },
        )
        return entry

    def _create_anchor_for(self, user_id: str, fields: Dict[str, Any]) -> Entry:
        """Insert the monthly anchor of a new daily task."""
        anchor = self.store.insert(
            user_id,
            {
                "type": EntryType.TASK,
                "content": fields["content"],
                "log_type": LogType.MONTHLY,
                "date": fields["date"],
                "status": EntryStatus.OPEN,
                "position": self.store.count_monthly_in_month(user_id, fields["date"]),
                "chain_id": fields.get("chain_id") or linkage.new_chain(),
                "tags": fields.get("tags"),
                "source": fields.get("source"),
            },
        )
        self.log.log_debug(
            "Auto-created monthly anchor",
            {"anchor_id": anchor.id, "chain_id": anchor.chain_id},
        )
        return anchor

    def _next_position(self, user_id: str, log_type: LogType, on_date: date) -> int:
        if log_type == LogType.DAILY:
            return self.store.count_for_date(user_id, on_date)
        if log_type.is_anchor_type:
            return self.store.count_monthly_in_month(user_id, on_date)
        return 0

    # -------------------------------------------------------------------------
    # Status Transitions
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("complete_entry")
    def complete(self, user_id: str, entry_id: str) -> bool:
        """Mark an entry done and sync the status across its chain segment."""
        return self._transition(user_id, entry_id, EntryStatus.DONE)

    @handle_db_errors
    @log_database_operation("cancel_entry")
    def cancel(self, user_id: str, entry_id: str) -> bool:
        """Mark an entry cancelled and sync the status across its chain segment."""
        return self._transition(user_id, entry_id, EntryStatus.CANCELLED)

    @handle_db_errors
    @log_database_operation("complete_anchor")
    def complete_anchor(self, user_id: str, anchor_id: str) -> bool:
        """Mark a monthly/future row done and sync it to its daily instances."""
        return self._transition(user_id, anchor_id, EntryStatus.DONE, from_anchor=True)

    @handle_db_errors
    @log_database_operation("cancel_anchor")
    def cancel_anchor(self, user_id: str, anchor_id: str) -> bool:
        """Mark a monthly/future row cancelled and sync it to its daily instances."""
        return self._transition(
            user_id, anchor_id, EntryStatus.CANCELLED, from_anchor=True
        )

    def _transition(
        self,
        user_id: str,
        entry_id: str,
        target: EntryStatus,
        from_anchor: bool = False,
    ) -> bool:
        """
        Move one row from open to a terminal status and propagate.

        Setting the status a row already has is a successful no-op.
        Only open rows change; migrated rows are never touched, neither
        as the source nor as a propagation target.
        """
        entry = self.store.get(user_id, entry_id)
        if entry is None:
            self.log.log_warning("Status change on unknown entry", {"entry_id": entry_id})
            return False

        if from_anchor:
            try:
                linkage.require_anchor_type(entry)
            except ValidationError as e:
                self.log.log_warning(str(e), {"entry_id": entry_id})
                return False

        if entry.status == target:
            return True
        try:
            linkage.require_writable(entry)
        except ReadOnlyViolation as e:
            self.log.log_warning(str(e), {"entry_id": entry_id, "target": target.value})
            return False
        if entry.status.is_terminal:
            self.log.log_warning(
                "Refused status change on resolved entry",
                {"entry_id": entry_id, "status": entry.status.value, "target": target.value},
            )
            return False

        with self._atomic():
            entry.status = target
            synced = self._propagate_status(user_id, entry, target)

        self.log.log_operation(
            f"entry_{target.value}",
            {"entry_id": entry.id, "chain_id": entry.chain_id, "synced": synced},
        )
        return True

    def _propagate_status(self, user_id: str, entry: Entry, target: EntryStatus) -> int:
        """Copy a status onto the open rows linked to entry. Returns the count."""
        if entry.is_anchor:
            linked = self.store.descendants(user_id, entry.id, active_only=True)
        elif entry.log_type == LogType.DAILY and entry.anchor_id:
            anchor = self.store.get(user_id, entry.anchor_id)
            linked = [anchor] if anchor is not None else []
            linked += [
                peer
                for peer in self.store.descendants(user_id, entry.anchor_id, active_only=True)
                if peer.id != entry.id
            ]
        else:
            if entry.is_daily_task:
                self.log.log_warning(
                    "Daily task has no anchor; status not propagated",
                    {"entry_id": entry.id},
                )
            return 0

        count = 0
        for row in linked:
            if row.status == EntryStatus.OPEN:
                row.status = target
                count += 1
        return count

    # -------------------------------------------------------------------------
    # Content Edit
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("update_with_sync")
    def update_with_sync(
        self, user_id: str, entry_id: str, changes: Dict[str, Any]
    ) -> bool:
        """
        Edit content and/or type, syncing the edit to linked rows.

        The edit reaches the anchor when the target is a daily row, and
        every daily instance when the target is an anchor. Migrated rows
        are skipped. Status is never changed here.

        Args:
            user_id: Owner
            entry_id: Row to edit
            changes: Dictionary with optional keys content, type

        Returns:
            True if applied, False if the row is missing or migrated

        Raises:
            ValidationError: On unknown keys or empty content
        """
        unknown = set(changes) - set(self.SYNCED_FIELDS)
        if unknown:
            raise ValidationError(
                f"Only content and type can be edited here, got: {', '.join(sorted(unknown))}"
            )

        values: Dict[str, Any] = {}
        if "content" in changes:
            content = DataValidator.normalize_string(changes["content"])
            if not content:
                raise ValidationError("Entry content cannot be empty")
            values["content"] = content
        if "type" in changes and changes["type"] is not None:
            values["type"] = DataValidator.normalize_enum(changes["type"], EntryType)

        entry = self.store.get(user_id, entry_id)
        if entry is None:
            return False
        try:
            linkage.require_writable(entry)
        except ReadOnlyViolation as e:
            self.log.log_warning(str(e), {"entry_id": entry_id})
            return False
        if not values:
            return True

        with self._atomic():
            targets = [entry]
            if entry.log_type == LogType.DAILY and entry.anchor_id:
                anchor = self.store.get(user_id, entry.anchor_id)
                if anchor is not None and anchor.is_active:
                    targets.append(anchor)
            if entry.is_anchor:
                targets.extend(
                    self.store.descendants(user_id, entry.id, active_only=True)
                )

            for row in targets:
                for field, value in values.items():
                    setattr(row, field, value)

        self.log.log_operation(
            "entry_updated",
            {"entry_id": entry.id, "fields": sorted(values), "synced": len(targets) - 1},
        )
        return True

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("plan_to_day")
    def plan_to_day(self, user_id: str, anchor_id: str, on_date: Any) -> Optional[Entry]:
        """
        Assign a monthly/future task to a day.

        Moves the anchor's one active daily instance if it has one,
        otherwise creates it. The anchor's date follows the instance;
        its status is left alone ("assigned" is derived from the
        presence of an active daily row).

        Returns:
            The daily instance, or None if the anchor is missing,
            migrated or not a task anchor
        """
        on_date = DataValidator.require_date(on_date)
        anchor = self.store.get(user_id, anchor_id)
        if anchor is None:
            return None

        if not anchor.is_anchor or anchor.type != EntryType.TASK:
            self.log.log_warning(
                "Only monthly/future tasks can be planned to a day",
                {"entry_id": anchor_id, "log_type": anchor.log_type.value},
            )
            return None
        if anchor.is_migrated:
            self.log.log_warning("Refused planning of migrated anchor", {"entry_id": anchor_id})
            return None

        with self._atomic():
            active = self.store.descendants(user_id, anchor.id, active_only=True)
            if active:
                daily = active[0]
                daily.date = on_date
            else:
                daily = self.store.insert(
                    user_id,
                    {
                        "type": anchor.type,
                        "content": anchor.content,
                        "log_type": LogType.DAILY,
                        "date": on_date,
                        "position": self.store.count_for_date(user_id, on_date),
                        "anchor_id": anchor.id,
                        "chain_id": anchor.chain_id,
                        "tags": anchor.tags,
                    },
                )
            anchor.date = on_date

        self.log.log_operation(
            "entry_planned",
            {"anchor_id": anchor.id, "daily_id": daily.id, "date": on_date.isoformat()},
        )
        return daily

    # -------------------------------------------------------------------------
    # Same-Month Migration
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("migrate_entry")
    def migrate_entry(self, user_id: str, entry_id: str, new_date: Any) -> Optional[Entry]:
        """
        Move a daily task to another day.

        A date in another month is handed to migrate_to_month. Within
        the month, the task ends with exactly one active daily row at
        new_date: a peer already on that day is reopened, otherwise a
        new row is added. Peers dated after new_date are deleted and
        earlier peers become migrated history. The anchor's date
        follows.

        The source may have any status; migrating a migrated or done
        row reopens the task on the new day.

        Returns:
            The active daily row at new_date, the new anchor for a
            cross-month move, or None if declined
        """
        new_date = DataValidator.require_date(new_date, "new_date")
        source = self.store.get(user_id, entry_id)
        if source is None:
            return None

        if not same_month(source.date, new_date):
            return self.migrate_to_month(user_id, entry_id, month_start(new_date))

        if not source.is_daily_task:
            self.log.log_warning(
                "Only daily tasks can be migrated within a month",
                {"entry_id": entry_id, "log_type": source.log_type.value},
            )
            return None

        try:
            anchor_id = linkage.require_anchor(source)
            anchor = self.store.get(user_id, anchor_id)
            linkage.validate_link(source, anchor)
        except InvariantViolation as e:
            self.log.log_warning(str(e), {"entry_id": entry_id})
            return None

        if anchor.is_migrated:
            self.log.log_warning(
                "Refused migration under migrated anchor",
                {"entry_id": entry_id, "anchor_id": anchor.id},
            )
            return None

        with self._atomic():
            peers = self.store.descendants(user_id, anchor.id)
            at_target = [p for p in peers if p.date == new_date]

            if at_target:
                result = self._preferred(at_target, source)
                result.status = EntryStatus.OPEN
                result.content = anchor.content
                result.type = anchor.type
            else:
                result = self.store.insert(
                    user_id,
                    {
                        "type": anchor.type,
                        "content": anchor.content,
                        "log_type": LogType.DAILY,
                        "date": new_date,
                        "position": self.store.count_for_date(user_id, new_date),
                        "anchor_id": anchor.id,
                        "chain_id": source.chain_id,
                        "tags": source.tags,
                    },
                )

            obsolete: List[str] = []
            retired = 0
            for peer in peers:
                if peer.id == result.id:
                    continue
                if peer.date >= new_date:
                    obsolete.append(peer.id)
                elif not peer.is_migrated:
                    peer.status = EntryStatus.MIGRATED
                    retired += 1

            self.session.flush()
            deleted = self.store.delete_rows(user_id, obsolete)
            anchor.date = new_date

        self.log.log_operation(
            "entry_migrated",
            {
                "source_id": entry_id,
                "result_id": result.id,
                "chain_id": result.chain_id,
                "date": new_date.isoformat(),
                "retired": retired,
                "deleted": deleted,
            },
        )
        return result

    @staticmethod
    def _preferred(candidates: List[Entry], source: Entry) -> Entry:
        """Pick the row to reuse among peers already on the target day."""
        for row in candidates:
            if row.id == source.id:
                return row
        for row in candidates:
            if row.is_active:
                return row
        return candidates[0]

    # -------------------------------------------------------------------------
    # Cross-Month Migration
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("migrate_to_month")
    def migrate_to_month(
        self, user_id: str, entry_id: str, target_month: Any
    ) -> Optional[Entry]:
        """
        Carry a task into another month.

        The current head of the chain (the anchor of a daily row, or the
        row itself) and all its daily instances become migrated. A new
        monthly row dated on the first of the target month continues the
        chain with the same chain id and no anchor link.

        Args:
            user_id: Owner
            entry_id: Any row of the current segment
            target_month: Any date in the target month

        Returns:
            The new monthly row, or None if declined
        """
        target = month_start(DataValidator.require_date(target_month, "target_month"))
        source = self.store.get(user_id, entry_id)
        if source is None:
            return None

        if source.is_daily_task:
            try:
                anchor_id = linkage.require_anchor(source)
                head = self.store.get(user_id, anchor_id)
                linkage.validate_link(source, head)
            except InvariantViolation as e:
                self.log.log_warning(str(e), {"entry_id": entry_id})
                return None
        else:
            head = source

        if head.is_migrated:
            self.log.log_warning(
                "Chain segment already migrated", {"entry_id": entry_id, "head_id": head.id}
            )
            return None

        with self._atomic():
            retired = 0
            if head.is_anchor:
                for daily in self.store.descendants(user_id, head.id, active_only=True):
                    daily.status = EntryStatus.MIGRATED
                    retired += 1
            head.status = EntryStatus.MIGRATED

            new_anchor = self.store.insert(
                user_id,
                {
                    "type": head.type,
                    "content": head.content,
                    "log_type": LogType.MONTHLY,
                    "date": target,
                    "status": EntryStatus.OPEN,
                    "position": self.store.count_monthly_in_month(user_id, target),
                    "chain_id": head.chain_id,
                    "tags": head.tags,
                },
            )

        self.log.log_operation(
            "entry_migrated_to_month",
            {
                "source_id": entry_id,
                "old_head_id": head.id,
                "new_anchor_id": new_anchor.id,
                "chain_id": new_anchor.chain_id,
                "month": target.isoformat(),
                "retired": retired,
            },
        )
        return new_anchor

    # -------------------------------------------------------------------------
    # Bulk Migration
    # -------------------------------------------------------------------------

    @log_database_operation("migrate_all_incomplete")
    def migrate_all_incomplete(self, user_id: str, before: Any, to_date: Any) -> int:
        """
        Migrate every open daily task dated before a day.

        Tasks are handled oldest first, each in its own savepoint. A
        failure is logged and skipped. Rows that an earlier migration in
        the same run already retired are skipped as well.

        Returns:
            Number of tasks migrated
        """
        before = DataValidator.require_date(before, "before")
        to_date = DataValidator.require_date(to_date, "to_date")
        candidates = [e.id for e in self.store.incomplete_before(user_id, before)]

        migrated = 0
        for entry_id in candidates:
            entry = self.store.get(user_id, entry_id)
            if entry is None or entry.status != EntryStatus.OPEN:
                continue
            try:
                result = self.migrate_entry(user_id, entry_id, to_date)
            except (LifecycleError, DatabaseError, ValidationError) as e:
                self.log.log_error(e, {"operation": "migrate_all_incomplete", "entry_id": entry_id})
                continue
            if result is not None:
                migrated += 1

        self.log.log_operation(
            "bulk_migration",
            {"candidates": len(candidates), "migrated": migrated, "to_date": to_date.isoformat()},
        )
        return migrated

    # -------------------------------------------------------------------------
    # Chain-Wide Operations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("delete_chain")
    def delete_chain(self, user_id: str, entry_id: str) -> bool:
        """
        Delete every row sharing the chain id of entry_id.

        All months, all log types and all statuses, migrated history
        included, go in a single statement.

        Returns:
            True if the chain was deleted, False if entry_id is unknown
        """
        entry = self.store.get(user_id, entry_id)
        if entry is None:
            return False
        chain_id = entry.chain_id

        with self._atomic():
            removed = self.store.delete_chains(user_id, [chain_id])

        self.log.log_operation("chain_deleted", {"chain_id": chain_id, "rows": removed})
        return True

    @handle_db_errors
    @log_database_operation("fetch_chain_resolutions")
    def fetch_chain_resolutions(
        self, user_id: str, chain_ids: Iterable[str]
    ) -> Dict[str, EntryStatus]:
        """
        Find the resolved status (done or cancelled) of each chain.

        Chains with no resolved row are absent from the result. When a
        chain holds both statuses the first row found wins.
        """
        ids = list(dict.fromkeys(c for c in chain_ids if c))
        resolutions: Dict[str, EntryStatus] = {}
        for row in self.store.in_chains(user_id, ids, EntryStatus.resolved_statuses()):
            resolutions.setdefault(row.chain_id, row.status)
        return resolutions

    # -------------------------------------------------------------------------
    # Read Queries
    # -------------------------------------------------------------------------

    def entries_for_date(self, user_id: str, on_date: Any) -> List[Entry]:
        return self.store.for_date(user_id, on_date)

    def entries_for_month(self, user_id: str, year: int, month: int) -> List[Entry]:
        return self.store.for_month(user_id, year, month)

    def monthly_entries(self, user_id: str, year: int, month: int) -> List[Entry]:
        return self.store.monthly_entries(user_id, year, month)

    def future_entries(self, user_id: str, today: Optional[date] = None) -> List[Entry]:
        return self.store.future_entries(user_id, today)

    def unassigned_anchors(self, user_id: str, year: int, month: int) -> List[Entry]:
        return self.store.unassigned_anchors(user_id, year, month)

    def incomplete_before(self, user_id: str, before: Any) -> List[Entry]:
        return self.store.incomplete_before(user_id, before)
