"""
test_lifecycle_manager.py
-------------------------
Unit tests for LifecycleManager: anchor creation, status sync, content
sync, planning, same-month and cross-month migration, bulk migration,
chain delete and chain resolutions.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import pytest
from datetime import date

# --- Local imports ---
from bujo.core.exceptions import DatabaseError, InvariantViolation, ValidationError
from bujo.database.models import EntryStatus, EntryType, LogType


def _active_daily(entry_manager, user_id, anchor_id):
    return entry_manager.descendants(user_id, anchor_id, active_only=True)


def _sibling(entry_manager, user_id, anchor, on_date, **extra):
    """Insert a second daily row under an anchor, bypassing the engine."""
    metadata = {
        "type": "task",
        "content": anchor.content,
        "log_type": "daily",
        "date": on_date,
        "anchor_id": anchor.id,
        "chain_id": anchor.chain_id,
    }
    metadata.update(extra)
    return entry_manager.insert(user_id, metadata)


# -----------------------------------------------------------------------------
# Creation
# -----------------------------------------------------------------------------

class TestCreate:
    """Test LifecycleManager.create()."""

    def test_daily_task_gets_monthly_anchor(self, make_daily_task, entry_manager, user_id):
        daily = make_daily_task("Buy milk", date(2024, 3, 5))

        assert daily.anchor_id is not None
        anchor = entry_manager.get(user_id, daily.anchor_id)
        assert anchor.log_type == LogType.MONTHLY
        assert anchor.type == EntryType.TASK
        assert anchor.date == date(2024, 3, 5)
        assert anchor.status == EntryStatus.OPEN
        assert anchor.content == "Buy milk"
        assert anchor.chain_id == daily.chain_id
        assert anchor.anchor_id is None

    def test_positions_append_to_bucket(self, make_daily_task, entry_manager, user_id):
        first = make_daily_task("one")
        second = make_daily_task("two")

        assert (first.position, second.position) == (0, 1)
        anchors = entry_manager.monthly_entries(user_id, 2024, 3)
        assert [a.position for a in anchors] == [0, 1]

    def test_explicit_position_kept(self, make_daily_task):
        assert make_daily_task(position=7).position == 7

    def test_explicit_anchor_inherits_chain(self, make_monthly_task, make_daily_task, entry_manager, user_id):
        anchor = make_monthly_task()
        daily = make_daily_task("File taxes", anchor_id=anchor.id)

        assert daily.anchor_id == anchor.id
        assert daily.chain_id == anchor.chain_id
        assert len(entry_manager.monthly_entries(user_id, 2024, 3)) == 1

    def test_explicit_anchor_on_other_chain_rejected(self, make_monthly_task, make_daily_task):
        anchor = make_monthly_task()
        with pytest.raises(InvariantViolation):
            make_daily_task(anchor_id=anchor.id, chain_id="somewhere-else")

    def test_explicit_anchor_with_active_daily_rejected(self, make_daily_task, entry_manager, user_id):
        first = make_daily_task()
        with pytest.raises(InvariantViolation, match="already has an active daily entry"):
            make_daily_task(on_date=date(2024, 3, 9), anchor_id=first.anchor_id)
        assert _active_daily(entry_manager, user_id, first.anchor_id) == [first]

    def test_explicit_anchor_with_only_migrated_history(self, make_monthly_task, make_daily_task, entry_manager, user_id):
        anchor = make_monthly_task()
        _sibling(entry_manager, user_id, anchor, date(2024, 3, 2), status="migrated")
        daily = make_daily_task("File taxes", anchor_id=anchor.id)
        assert _active_daily(entry_manager, user_id, anchor.id) == [daily]

    def test_explicit_anchor_of_other_user_rejected(self, make_monthly_task, make_daily_task, other_user):
        anchor = make_monthly_task(owner=other_user)
        with pytest.raises(InvariantViolation):
            make_daily_task(anchor_id=anchor.id)

    def test_anchor_on_non_daily_task_rejected(self, lifecycle, user_id, make_monthly_task):
        anchor = make_monthly_task()
        with pytest.raises(ValidationError, match="Only daily tasks"):
            lifecycle.create(
                user_id,
                {
                    "type": "note",
                    "content": "Side note",
                    "log_type": "daily",
                    "date": "2024-03-05",
                    "anchor_id": anchor.id,
                },
            )

    @pytest.mark.parametrize(
        "entry_type, log_type",
        [("event", "daily"), ("note", "daily"), ("task", "monthly"), ("task", "future")],
    )
    def test_only_daily_tasks_get_anchors(self, lifecycle, entry_manager, user_id, entry_type, log_type):
        entry = lifecycle.create(
            user_id,
            {"type": entry_type, "content": "x", "log_type": log_type, "date": "2024-03-01"},
        )
        assert entry.anchor_id is None
        assert len(entry_manager.chain(user_id, entry.chain_id)) == 1

    def test_missing_field_raises(self, lifecycle, user_id):
        with pytest.raises(ValidationError):
            lifecycle.create(user_id, {"type": "task", "log_type": "daily", "date": "2024-03-05"})

    def test_failure_leaves_no_anchor(self, lifecycle, entry_manager, user_id, monkeypatch):
        """A failure after the anchor insert rolls the anchor back too."""
        real_insert = entry_manager.insert
        calls = []

        def failing_insert(owner, metadata):
            calls.append(metadata["log_type"])
            if len(calls) == 2:
                raise DatabaseError("disk full")
            return real_insert(owner, metadata)

        monkeypatch.setattr(entry_manager, "insert", failing_insert)
        with pytest.raises(DatabaseError):
            lifecycle.create(
                user_id,
                {"type": "task", "content": "Buy milk", "log_type": "daily", "date": "2024-03-05"},
            )
        monkeypatch.undo()

        assert entry_manager.monthly_entries(user_id, 2024, 3) == []
        assert entry_manager.for_date(user_id, date(2024, 3, 5)) == []


# -----------------------------------------------------------------------------
# Status transitions
# -----------------------------------------------------------------------------

class TestStatusTransitions:
    """complete / cancel and their anchor variants."""

    def test_complete_daily_syncs_anchor_and_sibling(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        anchor = entry_manager.get(user_id, daily.anchor_id)
        sibling = _sibling(entry_manager, user_id, anchor, date(2024, 3, 7))

        assert lifecycle.complete(user_id, daily.id) is True

        assert daily.status == EntryStatus.DONE
        assert anchor.status == EntryStatus.DONE
        assert sibling.status == EntryStatus.DONE

    def test_cancel_anchor_syncs_down(self, make_monthly_task, lifecycle, entry_manager, user_id):
        anchor = make_monthly_task()
        daily = lifecycle.plan_to_day(user_id, anchor.id, date(2024, 3, 12))

        assert lifecycle.cancel_anchor(user_id, anchor.id) is True
        assert anchor.status == EntryStatus.CANCELLED
        assert daily.status == EntryStatus.CANCELLED

    def test_migrated_rows_are_not_touched(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        moved = lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 9))

        assert lifecycle.complete(user_id, moved.id) is True
        assert daily.status == EntryStatus.MIGRATED

    def test_resolved_peers_keep_their_status(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        anchor = entry_manager.get(user_id, daily.anchor_id)
        sibling = _sibling(entry_manager, user_id, anchor, date(2024, 3, 7), status="done")

        assert lifecycle.cancel(user_id, daily.id) is True
        assert anchor.status == EntryStatus.CANCELLED
        assert sibling.status == EntryStatus.DONE

    def test_same_status_is_noop(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        assert lifecycle.complete(user_id, daily.id) is True
        assert lifecycle.complete(user_id, daily.id) is True

    def test_resolved_row_cannot_switch(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        lifecycle.complete(user_id, daily.id)
        assert lifecycle.cancel(user_id, daily.id) is False
        assert daily.status == EntryStatus.DONE

    def test_migrated_row_is_read_only(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 9))
        assert lifecycle.complete(user_id, daily.id) is False
        assert daily.status == EntryStatus.MIGRATED

    def test_anchor_variant_requires_anchor(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        assert lifecycle.complete_anchor(user_id, daily.id) is False
        assert daily.status == EntryStatus.OPEN

    def test_unknown_or_foreign_entry(self, make_daily_task, lifecycle, user_id, other_user):
        daily = make_daily_task()
        assert lifecycle.complete(user_id, "nope") is False
        assert lifecycle.complete(other_user, daily.id) is False
        assert daily.status == EntryStatus.OPEN

    def test_orphan_daily_task_changes_alone(self, entry_manager, lifecycle, user_id):
        orphan = entry_manager.insert(
            user_id, {"type": "task", "content": "x", "log_type": "daily", "date": "2024-03-05"}
        )
        assert lifecycle.complete(user_id, orphan.id) is True
        assert orphan.status == EntryStatus.DONE


# -----------------------------------------------------------------------------
# Content edit
# -----------------------------------------------------------------------------

class TestUpdateWithSync:
    """Test LifecycleManager.update_with_sync()."""

    def test_daily_edit_reaches_anchor(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        assert lifecycle.update_with_sync(user_id, daily.id, {"content": "Buy oat milk"})

        anchor = entry_manager.get(user_id, daily.anchor_id)
        assert daily.content == anchor.content == "Buy oat milk"

    def test_anchor_edit_reaches_active_descendants_only(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        moved = lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 9))

        assert lifecycle.update_with_sync(user_id, daily.anchor_id, {"content": "Renamed", "type": "event"})

        assert moved.content == "Renamed"
        assert moved.type == EntryType.EVENT
        assert daily.content == "Buy milk"
        assert daily.type == EntryType.TASK

    def test_status_untouched(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        lifecycle.complete(user_id, daily.id)
        assert lifecycle.update_with_sync(user_id, daily.id, {"content": "Bought milk"})
        assert daily.status == EntryStatus.DONE

    def test_migrated_row_refused(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 9))
        assert lifecycle.update_with_sync(user_id, daily.id, {"content": "x"}) is False
        assert daily.content == "Buy milk"

    def test_missing_row(self, lifecycle, user_id):
        assert lifecycle.update_with_sync(user_id, "nope", {"content": "x"}) is False

    def test_unknown_field_rejected(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        with pytest.raises(ValidationError):
            lifecycle.update_with_sync(user_id, daily.id, {"status": "done"})

    def test_empty_content_rejected(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        with pytest.raises(ValidationError):
            lifecycle.update_with_sync(user_id, daily.id, {"content": "  "})


# -----------------------------------------------------------------------------
# Planning
# -----------------------------------------------------------------------------

class TestPlanToDay:
    """Test LifecycleManager.plan_to_day()."""

    def test_creates_daily_instance(self, make_monthly_task, lifecycle, user_id):
        anchor = make_monthly_task(tags=["home"])
        daily = lifecycle.plan_to_day(user_id, anchor.id, "2024-03-12")

        assert daily.log_type == LogType.DAILY
        assert daily.date == date(2024, 3, 12)
        assert daily.anchor_id == anchor.id
        assert daily.chain_id == anchor.chain_id
        assert daily.content == anchor.content
        assert daily.tags == ["home"]
        assert anchor.date == date(2024, 3, 12)
        assert anchor.status == EntryStatus.OPEN

    def test_replanning_moves_the_same_row(self, make_monthly_task, lifecycle, entry_manager, user_id):
        anchor = make_monthly_task()
        first = lifecycle.plan_to_day(user_id, anchor.id, date(2024, 3, 12))
        second = lifecycle.plan_to_day(user_id, anchor.id, date(2024, 3, 20))

        assert second.id == first.id
        assert second.date == date(2024, 3, 20)
        assert len(entry_manager.descendants(user_id, anchor.id)) == 1

    def test_planned_anchor_is_no_longer_unassigned(self, make_monthly_task, lifecycle, user_id):
        anchor = make_monthly_task()
        assert lifecycle.unassigned_anchors(user_id, 2024, 3) == [anchor]
        lifecycle.plan_to_day(user_id, anchor.id, date(2024, 3, 12))
        assert lifecycle.unassigned_anchors(user_id, 2024, 3) == []

    def test_declines_non_anchor_and_non_task(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        note = lifecycle.create(
            user_id, {"type": "note", "content": "n", "log_type": "monthly", "date": "2024-03-01"}
        )
        assert lifecycle.plan_to_day(user_id, daily.id, date(2024, 3, 9)) is None
        assert lifecycle.plan_to_day(user_id, note.id, date(2024, 3, 9)) is None
        assert lifecycle.plan_to_day(user_id, "nope", date(2024, 3, 9)) is None

    def test_declines_migrated_anchor(self, make_monthly_task, lifecycle, user_id):
        anchor = make_monthly_task()
        lifecycle.migrate_to_month(user_id, anchor.id, date(2024, 4, 1))
        assert lifecycle.plan_to_day(user_id, anchor.id, date(2024, 3, 9)) is None


# -----------------------------------------------------------------------------
# Same-month migration
# -----------------------------------------------------------------------------

class TestMigrateEntry:
    """Test LifecycleManager.migrate_entry()."""

    def test_repeated_migration_leaves_one_open_row(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        lifecycle.migrate_entry(user_id, daily.id, "2024-03-10")
        result = lifecycle.migrate_entry(user_id, daily.id, "2024-03-12")

        rows = entry_manager.descendants(user_id, daily.anchor_id)
        open_rows = [r for r in rows if r.status == EntryStatus.OPEN]
        assert open_rows == [result]
        assert result.date == date(2024, 3, 12)
        assert all(r.status == EntryStatus.MIGRATED for r in rows if r is not result)
        assert entry_manager.get(user_id, daily.anchor_id).date == date(2024, 3, 12)

    def test_new_row_copies_anchor(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task(tags=["errand"])
        result = lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 10))

        assert result.id != daily.id
        assert result.anchor_id == daily.anchor_id
        assert result.chain_id == daily.chain_id
        assert result.content == "Buy milk"
        assert result.tags == ["errand"]
        assert daily.status == EntryStatus.MIGRATED

    def test_later_peers_are_deleted(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        later = lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 20))
        later_id = later.id
        result = lifecycle.migrate_entry(user_id, later_id, date(2024, 3, 8))

        assert entry_manager.get(user_id, later_id) is None
        assert result.date == date(2024, 3, 8)
        assert _active_daily(entry_manager, user_id, daily.anchor_id) == [result]

    def test_existing_row_on_target_day_is_reopened(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        moved = lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 10))
        moved_id = moved.id
        back = lifecycle.migrate_entry(user_id, moved_id, date(2024, 3, 5))

        assert back.id == daily.id
        assert back.status == EntryStatus.OPEN
        assert entry_manager.get(user_id, moved_id) is None
        assert len(entry_manager.descendants(user_id, daily.anchor_id)) == 1

    def test_done_task_reopens_on_new_day(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        lifecycle.complete(user_id, daily.id)
        result = lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 10))

        assert result.status == EntryStatus.OPEN
        assert daily.status == EntryStatus.MIGRATED

    def test_other_month_is_cross_month_migration(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        result = lifecycle.migrate_entry(user_id, daily.id, date(2024, 4, 15))

        assert result.log_type == LogType.MONTHLY
        assert result.date == date(2024, 4, 1)
        assert daily.status == EntryStatus.MIGRATED

    def test_declines_non_daily_task(self, make_monthly_task, lifecycle, user_id):
        anchor = make_monthly_task()
        event = lifecycle.create(
            user_id, {"type": "event", "content": "Gig", "log_type": "daily", "date": "2024-03-05"}
        )
        assert lifecycle.migrate_entry(user_id, anchor.id, date(2024, 3, 9)) is None
        assert lifecycle.migrate_entry(user_id, event.id, date(2024, 3, 9)) is None

    def test_declines_orphan(self, entry_manager, lifecycle, user_id):
        orphan = entry_manager.insert(
            user_id, {"type": "task", "content": "x", "log_type": "daily", "date": "2024-03-05"}
        )
        assert lifecycle.migrate_entry(user_id, orphan.id, date(2024, 3, 9)) is None
        assert orphan.status == EntryStatus.OPEN

    def test_declines_under_migrated_anchor(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        lifecycle.migrate_to_month(user_id, daily.id, date(2024, 4, 1))
        assert lifecycle.migrate_entry(user_id, daily.id, date(2024, 3, 20)) is None

    def test_missing_entry(self, lifecycle, user_id):
        assert lifecycle.migrate_entry(user_id, "nope", date(2024, 3, 9)) is None


# -----------------------------------------------------------------------------
# Cross-month migration
# -----------------------------------------------------------------------------

class TestMigrateToMonth:
    """Test LifecycleManager.migrate_to_month()."""

    def test_anchor_and_descendants_retired(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        anchor = entry_manager.get(user_id, daily.anchor_id)
        new_anchor = lifecycle.migrate_to_month(user_id, anchor.id, "2024-04-01")

        assert anchor.status == EntryStatus.MIGRATED
        assert daily.status == EntryStatus.MIGRATED
        assert new_anchor.status == EntryStatus.OPEN
        assert new_anchor.log_type == LogType.MONTHLY
        assert new_anchor.date == date(2024, 4, 1)
        assert new_anchor.chain_id == anchor.chain_id
        assert new_anchor.anchor_id is None

    def test_from_daily_row_uses_its_anchor(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        new_anchor = lifecycle.migrate_to_month(user_id, daily.id, date(2024, 4, 20))

        assert new_anchor.date == date(2024, 4, 1)
        assert entry_manager.get(user_id, daily.anchor_id).status == EntryStatus.MIGRATED
        assert len(entry_manager.chain(user_id, daily.chain_id)) == 3

    def test_new_anchor_appends_to_month(self, make_monthly_task, lifecycle, user_id):
        make_monthly_task("April chore", date(2024, 4, 1))
        anchor = make_monthly_task()
        assert lifecycle.migrate_to_month(user_id, anchor.id, date(2024, 4, 1)).position == 1

    def test_daily_under_future_anchor_moves_into_anchor_month(
        self, make_monthly_task, make_daily_task, lifecycle, entry_manager, user_id
    ):
        future = make_monthly_task("Renew passport", date(2024, 4, 1), log_type="future")
        daily = make_daily_task("Renew passport", date(2024, 3, 28), anchor_id=future.id)

        new_anchor = lifecycle.migrate_entry(user_id, daily.id, date(2024, 4, 3))

        assert new_anchor is not None
        assert new_anchor.log_type == LogType.MONTHLY
        assert new_anchor.date == date(2024, 4, 1)
        assert new_anchor.chain_id == future.chain_id
        assert daily.status == EntryStatus.MIGRATED
        assert future.status == EntryStatus.MIGRATED

    def test_reanchors_within_own_month(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        old_anchor = entry_manager.get(user_id, daily.anchor_id)
        new_anchor = lifecycle.migrate_to_month(user_id, daily.id, date(2024, 3, 1))

        assert new_anchor is not None
        assert new_anchor.id != old_anchor.id
        assert new_anchor.date == date(2024, 3, 1)
        assert old_anchor.status == EntryStatus.MIGRATED
        assert _active_daily(entry_manager, user_id, old_anchor.id) == []

    def test_declines_already_migrated(self, make_monthly_task, lifecycle, user_id):
        anchor = make_monthly_task()
        lifecycle.migrate_to_month(user_id, anchor.id, date(2024, 4, 1))
        assert lifecycle.migrate_to_month(user_id, anchor.id, date(2024, 5, 1)) is None

    def test_declines_orphan(self, entry_manager, lifecycle, user_id):
        orphan = entry_manager.insert(
            user_id, {"type": "task", "content": "x", "log_type": "daily", "date": "2024-03-05"}
        )
        assert lifecycle.migrate_to_month(user_id, orphan.id, date(2024, 4, 1)) is None


# -----------------------------------------------------------------------------
# Bulk migration
# -----------------------------------------------------------------------------

class TestMigrateAllIncomplete:
    """Test LifecycleManager.migrate_all_incomplete()."""

    def test_migrates_open_tasks_before_date(self, make_daily_task, lifecycle, entry_manager, user_id):
        make_daily_task("one", date(2024, 3, 1))
        make_daily_task("two", date(2024, 3, 3))
        done = make_daily_task("three", date(2024, 3, 4))
        lifecycle.complete(user_id, done.id)
        make_daily_task("today", date(2024, 3, 10))

        assert lifecycle.migrate_all_incomplete(user_id, date(2024, 3, 10), date(2024, 3, 10)) == 2

        today = lifecycle.entries_for_date(user_id, date(2024, 3, 10))
        assert sorted(e.content for e in today) == ["one", "today", "two"]
        assert all(e.status == EntryStatus.OPEN for e in today)
        assert lifecycle.incomplete_before(user_id, date(2024, 3, 10)) == []

    def test_rows_retired_during_run_are_skipped(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task(on_date=date(2024, 3, 1))
        anchor = entry_manager.get(user_id, daily.anchor_id)
        sibling = _sibling(entry_manager, user_id, anchor, date(2024, 3, 3))

        assert lifecycle.migrate_all_incomplete(user_id, date(2024, 3, 10), date(2024, 3, 10)) == 1
        assert sibling.status == EntryStatus.MIGRATED
        assert len(_active_daily(entry_manager, user_id, anchor.id)) == 1

    def test_declined_rows_are_skipped(self, entry_manager, make_daily_task, lifecycle, user_id):
        entry_manager.insert(
            user_id, {"type": "task", "content": "orphan", "log_type": "daily", "date": "2024-03-01"}
        )
        make_daily_task("fine", date(2024, 3, 2))

        assert lifecycle.migrate_all_incomplete(user_id, date(2024, 3, 10), date(2024, 3, 10)) == 1

    def test_errors_are_skipped(self, make_daily_task, lifecycle, user_id, monkeypatch):
        bad = make_daily_task("bad", date(2024, 3, 1))
        make_daily_task("good", date(2024, 3, 2))
        real_migrate = lifecycle.migrate_entry

        def flaky(owner, entry_id, new_date):
            if entry_id == bad.id:
                raise DatabaseError("locked")
            return real_migrate(owner, entry_id, new_date)

        monkeypatch.setattr(lifecycle, "migrate_entry", flaky)
        assert lifecycle.migrate_all_incomplete(user_id, date(2024, 3, 10), date(2024, 3, 10)) == 1
        assert bad.status == EntryStatus.OPEN


# -----------------------------------------------------------------------------
# Chain-wide operations
# -----------------------------------------------------------------------------

class TestDeleteChain:
    """Test LifecycleManager.delete_chain()."""

    def test_removes_every_row_across_months(self, make_daily_task, lifecycle, entry_manager, user_id):
        daily = make_daily_task()
        april = lifecycle.migrate_to_month(user_id, daily.id, date(2024, 4, 1))
        april_daily = lifecycle.plan_to_day(user_id, april.id, date(2024, 4, 10))
        lifecycle.migrate_to_month(user_id, april_daily.id, date(2024, 5, 1))
        keep = make_daily_task("Unrelated")

        chain_id = daily.chain_id
        assert len(entry_manager.chain(user_id, chain_id)) == 5

        assert lifecycle.delete_chain(user_id, april_daily.id) is True
        assert entry_manager.chain(user_id, chain_id) == []
        assert entry_manager.get(user_id, keep.id) is not None

    def test_unknown_or_foreign(self, make_daily_task, lifecycle, entry_manager, user_id, other_user):
        daily = make_daily_task()
        assert lifecycle.delete_chain(user_id, "nope") is False
        assert lifecycle.delete_chain(other_user, daily.id) is False
        assert entry_manager.get(user_id, daily.id) is not None


class TestFetchChainResolutions:
    """Test LifecycleManager.fetch_chain_resolutions()."""

    def test_resolutions(self, make_daily_task, make_monthly_task, lifecycle, user_id):
        done = make_daily_task("done")
        cancelled = make_monthly_task("cancelled")
        still_open = make_daily_task("open")
        lifecycle.complete(user_id, done.id)
        lifecycle.cancel_anchor(user_id, cancelled.id)

        result = lifecycle.fetch_chain_resolutions(
            user_id, [done.chain_id, cancelled.chain_id, still_open.chain_id, None]
        )
        assert result == {
            done.chain_id: EntryStatus.DONE,
            cancelled.chain_id: EntryStatus.CANCELLED,
        }

    def test_resolution_seen_from_migrated_history(self, make_daily_task, lifecycle, user_id):
        daily = make_daily_task()
        april = lifecycle.migrate_to_month(user_id, daily.id, date(2024, 4, 1))
        lifecycle.complete_anchor(user_id, april.id)

        assert daily.status == EntryStatus.MIGRATED
        assert lifecycle.fetch_chain_resolutions(user_id, [daily.chain_id]) == {
            daily.chain_id: EntryStatus.DONE
        }

    def test_scoped_by_user(self, make_daily_task, lifecycle, user_id, other_user):
        daily = make_daily_task()
        lifecycle.complete(user_id, daily.id)
        assert lifecycle.fetch_chain_resolutions(other_user, [daily.chain_id]) == {}


class TestReadQueries:
    """Views exposed by the engine."""

    def test_month_and_future_views(self, make_daily_task, make_monthly_task, lifecycle, user_id):
        daily = make_daily_task()
        future = lifecycle.create(
            user_id, {"type": "task", "content": "Trip", "log_type": "future", "date": "2024-06-01"}
        )

        assert lifecycle.entries_for_month(user_id, 2024, 3) == [daily]
        monthly_ids = {e.id for e in lifecycle.monthly_entries(user_id, 2024, 3)}
        assert monthly_ids == {daily.anchor_id}
        assert future in lifecycle.future_entries(user_id, today=date(2024, 3, 1))
