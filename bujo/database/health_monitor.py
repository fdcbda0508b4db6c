#!/usr/bin/env python3
"""
health_monitor.py
-----------------
Database health monitoring and chain integrity repair.

The lifecycle engine keeps the anchor invariant procedurally: a daily
task always gets its monthly anchor when it is created. Rows written
by other means (imports, manual edits, older versions) can still break
it, and this module finds and repairs that damage.

Health Checks Performed:
    1. **Connectivity**: Basic query execution
    2. **Chain integrity**:
       - Daily tasks without an anchor
       - Daily tasks whose anchor is missing, not a monthly/future row,
         owned by someone else or on a different chain
       - Anchors with more than one active daily instance
       - Anchor links set on rows that are not daily tasks
    3. **Collections**: Meeting notes of missing collections
    4. **Performance**: Row counts and database file size

Usage:
    monitor = HealthMonitor(logger=db.logger)

    with db.session_scope() as session:
        report = monitor.health_check(session, db_path=db.db_path)
        if report["status"] != "healthy":
            monitor.repair_orphaned_daily_tasks(session, dry_run=False)

CLI Integration:
    bujo health           # Report only
    bujo health --fix     # Re-create missing anchors

Health Report Structure:
    {
        "status": "healthy" | "warning" | "critical",
        "issues": ["..."],
        "metrics": {
            "chain_integrity": {"daily_tasks_without_anchor": 0, ...},
            "collections": {"orphaned_meeting_notes": 0},
            "performance": {"entry_count": 120, "size_mb": 0.1},
        },
        "recommendations": ["..."],
    }
"""
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, text
from sqlalchemy.orm import Query, Session, aliased

from bujo.core.exceptions import HealthCheckError
from bujo.core.logging_manager import BujoLogger, safe_logger
from .decorators import handle_db_errors, log_database_operation
from .managers.entry_manager import EntryManager
from .models import Collection, Entry, EntryStatus, EntryType, LogType, MeetingNote


class HealthMonitor:
    """
    Chain integrity checks and repairs.

    Checks are read-only. Repairs run only when explicitly asked for.
    """

    # (metric key, issue message, recommendation, critical)
    _HEALTH_RULES = [
        ("daily_tasks_without_anchor", "Daily tasks without a monthly anchor",
         "Run 'bujo health --fix' to re-create the missing anchors", True),
        ("broken_anchor_links", "Daily tasks linked to an invalid anchor",
         "Delete the affected chains or relink them by hand", True),
        ("anchors_with_multiple_active", "Anchors with more than one active daily instance",
         "Migrate the extra daily rows so one instance remains", False),
        ("anchor_links_on_non_daily", "Anchor links on rows that are not daily tasks",
         "Clear the anchor link on those rows", False),
    ]

    def __init__(self, logger: Optional[BujoLogger] = None) -> None:
        """
        Initialize health monitor.

        Args:
            logger: Optional logger for health operations
        """
        self.logger = logger

    @handle_db_errors
    @log_database_operation("health_check")
    def health_check(
        self,
        session: Session,
        db_path: Optional[Path] = None,
        user_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Run every check and summarise the result.

        Args:
            session: SQLAlchemy session
            db_path: Database file, for size metrics
            user_id: Restrict the checks to one user

        Returns:
            Dictionary with health status and metrics

        Raises:
            HealthCheckError: If the checks could not be run
        """
        health: Dict[str, Any] = {
            "status": "healthy",
            "issues": [],
            "metrics": {},
            "recommendations": [],
        }

        try:
            session.execute(text("SELECT 1"))
            health["metrics"]["chain_integrity"] = self.check_chain_integrity(
                session, user_id
            )
            health["metrics"]["collections"] = {
                "orphaned_meeting_notes": self._orphaned_meeting_notes(session, user_id).count()
            }
            health["metrics"]["performance"] = self._get_performance_metrics(
                session, db_path
            )
            health = self._evaluate_health_status(health)
        except Exception as e:
            safe_logger(self.logger).log_error(e, {"operation": "health_check"})
            raise HealthCheckError(f"Health check failed: {e}") from e

        return health

    # -------------------------------------------------------------------------
    # Chain Integrity
    # -------------------------------------------------------------------------

    def _scoped(self, query: Query, user_id: Optional[str]) -> Query:
        if user_id:
            query = query.filter(Entry.user_id == user_id)
        return query

    def _orphaned_daily_tasks(self, session: Session, user_id: Optional[str]) -> Query:
        """Daily tasks with no anchor link at all."""
        return self._scoped(
            session.query(Entry).filter(
                Entry.log_type == LogType.DAILY,
                Entry.type == EntryType.TASK,
                Entry.anchor_id.is_(None),
            ),
            user_id,
        )

    def _broken_anchor_links(self, session: Session, user_id: Optional[str]) -> Query:
        """Daily rows whose anchor link does not resolve to a valid anchor."""
        anchor = aliased(Entry)
        return self._scoped(
            session.query(Entry)
            .outerjoin(anchor, Entry.anchor_id == anchor.id)
            .filter(
                Entry.log_type == LogType.DAILY,
                Entry.anchor_id.is_not(None),
                or_(
                    anchor.id.is_(None),
                    anchor.log_type.not_in(LogType.anchor_types()),
                    anchor.user_id != Entry.user_id,
                    anchor.chain_id != Entry.chain_id,
                ),
            ),
            user_id,
        )

    def _anchors_with_multiple_active(
        self, session: Session, user_id: Optional[str]
    ) -> List[str]:
        query = self._scoped(
            session.query(Entry.anchor_id)
            .filter(
                Entry.log_type == LogType.DAILY,
                Entry.anchor_id.is_not(None),
                Entry.status != EntryStatus.MIGRATED,
            )
            .group_by(Entry.anchor_id)
            .having(func.count(Entry.id) > 1),
            user_id,
        )
        return [row[0] for row in query.all()]

    def _anchor_links_on_non_daily(self, session: Session, user_id: Optional[str]) -> Query:
        return self._scoped(
            session.query(Entry).filter(
                Entry.anchor_id.is_not(None),
                or_(Entry.log_type != LogType.DAILY, Entry.type != EntryType.TASK),
            ),
            user_id,
        )

    def _orphaned_meeting_notes(self, session: Session, user_id: Optional[str]) -> Query:
        query = session.query(MeetingNote).filter(
            ~MeetingNote.collection_id.in_(session.query(Collection.id))
        )
        if user_id:
            query = query.filter(MeetingNote.user_id == user_id)
        return query

    def check_chain_integrity(
        self, session: Session, user_id: Optional[str] = None
    ) -> Dict[str, int]:
        """
        Count rows breaking the anchor and chain rules.

        Returns:
            Dictionary of violation counts by kind
        """
        return {
            "daily_tasks_without_anchor": self._orphaned_daily_tasks(session, user_id).count(),
            "broken_anchor_links": self._broken_anchor_links(session, user_id).count(),
            "anchors_with_multiple_active": len(
                self._anchors_with_multiple_active(session, user_id)
            ),
            "anchor_links_on_non_daily": self._anchor_links_on_non_daily(
                session, user_id
            ).count(),
        }

    def _get_performance_metrics(
        self, session: Session, db_path: Optional[Path]
    ) -> Dict[str, Any]:
        metrics: Dict[str, Any] = {
            "entry_count": session.query(func.count(Entry.id)).scalar() or 0,
            "collection_count": session.query(func.count(Collection.id)).scalar() or 0,
            "meeting_note_count": session.query(func.count(MeetingNote.id)).scalar() or 0,
            "chain_count": session.query(func.count(func.distinct(Entry.chain_id))).scalar()
            or 0,
        }
        if db_path and Path(db_path).exists():
            metrics["size_mb"] = round(Path(db_path).stat().st_size / (1024 * 1024), 2)
        return metrics

    def _evaluate_health_status(self, health: Dict[str, Any]) -> Dict[str, Any]:
        """
        Derive status, issues and recommendations from the metrics.

        Any critical rule that fires makes the status ``critical``; any
        other finding makes it ``warning``.
        """
        chain = health["metrics"].get("chain_integrity", {})
        for key, issue_msg, recommendation, critical in self._HEALTH_RULES:
            count = chain.get(key, 0)
            if count > 0:
                health["issues"].append(f"{issue_msg}: {count}")
                health["recommendations"].append(recommendation)
                if critical:
                    health["status"] = "critical"

        orphaned_notes = health["metrics"].get("collections", {}).get(
            "orphaned_meeting_notes", 0
        )
        if orphaned_notes:
            health["issues"].append(f"Meeting notes without a collection: {orphaned_notes}")
            health["recommendations"].append("Delete the orphaned meeting notes")

        if health["issues"] and health["status"] == "healthy":
            health["status"] = "warning"
        return health

    # -------------------------------------------------------------------------
    # Repair
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("repair_orphaned_daily_tasks")
    def repair_orphaned_daily_tasks(
        self,
        session: Session,
        user_id: Optional[str] = None,
        dry_run: bool = True,
    ) -> Dict[str, Any]:
        """
        Give every daily task without an anchor a monthly anchor.

        The new anchor copies the task's content, date, chain id and
        status, exactly as if the task had been created through the
        lifecycle engine.

        Args:
            session: SQLAlchemy session
            user_id: Restrict the repair to one user
            dry_run: If True, only report what would be repaired

        Returns:
            Dictionary with the number of orphans and anchors created
        """
        orphans = self._orphaned_daily_tasks(session, user_id).order_by(Entry.date).all()
        results: Dict[str, Any] = {"dry_run": dry_run, "orphaned": len(orphans), "repaired": 0}
        if dry_run or not orphans:
            return results

        store = EntryManager(session, self.logger)
        with session.begin_nested():
            for daily in orphans:
                anchor = store.insert(
                    daily.user_id,
                    {
                        "type": EntryType.TASK,
                        "content": daily.content,
                        "log_type": LogType.MONTHLY,
                        "date": daily.date,
                        "status": daily.status,
                        "position": store.count_monthly_in_month(daily.user_id, daily.date),
                        "chain_id": daily.chain_id,
                        "tags": daily.tags,
                    },
                )
                daily.anchor_id = anchor.id
                results["repaired"] += 1
        session.flush()

        safe_logger(self.logger).log_operation("orphaned_daily_tasks_repaired", results)
        return results
