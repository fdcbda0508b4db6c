"""
Core Models
------------

Central model for the bujo database.

Models:
    - SchemaInfo: Schema version tracking for migrations
    - Entry: One bullet journal item (task, event or note)

One logical task is stored as several Entry rows: a monthly or future
anchor, at most one active daily instance pointing at it through
``anchor_id``, and, after cross-month migration, further anchors in
later months. Every copy shares the same ``chain_id``.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, new_uuid, utcnow
from .enums import EntrySource, EntryStatus, EntryType, LogType

if TYPE_CHECKING:
    from .collections import Collection


def _enum_values(enum_class):
    return [member.value for member in enum_class]


# ----- Schema Versioning -----
class SchemaInfo(Base):
    """
    Tracks schema versions applied outside of Alembic's own table.

    Attributes:
        version: Schema version number (primary key)
        applied_at: When this version was applied
        description: Human-readable description of changes
    """

    __tablename__ = "schema_info"

    version: Mapped[int] = mapped_column(Integer, primary_key=True)
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# ----- Entry Model -----
class Entry(Base, TimestampMixin):
    """
    A single bullet journal item.

    Attributes:
        id: Opaque unique identifier, immutable
        user_id: Owner; every query is scoped by it
        type: task, event or note
        content: Free text
        status: open, done, migrated or cancelled
        log_type: daily, monthly, future or collection
        collection_id: Owning collection, if any
        date: Calendar date for daily rows; first of month for anchors
            (an auto-created anchor keeps the real day until migrated)
        anchor_id: Daily task row -> its monthly/future anchor
            (stored as ``monthly_id``)
        chain_id: Identity shared by every copy of one logical task
            (stored as ``task_uid``); never null
        tags: Ordered list of strings, e.g. ``meeting:<id>``
        position: Display order inside its day or month bucket
        external_event_id: Id of the calendar event a row was synced from
        source: Provenance (user, integration, calendar)

    Relationships:
        anchor: Many-to-one self reference through anchor_id
        collection: Many-to-one with Collection
    """

    __tablename__ = "entries"
    __table_args__ = (
        CheckConstraint("content != ''", name="ck_entry_non_empty_content"),
        CheckConstraint("position >= 0", name="ck_entry_non_negative_position"),
        Index("idx_entries_user_date", "user_id", "date"),
        Index("idx_entries_user_log_type", "user_id", "log_type"),
    )

    # ---- Primary fields ----
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[EntryType] = mapped_column(
        SQLEnum(EntryType, name="entry_type", values_callable=_enum_values),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[EntryStatus] = mapped_column(
        SQLEnum(EntryStatus, name="entry_status", values_callable=_enum_values),
        nullable=False,
        default=EntryStatus.OPEN,
    )
    log_type: Mapped[LogType] = mapped_column(
        SQLEnum(LogType, name="log_type", values_callable=_enum_values),
        nullable=False,
    )
    collection_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("collections.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    date: Mapped[date] = mapped_column(Date, nullable=False)

    # ---- Linkage ----
    anchor_id: Mapped[Optional[str]] = mapped_column(
        "monthly_id",
        ForeignKey("entries.id"),
        nullable=True,
        index=True,
    )
    chain_id: Mapped[str] = mapped_column(
        "task_uid", String(36), nullable=False, default=new_uuid, index=True
    )

    # ---- Display & provenance ----
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    external_event_id: Mapped[Optional[str]] = mapped_column(String(255))
    source: Mapped[EntrySource] = mapped_column(
        SQLEnum(EntrySource, name="entry_source", values_callable=_enum_values),
        nullable=False,
        default=EntrySource.USER,
    )

    # ---- Relationships ----
    anchor: Mapped[Optional["Entry"]] = relationship(
        "Entry", remote_side=[id], foreign_keys=[anchor_id]
    )
    collection: Mapped[Optional["Collection"]] = relationship(
        "Collection", back_populates="entries"
    )

    # ---- Computed properties ----
    @property
    def is_anchor(self) -> bool:
        """Check if this row is a monthly or future anchor."""
        return self.log_type in LogType.anchor_types()

    @property
    def is_daily_task(self) -> bool:
        """Check if this row is a daily task (and so needs an anchor)."""
        return self.log_type == LogType.DAILY and self.type == EntryType.TASK

    @property
    def is_migrated(self) -> bool:
        """Check if this row is frozen migration history."""
        return self.status == EntryStatus.MIGRATED

    @property
    def is_active(self) -> bool:
        """Active rows take part in synchronization (status != migrated)."""
        return not self.is_migrated

    @property
    def date_formatted(self) -> str:
        """Get date in YYYY-MM-DD format."""
        return self.date.isoformat()

    def has_tag(self, tag: str) -> bool:
        """Check if the entry carries a tag (exact match)."""
        return tag in (self.tags or [])

    def __repr__(self) -> str:
        return (
            f"<Entry(id={self.id}, log_type={self.log_type.value}, "
            f"date={self.date}, status={self.status.value})>"
        )

    def __str__(self) -> str:
        return f"{self.type.value} {self.date_formatted}: {self.content}"
