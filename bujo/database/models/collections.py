"""
Collection Models
------------------

Containers that live beside the daily/monthly/future logs.

Models:
    - Collection: Named container (meetings, ideas or custom)
    - MeetingNote: Title/date/attendees/agenda/notes inside a collection

Collections own ``collection`` log entries. Meeting action items are
ordinary monthly task entries tagged ``meeting:<meeting note id>``.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from sqlalchemy import JSON, CheckConstraint, Date, DateTime, ForeignKey, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, new_uuid, utcnow
from .enums import CollectionType

if TYPE_CHECKING:
    from .core import Entry


class Collection(Base):
    """
    A named container of entries.

    Attributes:
        id: Primary key
        user_id: Owner
        name: Display name
        type: meetings, ideas or custom
        icon: Emoji shown next to the name
        template: Optional free-form layout hints
        created_at: Creation timestamp

    Relationships:
        entries: One-to-many with Entry (rows tagged with this collection)
        meeting_notes: One-to-many with MeetingNote
    """

    __tablename__ = "collections"
    __table_args__ = (
        CheckConstraint("name != ''", name="ck_collection_non_empty_name"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[CollectionType] = mapped_column(
        SQLEnum(
            CollectionType,
            name="collection_type",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
        default=CollectionType.CUSTOM,
    )
    icon: Mapped[str] = mapped_column(String(16), nullable=False, default="📋")
    template: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    entries: Mapped[List["Entry"]] = relationship(
        "Entry", back_populates="collection", passive_deletes=True
    )
    meeting_notes: Mapped[List["MeetingNote"]] = relationship(
        "MeetingNote",
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_builtin(self) -> bool:
        """Check if this is an auto-created singleton collection."""
        return self.type.is_builtin

    def __repr__(self) -> str:
        return f"<Collection(id={self.id}, name={self.name}, type={self.type.value})>"

    def __str__(self) -> str:
        return f"{self.icon} {self.name}"


class MeetingNote(Base, TimestampMixin):
    """
    Notes from one meeting.

    Attributes:
        id: Primary key
        collection_id: Owning collection (always a meetings collection in practice)
        user_id: Owner
        date: Meeting date
        title: Meeting title
        attendees: List of attendee names
        agenda: Optional agenda text
        notes: Optional notes text
    """

    __tablename__ = "meeting_notes"
    __table_args__ = (
        CheckConstraint("title != ''", name="ck_meeting_non_empty_title"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    collection_id: Mapped[str] = mapped_column(
        ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    attendees: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    agenda: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    collection: Mapped["Collection"] = relationship(
        "Collection", back_populates="meeting_notes"
    )

    @property
    def action_item_tag(self) -> str:
        """Tag carried by the action items of this meeting."""
        return f"meeting:{self.id}"

    def __repr__(self) -> str:
        return f"<MeetingNote(id={self.id}, date={self.date}, title={self.title})>"

    def __str__(self) -> str:
        return f"{self.date.isoformat()} {self.title}"
