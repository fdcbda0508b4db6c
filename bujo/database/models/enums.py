"""
Enumeration Types
------------------

Enum classes for the bujo database models.

Enums:
    - EntryType: task, event, note
    - EntryStatus: open, done, migrated, cancelled
    - LogType: daily, monthly, future, collection
    - CollectionType: meetings, ideas, custom
    - EntrySource: user, integration, calendar
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import List


class EntryType(str, Enum):
    """
    Kind of bullet journal item.
    - TASK: Something to do; the only type with a lifecycle chain
    - EVENT: Something that happens on a date
    - NOTE: Free-form information
    """

    TASK = "task"
    EVENT = "event"
    NOTE = "note"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available entry type choices."""
        return [entry_type.value for entry_type in cls]


class EntryStatus(str, Enum):
    """
    Status of a single physical entry row.

    OPEN is the only actionable status. DONE, CANCELLED and MIGRATED are
    terminal for the row they are set on; MIGRATED rows are read-only
    history.
    """

    OPEN = "open"
    DONE = "done"
    MIGRATED = "migrated"
    CANCELLED = "cancelled"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available status choices."""
        return [status.value for status in cls]

    @classmethod
    def resolved_statuses(cls) -> List["EntryStatus"]:
        """Statuses that decide the fate of a whole chain."""
        return [cls.DONE, cls.CANCELLED]

    @property
    def is_terminal(self) -> bool:
        """Check if no further transition is allowed on this row."""
        return self is not EntryStatus.OPEN


class LogType(str, Enum):
    """
    The view that owns an entry row.

    MONTHLY and FUTURE rows act as anchors for DAILY task rows.
    """

    DAILY = "daily"
    MONTHLY = "monthly"
    FUTURE = "future"
    COLLECTION = "collection"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available log type choices."""
        return [log_type.value for log_type in cls]

    @classmethod
    def anchor_types(cls) -> List["LogType"]:
        """Log types whose rows can anchor daily instances."""
        return [cls.MONTHLY, cls.FUTURE]

    @property
    def is_anchor_type(self) -> bool:
        """Check if rows of this log type act as anchors."""
        return self in self.anchor_types()


class CollectionType(str, Enum):
    """
    Kind of collection.

    MEETINGS and IDEAS are built-in singletons per user, created on
    first access. CUSTOM collections are created explicitly.
    """

    MEETINGS = "meetings"
    IDEAS = "ideas"
    CUSTOM = "custom"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available collection type choices."""
        return [collection_type.value for collection_type in cls]

    @property
    def is_builtin(self) -> bool:
        """Check if this collection type is an auto-created singleton."""
        return self in (CollectionType.MEETINGS, CollectionType.IDEAS)

    @property
    def default_name(self) -> str:
        """Display name used when auto-creating the collection."""
        names = {
            CollectionType.MEETINGS: "Meeting Notes",
            CollectionType.IDEAS: "Ideas",
        }
        return names.get(self, self.value.title())

    @property
    def default_icon(self) -> str:
        """Icon used when auto-creating the collection."""
        icons = {
            CollectionType.MEETINGS: "📋",
            CollectionType.IDEAS: "💡",
        }
        return icons.get(self, "📋")


class EntrySource(str, Enum):
    """
    Provenance of an entry. Informational only.
    - USER: Typed by the user
    - INTEGRATION: Written by an external integration
    - CALENDAR: Imported by calendar sync
    """

    USER = "user"
    INTEGRATION = "integration"
    CALENDAR = "calendar"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available source choices."""
        return [source.value for source in cls]
