"""
Database Models Package
------------------------

SQLAlchemy ORM models for the bujo database.

Modules:
- base: Base class, timestamp mixin, identifier factory
- enums: Entry, log, collection and source enumerations
- core: Entry model and schema info
- collections: Collection and MeetingNote

Usage:
    from bujo.database.models import Entry, EntryStatus, LogType
"""
# Base classes
from .base import Base, TimestampMixin, new_uuid

# Enumerations
from .enums import CollectionType, EntrySource, EntryStatus, EntryType, LogType

# Core models
from .core import Entry, SchemaInfo

# Collections
from .collections import Collection, MeetingNote

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "new_uuid",
    # Enums
    "CollectionType",
    "EntrySource",
    "EntryStatus",
    "EntryType",
    "LogType",
    # Core
    "SchemaInfo",
    "Entry",
    # Collections
    "Collection",
    "MeetingNote",
]
