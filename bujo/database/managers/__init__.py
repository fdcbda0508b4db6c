#!/usr/bin/env python3
"""
managers package
--------------------
Entity managers for the bujo database.

Each manager works on one concern, inherits from BaseManager and is
bound to a session by BujoDB.session_scope().

Available Managers:
    BaseManager: Abstract base class with common utilities
    EntryManager: Entry store, user-scoped reads and writes
    LifecycleManager: Chain/anchor aware entry operations
    CollectionManager: Collections, collection entries, action items
    MeetingManager: Meeting notes

Usage:
    from bujo.database.managers import LifecycleManager

    lifecycle = LifecycleManager(session, logger)
"""
from . import linkage
from .base_manager import BaseManager
from .entry_manager import EntryManager
from .lifecycle_manager import LifecycleManager
from .collection_manager import CollectionManager
from .meeting_manager import MeetingManager

__all__ = [
    "linkage",
    "BaseManager",
    "EntryManager",
    "LifecycleManager",
    "CollectionManager",
    "MeetingManager",
]
