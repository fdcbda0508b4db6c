#!/usr/bin/env python3
"""
bujo Database Package
---------------------
Storage and lifecycle engine for the bujo journal.

Modules:
- manager: BujoDB engine/session/migration entry point
- managers: entry store, lifecycle engine, collections, meeting notes
- health_monitor: chain integrity checks and repair
- decorators: operation logging and error translation
"""

from .manager import BujoDB
from bujo.core.exceptions import (
    DatabaseError,
    EntryNotFoundError,
    HealthCheckError,
    InvariantViolation,
    LifecycleError,
    ReadOnlyViolation,
    ValidationError,
)
from .health_monitor import HealthMonitor
from .decorators import (
    log_database_operation,
    handle_db_errors,
    validate_metadata,
)

__all__ = [
    # Main manager
    "BujoDB",
    # Exceptions
    "DatabaseError",
    "EntryNotFoundError",
    "HealthCheckError",
    "InvariantViolation",
    "LifecycleError",
    "ReadOnlyViolation",
    "ValidationError",
    # Core modules
    "HealthMonitor",
    # Decorators
    "log_database_operation",
    "handle_db_errors",
    "validate_metadata",
]
