#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the bujo project.

This module defines the exceptions raised by the storage layer and by
the entry lifecycle engine.

Exception Hierarchy:
    Exception (built-in)
    ├── DatabaseError - Base for all database-related errors
    │   └── HealthCheckError - Chain integrity check failures
    ├── ValidationError - Data validation failures
    └── LifecycleError - Base for chain and anchor rule violations
        ├── InvariantViolation - Daily task without a monthly anchor
        ├── EntryNotFoundError - Entry id not found for the caller's user
        └── ReadOnlyViolation - Mutation attempted on a migrated row

Usage:
    from bujo.core.exceptions import DatabaseError, InvariantViolation

    try:
        linkage.require_anchor(entry)
    except InvariantViolation as e:
        logger.log_error(e, {"entry_id": entry.id})
"""
from typing import Optional


class DatabaseError(Exception):
    """
    Base exception for database-related errors.

    Raised when database operations fail due to connection issues,
    query errors, integrity violations, or other storage problems.

    Examples:
        >>> raise DatabaseError("Connection to database failed")
        >>> raise DatabaseError("Data integrity violation: NOT NULL task_uid")
    """

    pass


class HealthCheckError(DatabaseError):
    """
    Exception for chain integrity check failures.

    Raised when the health monitor cannot produce a report, for example
    because the database is unreachable mid-check.

    Examples:
        >>> raise HealthCheckError("Health check failed: database is locked")
    """

    pass


class ValidationError(Exception):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks:
    - Invalid date formats
    - Missing required fields
    - Unknown entry types, statuses or log types

    Examples:
        >>> raise ValidationError("Invalid date format: expected YYYY-MM-DD")
        >>> raise ValidationError("Required field 'content' missing or empty")
    """

    pass


class LifecycleError(Exception):
    """
    Base exception for entry lifecycle rule violations.

    Lifecycle errors describe a request the engine declines to carry
    out. Mutating operations usually log them and return a failure
    indicator instead of raising; lookups that feed required steps
    raise them.

    Attributes:
        entry_id: Id of the entry the rule was checked against
    """

    def __init__(self, message: str, entry_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.entry_id = entry_id


class InvariantViolation(LifecycleError):
    """
    A daily task entry has no monthly anchor.

    Every daily task must reference a monthly or future anchor that
    shares its chain id. The engine refuses to build on top of a row
    that breaks this rule rather than creating an orphan.

    Examples:
        >>> raise InvariantViolation("Daily task has no anchor", entry_id="...")
    """

    pass


class EntryNotFoundError(LifecycleError):
    """
    An entry id does not resolve under the caller's user scope.

    Examples:
        >>> raise EntryNotFoundError("No entry found with id: abc", entry_id="abc")
    """

    pass


class ReadOnlyViolation(LifecycleError):
    """
    An edit or status change was attempted on a migrated row.

    Migrated rows are frozen history: they may only be removed together
    with their whole chain.
    """

    pass
