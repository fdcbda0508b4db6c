#!/usr/bin/env python3
"""
linkage.py
--------------------
Identity and linkage rules between entry rows.

Every entry carries two links:

    chain_id   shared by every physical copy of one logical task, set once
               at the root of the chain and copied verbatim by anchor
               creation and by both kinds of migration
    anchor_id  daily task row -> the monthly/future row that anchors it
               inside one month; never used across months

The rules here hold no state. The lifecycle manager calls them before
building on top of an existing row.

Usage:
    from bujo.database.managers import linkage

    chain_id = linkage.new_chain()
    linkage.require_anchor(daily_entry)
"""
from __future__ import annotations

from typing import Optional

from bujo.core.exceptions import InvariantViolation, ReadOnlyViolation, ValidationError
from bujo.database.models import Entry, EntryType, LogType, new_uuid


def new_chain() -> str:
    """Allocate a fresh chain identifier."""
    return new_uuid()


def needs_anchor(entry_type: EntryType, log_type: LogType) -> bool:
    """Only daily tasks must reference an anchor."""
    return entry_type == EntryType.TASK and log_type == LogType.DAILY


def require_anchor(entry: Entry) -> str:
    """
    Return the anchor id of a daily task, failing if it is missing.

    Args:
        entry: Entry to check

    Returns:
        The anchor id (None is never returned for a daily task)

    Raises:
        InvariantViolation: If a daily task entry has no anchor
    """
    if entry.is_daily_task and not entry.anchor_id:
        raise InvariantViolation(
            f"Daily task {entry.id} has no monthly anchor", entry_id=entry.id
        )
    return entry.anchor_id


def validate_link(daily: Entry, anchor: Optional[Entry]) -> None:
    """
    Check that a daily row may reference the given anchor.

    The anchor must exist, belong to the same user, be a monthly or
    future row, and share the daily row's chain id.

    Raises:
        InvariantViolation: If any of the conditions fails
    """
    if anchor is None:
        raise InvariantViolation(
            f"Anchor {daily.anchor_id} of entry {daily.id} does not exist",
            entry_id=daily.id,
        )
    check_anchor(anchor, daily.user_id, daily.chain_id, entry_id=daily.id)


def check_anchor(
    anchor: Optional[Entry],
    user_id: str,
    chain_id: Optional[str],
    entry_id: Optional[str] = None,
) -> None:
    """
    Check that anchor can anchor a daily row of user_id on chain_id.

    Used before the daily row exists (creation with an explicit anchor)
    as well as by validate_link.

    Raises:
        InvariantViolation: If the anchor is missing, foreign, not a
            monthly/future row or on another chain
    """
    if anchor is None:
        raise InvariantViolation("Anchor does not exist", entry_id=entry_id)
    if anchor.user_id != user_id:
        raise InvariantViolation(
            f"Anchor {anchor.id} belongs to another user", entry_id=entry_id
        )
    if not anchor.is_anchor:
        raise InvariantViolation(
            f"Entry {anchor.id} is a {anchor.log_type.value} row and cannot anchor",
            entry_id=entry_id,
        )
    if anchor.chain_id != chain_id:
        raise InvariantViolation(
            f"Anchor {anchor.id} is on chain {anchor.chain_id}, not {chain_id}",
            entry_id=entry_id,
        )


def require_anchor_type(entry: Entry) -> None:
    """
    Check that an entry can act as an anchor.

    Raises:
        ValidationError: If the entry is not a monthly or future row
    """
    if not entry.is_anchor:
        raise ValidationError(
            f"Entry {entry.id} is a {entry.log_type.value} row, not a monthly/future anchor"
        )


def require_writable(entry: Entry) -> None:
    """
    Check that a row may still be edited or change status.

    Raises:
        ReadOnlyViolation: If the row is migrated history
    """
    if entry.is_migrated:
        raise ReadOnlyViolation(
            f"Entry {entry.id} is migrated and read-only", entry_id=entry.id
        )
