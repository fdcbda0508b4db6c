#!/usr/bin/env python3
"""
rapid_log.py
------------
Rapid-logging notation for bullet journal entries.

Raw input is typed with a one-character bullet prefix:

    "- Called the bank"   -> note
    "* Dentist at 3pm"    -> event
    "Buy milk"            -> task

Rendering uses the classic bullet glyphs, with a status mark for
completed and migrated rows.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Tuple

from bujo.database.models.enums import EntryStatus, EntryType

if TYPE_CHECKING:
    from bujo.database.models import Entry


BULLET_SYMBOLS: Dict[EntryType, str] = {
    EntryType.TASK: "●",
    EntryType.EVENT: "○",
    EntryType.NOTE: "–",
}

STATUS_SYMBOLS: Dict[EntryStatus, str] = {
    EntryStatus.OPEN: "",
    EntryStatus.DONE: "×",
    EntryStatus.MIGRATED: ">",
    EntryStatus.CANCELLED: "",
}


def parse_entry_prefix(raw: str) -> Tuple[EntryType, str]:
    """
    Split raw input into an entry type and its content.

    Args:
        raw: Text as typed by the user

    Returns:
        Tuple of (EntryType, content without the prefix)
    """
    trimmed = raw.strip()
    if trimmed.startswith("- "):
        return EntryType.NOTE, trimmed[2:].strip()
    if trimmed.startswith("* "):
        return EntryType.EVENT, trimmed[2:].strip()
    return EntryType.TASK, trimmed


def render_entry(entry: "Entry") -> str:
    """
    Render an entry as a single display line.

    The status mark replaces the bullet for done and migrated rows;
    cancelled rows are wrapped in tildes (struck through).
    """
    symbol = STATUS_SYMBOLS.get(entry.status) or BULLET_SYMBOLS[entry.type]
    content = entry.content
    if entry.status == EntryStatus.CANCELLED:
        content = f"~~{content}~~"
    return f"{symbol} {content}"
