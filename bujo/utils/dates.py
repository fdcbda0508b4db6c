#!/usr/bin/env python3
"""
dates.py
--------
Calendar month helpers.

Monthly and future rows are conventionally dated on the first of their
month, and several lifecycle rules compare the month of two dates.
"""
from __future__ import annotations

import calendar
from datetime import date
from typing import Tuple


def month_start(value: date) -> date:
    """First day of the month containing value."""
    return value.replace(day=1)


def month_end(value: date) -> date:
    """Last day of the month containing value."""
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    """
    Inclusive first and last day of a calendar month.

    Args:
        year: Four-digit year
        month: Month number, 1-12

    Raises:
        ValueError: If month is out of range
    """
    first = date(year, month, 1)
    return first, month_end(first)


def same_month(a: date, b: date) -> bool:
    """True if both dates fall in the same calendar month."""
    return (a.year, a.month) == (b.year, b.month)


def month_label(value: date) -> str:
    """Display label such as 'March 2024'."""
    return f"{calendar.month_name[value.month]} {value.year}"
