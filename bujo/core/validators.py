#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for bujo operations.

Provides type-safe conversion and validation used by the entity
managers and the command-line interface before anything reaches the
database.
"""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from .exceptions import ValidationError

E = TypeVar("E", bound=Enum)


class DataValidator:
    """Centralized data validation for database operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If validation fails
        """
        for field in required_fields:
            if field not in data or data[field] is None or data[field] == "":
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def normalize_date(date_value: Any) -> Optional[date]:
        """
        Normalize various date inputs to a date object.

        Args:
            date_value: ISO date string (YYYY-MM-DD), date or datetime

        Returns:
            Normalized date object, or None for empty input

        Raises:
            ValidationError: If a string cannot be parsed as an ISO date
        """
        # datetime is a subclass of date, so check it first
        if isinstance(date_value, datetime):
            return date_value.date()
        if isinstance(date_value, date):
            return date_value
        if isinstance(date_value, str):
            value = date_value.strip()
            if not value:
                return None
            try:
                return date.fromisoformat(value[:10])
            except ValueError:
                raise ValidationError(
                    f"Invalid date format: '{date_value}' (expected YYYY-MM-DD)"
                )
        if date_value is None:
            return None
        raise ValidationError(f"Cannot convert {type(date_value).__name__} to date")

    @staticmethod
    def require_date(date_value: Any, field: str = "date") -> date:
        """
        Normalize a date that must be present.

        Raises:
            ValidationError: If the value is empty or malformed
        """
        normalized = DataValidator.normalize_date(date_value)
        if normalized is None:
            raise ValidationError(f"Required field '{field}' missing or empty")
        return normalized

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Normalize a string value.

        Strips surrounding whitespace; empty results become None.
        """
        if value is None:
            return None
        normalized = str(value).strip()
        return normalized or None

    @staticmethod
    def normalize_int(value: Any) -> Optional[int]:
        """
        Convert value to integer safely.

        Raises:
            ValidationError: If the value is not an integer
        """
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise ValidationError(f"Cannot convert boolean '{value}' to integer")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Cannot convert '{value}' to integer")

    @staticmethod
    def normalize_enum(value: Any, enum_class: Type[E]) -> Optional[E]:
        """
        Convert a string or enum member to a member of enum_class.

        Args:
            value: Enum member or its string value (case-insensitive)
            enum_class: Target enumeration

        Returns:
            Enum member, or None for empty input

        Raises:
            ValidationError: If the value is not a valid choice
        """
        if value is None or value == "":
            return None
        if isinstance(value, enum_class):
            return value
        try:
            return enum_class(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(member.value for member in enum_class)
            raise ValidationError(
                f"Invalid {enum_class.__name__}: '{value}' (expected one of: {choices})"
            )

    @staticmethod
    def normalize_tags(tags: Any) -> List[str]:
        """
        Normalize a tag list, dropping empties and duplicates.

        Order of first appearance is kept.
        """
        if not tags:
            return []
        if isinstance(tags, str):
            tags = [tags]

        normalized: List[str] = []
        for tag in tags:
            value = DataValidator.normalize_string(tag)
            if value and value not in normalized:
                normalized.append(value)
        return normalized

    @staticmethod
    def normalize_string_list(values: Any) -> List[str]:
        """Normalize a list of free-text strings (e.g. meeting attendees)."""
        if not values:
            return []
        if isinstance(values, str):
            values = values.split(",")
        return [v for v in (DataValidator.normalize_string(x) for x in values) if v]
