#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing common, user-scoped data access utilities.
All entity managers inherit from this class.

Key Features:
    - Retry logic for SQLite lock handling
    - Savepoint helper so multi-step operations are all-or-nothing
    - User-scoped lookups: nothing is ever read or written across users
    - Scalar field update helper driven by normalizers

Usage:
    class MeetingManager(BaseManager):
        def create(self, user_id: str, metadata: Dict[str, Any]) -> MeetingNote:
            with self._atomic():
                ...
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol, Type, TypeVar

# --- Third party imports ---
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Mapped, Session

# --- Local imports ---
from bujo.core.exceptions import DatabaseError, ValidationError
from bujo.core.logging_manager import BujoLogger, safe_logger


class UserOwned(Protocol):
    """Protocol for rows that have an id and belong to a user."""

    id: Mapped[str]
    user_id: Mapped[str]


T = TypeVar("T", bound=UserOwned)


class BaseManager(ABC):
    """
    Abstract base manager providing common utilities.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[BujoLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    @property
    def log(self) -> BujoLogger:
        """The logger, or a no-op logger when none was given."""
        return safe_logger(self.logger)

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable,
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> Any:
        """
        Execute database operation with retry on lock.

        Args:
            operation: Callable that performs the operation
            max_retries: Maximum number of retry attempts
            retry_delay: Base delay between retries (exponential backoff)

        Returns:
            Result of the operation

        Raises:
            OperationalError: If all retries exhausted
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except OperationalError as e:
                error_msg = str(e).lower()

                if (
                    "locked" in error_msg or "busy" in error_msg
                ) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)
                    self.log.log_debug(
                        f"Database locked, retrying in {wait_time}s",
                        {"attempt": attempt + 1, "max_retries": max_retries},
                    )
                    time.sleep(wait_time)
                    continue

                raise

        raise DatabaseError("Retry loop completed without success")

    @contextmanager
    def _atomic(self) -> Iterator[Session]:
        """
        Run a block inside a SAVEPOINT.

        Either every write in the block is kept or none is: on exception
        the savepoint is rolled back and the exception propagates, while
        the enclosing transaction stays usable.
        """
        with self.session.begin_nested():
            yield self.session
        self.session.flush()

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        """
        Reject a missing user id.

        Raises:
            ValidationError: If user_id is empty
        """
        if not user_id or not str(user_id).strip():
            raise ValidationError("A resolved user id is required")
        return str(user_id).strip()

    # -------------------------------------------------------------------------
    # Generic User-Scoped Helpers
    # -------------------------------------------------------------------------

    def _get_owned(
        self, model_class: Type[T], user_id: str, entity_id: Optional[str]
    ) -> Optional[T]:
        """
        Get a row by id, only if it belongs to user_id.

        Args:
            model_class: ORM model class
            user_id: Owner the row must belong to
            entity_id: Primary key

        Returns:
            Row if found and owned, None otherwise
        """
        if not entity_id:
            return None
        entity = self.session.get(model_class, entity_id)
        if entity is None or entity.user_id != user_id:
            return None
        return entity

    def _get_all_owned(
        self,
        model_class: Type[T],
        user_id: str,
        order_by: Optional[List[Any]] = None,
        **filters: Any,
    ) -> List[T]:
        """
        Get every row of a model owned by user_id.

        Args:
            model_class: ORM model class
            user_id: Owner
            order_by: Column expressions to order by
            **filters: Extra equality filters

        Returns:
            List of rows
        """
        query = self.session.query(model_class).filter_by(user_id=user_id, **filters)
        if order_by:
            query = query.order_by(*order_by)
        return query.all()

    def _count_owned(self, model_class: Type[T], user_id: str, *criteria: Any) -> int:
        """Count rows owned by user_id matching extra SQL criteria."""
        return (
            self.session.query(model_class)
            .filter(model_class.user_id == user_id, *criteria)
            .count()
        )

    # -------------------------------------------------------------------------
    # Scalar Field Update Helpers
    # -------------------------------------------------------------------------

    def _update_scalar_fields(
        self,
        entity: Any,
        metadata: Dict[str, Any],
        field_configs: List[tuple],
    ) -> List[str]:
        """
        Update scalar fields from metadata using normalizers.

        Args:
            entity: Entity to update
            metadata: Dictionary containing field values
            field_configs: List of tuples:
                - (field_name, normalizer) for required fields
                - (field_name, normalizer, allow_none) for optional fields

        Returns:
            Names of the fields that were written

        Example:
            self._update_scalar_fields(note, metadata, [
                ("title", DataValidator.normalize_string),
                ("agenda", DataValidator.normalize_string, True),
            ])
        """
        written = []
        for config in field_configs:
            field_name = config[0]
            normalizer = config[1]
            allow_none = config[2] if len(config) > 2 else False

            if field_name not in metadata:
                continue

            value = normalizer(metadata[field_name])
            if value is not None or allow_none:
                setattr(entity, field_name, value)
                written.append(field_name)
        return written
