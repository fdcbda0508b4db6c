#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the bujo journal.

Provides the BujoDB class for interacting with the SQLite database.
Handles:
    - Initialization of the database engine and sessionmaker
    - Transaction scopes that bind the entity managers to one session
    - SQLite SAVEPOINT support for all-or-nothing lifecycle operations
    - Migration management via Alembic
    - Health monitoring

Managers (available inside session_scope):
    db.entries      EntryManager      user-scoped entry store
    db.lifecycle    LifecycleManager  chain/anchor aware operations
    db.collections  CollectionManager collections and action items
    db.meetings     MeetingManager    meeting notes

Usage:
    db = BujoDB(DB_PATH, ALEMBIC_DIR, log_dir=LOG_DIR)
    with db.session_scope():
        daily = db.lifecycle.create(user_id, {...})

Notes
==============
- A fresh database is created from the ORM models and stamped to head;
  an existing one is upgraded with Alembic
- Foreign keys are enforced on every connection
- Retry logic handles SQLite lock contention
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

# --- Third party ---
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext

# --- Local imports ---
from bujo.core.exceptions import DatabaseError
from bujo.core.logging_manager import BujoLogger, safe_logger
from bujo.core.paths import ALEMBIC_INI
from .decorators import handle_db_errors, log_database_operation
from .health_monitor import HealthMonitor
from .managers import (
    CollectionManager,
    EntryManager,
    LifecycleManager,
    MeetingManager,
)
from .models import Base


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """
    Let pysqlite handle SAVEPOINT correctly and enforce foreign keys.

    pysqlite issues BEGIN lazily, which breaks nested transactions; the
    driver's own transaction handling is switched off and SQLAlchemy
    emits BEGIN itself.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# ----- Main Database Manager -----
class BujoDB:
    """
    Main database manager for the bujo journal.

    Attributes:
        db_path: Filesystem path to the SQLite database file
        alembic_dir: Filesystem path to the Alembic scripts
        engine: SQLAlchemy engine instance
        SessionLocal: SQLAlchemy session factory
        logger: BujoLogger, or None when no log_dir was given
        health_monitor: Chain integrity checks
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path],
        alembic_dir: Union[str, Path],
        log_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        """
        Initialize database engine and session factory.

        Args:
            db_path: Path to the SQLite file
            alembic_dir: Path to the Alembic directory
            log_dir: Directory for log files (optional)
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.alembic_dir = Path(alembic_dir).expanduser().resolve()

        # --- Logging ---
        if log_dir:
            self.log_dir = Path(log_dir).expanduser().resolve() / "system"
            self.logger: Optional[BujoLogger] = BujoLogger(
                self.log_dir, component_name="database"
            )
        else:
            self.logger = None

        self.health_monitor = HealthMonitor(self.logger)

        # Managers are bound per session in session_scope
        self._entry_manager: Optional[EntryManager] = None
        self._lifecycle_manager: Optional[LifecycleManager] = None
        self._collection_manager: Optional[CollectionManager] = None
        self._meeting_manager: Optional[MeetingManager] = None

        self._setup_engine()

    @property
    def log(self) -> BujoLogger:
        return safe_logger(self.logger)

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        try:
            self.log.log_operation(
                "database_init_start",
                {"db_path": str(self.db_path), "alembic_dir": str(self.alembic_dir)},
            )

            is_new_file = not self.db_path.exists()
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.engine: Engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                pool_pre_ping=True,
            )
            _enable_sqlite_savepoints(self.engine)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            self.alembic_cfg: Config = self._setup_alembic()

            if is_new_file:
                self.initialize_schema()

            self.log.log_operation("database_init_complete", {"success": True})

        except Exception as e:
            self.log.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    # ---- Session Management ----
    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope around a series of operations.

        Commits on success, rolls back on any exception and always
        closes the session. The entity managers are bound to the session
        for the duration of the scope.

        Usage:
            with db.session_scope() as session:
                db.lifecycle.complete(user_id, entry_id)
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

        self._entry_manager = EntryManager(session, self.logger)
        self._lifecycle_manager = LifecycleManager(
            session, self.logger, store=self._entry_manager
        )
        self._collection_manager = CollectionManager(
            session, self.logger, store=self._entry_manager
        )
        self._meeting_manager = MeetingManager(session, self.logger)

        self.log.log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            session.commit()
            self.log.log_debug("session_commit", {"session_id": session_id})
        except Exception as e:
            session.rollback()
            self.log.log_error(e, {"operation": "session_rollback", "session_id": session_id})
            raise
        finally:
            self._entry_manager = None
            self._lifecycle_manager = None
            self._collection_manager = None
            self._meeting_manager = None

            session.close()
            self.log.log_debug("session_close", {"session_id": session_id})

    # -------------------------------------------------------------------------
    # Entity Manager Properties
    # -------------------------------------------------------------------------

    @staticmethod
    def _require_scope(manager: Any, name: str) -> Any:
        if manager is None:
            raise DatabaseError(
                f"{name} requires active session. "
                "Use within session_scope: with db.session_scope(): ..."
            )
        return manager

    @property
    def entries(self) -> EntryManager:
        """
        Access EntryManager for plain entry reads and writes.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require_scope(self._entry_manager, "EntryManager")

    @property
    def lifecycle(self) -> LifecycleManager:
        """
        Access LifecycleManager for chain-aware entry operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require_scope(self._lifecycle_manager, "LifecycleManager")

    @property
    def collections(self) -> CollectionManager:
        """
        Access CollectionManager for collection operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require_scope(self._collection_manager, "CollectionManager")

    @property
    def meetings(self) -> MeetingManager:
        """
        Access MeetingManager for meeting note operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require_scope(self._meeting_manager, "MeetingManager")

    # ---- Alembic setup ----
    def _setup_alembic(self) -> Config:
        """Setup Alembic configuration."""
        try:
            self.log.log_debug("Setting up Alembic configuration...")

            alembic_cfg = Config(str(ALEMBIC_INI)) if ALEMBIC_INI.exists() else Config()
            alembic_cfg.set_main_option("script_location", str(self.alembic_dir))
            alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{self.db_path}")
            alembic_cfg.set_main_option(
                "file_template",
                "%%(year)d%%(month).2d%%(day).2d_%%(hour).2d%%(minute).2d_%%(slug)s",
            )
            alembic_cfg.attributes["configure_logger"] = False
            return alembic_cfg
        except Exception as e:
            self.log.log_error(e, {"operation": "setup_alembic"})
            raise DatabaseError(f"Alembic configuration failed: {e}") from e

    @handle_db_errors
    @log_database_operation("initialize_schema")
    def initialize_schema(self) -> None:
        """
        Create tables if needed and bring the schema to head.

        Actions:
            If the database has no tables,
                creates all tables from the ORM models
                stamps the Alembic revision to head
            If not,
                runs pending migrations
        """
        try:
            with self.engine.connect() as conn:
                tables = self.engine.dialect.get_table_names(conn)

            if not tables:
                Base.metadata.create_all(bind=self.engine)
                command.stamp(self.alembic_cfg, "head")
                self.log.log_operation(
                    "fresh_database_created",
                    {"tables_created": len(Base.metadata.tables)},
                )
            else:
                self.upgrade_database()
                self.log.log_operation(
                    "existing_database_migrated", {"table_count": len(tables)}
                )
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Could not initialize database: {e}") from e

    @handle_db_errors
    @log_database_operation("upgrade_database")
    def upgrade_database(self, revision: str = "head") -> None:
        """
        Upgrade the database schema to an Alembic revision.

        Args:
            revision: Target revision (default: latest)
        """
        try:
            command.upgrade(self.alembic_cfg, revision)
        except Exception as e:
            raise DatabaseError(f"Database upgrade failed: {e}") from e

    def get_migration_history(self) -> Dict[str, Optional[str]]:
        """
        Get the current migration status of the database.

        Returns:
            Dictionary with keys:
                - 'current_revision': current Alembic revision, or None
                - 'status': 'up_to_date' or 'needs_migration'
                - 'error': present if the revision could not be read
        """
        try:
            with self.engine.connect() as conn:
                context = MigrationContext.configure(conn)
                current_rev = context.get_current_revision()

            return {
                "current_revision": current_rev,
                "status": "up_to_date" if current_rev else "needs_migration",
            }
        except Exception as e:
            self.log.log_error(e, {"operation": "get_migration_history"})
            return {"error": str(e)}

    # ---- Health ----
    def health_check(self, user_id: Optional[str] = None) -> Dict[str, Any]:
        """Run the chain integrity health check in its own session."""
        with self.session_scope() as session:
            return self.health_monitor.health_check(
                session, db_path=self.db_path, user_id=user_id
            )

    def repair_orphaned_daily_tasks(
        self, user_id: Optional[str] = None, dry_run: bool = True
    ) -> Dict[str, Any]:
        """Re-create missing anchors in its own session."""
        with self.session_scope() as session:
            return self.health_monitor.repair_orphaned_daily_tasks(
                session, user_id=user_id, dry_run=dry_run
            )
