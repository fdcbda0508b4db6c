"""
conftest.py
-----------
Shared pytest fixtures for bujo tests.

Provides fixtures for:
- Temporary database setup and teardown
- Session-bound managers
- Small entry factories
"""
from datetime import date
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_db_path(tmp_dir):
    """Create temporary test database path."""
    return tmp_dir / "test.db"


@pytest.fixture
def test_alembic_dir():
    """Path to the Alembic scripts shipped with the package."""
    from bujo.core.paths import ALEMBIC_DIR
    return ALEMBIC_DIR


# ----- Test Database Fixtures -----

@pytest.fixture
def test_db(test_db_path, test_alembic_dir):
    """
    Create test database instance with schema.

    The file does not exist yet, so BujoDB builds the tables from the
    ORM models and stamps the Alembic head.
    """
    from bujo.database.manager import BujoDB

    db = BujoDB(db_path=test_db_path, alembic_dir=test_alembic_dir)

    yield db

    db.engine.dispose()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture
def db_session(test_db):
    """
    Create a database session for tests.

    The managers of test_db are bound to this session for the test.
    """
    with test_db.session_scope() as session:
        yield session
        session.rollback()


@pytest.fixture
def user_id():
    """Default user every test acts as."""
    return "ana"


@pytest.fixture
def other_user():
    """A second user, for scoping tests."""
    return "ben"


@pytest.fixture
def entry_manager(test_db, db_session):
    """EntryManager bound to the test session."""
    return test_db.entries


@pytest.fixture
def lifecycle(test_db, db_session):
    """LifecycleManager bound to the test session."""
    return test_db.lifecycle


@pytest.fixture
def collection_manager(test_db, db_session):
    """CollectionManager bound to the test session."""
    return test_db.collections


@pytest.fixture
def meeting_manager(test_db, db_session):
    """MeetingManager bound to the test session."""
    return test_db.meetings


# ----- Factories -----

@pytest.fixture
def make_daily_task(lifecycle, user_id):
    """Factory creating a daily task through the lifecycle engine."""

    def _make(content="Buy milk", on_date=date(2024, 3, 5), owner=None, **extra):
        metadata = {
            "type": "task",
            "content": content,
            "log_type": "daily",
            "date": on_date,
        }
        metadata.update(extra)
        return lifecycle.create(owner or user_id, metadata)

    return _make


@pytest.fixture
def make_monthly_task(lifecycle, user_id):
    """Factory creating a monthly task anchor dated the first of a month."""

    def _make(content="File taxes", on_date=date(2024, 3, 1), owner=None, **extra):
        metadata = {
            "type": "task",
            "content": content,
            "log_type": "monthly",
            "date": on_date,
        }
        metadata.update(extra)
        return lifecycle.create(owner or user_id, metadata)

    return _make
