# tests/conftest.py

"""
Shared fixtures: every test gets its own in-memory SQLite database.
"""

import pytest

from crime_write_service.auth import Role, UserSession
from crime_write_service.db.record_store import RecordStore
from crime_write_service.db.session import make_engine


@pytest.fixture
def engine():
    engine = make_engine("sqlite+pysqlite:///:memory:")
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return RecordStore(engine)


@pytest.fixture
def admin_session():
    return UserSession("admin_uid", "Admin User", "admin@crimes.com", Role.ADMIN)


@pytest.fixture
def user_session():
    return UserSession("user_uid", "Regular User", "user@crimes.com", Role.USER)


class RecordingListener:
    """Collects import callbacks so tests can assert on them."""

    def __init__(self):
        self.progress = []
        self.successes = []
        self.errors = []

    def on_progress(self, imported):
        self.progress.append(imported)

    def on_success(self, imported):
        self.successes.append(imported)

    def on_error(self, message):
        self.errors.append(message)


@pytest.fixture
def listener():
    return RecordingListener()
