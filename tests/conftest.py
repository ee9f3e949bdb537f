"""Pytest configuration and fixtures."""
import pytest
import sqlite3
import tempfile
from pathlib import Path

from sqlmason.cache import SchemaCache
from sqlmason.database import DatabaseManager


@pytest.fixture
def temp_db_path():
    """Path to a temporary database file, removed after the test."""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    db_path.unlink(missing_ok=True)


@pytest.fixture
def temp_db(temp_db_path):
    """Raw sqlite3 connection to the temporary database."""
    conn = sqlite3.connect(temp_db_path)
    yield conn

    conn.close()


@pytest.fixture
def db(temp_db_path):
    """DatabaseManager over the temporary database."""
    manager = DatabaseManager(temp_db_path)
    yield manager

    manager.close()


@pytest.fixture
def users_cache():
    """Cache holding the users table used across the suite."""
    cache = SchemaCache()
    cache.create_table("users")
    cache.add_field("users", {"name": "id", "type": "BIGINT", "primary": True, "unique": True, "notNull": True})
    cache.add_field("users", {"name": "name", "type": "TEXT"})
    cache.add_record("users", {"id": 1, "name": "Ann"})
    return cache
