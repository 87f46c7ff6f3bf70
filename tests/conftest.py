"""Shared fixtures for the storage tests."""
import pytest

from pysqlkv import open_db


@pytest.fixture
def db():
    """Open an in-memory SQLite namespace for testing."""
    db = open_db("sqlite3", ":memory:", "testtable")
    yield db
    db.close()


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "sql_test.db")


@pytest.fixture
def file_db(db_path):
    """Open a file-backed SQLite namespace for testing."""
    db = open_db("sqlite3", db_path, "testtable")
    yield db
    db.close()
