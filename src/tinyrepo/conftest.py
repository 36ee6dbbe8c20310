# src/tinyrepo/conftest.py
"""
Pytest configuration and shared fixtures.

Tests are co-located with implementation files using the *_test.py suffix.
Integration tests run against a SQLite file database created per test in
pytest's tmp_path, through the SqliteDriver.
"""

import os

# Set environment BEFORE importing any tinyrepo modules
os.environ["TINYREPO_ENV"] = "test"

import sqlite3

import pytest

from tinyrepo import db
from tinyrepo.driver import SqliteDriver

SCHEMA = [
    "create table baby (pk INTEGER PRIMARY KEY, name text, hair_color text, numberofToes INTEGER)",
    "create table no_autogen (pk text, name text)",
    "create table customer (id INTEGER PRIMARY KEY, name text, favorite_order_id INTEGER)",
    "create table orders (id INTEGER PRIMARY KEY, customer_id INTEGER)",
    "create table stock_item (region text, code text, label text)",
]

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def test_db(tmp_path):
    """
    Create a fresh SQLite database file with the test schema.

    Returns the database path.
    """
    path = tmp_path / "tinyrepo_test.db"
    conn = sqlite3.connect(path)
    try:
        for statement in SCHEMA:
            conn.execute(statement)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def connection_supplier(test_db):
    """A connection supplier opening a new connection to the test database."""

    def supply():
        return sqlite3.connect(test_db)

    return supply


@pytest.fixture
def db_connection(connection_supplier):
    """
    Install the test database as the global connection supplier.

    Yields a separate connection for direct SQL in tests. Writes made
    through it must be committed before repositories can see them.
    """
    db.set_default_driver(SqliteDriver())
    db.set_connection_supplier(connection_supplier)

    conn = connection_supplier()

    yield conn

    conn.close()
    db.clear_connection_supplier()
    db.clear_connection_override()
    db.set_default_driver(None)


@pytest.fixture
def sqlite_driver():
    return SqliteDriver()


@pytest.fixture
def memory_connection():
    """An in-memory SQLite connection for driver and mapper unit tests."""
    conn = sqlite3.connect(":memory:")
    yield conn
    conn.close()
