"""
Connection access.

Repositories open one connection per operation. The connection comes from,
in order:

    1. the connection override, when set (tests)
    2. the repository's own connection supplier
    3. the global connection supplier
    4. a connection opened from DATABASE_URL

A connection supplier is any zero-argument callable returning a DB-API
connection. The global supplier is process-wide state: set it once, early,
and do not change it while repositories are in use.

For testing, use set_connection_override() to inject a connection that will
be used instead of creating new ones. The library never commits, rolls back
or closes the override; the test fixture owns it.
"""

import logging
from collections.abc import Callable
from contextlib import contextmanager
from typing import Any

from tinyrepo import driver as drivers
from tinyrepo.config import config
from tinyrepo.driver import Driver
from tinyrepo.errors import ConfigurationError, DbError

logger = logging.getLogger(__name__)

ConnectionSupplier = Callable[[], Any]

# =============================================================================
# Connection Override (for testing)
# =============================================================================

_connection_override: Any | None = None


def set_connection_override(conn) -> None:
    """
    Set a connection to use instead of creating new ones.

    Args:
        conn: The connection to use for all subsequent operations
    """
    global _connection_override
    _connection_override = conn


def clear_connection_override() -> None:
    """Clear the connection override, restoring normal behavior."""
    global _connection_override
    _connection_override = None


# =============================================================================
# Suppliers and Drivers
# =============================================================================

_connection_supplier: ConnectionSupplier | None = None
_default_driver: Driver | None = None


def set_connection_supplier(supplier: ConnectionSupplier) -> None:
    """Set the global connection supplier used by repositories without their own."""
    global _connection_supplier
    _connection_supplier = supplier


def clear_connection_supplier() -> None:
    global _connection_supplier
    _connection_supplier = None


def set_default_driver(driver: Driver | None) -> None:
    """Set the driver repositories use when none is passed. None restores the default."""
    global _default_driver
    _default_driver = driver


def default_driver() -> Driver:
    """
    The driver for repositories built without one.

    Explicitly set driver, else the driver for DATABASE_URL, else psycopg.
    """
    if _default_driver is not None:
        return _default_driver
    if config.database_url:
        return drivers.for_url(config.database_url)
    return drivers.PsycopgDriver()


def url_supplier(url: str) -> ConnectionSupplier:
    """A supplier that opens a new connection to a DATABASE_URL style url."""
    url_driver = drivers.for_url(url)

    def supply():
        return url_driver.connect(url)

    return supply


def resolve_supplier(local_supplier: ConnectionSupplier | None = None) -> ConnectionSupplier:
    if local_supplier is not None:
        return local_supplier
    if _connection_supplier is not None:
        return _connection_supplier
    if config.database_url:
        return url_supplier(config.database_url)
    raise ConfigurationError(
        "You must set a connection supplier: pass one to the repository, "
        "call db.set_connection_supplier(), or set DATABASE_URL"
    )


# =============================================================================
# Connection Management
# =============================================================================


@contextmanager
def get_connection(local_supplier: ConnectionSupplier | None = None, driver: Driver | None = None):
    """
    Context manager for one operation's connection.

    In normal operation:
        - Gets a connection from the first available supplier
        - Rolls back on exception unless the connection is in autocommit mode
        - Closes the connection when done

    Committing is the caller's job; repositories commit after a
    data-changing statement succeeds.

    With override set (testing):
        - Returns the override connection
        - Does NOT commit, rollback, or close

    Usage:
        with get_connection() as conn:
            ...
    """
    if _connection_override is not None:
        yield _connection_override
        return

    supplier = resolve_supplier(local_supplier)
    try:
        conn = supplier()
    except Exception as e:
        logger.warning("Connection supplier failed: %s", e)
        raise DbError("Failed to get a connection") from e
    if conn is None:
        raise DbError("Failed to get a connection")

    driver = driver or default_driver()
    try:
        yield conn
    except Exception:
        if not driver.auto_commit(conn):
            logger.warning("Rolling back after a failed operation")
            driver.rollback(conn)
        raise
    finally:
        conn.close()


def commit(conn, driver: Driver) -> None:
    """Commit a data-changing operation, unless conn is the override or in autocommit mode."""
    if conn is _connection_override or driver.auto_commit(conn):
        return
    driver.commit(conn)
