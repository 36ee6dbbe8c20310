"""
Drivers

Each driver adapts one DB-API module to the statement/rows contract the
repository layer is written against.
"""

from tinyrepo.driver.base import Driver, Rows, Statement, TypeAdapter
from tinyrepo.driver.postgres import PsycopgDriver
from tinyrepo.driver.sqlite import SqliteDriver
from tinyrepo.errors import ConfigurationError


def for_url(url: str) -> Driver:
    """Pick the driver for a DATABASE_URL by its scheme."""
    scheme = url.split(":", 1)[0].lower()
    if scheme == "sqlite":
        return SqliteDriver()
    if scheme in ("postgres", "postgresql"):
        return PsycopgDriver()
    raise ConfigurationError(f"No driver for database url scheme {scheme!r}")


__all__ = [
    "Driver",
    "PsycopgDriver",
    "Rows",
    "SqliteDriver",
    "Statement",
    "TypeAdapter",
    "for_url",
]
