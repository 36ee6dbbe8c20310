"""
Driver for the standard library sqlite3 module.

SQLite stores UUIDs, decimals and temporal values as text and booleans as
0/1, so those adapters convert in both directions. Generated keys come from
the cursor's lastrowid.
"""

import sqlite3
from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from tinyrepo.driver.base import Driver, Rows, Statement, TypeAdapter, converting


class SqliteDriver(Driver):
    name = "sqlite"
    error_types = (sqlite3.Error,)

    def connect(self, url: str) -> sqlite3.Connection:
        """
        Open a database from a sqlite url.

        "sqlite://" is an in-memory database, "sqlite:///app.db" a relative
        path and "sqlite:////var/data/app.db" an absolute one.
        """
        if not url.startswith("sqlite://"):
            raise ValueError(f"Not a sqlite url: {url!r}")
        path = url[len("sqlite://"):]
        if path.startswith("/"):
            path = path[1:]
        return sqlite3.connect(path or ":memory:")

    def generated_keys(self, statement: Statement) -> Rows:
        columns = list(statement.generated_keys) or ["rowid"]
        rowid = statement.cursor.lastrowid
        if rowid is None:
            return Rows.from_values(columns, [])
        return Rows.from_values(columns, [(rowid,)])

    def auto_commit(self, connection: sqlite3.Connection) -> bool:
        # Python 3.12+ exposes connection.autocommit; older versions and the
        # legacy mode signal autocommit with isolation_level None.
        mode = getattr(connection, "autocommit", None)
        if mode is True or mode is False:
            return mode
        return connection.isolation_level is None

    def typed_operations(self) -> dict[type, TypeAdapter]:
        operations = super().typed_operations()
        operations.update(
            {
                bool: TypeAdapter(to_driver=int, from_driver=converting(int, bool)),
                Decimal: TypeAdapter(
                    to_driver=str,
                    from_driver=converting((int, float, str), lambda v: Decimal(str(v))),
                ),
                date: TypeAdapter(
                    to_driver=lambda v: v.isoformat(),
                    from_driver=converting(str, date.fromisoformat),
                ),
                time: TypeAdapter(
                    to_driver=lambda v: v.isoformat(),
                    from_driver=converting(str, time.fromisoformat),
                ),
                datetime: TypeAdapter(
                    to_driver=lambda v: v.isoformat(sep=" "),
                    from_driver=converting(str, datetime.fromisoformat),
                ),
                UUID: TypeAdapter(to_driver=str, from_driver=_to_uuid),
            }
        )
        return operations


def _to_uuid(value):
    if isinstance(value, str):
        return UUID(value)
    if isinstance(value, bytes) and len(value) == 16:
        return UUID(bytes=value)
    return value
