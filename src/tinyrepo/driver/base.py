"""
Driver abstraction over DB-API 2.0 modules.

A Driver prepares statements on a connection, binds parameters by 1-based
position, executes, and exposes results as forward-only Rows. It also
publishes one TypeAdapter per Python type it can carry, which the
TypeRegistry indexes into bind and fetch primitives.

SQL handed to a driver always uses ``?`` placeholders. Drivers whose module
uses another paramstyle rewrite the statement in translate_sql().
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any
from uuid import UUID

from tinyrepo.errors import DbError


def passthrough(value: Any) -> Any:
    return value


def converting(source_types: type | tuple[type, ...], convert: Callable[[Any], Any]):
    """
    Build a from_driver function that only converts values of source_types.

    Anything else is returned untouched so the mapper's compatibility check
    can report it.
    """

    def from_driver(value: Any) -> Any:
        if isinstance(value, source_types):
            return convert(value)
        return value

    return from_driver


@dataclass(frozen=True)
class TypeAdapter:
    """How one Python type travels to the driver and back."""

    to_driver: Callable[[Any], Any] = passthrough
    from_driver: Callable[[Any], Any] = passthrough


# =============================================================================
# Result Rows
# =============================================================================


class Rows:
    """Forward-only cursor over a result, addressed by column name or 1-based ordinal."""

    def __init__(self, columns: Sequence[str], fetchone: Callable[[], Sequence[Any] | None]):
        self.columns = list(columns)
        self._fetchone = fetchone
        self._index = {name: i for i, name in enumerate(self.columns)}
        self._folded = {}
        for i, name in enumerate(self.columns):
            self._folded.setdefault(name.lower(), i)
        self._row = None

    @classmethod
    def from_cursor(cls, cursor) -> "Rows":
        if cursor.description is None:
            return cls.empty()
        return cls([d[0] for d in cursor.description], cursor.fetchone)

    @classmethod
    def from_values(cls, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> "Rows":
        remaining = iter(rows)
        return cls(columns, lambda: next(remaining, None))

    @classmethod
    def empty(cls) -> "Rows":
        return cls([], lambda: None)

    def advance(self) -> bool:
        """Move to the next row. Returns False once the rows are exhausted."""
        self._row = self._fetchone()
        return self._row is not None

    def value_by_name(self, name: str) -> Any:
        """Raw value of the current row's column, matched exactly, then case-insensitively."""
        i = self._index.get(name)
        if i is None:
            i = self._folded.get(name.lower())
        if i is None:
            raise DbError(f"Result has no column named {name!r}; columns are {self.columns}")
        return self._current()[i]

    def value_at(self, ordinal: int) -> Any:
        """Raw value of the current row's 1-based column."""
        row = self._current()
        if not 1 <= ordinal <= len(row):
            raise DbError(f"Column ordinal {ordinal} out of range 1..{len(row)}")
        return row[ordinal - 1]

    def _current(self) -> Sequence[Any]:
        if self._row is None:
            raise DbError("No current row; call advance() first")
        return self._row


# =============================================================================
# Prepared Statements
# =============================================================================


class Statement:
    """
    A statement prepared on one connection, with parameters bound by position.

    Usage:
        with driver.prepare(conn, "select * from baby where pk=?") as st:
            st.set(1, 10)
            driver.execute(st)
    """

    def __init__(self, connection, sql: str, generated_keys: Sequence[str] = ()):
        self.connection = connection
        self.sql = sql
        self.generated_keys = tuple(generated_keys)
        self.cursor = connection.cursor()
        self.update_count = -1
        self._params: dict[int, Any] = {}

    def set(self, position: int, value: Any) -> None:
        if position < 1:
            raise ValueError(f"Parameter positions start at 1, got {position}")
        self._params[position] = value

    def parameters(self) -> list[Any]:
        """Bound values in position order. Every position up to the highest must be set."""
        count = max(self._params, default=0)
        missing = [p for p in range(1, count + 1) if p not in self._params]
        if missing:
            raise ValueError(f"No value bound for parameter(s) {missing}")
        return [self._params[p] for p in range(1, count + 1)]

    def close(self) -> None:
        self.cursor.close()

    def __enter__(self) -> "Statement":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


# =============================================================================
# Driver
# =============================================================================


class Driver(ABC):
    """Capabilities the repository layer needs from a database module."""

    name = "generic"
    error_types: tuple[type[BaseException], ...] = ()

    def translate_sql(self, sql: str, generated_keys: Sequence[str] = ()) -> str:
        return sql

    def prepare(self, connection, sql: str, generated_keys: Sequence[str] = ()) -> Statement:
        """
        Prepare a statement.

        Args:
            connection: An open DB-API connection
            sql: SQL with ? placeholders
            generated_keys: Key columns the database is expected to generate

        Returns:
            A Statement; close it (or use it as a context manager) when done
        """
        return Statement(connection, self.translate_sql(sql, generated_keys), generated_keys)

    def execute(self, statement: Statement) -> bool:
        """Run the statement. Returns True when it produced a result set."""
        statement.cursor.execute(statement.sql, statement.parameters())
        statement.update_count = statement.cursor.rowcount
        return statement.cursor.description is not None

    def execute_update(self, statement: Statement) -> int:
        """Run a data-changing statement and return the affected row count."""
        self.execute(statement)
        return statement.update_count

    def result_set(self, statement: Statement) -> Rows:
        return Rows.from_cursor(statement.cursor)

    @abstractmethod
    def generated_keys(self, statement: Statement) -> Rows:
        """Keys generated by the last insert, one column per requested key."""

    @abstractmethod
    def auto_commit(self, connection) -> bool: ...

    def commit(self, connection) -> None:
        connection.commit()

    def rollback(self, connection) -> None:
        connection.rollback()

    @abstractmethod
    def connect(self, url: str):
        """Open a connection for a DATABASE_URL style url."""

    def typed_operations(self) -> dict[type, TypeAdapter]:
        """
        Adapters for every type this driver carries.

        Subclasses start from this table and override what their module
        represents differently.
        """
        return {
            object: TypeAdapter(),
            bool: TypeAdapter(),
            int: TypeAdapter(),
            float: TypeAdapter(from_driver=converting(int, float)),
            Decimal: TypeAdapter(
                from_driver=converting((int, float, str), lambda v: Decimal(str(v)))
            ),
            str: TypeAdapter(),
            bytes: TypeAdapter(
                to_driver=converting((bytearray, memoryview), bytes),
                from_driver=converting((bytearray, memoryview), bytes),
            ),
            date: TypeAdapter(),
            time: TypeAdapter(),
            datetime: TypeAdapter(),
            UUID: TypeAdapter(from_driver=converting(str, UUID)),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
