"""
SQL text generation.

Every statement uses ``?`` placeholders; drivers with another paramstyle
translate them when the statement is prepared. Table and column names are
inserted verbatim, so bad names only surface when the database runs the SQL.
"""

from collections.abc import Iterable, Mapping
from typing import Any

AND = " AND "
OR = " OR "


def is_many(value: Any) -> bool:
    """True when a bind argument expands to one placeholder per element."""
    return isinstance(value, (list, tuple, set, frozenset))


def select_all(table: str) -> str:
    """Select all the things."""
    return f"select * from {table}"


def insert(table: str, columns: list[str]) -> str:
    """Insert one row; a table with no listed columns gets its defaults."""
    if not columns:
        return f"insert into {table} default values"
    placeholders = ",".join("?" for _ in columns)
    return f"insert into {table}({','.join(columns)}) values ({placeholders})"


def update(table: str, columns: list[str]) -> str:
    """Update the given columns. The caller appends the WHERE clause."""
    return f"update {table} set " + ",".join(f"{c}=?" for c in columns)


def delete(table: str) -> str:
    """Delete rows. The caller appends the WHERE clause."""
    return f"delete from {table}"


def where(column_values: Mapping[str, Any], conjunction: str | None = AND) -> str:
    """
    Build a WHERE clause from an ordered column -> value mapping.

    Scalars become ``col=?``; collections become ``col in (?,...)`` with one
    placeholder per element. The mapping's iteration order is the order the
    values must later be bound in, see bind_values().

    Args:
        column_values: Column names mapped to the values they are compared to
        conjunction: AND, OR, or None to concatenate the terms as they are

    Returns:
        The clause, starting with " where "
    """
    terms = []
    for column, value in column_values.items():
        if is_many(value):
            terms.append(f"{column} in ({','.join('?' for _ in value)})")
        else:
            terms.append(f"{column}=?")
    return " where " + (conjunction or "").join(terms)


def where_all(column_values: Mapping[str, Any]) -> str:
    return where(column_values, AND)


def where_any(column_values: Mapping[str, Any]) -> str:
    return where(column_values, OR)


def bind_values(args: Iterable[Any]) -> list[Any]:
    """Flatten bind arguments in placeholder order, splicing collections in place."""
    values = []
    for arg in args:
        if is_many(arg):
            values.extend(arg)
        else:
            values.append(arg)
    return values
