"""
Driver for PostgreSQL through psycopg 3.

psycopg uses the "format" paramstyle, so ``?`` placeholders are rewritten to
``%s`` and literal percent signs are doubled. Generated keys are read back
through a ``returning`` clause appended to the insert.
"""

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

import psycopg

from tinyrepo.driver.base import Driver, Rows, Statement, TypeAdapter, converting


def translate_placeholders(sql: str) -> str:
    """Rewrite ? to %s and % to %%, leaving quoted literals and identifiers alone."""
    out = []
    quote = None
    for ch in sql:
        if quote:
            out.append("%%" if ch == "%" else ch)
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
        elif ch == "%":
            out.append("%%")
        else:
            out.append(ch)
    return "".join(out)


class PsycopgDriver(Driver):
    name = "postgresql"
    error_types = (psycopg.Error,)

    def connect(self, url: str) -> psycopg.Connection:
        return psycopg.connect(url)

    def translate_sql(self, sql: str, generated_keys: Sequence[str] = ()) -> str:
        translated = translate_placeholders(sql)
        if generated_keys and sql.lstrip().lower().startswith("insert"):
            translated += " returning " + ",".join(generated_keys)
        return translated

    def generated_keys(self, statement: Statement) -> Rows:
        return Rows.from_cursor(statement.cursor)

    def auto_commit(self, connection: psycopg.Connection) -> bool:
        return bool(connection.autocommit)

    def typed_operations(self) -> dict[type, TypeAdapter]:
        operations = super().typed_operations()
        operations.update(
            {
                # numeric columns come back as Decimal
                float: TypeAdapter(from_driver=converting((int, Decimal), float)),
                Decimal: TypeAdapter(from_driver=converting((int, float), lambda v: Decimal(str(v)))),
                # uuid columns read into str fields
                str: TypeAdapter(from_driver=converting(UUID, str)),
                UUID: TypeAdapter(from_driver=converting(str, UUID)),
            }
        )
        return operations
