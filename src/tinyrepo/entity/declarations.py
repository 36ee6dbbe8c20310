"""
Declarations attached to entity dataclasses.

Class decorators name the table, schema and column casing; field specifiers
mark keys, override column names and declare one-hop child references.

Example:
    @table_name("baby")
    @column_casing(Case.LOWER_CAMEL)
    @dataclass
    class Baby:
        pk: int = pk(autogenerated=True)
        name: str = None
        hair_color: str = column("hair_color")
        number_of_toes: int = None
"""

import dataclasses
from dataclasses import dataclass
from typing import Any

from tinyrepo.casing import Case

METADATA_KEY = "tinyrepo"

_TABLE_ATTR = "__tinyrepo_table__"
_SCHEMA_ATTR = "__tinyrepo_schema__"
_CASING_ATTR = "__tinyrepo_casing__"


@dataclass(frozen=True)
class ColumnSpec:
    """What a field specifier declared about one field."""

    name: str | None = None
    primary_key: bool = False
    autogenerated: bool = False
    key_provider: Any = None
    join_to: str | None = None
    references: str | None = None


NO_SPEC = ColumnSpec()


# =============================================================================
# Field Specifiers
# =============================================================================


def pk(autogenerated: bool = False, key_provider: Any = None, column: str | None = None, default: Any = None):
    """
    Mark a primary key field.

    Args:
        autogenerated: The database assigns the key on insert
        key_provider: KeyProvider instance or class, or a zero-argument
            callable; required unless autogenerated
        column: Column name override
        default: Field default, None unless given
    """
    spec = ColumnSpec(
        name=column,
        primary_key=True,
        autogenerated=autogenerated,
        key_provider=key_provider,
    )
    return dataclasses.field(default=default, metadata={METADATA_KEY: spec})


def column(name: str, default: Any = None):
    """Map a field to an explicitly named column."""
    return dataclasses.field(default=default, metadata={METADATA_KEY: ColumnSpec(name=name)})


def join_to(column: str, references: str | None = None):
    """
    Populate an entity-typed field from another table.

    Args:
        column: Column of this entity's row holding the child's lookup value
        references: Child column to match; defaults to a child column of the
            same name, else the child's key column
    """
    spec = ColumnSpec(join_to=column, references=references)
    return dataclasses.field(default=None, metadata={METADATA_KEY: spec})


def spec_of(field: dataclasses.Field) -> ColumnSpec:
    return field.metadata.get(METADATA_KEY, NO_SPEC)


# =============================================================================
# Class Decorators
# =============================================================================


def table_name(name: str):
    def decorate(cls):
        setattr(cls, _TABLE_ATTR, name)
        return cls

    return decorate


def schema_name(name: str):
    def decorate(cls):
        setattr(cls, _SCHEMA_ATTR, name)
        return cls

    return decorate


def column_casing(case: Case | str):
    case = Case.parse(case)

    def decorate(cls):
        setattr(cls, _CASING_ATTR, case)
        return cls

    return decorate


def declared_table(cls) -> str | None:
    return getattr(cls, _TABLE_ATTR, None)


def declared_schema(cls) -> str | None:
    return getattr(cls, _SCHEMA_ATTR, None)


def declared_casing(cls) -> Case | None:
    return getattr(cls, _CASING_ATTR, None)
