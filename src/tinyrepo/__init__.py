"""
tinyrepo: a small repository-per-entity ORM over DB-API drivers.
"""

from tinyrepo.casing import Case
from tinyrepo.db import (
    clear_connection_override,
    clear_connection_supplier,
    set_connection_override,
    set_connection_supplier,
    set_default_driver,
)
from tinyrepo.entity import column, column_casing, join_to, pk, schema_name, table_name
from tinyrepo.errors import (
    AmbiguousResult,
    ConfigurationError,
    ConstructionError,
    DbError,
    NoGeneratedKey,
    SchemaConflict,
    TinyRepoError,
    TypeMismatch,
    UnsupportedType,
)
from tinyrepo.keys import KeyProvider, UuidV4
from tinyrepo.registry import TypeRegistry
from tinyrepo.repository import Repository

__all__ = [
    "AmbiguousResult",
    "Case",
    "ConfigurationError",
    "ConstructionError",
    "DbError",
    "KeyProvider",
    "NoGeneratedKey",
    "Repository",
    "SchemaConflict",
    "TinyRepoError",
    "TypeMismatch",
    "TypeRegistry",
    "UnsupportedType",
    "UuidV4",
    "clear_connection_override",
    "clear_connection_supplier",
    "column",
    "column_casing",
    "join_to",
    "pk",
    "schema_name",
    "set_connection_override",
    "set_connection_supplier",
    "set_default_driver",
    "table_name",
]
