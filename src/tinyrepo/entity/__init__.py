"""
Entity

Declarations for entity dataclasses, and the binding and mapping derived
from them.
"""

from tinyrepo.entity.binding import EntityBinding, FieldBinding, is_entity_type
from tinyrepo.entity.declarations import (
    column,
    column_casing,
    join_to,
    pk,
    schema_name,
    table_name,
)
from tinyrepo.entity.mapper import EntityMapper

__all__ = [
    "EntityBinding",
    "EntityMapper",
    "FieldBinding",
    "column",
    "column_casing",
    "is_entity_type",
    "join_to",
    "pk",
    "schema_name",
    "table_name",
]
