"""Resolve an entity's table name and its field <-> column name maps."""

import dataclasses
from dataclasses import dataclass

from tinyrepo import casing
from tinyrepo.casing import Case
from tinyrepo.entity.declarations import declared_casing, declared_schema, declared_table, spec_of
from tinyrepo.errors import SchemaConflict


@dataclass(frozen=True)
class TableNames:
    schema: str | None
    table: str
    field_to_column: dict[str, str]
    column_to_field: dict[str, str]


def default_table_name(entity_type: type) -> str:
    """The class name with its first character lowercased."""
    name = entity_type.__name__
    return name[:1].lower() + name[1:]


def qualified_table_name(entity_type: type) -> str:
    schema = declared_schema(entity_type)
    table = declared_table(entity_type) or default_table_name(entity_type)
    return f"{schema}.{table}" if schema else table


def column_name(field: dataclasses.Field, case: Case | None) -> str:
    """Explicit override, else the field name in the given casing, else the field name."""
    override = spec_of(field).name
    if override:
        return override
    if case is not None:
        return casing.convert(field.name, case)
    return field.name


def resolve(
    entity_type: type,
    fields: list[dataclasses.Field],
    default_casing: Case | None = None,
) -> TableNames:
    """
    Work out every name an entity's SQL needs.

    Args:
        entity_type: The entity dataclass
        fields: The fields stored as columns, in declaration order
        default_casing: Casing used when the entity declares none

    Returns:
        TableNames with both name maps in field order

    Raises:
        SchemaConflict: Two fields resolve to the same column
    """
    case = declared_casing(entity_type) or default_casing
    field_to_column: dict[str, str] = {}
    column_to_field: dict[str, str] = {}
    for field in fields:
        col = column_name(field, case)
        if col in column_to_field:
            raise SchemaConflict(entity_type, col, (column_to_field[col], field.name))
        field_to_column[field.name] = col
        column_to_field[col] = field.name

    return TableNames(
        schema=declared_schema(entity_type),
        table=qualified_table_name(entity_type),
        field_to_column=field_to_column,
        column_to_field=column_to_field,
    )
