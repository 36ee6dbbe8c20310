"""
Entity bindings.

An EntityBinding is everything derived once from an entity dataclass: its
table, ordered fields, key policy, name maps and the SQL templates every
repository operation starts from. It is immutable after construction.
"""

import dataclasses
import types
import typing
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Union

from tinyrepo import sql
from tinyrepo.casing import Case
from tinyrepo.entity import names
from tinyrepo.entity.declarations import spec_of
from tinyrepo.errors import ConfigurationError, UnsupportedType
from tinyrepo.keys import AUTOGENERATED, KeyPolicy, Provided, to_key_provider
from tinyrepo.registry import TypeRegistry


def unwrap_optional(python_type):
    """Optional[X] and X | None declare X."""
    if typing.get_origin(python_type) in (Union, types.UnionType):
        args = [a for a in typing.get_args(python_type) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return python_type


def is_entity_type(python_type) -> bool:
    """A dataclass with at least one pk() field."""
    return (
        isinstance(python_type, type)
        and dataclasses.is_dataclass(python_type)
        and any(spec_of(f).primary_key for f in dataclasses.fields(python_type))
    )


@dataclass(frozen=True)
class FieldBinding:
    name: str
    python_type: Any
    column: str | None = None
    key_policy: KeyPolicy | None = None
    join_column: str | None = None
    references: str | None = None

    @property
    def is_key(self) -> bool:
        return self.key_policy is not None

    @property
    def is_child(self) -> bool:
        return self.join_column is not None


@dataclass(frozen=True)
class EntityBinding:
    entity_type: type
    schema: str | None
    table: str
    fields: tuple[FieldBinding, ...]
    key_fields: tuple[FieldBinding, ...]
    non_key_fields: tuple[FieldBinding, ...]
    child_fields: tuple[FieldBinding, ...]
    field_to_column: Mapping[str, str]
    column_to_field: Mapping[str, str]
    select_all_sql: str
    insert_sql: str
    insert_sql_no_key: str
    update_sql: str
    delete_sql: str

    @classmethod
    def for_entity(
        cls,
        entity_type: type,
        registry: TypeRegistry,
        default_casing: Case | None = None,
    ) -> "EntityBinding":
        """
        Derive the binding for an entity dataclass.

        Args:
            entity_type: The entity dataclass
            registry: Used to check every column field's type is supported
            default_casing: Column casing when the entity declares none

        Raises:
            ConfigurationError: The declarations are missing or inconsistent
            SchemaConflict: Two fields map to one column
            UnsupportedType: A column field's type has no bind/fetch primitive
        """
        entity_name = getattr(entity_type, "__name__", repr(entity_type))
        if not (isinstance(entity_type, type) and dataclasses.is_dataclass(entity_type)):
            raise ConfigurationError(f"{entity_name} is not a dataclass")

        try:
            hints = typing.get_type_hints(entity_type)
        except NameError as e:
            raise ConfigurationError(f"Cannot resolve the annotations of {entity_name}: {e}") from e

        declared = dataclasses.fields(entity_type)
        column_fields = [f for f in declared if not spec_of(f).join_to]
        resolved = names.resolve(entity_type, column_fields, default_casing)

        key_specs = [f for f in declared if spec_of(f).primary_key]
        if not key_specs:
            raise ConfigurationError(f"No field labeled as PK for {entity_name}")
        autogenerated = [f for f in key_specs if spec_of(f).autogenerated]
        if autogenerated and len(key_specs) > 1:
            raise ConfigurationError(
                f"{entity_name}: only one database generated key is supported per entity, "
                "and an autogenerated key cannot be combined with other keys"
            )

        bindings = []
        for f in declared:
            spec = spec_of(f)
            python_type = unwrap_optional(hints.get(f.name, Any))
            owner = f"{entity_name}.{f.name}"

            if spec.join_to:
                if not is_entity_type(python_type):
                    raise ConfigurationError(f"{owner} uses join_to but its type is not an entity")
                bindings.append(
                    FieldBinding(
                        name=f.name,
                        python_type=python_type,
                        join_column=spec.join_to,
                        references=spec.references,
                    )
                )
                continue

            if is_entity_type(python_type):
                raise ConfigurationError(f"{owner} is an entity type and must declare join_to")
            if not registry.supports(python_type):
                raise UnsupportedType(python_type, entity_type, f.name)

            policy = None
            if spec.primary_key:
                if spec.autogenerated:
                    policy = AUTOGENERATED
                elif spec.key_provider is None:
                    raise ConfigurationError(
                        f"{owner} is not autogenerated, so it must declare a key_provider"
                    )
                else:
                    policy = Provided(to_key_provider(spec.key_provider, owner))

            bindings.append(
                FieldBinding(
                    name=f.name,
                    python_type=python_type,
                    column=resolved.field_to_column[f.name],
                    key_policy=policy,
                )
            )

        key_fields = tuple(b for b in bindings if b.is_key)
        non_key_fields = tuple(b for b in bindings if not b.is_key and not b.is_child)
        all_columns = [b.column for b in bindings if not b.is_child]
        non_key_columns = [b.column for b in non_key_fields]
        table = resolved.table

        return cls(
            entity_type=entity_type,
            schema=resolved.schema,
            table=table,
            fields=tuple(bindings),
            key_fields=key_fields,
            non_key_fields=non_key_fields,
            child_fields=tuple(b for b in bindings if b.is_child),
            field_to_column=MappingProxyType(dict(resolved.field_to_column)),
            column_to_field=MappingProxyType(dict(resolved.column_to_field)),
            select_all_sql=sql.select_all(table),
            insert_sql=sql.insert(table, all_columns),
            insert_sql_no_key=sql.insert(table, non_key_columns),
            update_sql=sql.update(table, non_key_columns),
            delete_sql=sql.delete(table),
        )

    @property
    def entity_name(self) -> str:
        return self.entity_type.__name__

    @property
    def column_fields(self) -> tuple[FieldBinding, ...]:
        return tuple(f for f in self.fields if not f.is_child)

    @property
    def is_autogenerated(self) -> bool:
        return any(f.key_policy is AUTOGENERATED for f in self.key_fields)

    @property
    def is_multi_key(self) -> bool:
        return len(self.key_fields) > 1

    def field(self, name: str) -> FieldBinding:
        """Look up a field by field name or column name."""
        field_name = self.column_to_field.get(name, name)
        for f in self.fields:
            if f.name == field_name:
                return f
        raise ConfigurationError(f"{self.entity_name} has no column or field named {name!r}")

    def column_for(self, name: str) -> str:
        """Resolve a column or field name to a column, preferring column names."""
        if name in self.column_to_field:
            return name
        if name in self.field_to_column:
            return self.field_to_column[name]
        raise ConfigurationError(f"{self.entity_name} has no column or field named {name!r}")

    def key_of(self, record: Any) -> dict[str, Any]:
        """The record's key values by column, in key field order. Values may be None."""
        return {f.column: getattr(record, f.name) for f in self.key_fields}

    def values_of(self, record: Any, fields: tuple[FieldBinding, ...]) -> list[Any]:
        return [getattr(record, f.name) for f in fields]
