import logging
import typing
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Generic, Optional, TypeVar

from tinyrepo import db, sql
from tinyrepo.config import config
from tinyrepo.driver import Driver, Rows
from tinyrepo.entity.binding import EntityBinding
from tinyrepo.entity.mapper import EntityMapper
from tinyrepo.errors import ConfigurationError, DbError, NoGeneratedKey
from tinyrepo.keys import Provided
from tinyrepo.registry import TypeRegistry

logger = logging.getLogger(__name__)

E = TypeVar("E")


class Repository(Generic[E]):
    """
    Repository for one entity dataclass.
    Generates and runs all SQL for the entity's table.

    Either pass the entity type:
        babies = Repository(Baby)

    or bind it in a subclass:
        class BabyRepository(Repository[Baby]):
            pass

    Name arguments accept a column name or a field name; column names win
    when both match.
    """

    entity_type: Optional[type] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        for base in getattr(cls, "__orig_bases__", ()):
            origin = typing.get_origin(base)
            args = typing.get_args(base)
            if isinstance(origin, type) and issubclass(origin, Repository) and args:
                if isinstance(args[0], type):
                    cls.entity_type = args[0]
                    break

    def __init__(
        self,
        entity_type: Optional[type] = None,
        connection_supplier: Optional[db.ConnectionSupplier] = None,
        driver: Optional[Driver] = None,
        type_registry: Optional[TypeRegistry] = None,
        resolve_children: bool = True,
    ):
        entity_type = entity_type or type(self).entity_type
        if entity_type is None:
            raise ConfigurationError(
                "No entity type: pass one, or extend Repository[YourEntity]"
            )
        self.entity_type = entity_type
        self.connection_supplier = connection_supplier
        self.driver = driver or (type_registry.driver if type_registry else db.default_driver())
        self.registry = type_registry or TypeRegistry(self.driver)
        self.binding = EntityBinding.for_entity(entity_type, self.registry, config.column_casing)
        self.mapper = EntityMapper(
            self.binding,
            self.registry,
            self.driver,
            self._child_repository if resolve_children else None,
        )

    @classmethod
    def for_type(cls, entity_type: type, **kwargs) -> "Repository":
        return Repository(entity_type, **kwargs)

    def set_connection_supplier(self, supplier: Optional[db.ConnectionSupplier]) -> None:
        """Set the connection supplier for this repository only."""
        self.connection_supplier = supplier

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.binding.entity_name}, table={self.binding.table!r})"

    # =========================================================================
    # Lookups
    # =========================================================================

    def get(self, key) -> Optional[E]:
        """Get one record by its key; entities with several keys take a mapping."""
        return self._get_by_key(self._key_map(key))

    def get_all(self) -> list[E]:
        return self._query(self.binding.select_all_sql, [], many=True)

    def get_one_by(self, name: str, value) -> Optional[E]:
        """Get the record whose column equals value, or is in value when it is a collection."""
        return self.get_one_by_all({name: value})

    def get_one_by_all(self, column_values: Mapping[str, Any]) -> Optional[E]:
        return self._select(column_values, sql.AND, many=False)

    def get_one_by_any(self, column_values: Mapping[str, Any]) -> Optional[E]:
        return self._select(column_values, sql.OR, many=False)

    def get_many_by(self, name: str, value) -> list[E]:
        return self.get_many_by_all({name: value})

    def get_many_by_all(self, column_values: Mapping[str, Any]) -> list[E]:
        return self._select(column_values, sql.AND, many=True)

    def get_many_by_any(self, column_values: Mapping[str, Any]) -> list[E]:
        return self._select(column_values, sql.OR, many=True)

    # =========================================================================
    # Writes
    # =========================================================================

    def save(self, record: E, is_new: bool = False) -> E:
        """
        Insert or update a record.

        A record with a None key is inserted. Otherwise the key is looked up
        first: an existing row is updated, a missing one inserted. Pass
        is_new=True to skip the lookup when the record is known to be new.
        """
        if record is None:
            raise ValueError("Can't save a null record")
        key = self.binding.key_of(record)
        if is_new or any(v is None for v in key.values()):
            return self.insert(record)
        if self._get_by_key(key) is not None:
            return self.update(record)
        return self.insert(record)

    def insert(self, record: E) -> E:
        """
        Insert a record and return it as read back from the database.

        An autogenerated key that is None is left to the database. Keys with
        a key provider always receive a fresh key, which is also assigned to
        the record passed in.
        """
        if record is None:
            raise ValueError("Can't insert a null record")
        binding = self.binding
        key = binding.key_of(record)
        use_generated = binding.is_autogenerated and any(v is None for v in key.values())

        if use_generated:
            key_field = binding.key_fields[0]
            sql_text = binding.insert_sql_no_key
            args = binding.values_of(record, binding.non_key_fields)
            generated = (key_field.column,)
        else:
            for f in binding.key_fields:
                if isinstance(f.key_policy, Provided):
                    setattr(record, f.name, f.key_policy.next_key())
            sql_text = binding.insert_sql
            args = binding.values_of(record, binding.column_fields)
            generated = ()

        with self._connection() as conn, self._driver_errors("Insert failed"):
            self._log(sql_text, args)
            with self.mapper.prepare(conn, sql_text, args, generated) as statement:
                self.driver.execute_update(statement)
                if use_generated:
                    key = {key_field.column: self._generated_key(statement, key_field)}
                else:
                    key = binding.key_of(record)
            db.commit(conn, self.driver)

        return self._get_by_key(key)

    def update(self, record: E) -> Optional[E]:
        """
        Overwrite every non-key column of the record's row.

        Returns the updated record as read back, or None when no row has the
        record's key.
        """
        key = self.binding.key_of(record)
        if any(v is None for v in key.values()):
            raise ConfigurationError(
                f"Cannot update {self.binding.entity_name}: cannot update by a null key"
            )
        if not self.binding.non_key_fields:
            return self._get_by_key(key)

        sql_text = self.binding.update_sql + sql.where_all(key)
        args = self.binding.values_of(record, self.binding.non_key_fields) + list(key.values())
        count = self._update_count(sql_text, args, "Update failed")
        return None if count == 0 else self._get_by_key(key)

    def update_many(self, values: Mapping[str, Any], where: Mapping[str, Any]) -> int:
        """
        Update arbitrary rows.

        Args:
            values: Columns (or fields) to set, with their new values
            where: Columns (or fields) and values ANDed into the WHERE clause

        Returns:
            The number of rows updated
        """
        set_columns = self._columns(values)
        where_columns = self._columns(where)
        if not set_columns:
            return 0
        if not where_columns:
            raise ConfigurationError("update_many needs at least one WHERE column")
        if any(sql.is_many(v) for v in set_columns.values()):
            raise ConfigurationError("update_many cannot set a column to a collection")
        if self._matchable(where_columns, sql.AND) is None:
            return 0

        sql_text = sql.update(self.binding.table, list(set_columns)) + sql.where_all(where_columns)
        args = list(set_columns.values()) + list(where_columns.values())
        return self._update_count(sql_text, args, "Update failed")

    # =========================================================================
    # Deletes
    # =========================================================================

    def delete(self, record: E) -> bool:
        """Delete the record's row. Returns whether a row was deleted."""
        key = self.binding.key_of(record)
        if any(v is None for v in key.values()):
            raise ConfigurationError(
                f"Cannot delete {self.binding.entity_name}: cannot delete by a null key"
            )
        return self._delete(key, sql.AND) > 0

    def delete_by_pk(self, key) -> bool:
        return self._delete(self._key_map(key), sql.AND) > 0

    def delete_by(self, name: str, value) -> int:
        return self.delete_by_all({name: value})

    def delete_by_all(self, column_values: Mapping[str, Any]) -> int:
        """Delete rows matching every column. An empty mapping deletes nothing."""
        return self._delete(self._columns(column_values), sql.AND)

    def delete_by_any(self, column_values: Mapping[str, Any]) -> int:
        """Delete rows matching any column. An empty mapping deletes nothing."""
        return self._delete(self._columns(column_values), sql.OR)

    # =========================================================================
    # Raw SQL
    # =========================================================================

    def execute(self, sql_text: str, *args) -> list[E]:
        """
        Run arbitrary SQL with ? placeholders.

        Collections among args are spliced, one placeholder per element.
        Returns the mapped rows, or [] when the statement returns no rows.
        The statement is always committed, so ``update ... returning *``
        keeps its changes.
        """
        with self._connection() as conn, self._driver_errors(f"Failed to execute sql: {sql_text}"):
            self._log(sql_text, args)
            records = []
            with self.mapper.prepare(conn, sql_text, args) as statement:
                if self.driver.execute(statement):
                    records = self.mapper.map_many(self.driver.result_set(statement))
            db.commit(conn, self.driver)
            return records

    # =========================================================================
    # Internals
    # =========================================================================

    @contextmanager
    def _connection(self):
        with db.get_connection(self.connection_supplier, self.driver) as conn:
            yield conn

    @contextmanager
    def _driver_errors(self, message: str):
        try:
            yield
        except self.driver.error_types as e:
            raise DbError(f"{message}: {e}") from e

    def _log(self, sql_text: str, args) -> None:
        level = logging.INFO if config.echo_sql else logging.DEBUG
        logger.log(level, "%s [%d bind values]", sql_text, len(sql.bind_values(args)))

    def _child_repository(self, child_type: type) -> "Repository":
        return Repository(
            child_type,
            connection_supplier=self.connection_supplier,
            driver=self.driver,
            type_registry=self.registry,
            resolve_children=False,
        )

    def _columns(self, column_values: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        """Resolve names to columns, keeping order; unordered collections become tuples."""
        resolved = {}
        for name, value in (column_values or {}).items():
            if isinstance(value, (set, frozenset)):
                value = tuple(value)
            resolved[self.binding.column_for(name)] = value
        return resolved

    def _key_map(self, key) -> dict[str, Any]:
        key_fields = self.binding.key_fields
        if not isinstance(key, Mapping):
            if self.binding.is_multi_key:
                raise ConfigurationError(
                    f"{self.binding.entity_name} has multiple keys; "
                    "provide a mapping of key names to values"
                )
            return {key_fields[0].column: key}

        resolved = self._columns(key)
        missing = [f.column for f in key_fields if f.column not in resolved]
        if missing:
            raise ConfigurationError(f"Missing key column(s) {missing} for {self.binding.entity_name}")
        return {f.column: resolved[f.column] for f in key_fields}

    def _select(self, column_values, conjunction: str, many: bool):
        columns = self._columns(column_values)
        sql_text = self.binding.select_all_sql
        if columns:
            columns = self._matchable(columns, conjunction)
            if columns is None:
                return [] if many else None
            sql_text += sql.where(columns, conjunction)
        return self._query(sql_text, list(columns.values()), many)

    @staticmethod
    def _matchable(columns: dict[str, Any], conjunction: str) -> Optional[dict[str, Any]]:
        """
        Drop terms with an empty collection, since ``col in ()`` is not
        valid on every database.

        Returns None when no row can match: an empty collection under AND,
        or nothing but empty collections under OR.
        """
        empty = [c for c, v in columns.items() if sql.is_many(v) and not v]
        if not empty:
            return columns
        if conjunction == sql.AND:
            return None
        remaining = {c: v for c, v in columns.items() if c not in empty}
        return remaining or None

    def _get_by_key(self, key: dict[str, Any]) -> Optional[E]:
        return self._query(self.binding.select_all_sql + sql.where_all(key), list(key.values()), many=False)

    def _query(self, sql_text: str, args: list, many: bool):
        with self._connection() as conn, self._driver_errors(f"Failed to execute query: {sql_text}"):
            self._log(sql_text, args)
            with self.mapper.prepare(conn, sql_text, args) as statement:
                has_rows = self.driver.execute(statement)
                rows = self.driver.result_set(statement) if has_rows else Rows.empty()
                if many:
                    return self.mapper.map_many(rows)
                return self.mapper.map_one(rows)

    def _update_count(self, sql_text: str, args: list, message: str) -> int:
        with self._connection() as conn, self._driver_errors(message):
            self._log(sql_text, args)
            with self.mapper.prepare(conn, sql_text, args) as statement:
                count = self.driver.execute_update(statement)
            db.commit(conn, self.driver)
            return count

    def _delete(self, columns: dict[str, Any], conjunction: str) -> int:
        if not columns:
            return 0
        columns = self._matchable(columns, conjunction)
        if columns is None:
            return 0
        sql_text = self.binding.delete_sql + sql.where(columns, conjunction)
        return self._update_count(sql_text, list(columns.values()), "Delete failed")

    def _generated_key(self, statement, key_field):
        keys = self.driver.generated_keys(statement)
        if not keys.advance():
            raise NoGeneratedKey(
                f"No key was returned from the db on insert for {self.binding.entity_name}"
            )
        value = self.mapper.fetch(key_field, keys, 1)
        if value is None:
            raise NoGeneratedKey(
                f"The db returned a null key on insert for {self.binding.entity_name}"
            )
        return value
