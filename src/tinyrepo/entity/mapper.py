"""
Entity mapper: binds statement parameters and turns result rows into entities.
"""

from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from tinyrepo import sql
from tinyrepo.driver.base import Driver, Rows, Statement
from tinyrepo.entity.binding import EntityBinding, FieldBinding
from tinyrepo.errors import AmbiguousResult, ConfigurationError, ConstructionError, TypeMismatch
from tinyrepo.registry import TypeRegistry

E = TypeVar("E")


class EntityMapper(Generic[E]):
    """
    Bridges an EntityBinding and a TypeRegistry.

    child_repository builds the repository used to resolve join_to fields.
    When it is None, child fields are left as None; repositories created for
    child lookups are built that way, which caps resolution at one hop.
    """

    def __init__(
        self,
        binding: EntityBinding,
        registry: TypeRegistry,
        driver: Driver,
        child_repository: Callable[[type], Any] | None = None,
    ):
        self.binding = binding
        self.registry = registry
        self.driver = driver
        self.child_repository = child_repository
        self._children: dict[type, Any] = {}

    # =========================================================================
    # Binding
    # =========================================================================

    def prepare(
        self,
        connection,
        sql_text: str,
        args: Iterable[Any] = (),
        generated_keys: tuple[str, ...] = (),
    ) -> Statement:
        """
        Prepare a statement and bind its arguments.

        Collections among args are spliced in place, one position per element.
        """
        statement = self.driver.prepare(connection, sql_text, generated_keys)
        try:
            for position, value in enumerate(sql.bind_values(args), start=1):
                self.bind(statement, position, value)
        except BaseException:
            statement.close()
            raise
        return statement

    def bind(self, statement: Statement, position: int, value: Any) -> None:
        python_type = object if value is None else type(value)
        self.registry.bind(python_type)(statement, position, value)

    # =========================================================================
    # Fetching
    # =========================================================================

    def fetch(self, field: FieldBinding, rows: Rows, key: str | int | None = None) -> Any:
        """
        Read one field from the current row.

        Args:
            field: The field being read; its declared type picks the fetcher
            rows: Result rows positioned on a row
            key: Column name or 1-based ordinal; defaults to the field's column

        Raises:
            TypeMismatch: The value does not fit the declared type
        """
        if field.is_child:
            return self.fetch_child(field, rows)
        if key is None:
            key = field.column

        if isinstance(key, int):
            fetcher = self.registry.fetch_by_position(field.python_type)
        else:
            fetcher = self.registry.fetch_by_name(field.python_type)

        try:
            value = fetcher(rows, key)
        except (ValueError, TypeError, ArithmeticError) as e:
            raw = rows.value_at(key) if isinstance(key, int) else rows.value_by_name(key)
            raise TypeMismatch(self.binding.entity_type, field.name, field.python_type, type(raw)) from e

        if not self.registry.is_compatible(value, field.python_type):
            raise TypeMismatch(self.binding.entity_type, field.name, field.python_type, type(value))
        return value

    def fetch_child(self, field: FieldBinding, rows: Rows) -> Any:
        """Load the single child entity referenced by this row's join column."""
        if self.child_repository is None:
            return None

        child_repo = self._child(field.python_type)
        lookup_column = self.child_lookup_column(field, child_repo.binding)
        lookup_type = child_repo.binding.field(lookup_column).python_type
        value = self.registry.fetch_by_name(lookup_type)(rows, field.join_column)
        if value is None:
            return None
        return child_repo.get_one_by(lookup_column, value)

    def child_lookup_column(self, field: FieldBinding, child: EntityBinding) -> str:
        if field.references:
            return child.column_for(field.references)
        if field.join_column in child.column_to_field or field.join_column in child.field_to_column:
            return child.column_for(field.join_column)
        if len(child.key_fields) == 1:
            return child.key_fields[0].column
        raise ConfigurationError(
            f"{self.binding.entity_name}.{field.name}: cannot tell which {child.entity_name} "
            f"column {field.join_column!r} refers to; declare join_to(..., references=...)"
        )

    def _child(self, child_type: type):
        if child_type not in self._children:
            self._children[child_type] = self.child_repository(child_type)
        return self._children[child_type]

    # =========================================================================
    # Materializing
    # =========================================================================

    def materialize(self, rows: Rows) -> E:
        """Build an entity from the current row."""
        entity_type = self.binding.entity_type
        try:
            record = entity_type()
        except TypeError as e:
            raise ConstructionError(
                f"{entity_type.__name__} cannot be constructed without arguments; "
                "give every field a default"
            ) from e

        for field in self.binding.fields:
            value = self.fetch(field, rows)
            try:
                setattr(record, field.name, value)
            except AttributeError as e:
                raise ConstructionError(
                    f"Cannot assign {entity_type.__name__}.{field.name}"
                ) from e
        return record

    def map_one(self, rows: Rows) -> E | None:
        if not rows.advance():
            return None
        record = self.materialize(rows)
        if rows.advance():
            raise AmbiguousResult(
                f"Multiple rows found for single row query on {self.binding.entity_name}"
            )
        return record

    def map_many(self, rows: Rows) -> list[E]:
        records = []
        while rows.advance():
            records.append(self.materialize(rows))
        return records
