"""
Unit tests for EntityMapper.

Run with: pytest src/tinyrepo/entity/mapper_test.py -v
"""

from dataclasses import dataclass
from unittest.mock import MagicMock
from uuid import UUID

import pytest

from tinyrepo.casing import Case
from tinyrepo.driver import Rows, SqliteDriver
from tinyrepo.entity.binding import EntityBinding
from tinyrepo.entity.declarations import column, column_casing, join_to, pk, table_name
from tinyrepo.entity.mapper import EntityMapper
from tinyrepo.errors import AmbiguousResult, ConfigurationError, ConstructionError, TypeMismatch
from tinyrepo.keys import UuidV4
from tinyrepo.registry import TypeRegistry

COLUMNS = ["pk", "name", "hair_color", "numberOfToes"]


@column_casing(Case.LOWER_CAMEL)
@dataclass
class Baby:
    pk: int = pk(autogenerated=True)
    name: str = None
    hair_color: str = column("hair_color")
    number_of_toes: int = None


@dataclass
class Tagged:
    id: UUID = pk(key_provider=UuidV4)


@dataclass
class Required:
    name: str
    id: int = pk(autogenerated=True)


@dataclass(frozen=True)
class Frozen:
    id: int = pk(autogenerated=True)


@dataclass
class Customer:
    id: int = pk(autogenerated=True)
    name: str = None


@table_name("orders")
@dataclass
class Order:
    id: int = pk(autogenerated=True)
    customer_id: int = None
    customer: Customer = join_to("customer_id")
    by_name: Customer = join_to("customer_name", references="name")


@dataclass
class Pair:
    a: int = pk(key_provider=lambda: 1)
    b: int = pk(key_provider=lambda: 2)


@pytest.fixture
def registry():
    return TypeRegistry(SqliteDriver())


def mapper_for(entity_type, registry, child_repository=None):
    binding = EntityBinding.for_entity(entity_type, registry)
    return EntityMapper(binding, registry, registry.driver, child_repository)


def baby_rows(*values):
    return Rows.from_values(COLUMNS, list(values))


class TestPrepare:
    """Tests for EntityMapper.prepare()"""

    def test_binds_in_argument_order(self, registry, memory_connection):
        mapper = mapper_for(Baby, registry)

        statement = mapper.prepare(memory_connection, "select ?, ?, ?", ["green", ["a", "b"], None])

        assert statement.parameters() == ["green", "a", "b", None]
        statement.close()

    def test_binds_through_type_adapters(self, registry, memory_connection):
        mapper = mapper_for(Baby, registry)
        uid = UUID("12345678-1234-5678-1234-567812345678")

        statement = mapper.prepare(memory_connection, "select ?, ?", [uid, True])

        assert statement.parameters() == [str(uid), 1]
        statement.close()


class TestMapOne:
    """Tests for EntityMapper.map_one()"""

    def test_no_rows(self, registry):
        assert mapper_for(Baby, registry).map_one(baby_rows()) is None

    def test_one_row(self, registry):
        baby = mapper_for(Baby, registry).map_one(baby_rows((1, "Ada", "red", 10)))

        assert baby == Baby(pk=1, name="Ada", hair_color="red", number_of_toes=10)

    def test_more_than_one_row_raises(self, registry):
        rows = baby_rows((1, "Ada", "red", 10), (2, "Bo", "brown", 9))

        with pytest.raises(AmbiguousResult, match="Multiple rows found"):
            mapper_for(Baby, registry).map_one(rows)

    def test_column_names_match_ignoring_case(self, registry):
        rows = Rows.from_values(["pk", "name", "hair_color", "numberofToes"], [(1, "Ada", None, 10)])

        baby = mapper_for(Baby, registry).map_one(rows)

        assert baby.number_of_toes == 10


class TestMapMany:
    def test_keeps_row_order(self, registry):
        rows = baby_rows((2, "Bo", None, 9), (1, "Ada", None, 10), (3, "Cy", None, 8))

        babies = mapper_for(Baby, registry).map_many(rows)

        assert [b.name for b in babies] == ["Bo", "Ada", "Cy"]

    def test_empty(self, registry):
        assert mapper_for(Baby, registry).map_many(baby_rows()) == []


class TestTypeChecks:
    def test_incompatible_value_raises(self, registry):
        rows = baby_rows((1, "Ada", "red", "ten"))

        with pytest.raises(TypeMismatch) as exc_info:
            mapper_for(Baby, registry).map_one(rows)

        assert str(exc_info.value) == (
            "Incompatible types for field: Baby.number_of_toes. Wanted a int but got a str"
        )
        assert exc_info.value.field == "number_of_toes"

    def test_failed_conversion_raises(self, registry):
        rows = Rows.from_values(["id"], [("not-a-uuid",)])

        with pytest.raises(TypeMismatch, match="Wanted a UUID but got a str"):
            mapper_for(Tagged, registry).map_one(rows)

    def test_nulls_are_accepted(self, registry):
        baby = mapper_for(Baby, registry).map_one(baby_rows((1, None, None, None)))

        assert baby == Baby(pk=1)


class TestConstruction:
    def test_entity_without_no_arg_constructor(self, registry):
        rows = Rows.from_values(["name", "id"], [("Ada", 1)])

        with pytest.raises(ConstructionError, match="without arguments"):
            mapper_for(Required, registry).map_one(rows)

    def test_frozen_entity(self, registry):
        rows = Rows.from_values(["id"], [(1,)])

        with pytest.raises(ConstructionError, match="Cannot assign Frozen.id"):
            mapper_for(Frozen, registry).map_one(rows)


class TestChildren:
    """Tests for EntityMapper.fetch_child()"""

    @pytest.fixture
    def customers(self, registry):
        repo = MagicMock()
        repo.binding = EntityBinding.for_entity(Customer, registry)
        repo.get_one_by.side_effect = lambda column, value: Customer(id=7, name="Ada")
        return repo

    def order_rows(self, customer_id, customer_name):
        rows = Rows.from_values(["id", "customer_id", "customer_name"], [(1, customer_id, customer_name)])
        rows.advance()
        return rows

    def test_child_resolved_by_key(self, registry, customers):
        mapper = mapper_for(Order, registry, lambda child_type: customers)
        field = mapper.binding.field("customer")

        child = mapper.fetch(field, self.order_rows(7, "Ada"))

        assert child == Customer(id=7, name="Ada")
        customers.get_one_by.assert_called_once_with("id", 7)

    def test_child_resolved_by_referenced_column(self, registry, customers):
        mapper = mapper_for(Order, registry, lambda child_type: customers)
        field = mapper.binding.field("by_name")

        mapper.fetch(field, self.order_rows(7, "Ada"))

        customers.get_one_by.assert_called_once_with("name", "Ada")

    def test_null_join_value_gives_none(self, registry, customers):
        mapper = mapper_for(Order, registry, lambda child_type: customers)

        assert mapper.fetch(mapper.binding.field("customer"), self.order_rows(None, None)) is None
        customers.get_one_by.assert_not_called()

    def test_children_left_unresolved_without_repository(self, registry):
        mapper = mapper_for(Order, registry)

        assert mapper.fetch(mapper.binding.field("customer"), self.order_rows(7, "Ada")) is None

    def test_child_repository_is_built_once(self, registry, customers):
        factory = MagicMock(return_value=customers)
        mapper = mapper_for(Order, registry, factory)
        rows = Rows.from_values(
            ["id", "customer_id", "customer_name"],
            [(1, 7, "Ada"), (2, 7, "Ada")],
        )

        mapper.map_many(rows)

        factory.assert_called_once_with(Customer)

    def test_ambiguous_lookup_column_raises(self, registry):
        @dataclass
        class Holder:
            id: int = pk(autogenerated=True)
            pair: Pair = join_to("pair_id")

        pairs = MagicMock()
        pairs.binding = EntityBinding.for_entity(Pair, registry)
        mapper = mapper_for(Holder, registry, lambda child_type: pairs)

        with pytest.raises(ConfigurationError, match="references="):
            mapper.fetch(mapper.binding.field("pair"), Rows.from_values(["pair_id"], [(1,)]))
