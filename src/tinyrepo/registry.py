"""
Type registry: declared Python type -> bind / fetch primitives.

The registry is built from a driver's typed operations. A type that is not
registered resolves to its nearest registered ancestor (breadth first over
the class bases), so an IntEnum binds as an int and a str subclass as a str.
``object`` is never reached by that walk; it is only the explicit fallback
used for None values and for fields declared ``object`` or ``Any``.
"""

from collections import deque
from collections.abc import Callable
from decimal import Decimal
from typing import Any

from tinyrepo.driver.base import Driver, Rows, Statement, TypeAdapter, passthrough
from tinyrepo.errors import UnsupportedType

Binder = Callable[[Statement, int, Any], None]
Fetcher = Callable[[Rows, Any], Any]

# Values of these types are acceptable where the key type is declared.
COUNTERPARTS: dict[type, tuple[type, ...]] = {
    float: (int,),
    Decimal: (int,),
    bytes: (bytearray, memoryview),
}

# Types that bind through another type's adapter.
ALIASES: dict[type, type] = {
    bytearray: bytes,
    memoryview: bytes,
}


class TypeRegistry:
    def __init__(self, driver: Driver):
        self.driver = driver
        self._adapters: dict[type, TypeAdapter] = dict(driver.typed_operations())
        for alias, target in ALIASES.items():
            if target in self._adapters:
                self._adapters.setdefault(alias, self._adapters[target])
        self._clear_caches()

    def _clear_caches(self) -> None:
        self._resolved: dict[type, type] = {}
        self._binders: dict[type, Binder] = {}
        self._name_fetchers: dict[type, Fetcher] = {}
        self._position_fetchers: dict[type, Fetcher] = {}

    def register(
        self,
        python_type: type,
        to_driver: Callable[[Any], Any] = passthrough,
        from_driver: Callable[[Any], Any] = passthrough,
    ) -> None:
        """
        Register an extension type.

        Args:
            python_type: The declared field type
            to_driver: Converts a value into something the driver can bind
            from_driver: Converts a raw column value back into python_type
        """
        self._adapters[python_type] = TypeAdapter(to_driver, from_driver)
        self._clear_caches()

    def resolve(self, python_type) -> type:
        """Return the registered type that python_type binds and fetches as."""
        if python_type is Any:
            return object
        if python_type in self._adapters:
            return python_type
        if python_type in self._resolved:
            return self._resolved[python_type]
        if not isinstance(python_type, type):
            raise UnsupportedType(python_type)

        queue = deque(python_type.__bases__)
        seen = set()
        while queue:
            base = queue.popleft()
            if base is object or base in seen:
                continue
            seen.add(base)
            if base in self._adapters:
                self._resolved[python_type] = base
                return base
            queue.extend(base.__bases__)
        raise UnsupportedType(python_type)

    def supports(self, python_type) -> bool:
        try:
            self.resolve(python_type)
        except UnsupportedType:
            return False
        return True

    def adapter(self, python_type) -> TypeAdapter:
        return self._adapters[self.resolve(python_type)]

    def bind(self, python_type) -> Binder:
        """Primitive that binds a value of python_type at a 1-based position."""
        if python_type not in self._binders:
            to_driver = self.adapter(python_type).to_driver

            def bind(statement: Statement, position: int, value: Any) -> None:
                statement.set(position, None if value is None else to_driver(value))

            self._binders[python_type] = bind
        return self._binders[python_type]

    def fetch_by_name(self, python_type) -> Fetcher:
        """Primitive that reads a column of the current row by name."""
        if python_type not in self._name_fetchers:
            from_driver = self.adapter(python_type).from_driver

            def fetch(rows: Rows, column: str) -> Any:
                raw = rows.value_by_name(column)
                return None if raw is None else from_driver(raw)

            self._name_fetchers[python_type] = fetch
        return self._name_fetchers[python_type]

    def fetch_by_position(self, python_type) -> Fetcher:
        """Primitive that reads a column of the current row by 1-based ordinal."""
        if python_type not in self._position_fetchers:
            from_driver = self.adapter(python_type).from_driver

            def fetch(rows: Rows, ordinal: int) -> Any:
                raw = rows.value_at(ordinal)
                return None if raw is None else from_driver(raw)

            self._position_fetchers[python_type] = fetch
        return self._position_fetchers[python_type]

    @staticmethod
    def is_compatible(value: Any, python_type) -> bool:
        """Whether a fetched value may be assigned to a field declared as python_type."""
        if value is None or python_type is object or python_type is Any:
            return True
        if isinstance(value, python_type):
            return True
        return isinstance(value, COUNTERPARTS.get(python_type, ()))
