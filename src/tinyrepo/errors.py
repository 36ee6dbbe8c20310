"""
Exceptions raised by tinyrepo.

Every error raised by a repository operation derives from TinyRepoError.
Driver failures are wrapped in DbError with the original exception chained.
"""


class TinyRepoError(Exception):
    """Base class for all tinyrepo errors."""


class ConfigurationError(TinyRepoError):
    """Missing or conflicting entity declarations, or a misused repository."""


class UnsupportedType(TinyRepoError):
    """No bind or fetch primitive is registered for a type."""

    def __init__(self, python_type: type, entity: type | None = None, field: str | None = None):
        self.python_type = python_type
        self.entity = entity
        self.field = field
        where = f" for field: {entity.__name__}.{field}" if entity and field else ""
        super().__init__(f"Unsupported property type {_type_name(python_type)}{where}")


class TypeMismatch(TinyRepoError):
    """A fetched value is not compatible with the field's declared type."""

    def __init__(self, entity: type, field: str, expected: type, actual: type):
        self.entity = entity
        self.field = field
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Incompatible types for field: {entity.__name__}.{field}. "
            f"Wanted a {_type_name(expected)} but got a {_type_name(actual)}"
        )


class SchemaConflict(TinyRepoError):
    """Two fields of one entity resolve to the same column name."""

    def __init__(self, entity: type, column: str, fields: tuple[str, str]):
        self.entity = entity
        self.column = column
        self.fields = fields
        super().__init__(
            f"Fields {fields[0]!r} and {fields[1]!r} of {entity.__name__} "
            f"both map to column {column!r}"
        )


class AmbiguousResult(TinyRepoError):
    """A single-row query returned more than one row."""


class ConstructionError(TinyRepoError):
    """An entity could not be instantiated without arguments or assigned to."""


class NoGeneratedKey(TinyRepoError):
    """The database returned no generated key after an insert."""


class DbError(TinyRepoError):
    """A driver reported a failure. The driver's exception is the __cause__."""


def _type_name(t) -> str:
    return getattr(t, "__name__", None) or str(t)
