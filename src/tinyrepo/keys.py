"""
Primary key policies.

A key field is either AUTOGENERATED, meaning the database assigns it on
insert, or PROVIDED by a KeyProvider that yields the next key on demand.
"""

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Protocol, runtime_checkable

from tinyrepo.errors import ConfigurationError


@runtime_checkable
class KeyProvider(Protocol):
    def next_key(self) -> Any: ...


class UuidV4:
    """Random UUID keys."""

    def next_key(self) -> uuid.UUID:
        return uuid.uuid4()


class CallableKeyProvider:
    """Adapts a zero-argument callable such as ``uuid.uuid4``."""

    def __init__(self, factory: Callable[[], Any]):
        self.factory = factory

    def next_key(self) -> Any:
        return self.factory()

    def __repr__(self) -> str:
        return f"CallableKeyProvider({self.factory!r})"


@dataclass(frozen=True)
class Autogenerated:
    pass


@dataclass(frozen=True)
class Provided:
    provider: KeyProvider

    def next_key(self) -> Any:
        return self.provider.next_key()


AUTOGENERATED = Autogenerated()

KeyPolicy = Autogenerated | Provided


def to_key_provider(spec, owner: str) -> KeyProvider:
    """
    Turn a declared key provider into a KeyProvider instance.

    Args:
        spec: A KeyProvider instance, a KeyProvider class, or a zero-argument callable
        owner: "Entity.field", used in error messages

    Returns:
        An object with a next_key() method
    """
    if isinstance(spec, type):
        try:
            instance = spec()
        except Exception as e:
            raise ConfigurationError(
                f"Failed to instantiate a new KeyProvider for {owner}: {spec.__name__}"
            ) from e
        if not isinstance(instance, KeyProvider):
            raise ConfigurationError(f"{spec.__name__} has no next_key() method ({owner})")
        return instance
    if isinstance(spec, KeyProvider):
        return spec
    if callable(spec):
        return CallableKeyProvider(spec)
    raise ConfigurationError(f"Invalid key provider for {owner}: {spec!r}")
