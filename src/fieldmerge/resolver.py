"""
Value resolution for merge fields.

A resolver turns a field name into the text that replaces every reference
to that field. The engine only ever calls resolve(), so anything exposing
that one method can stand in for the table-backed ValueResolver.

A field name of None means the reference pointed at an identifier that was
never declared; resolvers answer it with their default.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Mapping, Optional


class Resolver(ABC):
    """
    Strategy converting a field name into a replacement value.

    Implementations must be pure lookups as far as the engine is
    concerned: no I/O on the engine's streams, no assumptions about
    call order. resolve() is called once per reference, at the moment
    the reference is read, so values are never cached across references.
    """

    @abstractmethod
    def resolve(self, field_name: Optional[str]) -> str:
        raise NotImplementedError


class ValueResolver(Resolver):
    """
    Table-backed resolver with a configurable default.

    Usage:
        resolver = ValueResolver()
        resolver.set_values({"Name": "Otto Müstermanß"})
        resolver.set_value("Address", "Example Street 123")
        resolver.set_default_value("???")

    Not internally synchronized. Sharing one instance between
    concurrently running transforms requires a lock around mutation.
    """

    def __init__(self, values: Optional[Mapping[str, str]] = None, default: str = ""):
        self.values: Dict[str, str] = {}
        self.default = default
        if values:
            self.set_values(values)

    def set_value(self, field_name: str, value: str) -> None:
        self.values[field_name] = value

    def set_values(self, values: Mapping[str, str]) -> None:
        """Merge values into the table; later calls win for the same name."""
        self.values.update(values)

    def set_default_value(self, value: str) -> None:
        """Replace the value used for fields without an explicit value."""
        self.default = value

    def resolve(self, field_name: Optional[str]) -> str:
        if field_name is None:
            return self.default
        return self.values.get(field_name, self.default)

    def __contains__(self, field_name: object) -> bool:
        return field_name in self.values

    def __repr__(self) -> str:
        return f"ValueResolver(values={self.values!r}, default={self.default!r})"


class CallableResolver(Resolver):
    """
    Resolver computing values on demand.

    The callable receives the field name and returns the value, or None
    to fall back to the default. Unknown identifiers (field name None)
    go straight to the default without calling it.

    Example:
        CallableResolver(lambda name: name.upper(), default="???")
    """

    def __init__(self, func: Callable[[str], Optional[str]], default: str = ""):
        self.func = func
        self.default = default

    def set_default_value(self, value: str) -> None:
        self.default = value

    def resolve(self, field_name: Optional[str]) -> str:
        if field_name is None:
            return self.default
        value = self.func(field_name)
        if value is None:
            return self.default
        return value


__all__ = ["Resolver", "ValueResolver", "CallableResolver"]
