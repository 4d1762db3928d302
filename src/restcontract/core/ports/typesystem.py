"""Port for the parse/type-resolution capability the engine consumes.

The engine never checks types itself. It asks a ``TypeResolver`` to parse a
document into a ``SourceProgram`` and then walks the syntax tree, resolving
type handles and reading their structure through ``shape_of``.
"""

from collections.abc import Awaitable, Hashable
from dataclasses import dataclass
from typing import Any, Protocol

from restcontract.models import Range

TypeHandle = Hashable


@dataclass(frozen=True)
class Primitive:
    name: str


@dataclass(frozen=True)
class Reference:
    """A named type the resolver could not expand, e.g. an imported interface."""

    name: str


@dataclass(frozen=True)
class ArrayOf:
    element: TypeHandle


@dataclass(frozen=True)
class Member:
    name: str
    type: TypeHandle
    # expression the member was initialized with, used for the alias hop
    initializer: Any = None


@dataclass(frozen=True)
class ObjectMembers:
    members: tuple[Member, ...]


@dataclass(frozen=True)
class Untyped:
    pass


TypeView = Primitive | Reference | ArrayOf | ObjectMembers | Untyped


class SourceProgram(Protocol):
    uri: str
    root: Any

    def range_of(self, node: Any) -> Range: ...

    def resolve_type(self, node: Any) -> TypeHandle | None: ...

    def resolve_identifier(self, node: Any) -> TypeHandle | None: ...

    def shape_of(self, handle: TypeHandle) -> TypeView: ...


class TypeResolver(Protocol):
    def parse(self, uri: str, text: str) -> SourceProgram | Awaitable[SourceProgram]: ...
