import logging
from collections.abc import Hashable

from restcontract.core.ports.typesystem import (
    ArrayOf,
    ObjectMembers,
    Primitive,
    Reference,
    SourceProgram,
    Untyped,
)
from restcontract.core.syntax import Identifier, classify_expression
from restcontract.models import ShapeValue

logger = logging.getLogger(__name__)

ARRAY_MARKER = "isArray"


class TypeName(str):
    """Name of a type the resolver could not expand, such as an imported interface.

    Compares as unknown: never reported as a discrepancy on either side.
    """


def array_shape(element: ShapeValue) -> dict[str, object]:
    return {ARRAY_MARKER: True, "type": element}


def is_array_shape(value: object) -> bool:
    return isinstance(value, dict) and value.get(ARRAY_MARKER) is True


class TypeShapeNormalizer:
    """Turn type handles into shape values.

    Untyped members get exactly one alias hop through an identifier
    initializer; members that still resolve to nothing are left out.
    """

    def __init__(self, program: SourceProgram) -> None:
        self._program = program

    def normalize(self, handle: Hashable | None) -> ShapeValue | None:
        if handle is None:
            return None
        return self._normalize(handle, ())

    def _normalize(self, handle: Hashable, seen: tuple[Hashable, ...]) -> ShapeValue | None:
        if handle in seen:
            logger.debug("Recursive type at %r, member dropped", handle)
            return None
        seen = (*seen, handle)
        match self._program.shape_of(handle):
            case Primitive(name=name):
                return name
            case Reference(name=name):
                return TypeName(name)
            case ArrayOf(element=element):
                normalized = self._normalize(element, seen)
                if normalized is None:
                    return None
                return array_shape(normalized)
            case ObjectMembers(members=members):
                shape: dict[str, ShapeValue] = {}
                for member in members:
                    value = self._normalize(member.type, seen)
                    if value is None:
                        value = self._alias_hop(member.initializer, seen)
                    if value is not None:
                        shape[member.name] = value
                return shape
            case Untyped():
                return None

    def _alias_hop(self, initializer: object, seen: tuple[Hashable, ...]) -> ShapeValue | None:
        if initializer is None:
            return None
        match classify_expression(initializer):
            case Identifier(node=node):
                target = self._program.resolve_identifier(node)
            case _:
                return None
        if target is None:
            return None
        # the hop target's own members may hop again, the target itself may not
        return self._normalize(target, seen)
