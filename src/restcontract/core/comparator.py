"""Field-level comparison of a declared shape against the shape found in code."""

import json
from typing import Any

from restcontract.core.normalizer import TypeName, is_array_shape
from restcontract.models import Discrepancy, DiscrepancyKind, ShapeValue


def compare(declared: ShapeValue, actual: ShapeValue) -> list[Discrepancy]:
    """Return every discrepancy between ``declared`` and ``actual``.

    Both directions always run: keys the contract declares that the code lacks
    are ``missing-in-code``, keys the code has that the contract does not
    declare are ``undeclared-in-code``. A bare primitive or array on either
    side is compared as a whole. A type name that could not be resolved
    matches anything.
    """
    if _is_unresolved(declared) or _is_unresolved(actual):
        return []
    if not _is_object(declared) or not _is_object(actual):
        if _elements_equal(declared, actual):
            return []
        return [
            Discrepancy(
                kind=DiscrepancyKind.MISSING_IN_CODE,
                name=None,
                type=render_type(declared),
                actual=render_type(actual),
            )
        ]

    missing = [
        Discrepancy(kind=DiscrepancyKind.MISSING_IN_CODE, name=key, type=render_type(value))
        for key, value in _unmatched(declared, actual)
    ]
    undeclared = [
        Discrepancy(kind=DiscrepancyKind.UNDECLARED_IN_CODE, name=key, type=render_type(value))
        for key, value in _unmatched(actual, declared)
    ]
    return missing + undeclared


def shapes_equal(left: ShapeValue, right: ShapeValue) -> bool:
    return not compare(left, right)


def _is_object(value: Any) -> bool:
    return isinstance(value, dict) and not is_array_shape(value)


def _is_unresolved(value: Any) -> bool:
    return isinstance(value, TypeName)


def _unmatched(source: dict[str, Any], target: dict[str, Any]) -> list[tuple[str, Any]]:
    return [(key, value) for key, value in source.items() if not _has_counterpart(key, value, target)]


def _has_counterpart(key: str, value: Any, target: dict[str, Any]) -> bool:
    if key not in target:
        return False
    other = target[key]
    if _is_unresolved(value) or _is_unresolved(other):
        return True
    if is_array_shape(value) or is_array_shape(other):
        return is_array_shape(value) and is_array_shape(other) and _elements_equal(value["type"], other["type"])
    if isinstance(value, dict) and isinstance(other, dict):
        return not compare(value, other)
    if isinstance(value, dict) or isinstance(other, dict):
        return False
    return value == other


def _elements_equal(left: Any, right: Any) -> bool:
    if _is_unresolved(left) or _is_unresolved(right):
        return True
    if is_array_shape(left) or is_array_shape(right):
        return is_array_shape(left) and is_array_shape(right) and _elements_equal(left["type"], right["type"])
    if isinstance(left, dict) and isinstance(right, dict):
        return not compare(left, right)
    return left == right


def render_type(value: Any) -> str:
    """Render a shape value the way it reads in TypeScript: ``User[]``, ``{ id: number }``."""
    if is_array_shape(value):
        return f"{render_type(value['type'])}[]"
    if isinstance(value, dict):
        inner = "; ".join(f"{key}: {render_type(member)}" for key, member in value.items())
        return f"{{ {inner} }}" if inner else "{}"
    if isinstance(value, str):
        return value
    return json.dumps(value)


def render_discrepancy(discrepancy: Discrepancy) -> str:
    if discrepancy.name is None:
        return f"{discrepancy.actual} needs to be {discrepancy.type}"
    if discrepancy.kind is DiscrepancyKind.MISSING_IN_CODE:
        return f"Missing property: {discrepancy.name}: {discrepancy.type}"
    return f"Not declared in contract: {discrepancy.name}: {discrepancy.type}"


def render_discrepancies(discrepancies: list[Discrepancy]) -> str:
    return "\n".join(render_discrepancy(d) for d in discrepancies)
