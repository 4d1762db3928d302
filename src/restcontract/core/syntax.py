"""Closed set of syntax categories the extractor cares about.

tree-sitter nodes are classified once into these variants so callers can
``match`` on them instead of comparing node type strings all over the place.
"""

from dataclasses import dataclass
from typing import Any

from tree_sitter import Node

FUNCTION_NODE_TYPES = frozenset({"arrow_function", "function_expression", "function"})
DECLARATION_NODE_TYPES = frozenset({"lexical_declaration", "variable_declaration"})
QUOTE_CHARACTERS = "'\"`"


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8")


def strip_quotes(text: str) -> str:
    return text.strip(QUOTE_CHARACTERS)


# --- expressions -------------------------------------------------------------


@dataclass(frozen=True)
class StringLiteral:
    node: Node
    value: str


@dataclass(frozen=True)
class Concatenation:
    """``'/users/' + id`` or a template string, kept as raw source text."""

    node: Node
    text: str


@dataclass(frozen=True)
class FunctionLiteral:
    node: Node
    parameters: tuple[str, ...]
    statements: tuple[Node, ...]


@dataclass(frozen=True)
class Identifier:
    node: Node
    name: str


@dataclass(frozen=True)
class MemberAccess:
    node: Node
    object: Node
    property: str


@dataclass(frozen=True)
class Call:
    node: Node
    callee: Node
    arguments: tuple[Node, ...]


@dataclass(frozen=True)
class OtherExpression:
    node: Node


Expression = StringLiteral | Concatenation | FunctionLiteral | Identifier | MemberAccess | Call | OtherExpression


def classify_expression(node: Node) -> Expression:
    kind = node.type
    if kind == "string":
        return StringLiteral(node, strip_quotes(node_text(node)))
    if kind in ("binary_expression", "template_string"):
        return Concatenation(node, node_text(node))
    if kind in FUNCTION_NODE_TYPES:
        return FunctionLiteral(node, _parameter_names(node), _body_statements(node))
    if kind in ("identifier", "shorthand_property_identifier"):
        return Identifier(node, node_text(node))
    if kind == "member_expression":
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is not None:
            return MemberAccess(node, obj, node_text(prop))
    if kind == "call_expression":
        callee = node.child_by_field_name("function")
        args = node.child_by_field_name("arguments")
        if callee is not None:
            arguments = tuple(args.named_children) if args is not None else ()
            return Call(node, callee, arguments)
    if kind in ("await_expression", "parenthesized_expression", "non_null_expression"):
        inner = node.named_children[0] if node.named_children else None
        if inner is not None:
            return classify_expression(inner)
    return OtherExpression(node)


def _parameter_names(function: Node) -> tuple[str, ...]:
    single = function.child_by_field_name("parameter")
    if single is not None:
        return (node_text(single),)
    params = function.child_by_field_name("parameters")
    if params is None:
        return ()
    names: list[str] = []
    for param in params.named_children:
        pattern = param.child_by_field_name("pattern")
        names.append(node_text(pattern if pattern is not None else param))
    return tuple(names)


def _body_statements(function: Node) -> tuple[Node, ...]:
    body = function.child_by_field_name("body")
    if body is None or body.type != "statement_block":
        return ()
    return tuple(child for child in body.named_children if child.type != "comment")


def chain_root(node: Node) -> Node:
    """Follow ``a.b(c).d`` down to ``a``."""
    current = node
    while True:
        match classify_expression(current):
            case MemberAccess(object=obj):
                current = obj
            case Call(callee=callee):
                current = callee
            case _:
                return current


def chain_tail_name(node: Node) -> str:
    """Name a chain ends on: ``this.http`` gives ``http``, ``http`` gives ``http``."""
    match classify_expression(node):
        case MemberAccess(property=prop):
            return prop
        case Identifier(name=name):
            return name
        case _:
            return node_text(node)


# --- statements --------------------------------------------------------------


@dataclass(frozen=True)
class ImportStatement:
    node: Node


@dataclass(frozen=True)
class VariableStatement:
    node: Node
    declarators: tuple[Node, ...]


@dataclass(frozen=True)
class ExpressionStatement:
    node: Node
    expression: Node


@dataclass(frozen=True)
class ReturnStatement:
    node: Node
    expression: Node | None


@dataclass(frozen=True)
class ClassDeclaration:
    node: Node
    name: str
    members: tuple[Node, ...]


@dataclass(frozen=True)
class OtherStatement:
    node: Node


Statement = ImportStatement | VariableStatement | ExpressionStatement | ReturnStatement | ClassDeclaration | OtherStatement


def classify_statement(node: Node) -> Statement:
    kind = node.type
    if kind == "export_statement":
        declaration = node.child_by_field_name("declaration")
        if declaration is not None:
            return classify_statement(declaration)
        return OtherStatement(node)
    if kind == "import_statement":
        return ImportStatement(node)
    if kind in DECLARATION_NODE_TYPES:
        declarators = tuple(c for c in node.named_children if c.type == "variable_declarator")
        return VariableStatement(node, declarators)
    if kind == "expression_statement" and node.named_children:
        return ExpressionStatement(node, node.named_children[0])
    if kind == "return_statement":
        expression = node.named_children[0] if node.named_children else None
        return ReturnStatement(node, expression)
    if kind in ("class_declaration", "abstract_class_declaration"):
        body = node.child_by_field_name("body")
        members = tuple(body.named_children) if body is not None else ()
        return ClassDeclaration(node, node_text(node.child_by_field_name("name")), members)
    return OtherStatement(node)


def top_level_statements(root: Node) -> list[Statement]:
    return [classify_statement(child) for child in root.named_children if child.type != "comment"]


def declarator_parts(declarator: Node) -> tuple[str, Any, Node | None]:
    """Return (name, type annotation node, initializer) of a variable declarator."""
    name = node_text(declarator.child_by_field_name("name"))
    annotation = declarator.child_by_field_name("type")
    value = declarator.child_by_field_name("value")
    return name, annotation, value


def annotation_type(annotation: Node | None) -> Node | None:
    """Unwrap ``: T`` to ``T``."""
    if annotation is None:
        return None
    if annotation.type == "type_annotation":
        return annotation.named_children[0] if annotation.named_children else None
    return annotation
