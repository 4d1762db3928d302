"""tree-sitter backed implementation of the type-resolution port.

Resolution is syntactic and confined to one file: annotations, literal
initializers and the interfaces, type aliases and classes declared at the top
level. Anything else resolves to ``Untyped`` or to a ``Reference`` by name.
"""

import logging
from dataclasses import dataclass, field

from tree_sitter import Node, Tree

from restcontract.core.ports.typesystem import (
    ArrayOf,
    Member,
    ObjectMembers,
    Primitive,
    Reference,
    TypeView,
    Untyped,
)
from restcontract.core.syntax import (
    DECLARATION_NODE_TYPES,
    FUNCTION_NODE_TYPES,
    annotation_type,
    node_text,
    strip_quotes,
)
from restcontract.models import Range
from restcontract.treesitter.parser import node_range, parse_source

logger = logging.getLogger(__name__)

LANGUAGE = "typescript"
PRIMITIVE_NAMES = frozenset({"string", "number", "boolean"})

_ARRAY_GENERICS = frozenset({"Array", "ReadonlyArray"})
_TRANSPARENT_GENERICS = frozenset({"Promise", "Readonly", "Observable"})
_NULLISH = frozenset({"null", "undefined", "void"})
_SCOPE_NODE_TYPES = frozenset({"program", "statement_block"})
_CALLABLE_NODE_TYPES = FUNCTION_NODE_TYPES | {"function_declaration", "method_definition", "generator_function_declaration"}
_NAMED_TYPE_NODE_TYPES = frozenset(
    {"interface_declaration", "type_alias_declaration", "class_declaration", "abstract_class_declaration", "enum_declaration"}
)
_COMPARISON_OPERATORS = frozenset({"==", "===", "!=", "!==", "<", ">", "<=", ">=", "&&", "||", "instanceof", "in"})
_ARITHMETIC_OPERATORS = frozenset({"-", "*", "/", "%", "**", "&", "|", "^", "<<", ">>", ">>>"})


@dataclass(frozen=True)
class TsType:
    """Handle to a type written in the source (``type``), implied by an
    expression (``expr``) or absent altogether (``untyped``)."""

    kind: str
    start_byte: int
    end_byte: int
    node_type: str
    node: Node | None = field(default=None, compare=False, hash=False, repr=False)


def _type(node: Node) -> TsType:
    return TsType("type", node.start_byte, node.end_byte, node.type, node)


def _expr(node: Node) -> TsType:
    return TsType("expr", node.start_byte, node.end_byte, node.type, node)


def _untyped(node: Node) -> TsType:
    return TsType("untyped", node.start_byte, node.end_byte, node.type, node)


class TypeScriptProgram:
    def __init__(self, uri: str, tree: Tree) -> None:
        self.uri = uri
        self.tree = tree
        self.root = tree.root_node
        self._named_types: dict[str, Node] | None = None

    def range_of(self, node: Node) -> Range:
        return node_range(node)

    # --- handles ---------------------------------------------------------

    def resolve_type(self, node: Node) -> TsType | None:
        if node.type in ("variable_declarator", "required_parameter", "optional_parameter", "public_field_definition"):
            return self._declared_type(node)
        if node.type in ("identifier", "shorthand_property_identifier"):
            return self.resolve_identifier(node)
        return _expr(node)

    def resolve_identifier(self, node: Node) -> TsType | None:
        binding = self._find_binding(node_text(node), node)
        if binding is None:
            return None
        return self._declared_type(binding)

    def _declared_type(self, declaration: Node) -> TsType | None:
        annotated = annotation_type(declaration.child_by_field_name("type"))
        if annotated is not None:
            return _type(annotated)
        value = declaration.child_by_field_name("value")
        if value is not None:
            return _expr(value)
        return None

    def _find_binding(self, name: str, node: Node) -> Node | None:
        current = node.parent
        while current is not None:
            if current.type in _SCOPE_NODE_TYPES:
                for declarator in _scope_declarators(current):
                    if node_text(declarator.child_by_field_name("name")) == name:
                        return declarator
            if current.type in _CALLABLE_NODE_TYPES:
                for param in _parameters(current):
                    pattern = param.child_by_field_name("pattern")
                    if node_text(pattern if pattern is not None else param) == name:
                        return param
            current = current.parent
        return None

    # --- views -----------------------------------------------------------

    def shape_of(self, handle: TsType) -> TypeView:
        node = handle.node
        if node is None or handle.kind == "untyped":
            return Untyped()
        if handle.kind == "type":
            return self._type_view(node)
        return self._expr_view(node)

    def _type_view(self, node: Node) -> TypeView:
        kind = node.type
        if kind == "predefined_type":
            text = node_text(node)
            return Primitive(text) if text in PRIMITIVE_NAMES else Untyped()
        if kind == "type_identifier":
            return self._named_type_view(node_text(node))
        if kind == "nested_type_identifier":
            return Reference(node_text(node))
        if kind == "generic_type":
            name = node_text(node.child_by_field_name("name"))
            arguments = node.child_by_field_name("type_arguments")
            first = arguments.named_children[0] if arguments is not None and arguments.named_children else None
            if name in _ARRAY_GENERICS and first is not None:
                return ArrayOf(_type(first))
            if name in _TRANSPARENT_GENERICS and first is not None:
                return self._type_view(first)
            return self._named_type_view(name)
        if kind == "array_type" and node.named_children:
            return ArrayOf(_type(node.named_children[0]))
        if kind in ("object_type", "interface_body"):
            return ObjectMembers(tuple(_signature_members(node)))
        if kind in ("parenthesized_type", "readonly_type", "type_annotation") and node.named_children:
            return self._type_view(node.named_children[-1])
        if kind == "literal_type" and node.named_children:
            return _literal_view(node.named_children[0])
        if kind == "union_type":
            return self._union_view(node)
        return Untyped()

    def _named_type_view(self, name: str) -> TypeView:
        if name in PRIMITIVE_NAMES:
            return Primitive(name)
        declaration = self._named_types_index().get(name)
        if declaration is None:
            return Reference(name)
        kind = declaration.type
        if kind == "interface_declaration":
            body = declaration.child_by_field_name("body")
            return self._type_view(body) if body is not None else ObjectMembers(())
        if kind == "type_alias_declaration":
            value = declaration.child_by_field_name("value")
            return self._type_view(value) if value is not None else Untyped()
        if kind in ("class_declaration", "abstract_class_declaration"):
            body = declaration.child_by_field_name("body")
            return ObjectMembers(tuple(_class_members(body))) if body is not None else ObjectMembers(())
        return Reference(name)

    def _union_view(self, node: Node) -> TypeView:
        views = [
            self._type_view(member)
            for member in _flatten_union(node)
            if node_text(member) not in _NULLISH
        ]
        if not views:
            return Untyped()
        first = views[0]
        if all(view == first for view in views[1:]):
            return first
        return Untyped()

    def _expr_view(self, node: Node) -> TypeView:
        kind = node.type
        if kind in ("string", "template_string", "number", "true", "false"):
            return _literal_view(node)
        if kind == "object":
            return ObjectMembers(tuple(_object_members(node)))
        if kind == "array":
            elements = [child for child in node.named_children if child.type != "comment"]
            if not elements:
                return Untyped()
            return ArrayOf(_expr(elements[0]))
        if kind in ("as_expression", "satisfies_expression") and len(node.named_children) > 1:
            return self._type_view(node.named_children[1])
        if kind in ("parenthesized_expression", "await_expression", "non_null_expression") and node.named_children:
            return self._expr_view(node.named_children[0])
        if kind == "binary_expression":
            return self._binary_view(node)
        if kind == "unary_expression":
            operator = node_text(node.child_by_field_name("operator"))
            if operator == "!":
                return Primitive("boolean")
            if operator in ("-", "+", "~"):
                return Primitive("number")
            if operator == "typeof":
                return Primitive("string")
        return Untyped()

    def _binary_view(self, node: Node) -> TypeView:
        operator = node_text(node.child_by_field_name("operator"))
        if operator in _COMPARISON_OPERATORS:
            return Primitive("boolean")
        if operator in _ARITHMETIC_OPERATORS:
            return Primitive("number")
        if operator == "+":
            sides = [node.child_by_field_name("left"), node.child_by_field_name("right")]
            views = [self._expr_view(side) for side in sides if side is not None]
            if Primitive("string") in views:
                return Primitive("string")
            if views and all(view == Primitive("number") for view in views):
                return Primitive("number")
        return Untyped()

    def _named_types_index(self) -> dict[str, Node]:
        if self._named_types is None:
            index: dict[str, Node] = {}
            for child in self.root.named_children:
                declaration = child.child_by_field_name("declaration") if child.type == "export_statement" else child
                if declaration is not None and declaration.type in _NAMED_TYPE_NODE_TYPES:
                    name = node_text(declaration.child_by_field_name("name"))
                    index.setdefault(name, declaration)
            self._named_types = index
        return self._named_types


class TypeScriptResolver:
    """Parses TypeScript text into a ``TypeScriptProgram``."""

    def parse(self, uri: str, text: str) -> TypeScriptProgram:
        tree = parse_source(text, LANGUAGE)
        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s, continuing with partial tree", uri)
        return TypeScriptProgram(uri, tree)


def _literal_view(node: Node) -> TypeView:
    kind = node.type
    if kind in ("string", "template_string"):
        return Primitive("string")
    if kind == "number":
        return Primitive("number")
    if kind in ("true", "false"):
        return Primitive("boolean")
    return Untyped()


def _flatten_union(node: Node) -> list[Node]:
    members: list[Node] = []
    for child in node.named_children:
        if child.type == "union_type":
            members.extend(_flatten_union(child))
        else:
            members.append(child)
    return members


def _member_name(node: Node | None) -> str:
    return strip_quotes(node_text(node))


def _signature_members(body: Node) -> list[Member]:
    members: list[Member] = []
    for child in body.named_children:
        if child.type != "property_signature":
            continue
        name = _member_name(child.child_by_field_name("name"))
        annotated = annotation_type(child.child_by_field_name("type"))
        members.append(Member(name, _type(annotated) if annotated is not None else _untyped(child)))
    return members


def _class_members(body: Node) -> list[Member]:
    members: list[Member] = []
    for child in body.named_children:
        if child.type != "public_field_definition":
            continue
        if any(modifier.type == "static" or node_text(modifier) == "static" for modifier in child.children):
            continue
        name = _member_name(child.child_by_field_name("name"))
        annotated = annotation_type(child.child_by_field_name("type"))
        value = child.child_by_field_name("value")
        if annotated is not None:
            handle = _type(annotated)
        elif value is not None:
            handle = _expr(value)
        else:
            handle = _untyped(child)
        members.append(Member(name, handle, value))
    return members


def _object_members(node: Node) -> list[Member]:
    members: list[Member] = []
    for child in node.named_children:
        if child.type == "pair":
            key = child.child_by_field_name("key")
            value = child.child_by_field_name("value")
            if value is None:
                continue
            members.append(Member(_member_name(key), _expr(value), value))
        elif child.type == "shorthand_property_identifier":
            members.append(Member(node_text(child), _untyped(child), child))
    return members


def _scope_declarators(scope: Node) -> list[Node]:
    declarators: list[Node] = []
    for child in scope.named_children:
        statement = child.child_by_field_name("declaration") if child.type == "export_statement" else child
        if statement is not None and statement.type in DECLARATION_NODE_TYPES:
            declarators.extend(c for c in statement.named_children if c.type == "variable_declarator")
    return declarators


def _parameters(callable_node: Node) -> list[Node]:
    single = callable_node.child_by_field_name("parameter")
    if single is not None:
        return [single]
    params = callable_node.child_by_field_name("parameters")
    if params is None:
        return []
    return list(params.named_children)
