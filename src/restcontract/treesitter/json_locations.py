"""Map JSON paths such as ``[0, "endpoints", 2]`` to source ranges."""

from collections.abc import Sequence

from tree_sitter import Node, Tree

from restcontract.core.syntax import node_text, strip_quotes
from restcontract.models import Range
from restcontract.treesitter.parser import node_range, parse_source

LANGUAGE = "json"

PathElement = str | int


class JsonLocator:
    def __init__(self, text: str) -> None:
        self.tree: Tree = parse_source(text, LANGUAGE)

    @property
    def has_syntax_error(self) -> bool:
        return self.tree.root_node.has_error

    def first_error(self) -> Range | None:
        node = _first_error_node(self.tree.root_node)
        return node_range(node) if node is not None else None

    def value_node(self, path: Sequence[PathElement]) -> Node | None:
        current = _document_value(self.tree.root_node)
        for element in path:
            if current is None:
                return None
            if isinstance(element, int):
                current = _array_item(current, element)
            else:
                pair = _object_pair(current, element)
                current = pair.child_by_field_name("value") if pair is not None else None
        return current

    def key_node(self, path: Sequence[PathElement]) -> Node | None:
        """The key of the last path element when it names an object member."""
        if not path or not isinstance(path[-1], str):
            return None
        parent = self.value_node(path[:-1])
        if parent is None:
            return None
        pair = _object_pair(parent, path[-1])
        return pair.child_by_field_name("key") if pair is not None else None

    def range_of(self, path: Sequence[PathElement]) -> Range:
        """Range of the deepest node along ``path`` that exists."""
        for depth in range(len(path), -1, -1):
            node = self.value_node(path[:depth])
            if node is not None:
                return node_range(node)
        return node_range(self.tree.root_node)


def _document_value(root: Node) -> Node | None:
    values = [child for child in root.named_children if child.type != "comment"]
    return values[0] if values else None


def _array_item(node: Node, index: int) -> Node | None:
    if node.type != "array":
        return None
    items = [child for child in node.named_children if child.type != "comment"]
    return items[index] if 0 <= index < len(items) else None


def _object_pair(node: Node, key: str) -> Node | None:
    if node.type != "object":
        return None
    for child in node.named_children:
        if child.type == "pair" and strip_quotes(node_text(child.child_by_field_name("key"))) == key:
            return child
    return None


def _first_error_node(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_missing:
            found = _first_error_node(child)
            if found is not None:
                return found
    return None
