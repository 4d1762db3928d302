"""Extract route declarations and HTTP client calls from a parsed TypeScript file."""

import logging
from dataclasses import dataclass, field
from enum import Enum

from tree_sitter import Node

from restcontract.core.ports.typesystem import SourceProgram
from restcontract.core.syntax import (
    Call,
    ClassDeclaration,
    Concatenation,
    ExpressionStatement,
    FunctionLiteral,
    Identifier,
    MemberAccess,
    ReturnStatement,
    StringLiteral,
    VariableStatement,
    chain_root,
    chain_tail_name,
    classify_expression,
    classify_statement,
    declarator_parts,
    node_text,
    top_level_statements,
)
from restcontract.models import CallFact, RouteFact
from restcontract.treesitter.parser import capture_texts, load_query

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "delete")
SEND_METHODS = ("send", "json")
BODY_ACCESSORS = ("body",)
ROUTER_FACTORIES = ("express", "Router")
ROUTER_IMPORTS = {"import.default": ("express",), "import.named": ("Router",), "import.namespace": ("express",)}
CLIENT_TYPE = "HttpClient"
CLIENT_IMPORTS = {"import.default": (CLIENT_TYPE,), "import.named": (CLIENT_TYPE,)}


class FileRole(str, Enum):
    BACKEND = "backend"
    FRONTEND = "frontend"
    NONE = "none"


@dataclass
class FileFacts:
    role: FileRole = FileRole.NONE
    routes: list[RouteFact] = field(default_factory=list)
    calls: list[CallFact] = field(default_factory=list)


@dataclass(frozen=True)
class HandlerBindings:
    """What an inline route handler sends back and what it reads as body."""

    result: Node | None = None
    request: Node | None = None


class SourceFactExtractor:
    def __init__(self, program: SourceProgram) -> None:
        self._program = program

    def extract(self) -> FileFacts:
        imports = capture_texts(load_query("typescript", "imports"), self._program.root)
        if _imports_any(imports, ROUTER_IMPORTS):
            return FileFacts(role=FileRole.BACKEND, routes=self.extract_routes())
        if _imports_any(imports, CLIENT_IMPORTS):
            return FileFacts(role=FileRole.FRONTEND, calls=self.extract_calls())
        return FileFacts()

    # --- backend ---------------------------------------------------------

    def extract_routes(self) -> list[RouteFact]:
        routes: list[RouteFact] = []
        router: str | None = None
        for statement in top_level_statements(self._program.root):
            match statement:
                case VariableStatement(declarators=declarators):
                    for declarator in declarators:
                        name, _, value = declarator_parts(declarator)
                        if value is not None and _is_router_factory(value):
                            router = name
                case ExpressionStatement(expression=expression) if router is not None:
                    fact = self._route_fact(expression, router)
                    if fact is not None:
                        routes.append(fact)
                case _:
                    pass
        logger.debug("Extracted %d route(s) from %s", len(routes), self._program.uri)
        return routes

    def _route_fact(self, expression: Node, router: str) -> RouteFact | None:
        match classify_expression(expression):
            case Call(callee=callee, arguments=arguments):
                pass
            case _:
                return None
        match classify_expression(callee):
            case MemberAccess(object=obj, property=prop) if prop.lower() in HTTP_METHODS:
                if node_text(obj) != router:
                    return None
            case _:
                return None

        path_node: Node | None = None
        path = ""
        handler: Node | None = None
        for argument in arguments:
            match classify_expression(argument):
                case StringLiteral(value=value) if path_node is None:
                    path_node, path = argument, value
                case Concatenation(text=text) if path_node is None:
                    path_node, path = argument, text
                case FunctionLiteral() if handler is None:
                    handler = argument
                case _:
                    pass
        if path_node is None:
            return None
        return RouteFact(
            method=prop.upper(),
            path=path,
            range=self._program.range_of(path_node),
            call_range=self._program.range_of(expression),
            handler_range=self._program.range_of(handler) if handler is not None else None,
            handler=handler,
        )

    # --- frontend --------------------------------------------------------

    def extract_calls(self) -> list[CallFact]:
        calls: list[CallFact] = []
        for statement in top_level_statements(self._program.root):
            match statement:
                case ClassDeclaration(members=members):
                    calls.extend(self._class_calls(members))
                case _:
                    pass
        logger.debug("Extracted %d client call(s) from %s", len(calls), self._program.uri)
        return calls

    def _class_calls(self, members: tuple[Node, ...]) -> list[CallFact]:
        calls: list[CallFact] = []
        client: str | None = None
        for member in members:
            if member.type != "method_definition":
                continue
            name = node_text(member.child_by_field_name("name"))
            if name == "constructor":
                client = _client_parameter(member) or client
                continue
            if client is None:
                continue
            fact = self._method_call(member, client)
            if fact is not None:
                calls.append(fact)
        return calls

    def _method_call(self, method: Node, client: str) -> CallFact | None:
        body = method.child_by_field_name("body")
        if body is None:
            return None
        for child in body.named_children:
            candidates: list[Node] = []
            match classify_statement(child):
                case VariableStatement(declarators=declarators):
                    candidates = [v for d in declarators if (v := declarator_parts(d)[2]) is not None]
                case ExpressionStatement(expression=expression):
                    candidates = [expression]
                case ReturnStatement(expression=expression) if expression is not None:
                    candidates = [expression]
                case _:
                    pass
            for candidate in candidates:
                fact = self._client_call(candidate, client)
                if fact is not None:
                    return fact
        return None

    def _client_call(self, expression: Node, client: str) -> CallFact | None:
        current: Node | None = expression
        while current is not None:
            match classify_expression(current):
                case Call(callee=callee, arguments=arguments):
                    pass
                case _:
                    return None
            match classify_expression(callee):
                case MemberAccess(object=obj, property=prop):
                    if prop.lower() in HTTP_METHODS and chain_tail_name(obj) == client:
                        return self._call_fact(prop, arguments)
                    # a chained call such as http.get(...).pipe(...)
                    current = obj
                case _:
                    return None
        return None

    def _call_fact(self, method: str, arguments: tuple[Node, ...]) -> CallFact | None:
        for argument in arguments:
            match classify_expression(argument):
                case StringLiteral() | Concatenation() | Identifier() | MemberAccess():
                    return CallFact(
                        method=method.upper(),
                        path=node_text(argument),
                        range=self._program.range_of(argument),
                    )
                case _:
                    return None
        return None


def inspect_handler(handler: Node | None) -> HandlerBindings:
    """Find the sent result and the request body binding of an inline handler.

    Only the handler's top-level statements are examined.
    """
    if handler is None:
        return HandlerBindings()
    match classify_expression(handler):
        case FunctionLiteral(parameters=parameters, statements=statements) if len(parameters) == 2:
            pass
        case _:
            return HandlerBindings()
    request_name, response_name = parameters
    result: Node | None = None
    request: Node | None = None
    for statement in statements:
        match classify_statement(statement):
            case ExpressionStatement(expression=expression):
                sent = _sent_value(expression, response_name)
                if sent is not None:
                    result = sent
            case VariableStatement(declarators=declarators):
                for declarator in declarators:
                    _, _, value = declarator_parts(declarator)
                    if value is not None and _reads_body(value, request_name):
                        request = declarator
            case _:
                pass
    return HandlerBindings(result=result, request=request)


def _sent_value(expression: Node, response_name: str) -> Node | None:
    match classify_expression(expression):
        case Call(callee=callee, arguments=arguments) if arguments:
            pass
        case _:
            return None
    match classify_expression(callee):
        case MemberAccess(property=prop) if prop in SEND_METHODS:
            root = chain_root(callee)
            if node_text(root) == response_name:
                return arguments[0]
    return None


def _reads_body(value: Node, request_name: str) -> bool:
    match classify_expression(value):
        case Call(callee=callee):
            target = callee
        case MemberAccess():
            target = value
        case _:
            return False
    match classify_expression(target):
        case MemberAccess(object=obj, property=prop) if prop in BODY_ACCESSORS:
            return node_text(obj) == request_name
    return False


def _is_router_factory(value: Node) -> bool:
    match classify_expression(value):
        case Call(callee=callee):
            pass
        case _:
            return False
    match classify_expression(callee):
        case Identifier(name=name):
            return name in ROUTER_FACTORIES
        case MemberAccess(property=prop):
            return prop in ROUTER_FACTORIES
    return False


def _client_parameter(constructor: Node) -> str | None:
    params = constructor.child_by_field_name("parameters")
    if params is None:
        return None
    for param in params.named_children:
        annotation = param.child_by_field_name("type")
        if annotation is None or CLIENT_TYPE not in _type_names(annotation):
            continue
        pattern = param.child_by_field_name("pattern")
        return node_text(pattern)
    return None


def _type_names(node: Node) -> set[str]:
    names = {node_text(node)} if node.type in ("type_identifier", "identifier") else set()
    for child in node.named_children:
        names |= _type_names(child)
    return names


def _imports_any(imports: dict[str, list[str]], wanted: dict[str, tuple[str, ...]]) -> bool:
    return any(name in imports.get(capture, []) for capture, names in wanted.items() for name in names)
