"""Check the routes of one backend file against the project's contract."""

import logging

from tree_sitter import Node

from restcontract.core.comparator import compare, render_discrepancies, render_type
from restcontract.core.extractor import inspect_handler
from restcontract.core.normalizer import TypeName, TypeShapeNormalizer
from restcontract.core.ports.typesystem import SourceProgram
from restcontract.core.syntax import Identifier, classify_expression, node_text
from restcontract.models import Contract, Diagnostic, Endpoint, RouteFact, SemanticError, Severity

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT")


class RouteChecker:
    def __init__(self, program: SourceProgram, contract: Contract) -> None:
        self._program = program
        self._contract = contract
        self._normalizer = TypeShapeNormalizer(program)

    def check(self, routes: list[RouteFact]) -> list[SemanticError]:
        errors: list[SemanticError] = []
        for route in routes:
            errors.extend(self.check_route(route))
        return errors

    def check_route(self, route: RouteFact) -> list[SemanticError]:
        endpoint = self._contract.endpoint_for_path(route.path)
        if endpoint is None:
            return [SemanticError(range=route.call_range, message="Endpoint is not defined for this service.")]

        errors: list[SemanticError] = []
        if endpoint.method != route.method:
            errors.append(
                SemanticError(range=route.call_range, message=f"Wrong HTTP method use {endpoint.method} instead.")
            )

        bindings = inspect_handler(route.handler)
        if bindings.result is None:
            errors.append(SemanticError(range=route.call_range, message="Missing return value for endpoint."))
        else:
            error = self._check_response(endpoint, bindings.result)
            if error is not None:
                errors.append(error)

        if endpoint.method in BODY_METHODS:
            if bindings.request is None:
                errors.append(
                    SemanticError(
                        range=route.call_range,
                        message=f'Endpoint with method "{endpoint.method}" has a missing body handling.',
                    )
                )
            elif endpoint.request is not None:
                error = self._check_request(endpoint, bindings.request)
                if error is not None:
                    errors.append(error)
        return errors

    def _check_response(self, endpoint: Endpoint, result: Node) -> SemanticError | None:
        expression = classify_expression(result)
        if isinstance(expression, Identifier):
            handle = self._program.resolve_identifier(result)
        else:
            handle = self._program.resolve_type(result)
        actual = self._normalizer.normalize(handle)
        if isinstance(actual, TypeName):
            logger.debug("Return type %s of %s is not resolvable, skipped", actual, self._program.uri)
            return None
        result_range = self._program.range_of(result)

        if actual is None:
            if isinstance(expression, Identifier):
                logger.debug("Could not resolve %s in %s, skipped", expression.name, self._program.uri)
                return None
            if isinstance(endpoint.response, str):
                message = f"Return value needs to be {endpoint.response}."
            else:
                message = f"Wrong type.\nExpected:\n{render_type(endpoint.response)}\nActual:\n{node_text(result)}"
            return SemanticError(range=result_range, message=message)

        discrepancies = compare(endpoint.response, actual)
        if not discrepancies:
            return None
        return SemanticError(range=result_range, message=render_discrepancies(discrepancies))

    def _check_request(self, endpoint: Endpoint, binding: Node) -> SemanticError | None:
        actual = self._normalizer.normalize(self._program.resolve_type(binding))
        if actual is None:
            return None
        discrepancies = compare(endpoint.request or {}, actual)
        if not discrepancies:
            return None
        return SemanticError(range=self._program.range_of(binding), message=render_discrepancies(discrepancies))


def missing_configuration_error(program: SourceProgram, service_name: str) -> SemanticError:
    return SemanticError(
        range=program.range_of(program.root),
        message=f"Missing configuration for service {service_name}.",
    )


def to_diagnostics(errors: list[SemanticError]) -> list[Diagnostic]:
    return [Diagnostic(range=error.range, message=error.message, severity=Severity.ERROR) for error in errors]
