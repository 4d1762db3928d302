"""Load, validate and select service contracts from a contract document."""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from restcontract.errors import ConfigSemanticError, ConfigSyntaxError
from restcontract.models import Contract, Diagnostic, Range
from restcontract.treesitter.json_locations import JsonLocator

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent.parent / "schemas" / "contract.schema.json"
BODY_METHODS = ("POST", "PUT")
BODYLESS_METHODS = ("GET", "DELETE")


@lru_cache(maxsize=1)
def contract_schema() -> dict[str, Any]:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    schema = contract_schema()
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def parse_contracts(text: str) -> list[Contract]:
    """Parse a contract document into its services.

    Raises ``ConfigSyntaxError`` for malformed JSON or schema violations and
    ``ConfigSemanticError`` for duplicate names or base URIs and for request
    bodies that do not fit the endpoint method. Both carry diagnostics located
    in ``text``.
    """
    locator = JsonLocator(text)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        error_range = locator.first_error() or Range.of(exc.lineno - 1, exc.colno - 1, exc.lineno - 1, exc.colno)
        diagnostic = Diagnostic(range=error_range, message=f"Invalid JSON: {exc.msg}")
        raise ConfigSyntaxError(f"Invalid JSON: {exc.msg}", [diagnostic]) from exc

    schema_errors = sorted(_validator().iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
    if schema_errors:
        diagnostics = [
            Diagnostic(range=locator.range_of(list(error.absolute_path)), message=error.message)
            for error in schema_errors
        ]
        raise ConfigSyntaxError(f"Contract violates the schema ({len(diagnostics)} error(s))", diagnostics)

    semantic = check_semantics(data, locator)
    if semantic:
        raise ConfigSemanticError(f"Contract breaks {len(semantic)} rule(s)", semantic)

    return [Contract.model_validate(service) for service in data]


def check_semantics(services: list[dict[str, Any]], locator: JsonLocator) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    names: set[str] = set()
    base_uris: set[str] = set()
    for index, service in enumerate(services):
        name = service.get("name")
        if name in names:
            diagnostics.append(
                Diagnostic(
                    range=locator.range_of([index, "name"]),
                    message="Duplicate name, service name needs to be unique",
                )
            )
        elif name:
            names.add(name)

        base_uri = service.get("baseUri")
        if base_uri in base_uris:
            diagnostics.append(
                Diagnostic(
                    range=locator.range_of([index, "baseUri"]),
                    message="Duplicate baseUri, service baseUri needs to be unique",
                )
            )
        elif base_uri:
            base_uris.add(base_uri)

        for position, endpoint in enumerate(service.get("endpoints", [])):
            method = endpoint.get("method")
            if method in BODY_METHODS and "request" not in endpoint:
                diagnostics.append(
                    Diagnostic(
                        range=locator.range_of([index, "endpoints", position]),
                        message="Missing request field",
                    )
                )
            elif method in BODYLESS_METHODS and "request" in endpoint:
                diagnostics.append(
                    Diagnostic(
                        range=locator.range_of([index, "endpoints", position, "request"]),
                        message="Unnecessary request field",
                    )
                )
    return diagnostics


def select_contract(contracts: list[Contract], package_name: str) -> Contract | None:
    """The service named after the package, or the first one for an unnamed package."""
    if not package_name:
        return contracts[0] if contracts else None
    return next((contract for contract in contracts if contract.name == package_name), None)


def load_contract_file(path: Path) -> list[Contract]:
    logger.debug("Loading contract file %s", path)
    return parse_contracts(path.read_text(encoding="utf-8"))
