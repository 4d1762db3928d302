"""Unit tests for checking backend routes against a contract."""

from __future__ import annotations

from typing import Any

from restcontract.core.analysis import RouteChecker, missing_configuration_error, to_diagnostics
from restcontract.core.extractor import SourceFactExtractor
from restcontract.models import Contract, SemanticError, Severity
from tests.conftest import BACKEND_SOURCE, HELLO_CONTRACT, parse_ts


def _check(source: str, contract: dict[str, Any]) -> list[SemanticError]:
    program = parse_ts(source)
    routes = SourceFactExtractor(program).extract().routes
    return RouteChecker(program, Contract.model_validate(contract)).check(routes)


def _contract(*endpoints: dict[str, Any]) -> dict[str, Any]:
    return {"name": "svc", "baseUri": "http://localhost", "endpoints": list(endpoints)}


class TestHelloEndToEnd:
    def test_matching_request_and_response(self) -> None:
        assert _check(BACKEND_SOURCE, HELLO_CONTRACT[0]) == []

    def test_extra_declared_request_field(self) -> None:
        contract = _contract(
            {
                "method": "POST",
                "path": "/hello",
                "request": {"message": "string", "flag": "boolean"},
                "response": "string",
            }
        )
        errors = _check(BACKEND_SOURCE, contract)
        assert len(errors) == 1
        assert errors[0].message == "Missing property: flag: boolean"
        # reported on the request binding
        assert errors[0].range.start.line == 9


class TestRouteChecker:
    def test_endpoint_not_in_contract(self) -> None:
        errors = _check(BACKEND_SOURCE, _contract())
        assert [e.message for e in errors] == ["Endpoint is not defined for this service."]
        assert errors[0].range.start.line == 8

    def test_wrong_method(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.get('/items', (req, res) => { res.send(1); });
"""
        errors = _check(source, _contract({"method": "DELETE", "path": "/items", "response": "number"}))
        assert [e.message for e in errors] == ["Wrong HTTP method use DELETE instead."]

    def test_missing_return_value(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.get('/items', (req, res) => { console.log('nothing'); });
"""
        errors = _check(source, _contract({"method": "GET", "path": "/items", "response": "string"}))
        assert [e.message for e in errors] == ["Missing return value for endpoint."]

    def test_wrong_primitive_literal(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.get('/count', (req, res) => { res.send('many'); });
"""
        errors = _check(source, _contract({"method": "GET", "path": "/count", "response": "number"}))
        assert [e.message for e in errors] == ["string needs to be number"]
        assert errors[0].range.start.line == 2

    def test_object_response_discrepancies(self) -> None:
        source = """\
import express from 'express';
interface User { id: number; name: string; admin: boolean }
const app = express();
app.get('/user', (req, res) => {
  const user: User = load();
  res.json(user);
});
"""
        contract = _contract({"method": "GET", "path": "/user", "response": {"id": "number", "name": "string"}})
        errors = _check(source, contract)
        assert [e.message for e in errors] == ["Not declared in contract: admin: boolean"]

    def test_array_response(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.get('/ids', (req, res) => {
  const ids: number[] = [];
  res.send(ids);
});
"""
        contract = _contract({"method": "GET", "path": "/ids", "response": {"ids": {"isArray": True, "type": "number"}}})
        errors = _check(source, contract)
        assert len(errors) == 1
        assert errors[0].message == "number[] needs to be { ids: number[] }"

    def test_unresolvable_identifier_is_skipped(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.get('/x', (req, res) => { res.send(fromElsewhere); });
"""
        assert _check(source, _contract({"method": "GET", "path": "/x", "response": "string"})) == []

    def test_imported_return_type_is_skipped(self) -> None:
        source = """\
import express from 'express';
import { User } from './models';
const app = express();
app.get('/me', (req, res) => {
  const user: User = load();
  res.json(user);
});
"""
        assert _check(source, _contract({"method": "GET", "path": "/me", "response": {"id": "number"}})) == []

    def test_imported_member_type_is_not_compared(self) -> None:
        source = """\
import express from 'express';
import { Owner } from './models';
interface Item { id: number; owner: Owner }
const app = express();
app.get('/item', (req, res) => {
  const item: Item = load();
  res.json(item);
});
"""
        owner = {"name": "string"}
        matching = _contract({"method": "GET", "path": "/item", "response": {"id": "number", "owner": owner}})
        assert _check(source, matching) == []

        other = _contract({"method": "GET", "path": "/item", "response": {"owner": owner, "sku": "string"}})
        errors = _check(source, other)
        assert [e.message for e in errors] == ["Missing property: sku: string\nNot declared in contract: id: number"]

    def test_unresolvable_expression_against_object(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.get('/x', (req, res) => { res.send(compute()); });
"""
        errors = _check(source, _contract({"method": "GET", "path": "/x", "response": {"id": "number"}}))
        assert [e.message for e in errors] == ["Wrong type.\nExpected:\n{ id: number }\nActual:\ncompute()"]

    def test_unresolvable_expression_against_primitive(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.get('/x', (req, res) => { res.send(compute()); });
"""
        errors = _check(source, _contract({"method": "GET", "path": "/x", "response": "string"}))
        assert [e.message for e in errors] == ["Return value needs to be string."]

    def test_missing_body_handling(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.put('/items', (req, res) => { res.send('ok'); });
"""
        contract = _contract({"method": "PUT", "path": "/items", "request": {"id": "number"}, "response": "string"})
        errors = _check(source, contract)
        assert [e.message for e in errors] == ['Endpoint with method "PUT" has a missing body handling.']

    def test_untyped_request_binding_is_skipped(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.post('/items', (req, res) => {
  const body = req.body();
  res.send('ok');
});
"""
        contract = _contract({"method": "POST", "path": "/items", "request": {"id": "number"}, "response": "string"})
        assert _check(source, contract) == []

    def test_analysis_continues_after_errors(self) -> None:
        source = """\
import express from 'express';
const app = express();
app.get('/unknown', (req, res) => { res.send('a'); });
app.get('/known', (req, res) => { res.send('a'); });
app.get('/also-unknown', (req, res) => { res.send('a'); });
"""
        errors = _check(source, _contract({"method": "GET", "path": "/known", "response": "string"}))
        assert [e.range.start.line for e in errors] == [2, 4]


def test_missing_configuration_spans_the_file() -> None:
    program = parse_ts(BACKEND_SOURCE)
    error = missing_configuration_error(program, "hello-service")
    assert error.message == "Missing configuration for service hello-service."
    assert error.range.start.line == 0
    assert error.range.end.line >= 11


def test_to_diagnostics() -> None:
    program = parse_ts(BACKEND_SOURCE)
    diagnostics = to_diagnostics([missing_configuration_error(program, "svc")])
    assert diagnostics[0].severity is Severity.ERROR
    assert diagnostics[0].source == "restcontract"
