"""Tests for the command line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from restcontract.cli.app import app
from tests.conftest import BACKEND_SOURCE, HELLO_CONTRACT, write_project

runner = CliRunner()


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["check"],
        ["watch"],
        ["contract"],
        ["contract", "validate"],
        ["definition"],
        ["references"],
        ["hover"],
        ["serve"],
        ["serve", "mcp"],
    ],
    ids=[
        "root",
        "check",
        "watch",
        "contract",
        "contract-validate",
        "definition",
        "references",
        "hover",
        "serve",
        "serve-mcp",
    ],
)
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_check_clean_workspace(hello_workspace: Path) -> None:
    result = runner.invoke(app, ["check", str(hello_workspace)])
    assert result.exit_code == 0, result.output
    assert "No contract violations found" in result.output


def test_check_reports_violations(tmp_path: Path) -> None:
    write_project(tmp_path / "backend", "hello-service", {"src/routes.ts": BACKEND_SOURCE})
    result = runner.invoke(app, ["check", str(tmp_path)])
    assert result.exit_code == 1
    assert "1 problem(s) in 1 file(s)" in result.output


def test_contract_validate(tmp_path: Path) -> None:
    path = tmp_path / ".restcontract.json"
    path.write_text(json.dumps(HELLO_CONTRACT), encoding="utf-8")
    result = runner.invoke(app, ["contract", "validate", str(path)])
    assert result.exit_code == 0, result.output
    assert "Valid" in result.output
    assert "1 service(s)" in result.output


def test_contract_validate_reports_errors(tmp_path: Path) -> None:
    path = tmp_path / ".restcontract.json"
    path.write_text(json.dumps([{"name": "svc"}]), encoding="utf-8")
    result = runner.invoke(app, ["contract", "validate", str(path)])
    assert result.exit_code == 1
    assert "schema" in result.output


def test_definition_without_match(hello_workspace: Path) -> None:
    service = hello_workspace / "frontend" / "src" / "user.service.ts"
    result = runner.invoke(app, ["definition", str(service), "1", "1", "--root", str(hello_workspace)])
    assert result.exit_code == 1
    assert "No matching route" in result.output


def test_hover_on_route(hello_workspace: Path) -> None:
    routes = hello_workspace / "backend" / "src" / "routes.ts"
    result = runner.invoke(app, ["hover", str(routes), "9", "14", "--root", str(hello_workspace)])
    assert result.exit_code == 0
    assert "hello-service" in result.output
    assert "http://localhost:3000/api/hello" in result.output


def test_hover_without_endpoint(hello_workspace: Path) -> None:
    routes = hello_workspace / "backend" / "src" / "routes.ts"
    result = runner.invoke(app, ["hover", str(routes), "1", "1", "--root", str(hello_workspace)])
    assert result.exit_code == 1
    assert "No endpoint" in result.output
