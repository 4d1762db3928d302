"""Unit tests for the workspace session: analysis, publication and contract adoption."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from restcontract.core.check import load_workspace, run_check
from restcontract.core.workspace import CollectingSink, Workspace, maybe_await
from restcontract.models import Project
from restcontract.treesitter.typescript_program import TypeScriptProgram, TypeScriptResolver
from tests.conftest import BACKEND_SOURCE, FRONTEND_SOURCE, HELLO_CONTRACT, write_project


class _AsyncResolver:
    def __init__(self) -> None:
        self.calls = 0

    async def parse(self, uri: str, text: str) -> TypeScriptProgram:
        self.calls += 1
        return TypeScriptResolver().parse(uri, text)


class _BumpingResolver:
    """Simulates an edit arriving while the parse is in flight."""

    def __init__(self) -> None:
        self.workspace: Workspace | None = None

    async def parse(self, uri: str, text: str) -> TypeScriptProgram:
        assert self.workspace is not None
        current = self.workspace.document(uri)
        assert current is not None
        self.workspace.open(uri, text, version=current.version + 1)
        return TypeScriptResolver().parse(uri, text)


@pytest.mark.asyncio
async def test_maybe_await() -> None:
    async def _value() -> int:
        return 2

    assert await maybe_await(1) == 1
    assert await maybe_await(_value()) == 2


@pytest.mark.asyncio
async def test_clean_workspace_publishes_empty_diagnostics(hello_workspace: Path) -> None:
    sink = CollectingSink()
    await load_workspace(hello_workspace, sink=sink)
    routes = str(hello_workspace / "backend" / "src" / "routes.ts")
    contract = str(hello_workspace / "backend" / ".restcontract.json")
    frontend = str(hello_workspace / "frontend" / "src" / "user.service.ts")
    assert sink.published[routes] == []
    assert sink.published[contract] == []
    assert sink.published[frontend] == []


@pytest.mark.asyncio
async def test_run_check_reports_only_files_with_problems(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    contract = json.loads(json.dumps(HELLO_CONTRACT))
    contract[0]["endpoints"][0]["request"]["flag"] = "boolean"
    write_project(root / "backend", "hello-service", {"src/routes.ts": BACKEND_SOURCE}, contract)
    results = await run_check(root)
    assert list(results) == [str(root / "backend" / "src" / "routes.ts")]
    assert [d.message for d in results[str(root / "backend" / "src" / "routes.ts")]] == [
        "Missing property: flag: boolean"
    ]


@pytest.mark.asyncio
async def test_backend_without_contract_reports_missing_configuration(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    write_project(root / "backend", "hello-service", {"src/routes.ts": BACKEND_SOURCE})
    results = await run_check(root)
    diagnostics = results[str(root / "backend" / "src" / "routes.ts")]
    assert [d.message for d in diagnostics] == ["Missing configuration for service hello-service."]


@pytest.mark.asyncio
async def test_frontend_never_needs_a_contract(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    write_project(root / "web", "web", {"src/user.service.ts": FRONTEND_SOURCE})
    assert await run_check(root) == {}


def test_document_language() -> None:
    workspace = Workspace(TypeScriptResolver(), CollectingSink(), contract_file="api-contract")
    assert workspace.open("/app/src/routes.ts", "").language_id == "typescript"
    assert workspace.open("/app/package.json", "{}").language_id == "json"
    assert workspace.open("/app/api-contract", "[]").language_id == "json"
    assert workspace.open("/app/src/other.ts", "", language_id="TS").language_id == "typescript"
    with pytest.raises(ValueError, match="Unsupported file extension"):
        workspace.open("/app/README.md", "")
    with pytest.raises(ValueError, match="Unsupported language"):
        workspace.open("/app/main.py", "", language_id="python")


@pytest.mark.asyncio
async def test_async_resolver_is_awaited() -> None:
    resolver = _AsyncResolver()
    sink = CollectingSink()
    workspace = Workspace(resolver, sink, delay=0.0)
    workspace.register_project(Project(root_path="/app", package_name="app"))
    document = workspace.open("/app/src/routes.ts", BACKEND_SOURCE)
    await workspace.scheduler.run_now(document)
    assert resolver.calls == 1
    assert [d.message for d in sink.published["/app/src/routes.ts"]] == ["Missing configuration for service app."]
    assert [r.path for r in workspace.facts.routes("/app/src/routes.ts")] == ["/hello"]


@pytest.mark.asyncio
async def test_stale_results_are_discarded() -> None:
    resolver = _BumpingResolver()
    sink = CollectingSink()
    workspace = Workspace(resolver, sink, delay=0.0)
    resolver.workspace = workspace
    document = workspace.open("/app/src/routes.ts", BACKEND_SOURCE, version=1)
    await workspace.scheduler.run_now(document)
    assert "/app/src/routes.ts" not in sink.published
    assert workspace.facts.routes("/app/src/routes.ts") == []


@pytest.mark.asyncio
async def test_burst_of_edits_publishes_last_version() -> None:
    sink = CollectingSink()
    workspace = Workspace(TypeScriptResolver(), sink, delay=0.01)
    workspace.register_project(Project(root_path="/app", package_name="app"))
    uri = "/app/src/routes.ts"
    for version in range(1, 4):
        workspace.change(uri, BACKEND_SOURCE, version)
    await workspace.scheduler.drain()
    assert sink.versions[uri] == 3


@pytest.mark.asyncio
async def test_contract_edit_reschedules_project_sources(hello_workspace: Path) -> None:
    sink = CollectingSink()
    workspace = await load_workspace(hello_workspace, sink=sink)
    routes = str(hello_workspace / "backend" / "src" / "routes.ts")
    contract_uri = str(hello_workspace / "backend" / ".restcontract.json")

    contract = json.loads(json.dumps(HELLO_CONTRACT))
    contract[0]["endpoints"][0]["request"]["flag"] = "boolean"
    workspace.change(contract_uri, json.dumps(contract))
    await workspace.scheduler.drain()

    assert sink.published[contract_uri] == []
    assert [d.message for d in sink.published[routes]] == ["Missing property: flag: boolean"]
    project = workspace.registry.get(str(hello_workspace / "backend"))
    assert project is not None and project.contract is not None
    assert project.contract.endpoints[0].request == {"message": "string", "flag": "boolean"}


@pytest.mark.asyncio
async def test_invalid_contract_edit_keeps_previous_contract(hello_workspace: Path) -> None:
    sink = CollectingSink()
    workspace = await load_workspace(hello_workspace, sink=sink)
    contract_uri = str(hello_workspace / "backend" / ".restcontract.json")

    workspace.change(contract_uri, '[{"name": "hello-service"}]')
    await workspace.scheduler.drain()

    assert sink.published[contract_uri] != []
    project = workspace.registry.get(str(hello_workspace / "backend"))
    assert project is not None and project.contract is not None
    assert project.contract.name == "hello-service"


@pytest.mark.asyncio
async def test_contract_without_matching_service_warns(tmp_path: Path) -> None:
    root = tmp_path.resolve()
    write_project(root / "backend", "other-name", {"src/routes.ts": BACKEND_SOURCE}, HELLO_CONTRACT)
    sink = CollectingSink()
    await load_workspace(root, sink=sink)
    contract_diagnostics = sink.published[str(root / "backend" / ".restcontract.json")]
    assert [d.message for d in contract_diagnostics] == ["No service named other-name in contract."]
    routes = sink.published[str(root / "backend" / "src" / "routes.ts")]
    assert [d.message for d in routes] == ["Missing configuration for service other-name."]


@pytest.mark.asyncio
async def test_close_clears_facts_and_diagnostics(hello_workspace: Path) -> None:
    sink = CollectingSink()
    workspace = await load_workspace(hello_workspace, sink=sink)
    frontend = str(hello_workspace / "frontend" / "src" / "user.service.ts")
    assert workspace.facts.calls(frontend) != []
    workspace.close(frontend)
    assert workspace.facts.calls(frontend) == []
    assert workspace.document(frontend) is None
    assert sink.versions[frontend] is None
