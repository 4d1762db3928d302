from pathlib import Path

from restcontract.config import DEFAULT_CONTRACT_FILE
from restcontract.core.discovery import discover_projects, source_files
from restcontract.core.ports.diagnostics import DiagnosticsSink
from restcontract.core.ports.typesystem import TypeResolver
from restcontract.core.workspace import CollectingSink, Workspace
from restcontract.models import Diagnostic
from restcontract.treesitter.typescript_program import TypeScriptResolver


async def load_workspace(
    root: str | Path,
    contract_file: str = DEFAULT_CONTRACT_FILE,
    resolver: TypeResolver | None = None,
    sink: DiagnosticsSink | None = None,
    delay: float = 0.0,
) -> Workspace:
    """Discover the projects under ``root``, adopt their contracts and analyze every source file once."""
    workspace = Workspace(
        resolver or TypeScriptResolver(),
        sink or CollectingSink(),
        delay=delay,
        contract_file=contract_file,
    )
    await workspace.add_discovered(discover_projects(root, contract_file))
    for path in source_files(root):
        document = workspace.open(str(path), path.read_text(encoding="utf-8"))
        await workspace.scheduler.run_now(document)
    return workspace


async def run_check(root: str | Path, contract_file: str = DEFAULT_CONTRACT_FILE) -> dict[str, list[Diagnostic]]:
    """Return the diagnostics of every file under ``root`` that has any."""
    sink = CollectingSink()
    await load_workspace(root, contract_file, sink=sink)
    return {uri: diagnostics for uri, diagnostics in sink.published.items() if diagnostics}
