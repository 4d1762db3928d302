"""FastMCP server exposing restcontract tools."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from fastmcp import FastMCP

from restcontract.config import get_settings
from restcontract.core.check import load_workspace, run_check
from restcontract.core.comparator import render_type
from restcontract.models import Position


def create_mcp_server(root: str | Path, contract_file: str | None = None) -> FastMCP:
    """Create a FastMCP server whose tools operate on the workspace at ``root``."""

    workspace_root = Path(root).resolve()
    contract_name = contract_file or get_settings().contract_file
    mcp = FastMCP("restcontract", instructions="Check TypeScript services against their REST contract.")

    def _file(path: str) -> str:
        candidate = Path(path)
        return str(candidate if candidate.is_absolute() else (workspace_root / candidate).resolve())

    @mcp.tool()
    async def check() -> list[dict[str, Any]]:
        """Check every project in the workspace and list contract violations."""
        results = await run_check(workspace_root, contract_name)
        return [
            {
                "file": uri,
                "line": diagnostic.range.start.line + 1,
                "column": diagnostic.range.start.character + 1,
                "message": diagnostic.message,
            }
            for uri, diagnostics in results.items()
            for diagnostic in diagnostics
        ]

    @mcp.tool()
    async def definition(file: str, line: int, column: int) -> dict[str, Any] | None:
        """Find the backend route a frontend call at file:line:column goes to (1-based)."""
        workspace = await load_workspace(workspace_root, contract_name)
        link = workspace.navigator.find_definition(_file(file), Position(line=line - 1, character=column - 1))
        if link is None:
            return None
        start = link.target_range.start
        return {"file": link.target_uri, "line": start.line + 1, "column": start.character + 1}

    @mcp.tool()
    async def references(file: str, line: int, column: int) -> list[dict[str, Any]]:
        """List the frontend calls of the backend route at file:line:column (1-based)."""
        workspace = await load_workspace(workspace_root, contract_name)
        locations = workspace.navigator.find_references(_file(file), Position(line=line - 1, character=column - 1))
        return [
            {"file": location.uri, "line": location.range.start.line + 1, "column": location.range.start.character + 1}
            for location in locations
        ]

    @mcp.tool()
    async def hover(file: str, line: int, column: int) -> str | None:
        """Describe the contract endpoint behind the route or call at file:line:column (1-based)."""
        workspace = await load_workspace(workspace_root, contract_name)
        return workspace.navigator.hover(_file(file), Position(line=line - 1, character=column - 1))

    @mcp.tool()
    async def endpoints() -> list[dict[str, str]]:
        """List the endpoints of every adopted contract."""
        workspace = await load_workspace(workspace_root, contract_name)
        rows: list[dict[str, str]] = []
        for project in workspace.registry.projects():
            if project.contract is None:
                continue
            for endpoint in project.contract.endpoints:
                rows.append(
                    {
                        "service": project.contract.name,
                        "method": endpoint.method,
                        "path": endpoint.path,
                        "response": render_type(endpoint.response),
                        "request": render_type(endpoint.request) if endpoint.request is not None else "",
                    }
                )
        return rows

    return mcp
