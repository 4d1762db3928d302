"""Shared fixtures and helpers for tests."""

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from restcontract.treesitter.typescript_program import TypeScriptProgram, TypeScriptResolver

logger = logging.getLogger(__name__)

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Source fixtures
# ---------------------------------------------------------------------------

BACKEND_SOURCE = """\
import express from 'express';

interface Message {
  message: string;
}

const router = express.Router();

router.post('/hello', (req, res) => {
  const body: Message = req.body();
  res.send("x");
});
"""

FRONTEND_SOURCE = """\
import { HttpClient } from '@angular/common/http';

export class UserService {
  constructor(private http: HttpClient) {}

  getUser(id: string) {
    return this.http.get<User>('/users/' + id);
  }

  listUsers() {
    return this.http.get('/users').pipe(map((x) => x));
  }
}
"""

HELLO_CONTRACT: list[dict[str, Any]] = [
    {
        "name": "hello-service",
        "baseUri": "http://localhost:3000/api",
        "language": "typescript",
        "lib": "express",
        "endpoints": [
            {"method": "POST", "path": "/hello", "request": {"message": "string"}, "response": "string"},
        ],
    }
]


def parse_ts(source: str, uri: str = "/project/src/file.ts") -> TypeScriptProgram:
    return TypeScriptResolver().parse(uri, source)


def write_project(
    directory: Path,
    name: str,
    files: dict[str, str],
    contract: list[dict[str, Any]] | None = None,
) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "package.json").write_text(json.dumps({"name": name}), encoding="utf-8")
    if contract is not None:
        (directory / ".restcontract.json").write_text(json.dumps(contract, indent=2), encoding="utf-8")
    for relative, text in files.items():
        path = directory / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return directory


@pytest.fixture
def hello_workspace(tmp_path: Path) -> Path:
    """A backend project serving ``/hello`` and a frontend project calling users endpoints."""
    root = tmp_path.resolve()
    write_project(
        root / "backend",
        "hello-service",
        {"src/routes.ts": BACKEND_SOURCE},
        HELLO_CONTRACT,
    )
    write_project(root / "frontend", "web", {"src/user.service.ts": FRONTEND_SOURCE})
    return root
