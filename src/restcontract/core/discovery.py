"""Find projects under a directory: every ``package.json`` marks a project root."""

import json
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from restcontract.config import DEFAULT_CONTRACT_FILE
from restcontract.core.languages import is_source_file

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST = "package.json"
SKIPPED_DIRECTORIES = frozenset({"node_modules", "build", "dist", "out", "coverage"})


@dataclass(frozen=True)
class DiscoveredProject:
    root_path: str
    package_name: str
    contract_path: str | None = None
    contract_text: str | None = None


def _walk(root: Path) -> Iterator[tuple[Path, list[str]]]:
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRECTORIES and not d.startswith("."))
        yield Path(dirpath), sorted(filenames)


def _package_name(manifest: Path) -> str:
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.warning("Could not read %s", manifest)
        return ""
    name = data.get("name") if isinstance(data, dict) else None
    return name if isinstance(name, str) else ""


def discover_projects(root: str | Path, contract_file: str = DEFAULT_CONTRACT_FILE) -> list[DiscoveredProject]:
    """Return the projects under ``root`` in a stable, top-down order."""
    root = Path(root).resolve()
    projects: list[DiscoveredProject] = []
    for directory, filenames in _walk(root):
        if PACKAGE_MANIFEST not in filenames:
            continue
        contract = directory / contract_file
        contract_text = contract.read_text(encoding="utf-8") if contract.is_file() else None
        projects.append(
            DiscoveredProject(
                root_path=str(directory),
                package_name=_package_name(directory / PACKAGE_MANIFEST),
                contract_path=str(contract) if contract_text is not None else None,
                contract_text=contract_text,
            )
        )
    logger.info("Discovered %d project(s) under %s", len(projects), root)
    return projects


def source_files(root: str | Path) -> list[Path]:
    """TypeScript sources under ``root``, skipping dependency and build output."""
    files: list[Path] = []
    for directory, filenames in _walk(Path(root).resolve()):
        files.extend(directory / name for name in filenames if is_source_file(directory / name))
    return files
