"""Session state tying documents, projects, facts and diagnostics together."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable
from pathlib import Path, PurePosixPath
from typing import TypeVar

from restcontract.config import DEFAULT_CONTRACT_FILE, DEFAULT_VALIDATION_DELAY_MS
from restcontract.core.analysis import RouteChecker, missing_configuration_error, to_diagnostics
from restcontract.core.contract import parse_contracts, select_contract
from restcontract.core.discovery import DiscoveredProject
from restcontract.core.extractor import FileRole, SourceFactExtractor
from restcontract.core.languages import (
    JSON,
    detect_language_from_path,
    is_contract_file,
    is_source_file,
    normalize_language,
    uri_to_path,
)
from restcontract.core.navigation import Navigator
from restcontract.core.ports.diagnostics import DiagnosticsSink
from restcontract.core.ports.typesystem import SourceProgram, TypeResolver
from restcontract.core.registry import FactIndex, ProjectRegistry
from restcontract.core.scheduler import KeyedState, ValidationScheduler
from restcontract.errors import ContractError
from restcontract.models import ZERO_RANGE, Diagnostic, Project, SemanticError, Severity, TextDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def maybe_await(value: T | Awaitable[T]) -> T:
    if inspect.isawaitable(value):
        return await value
    return value


class CollectingSink:
    """Diagnostics sink that keeps the latest publication per URI."""

    def __init__(self) -> None:
        self.published: dict[str, list[Diagnostic]] = {}
        self.versions: dict[str, int | None] = {}

    def publish(self, uri: str, version: int | None, diagnostics: list[Diagnostic]) -> None:
        self.published[uri] = list(diagnostics)
        self.versions[uri] = version


class Workspace:
    def __init__(
        self,
        resolver: TypeResolver,
        sink: DiagnosticsSink,
        *,
        delay: float = DEFAULT_VALIDATION_DELAY_MS / 1000,
        contract_file: str = DEFAULT_CONTRACT_FILE,
        registry: ProjectRegistry | None = None,
        facts: FactIndex | None = None,
    ) -> None:
        self.resolver = resolver
        self.sink = sink
        self.contract_file = contract_file
        self.registry = registry or ProjectRegistry()
        self.facts = facts or FactIndex()
        self.navigator = Navigator(self.registry, self.facts)
        self.scheduler = ValidationScheduler(self.analyze, delay)
        self._documents: KeyedState[str, TextDocument] = KeyedState()
        self._uris: list[str] = []

    # --- projects --------------------------------------------------------

    def register_project(self, project: Project) -> None:
        self.registry.register(project)

    async def add_discovered(self, discovered: list[DiscoveredProject]) -> None:
        """Register discovered projects and adopt their contracts right away."""
        for item in discovered:
            self.register_project(Project(root_path=item.root_path, package_name=item.package_name))
        for item in discovered:
            if item.contract_path is None or item.contract_text is None:
                continue
            document = self.open(item.contract_path, item.contract_text)
            await self.scheduler.run_now(document)

    # --- documents -------------------------------------------------------

    def document(self, uri: str) -> TextDocument | None:
        return self._documents.get(uri)

    def documents(self) -> list[TextDocument]:
        return [doc for uri in self._uris if (doc := self._documents.get(uri)) is not None]

    def open(self, uri: str, text: str, version: int = 0, language_id: str | None = None) -> TextDocument:
        document = TextDocument(
            uri=uri,
            language_id=normalize_language(language_id) if language_id else self._language_of(uri),
            version=version,
            text=text,
        )
        if uri not in self._documents:
            self._uris.append(uri)
        self._documents.set(uri, document)
        return document

    def change(self, uri: str, text: str, version: int | None = None) -> TextDocument:
        """Replace the text of a document and schedule its re-analysis."""
        current = self._documents.get(uri)
        if current is None:
            document = self.open(uri, text, version or 0)
        else:
            next_version = version if version is not None else current.version + 1
            document = current.model_copy(update={"text": text, "version": next_version})
            self._documents.set(uri, document)
        self.scheduler.schedule(document)
        return document

    def close(self, uri: str) -> None:
        self.scheduler.cancel(uri)
        self._documents.remove(uri)
        if uri in self._uris:
            self._uris.remove(uri)
        self.facts.remove(uri)
        self.sink.publish(uri, None, [])

    def _language_of(self, uri: str) -> str:
        path = Path(uri_to_path(uri))
        if is_contract_file(path, self.contract_file):
            return JSON
        return detect_language_from_path(path)

    def _is_current(self, document: TextDocument) -> bool:
        latest = self._documents.get(document.uri)
        return latest is not None and latest.version == document.version

    def _publish(self, document: TextDocument, diagnostics: list[Diagnostic]) -> bool:
        if not self._is_current(document):
            logger.debug("Discarding stale results for %s (version %d)", document.uri, document.version)
            return False
        self.sink.publish(document.uri, document.version, diagnostics)
        return True

    # --- analysis --------------------------------------------------------

    async def analyze(self, document: TextDocument) -> None:
        path = Path(uri_to_path(document.uri))
        if is_contract_file(path, self.contract_file):
            await self._analyze_contract(document)
        elif is_source_file(path):
            await self._analyze_source(document)
        else:
            logger.debug("Ignoring %s", document.uri)

    async def _analyze_source(self, document: TextDocument) -> None:
        program: SourceProgram = await maybe_await(self.resolver.parse(document.uri, document.text))
        facts = SourceFactExtractor(program).extract()
        if not self._is_current(document):
            logger.debug("Discarding stale facts for %s (version %d)", document.uri, document.version)
            return

        errors: list[SemanticError] = []
        match facts.role:
            case FileRole.BACKEND:
                self.facts.set_routes(document.uri, facts.routes)
                self.facts.set_calls(document.uri, [])
                project = self.registry.find_project_for_file(document.uri)
                if project is None or project.contract is None:
                    errors = [missing_configuration_error(program, _service_name(project, document.uri))]
                else:
                    errors = RouteChecker(program, project.contract).check(facts.routes)
            case FileRole.FRONTEND:
                self.facts.set_calls(document.uri, facts.calls)
                self.facts.set_routes(document.uri, [])
            case FileRole.NONE:
                self.facts.remove(document.uri)
        self._publish(document, to_diagnostics(errors))

    async def _analyze_contract(self, document: TextDocument) -> None:
        root = str(PurePosixPath(uri_to_path(document.uri)).parent)
        project = self.registry.get(root)
        try:
            contracts = parse_contracts(document.text)
        except ContractError as exc:
            logger.warning("Contract %s not adopted: %s", document.uri, exc)
            self._publish(document, exc.diagnostics)
            return

        if project is None:
            logger.debug("Contract %s belongs to no registered project", document.uri)
            self._publish(document, [])
            return
        if not self._is_current(document):
            logger.debug("Discarding stale contract %s (version %d)", document.uri, document.version)
            return

        contract = select_contract(contracts, project.package_name)
        diagnostics: list[Diagnostic] = []
        if contract is None:
            diagnostics.append(
                Diagnostic(
                    range=ZERO_RANGE,
                    message=f"No service named {project.package_name} in contract.",
                    severity=Severity.WARNING,
                )
            )
        self.registry.replace_contract(project.root_path, contract, uri_to_path(document.uri))
        logger.info("Adopted contract for %s", project.root_path)
        self._publish(document, diagnostics)
        self._reschedule_sources(project.root_path)

    def _reschedule_sources(self, root_path: str) -> None:
        for document in self.documents():
            if not is_source_file(Path(uri_to_path(document.uri))):
                continue
            owner = self.registry.find_project_for_file(document.uri)
            if owner is not None and owner.root_path == root_path:
                self.scheduler.schedule(document)


def _service_name(project: Project | None, uri: str) -> str:
    if project is not None:
        return project.package_name or PurePosixPath(project.root_path).name
    return PurePosixPath(uri_to_path(uri)).parent.name
