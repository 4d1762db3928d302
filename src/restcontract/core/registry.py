import logging
from collections.abc import Iterator
from pathlib import PurePosixPath

from restcontract.core.languages import uri_to_path
from restcontract.models import CallFact, Contract, Project, RouteFact

logger = logging.getLogger(__name__)


def _is_within(path: str, root: str) -> bool:
    root = root.rstrip("/") or "/"
    if root == "/":
        return path.startswith("/")
    return path == root or path.startswith(root + "/")


class ProjectRegistry:
    """Projects keyed by root path, in registration order."""

    def __init__(self) -> None:
        self._projects: dict[str, Project] = {}

    def register(self, project: Project) -> None:
        key = _normalize_root(project.root_path)
        if key in self._projects:
            logger.debug("Replacing project registration for %s", key)
        self._projects[key] = project.model_copy(update={"root_path": key})

    def get(self, root_path: str) -> Project | None:
        return self._projects.get(_normalize_root(root_path))

    def find_project_for_file(self, uri: str) -> Project | None:
        path = uri_to_path(uri)
        best: Project | None = None
        for root, project in self._projects.items():
            if not _is_within(path, root):
                continue
            if best is None or len(root) > len(best.root_path):
                best = project
        return best

    def replace_contract(self, root_path: str, contract: Contract | None, contract_path: str | None = None) -> Project:
        key = _normalize_root(root_path)
        current = self._projects.get(key)
        if current is None:
            raise KeyError(f"No project registered at {root_path}")
        update: dict[str, object] = {"contract": contract}
        if contract_path is not None:
            update["contract_path"] = contract_path
        replaced = current.model_copy(update=update)
        self._projects[key] = replaced
        return replaced

    def projects(self) -> Iterator[Project]:
        yield from list(self._projects.values())

    def __len__(self) -> int:
        return len(self._projects)


def _normalize_root(root_path: str) -> str:
    path = uri_to_path(root_path)
    return str(PurePosixPath(path)) if path else path


class FactIndex:
    """Route and call facts per file URI, replaced wholesale on re-analysis."""

    def __init__(self) -> None:
        self._routes: dict[str, list[RouteFact]] = {}
        self._calls: dict[str, list[CallFact]] = {}

    def set_routes(self, uri: str, routes: list[RouteFact]) -> None:
        self._routes[uri] = list(routes)

    def set_calls(self, uri: str, calls: list[CallFact]) -> None:
        self._calls[uri] = list(calls)

    def routes(self, uri: str) -> list[RouteFact]:
        return self._routes.get(uri, [])

    def calls(self, uri: str) -> list[CallFact]:
        return self._calls.get(uri, [])

    def remove(self, uri: str) -> None:
        self._routes.pop(uri, None)
        self._calls.pop(uri, None)

    def routes_under(self, root_path: str) -> Iterator[tuple[str, RouteFact]]:
        for uri, routes in self._routes.items():
            if _is_within(uri_to_path(uri), root_path):
                for route in routes:
                    yield uri, route

    def calls_under(self, root_path: str) -> Iterator[tuple[str, CallFact]]:
        for uri, calls in self._calls.items():
            if _is_within(uri_to_path(uri), root_path):
                for call in calls:
                    yield uri, call
