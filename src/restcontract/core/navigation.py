"""Cross-project navigation between frontend call sites and backend routes."""

import logging
from collections.abc import Iterator

from restcontract.core.comparator import render_type
from restcontract.core.paths import paths_match
from restcontract.core.registry import FactIndex, ProjectRegistry
from restcontract.models import CallFact, Location, LocationLink, Position, Project, RouteFact

logger = logging.getLogger(__name__)


class Navigator:
    def __init__(self, registry: ProjectRegistry, facts: FactIndex) -> None:
        self._registry = registry
        self._facts = facts

    def call_at(self, uri: str, position: Position) -> CallFact | None:
        return next((call for call in self._facts.calls(uri) if call.range.contains(position)), None)

    def route_at(self, uri: str, position: Position) -> RouteFact | None:
        return next((route for route in self._facts.routes(uri) if route.range.contains(position)), None)

    def find_definition(self, uri: str, position: Position) -> LocationLink | None:
        call = self.call_at(uri, position)
        if call is None:
            return None
        match = self.route_for_call(call)
        if match is None:
            logger.debug("No route serves %s %s", call.method, call.path)
            return None
        route_uri, route, _ = match
        return LocationLink(
            target_uri=route_uri,
            target_range=route.range,
            target_selection_range=route.navigation_range,
        )

    def find_references(self, uri: str, position: Position) -> list[Location]:
        route = self.route_at(uri, position)
        if route is None:
            return []
        locations: list[Location] = []
        for project in self._registry.projects():
            if project.contract is not None:
                continue
            for call_uri, call in self._owned_calls(project):
                if paths_match(route.path, call.path):
                    locations.append(Location(uri=call_uri, range=call.range))
        return locations

    def route_for_call(self, call: CallFact) -> tuple[str, RouteFact, Project] | None:
        """First matching route in registry order, then file order, then source order."""
        for project in self._registry.projects():
            if project.contract is None:
                continue
            for route_uri, route in self._owned_routes(project):
                if paths_match(route.path, call.path):
                    return route_uri, route, project
        return None

    def hover(self, uri: str, position: Position) -> str | None:
        route = self.route_at(uri, position)
        if route is not None:
            project = self._registry.find_project_for_file(uri)
            return _endpoint_markdown(project, route.path)
        call = self.call_at(uri, position)
        if call is None:
            return None
        match = self.route_for_call(call)
        if match is None:
            return None
        _, matched, project = match
        return _endpoint_markdown(project, matched.path)

    def _owned_routes(self, project: Project) -> Iterator[tuple[str, RouteFact]]:
        for uri, route in self._facts.routes_under(project.root_path):
            if self._owns(project, uri):
                yield uri, route

    def _owned_calls(self, project: Project) -> Iterator[tuple[str, CallFact]]:
        for uri, call in self._facts.calls_under(project.root_path):
            if self._owns(project, uri):
                yield uri, call

    def _owns(self, project: Project, uri: str) -> bool:
        owner = self._registry.find_project_for_file(uri)
        return owner is not None and owner.root_path == project.root_path


def _endpoint_markdown(project: Project | None, path: str) -> str | None:
    if project is None or project.contract is None:
        return None
    contract = project.contract
    endpoint = contract.endpoint_for_path(path)
    if endpoint is None:
        return None
    lines = [
        f"**{contract.name}**",
        "",
        f"`{endpoint.method}` {contract.base_uri.rstrip('/')}{endpoint.path}",
        "",
        f"Response: `{render_type(endpoint.response)}`",
    ]
    if endpoint.request is not None:
        lines.append("")
        lines.append(f"Request: `{render_type(endpoint.request)}`")
    return "\n".join(lines)
