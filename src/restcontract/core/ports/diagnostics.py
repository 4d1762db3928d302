from typing import Protocol

from restcontract.models import Diagnostic


class DiagnosticsSink(Protocol):
    def publish(self, uri: str, version: int | None, diagnostics: list[Diagnostic]) -> None: ...
