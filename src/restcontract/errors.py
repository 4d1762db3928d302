from restcontract.models import Diagnostic


class RestContractError(Exception):
    """Base class for errors raised by restcontract."""


class ContractError(RestContractError):
    """A contract document could not be adopted."""

    def __init__(self, message: str, diagnostics: list[Diagnostic] | None = None) -> None:
        super().__init__(message)
        self.diagnostics = diagnostics or []


class ConfigSyntaxError(ContractError):
    """The contract document is not valid JSON or violates the contract schema."""


class ConfigSemanticError(ContractError):
    """The contract document is well formed but breaks a cross-field rule."""
