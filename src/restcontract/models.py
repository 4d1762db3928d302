from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# A shape is a mapping of field name to a primitive name, a nested shape or an
# array marker ``{"isArray": True, "type": ...}``.
Shape = dict[str, Any]
ShapeValue = str | Shape

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    line: int
    character: int


class Range(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: Position
    end: Position

    def contains(self, position: Position) -> bool:
        """Inclusive on both ends; ranges may span several lines."""
        point = (position.line, position.character)
        return (self.start.line, self.start.character) <= point <= (self.end.line, self.end.character)

    @classmethod
    def of(cls, start_line: int, start_character: int, end_line: int, end_character: int) -> "Range":
        return cls(
            start=Position(line=start_line, character=start_character),
            end=Position(line=end_line, character=end_character),
        )


ZERO_RANGE = Range.of(0, 0, 0, 0)


class Endpoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    path: str
    response: ShapeValue
    request: Shape | None = None


class Contract(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    base_uri: str = Field(alias="baseUri")
    language: str | None = None
    lib: str | None = None
    endpoints: list[Endpoint] = Field(default_factory=list)

    def endpoint_for_path(self, path: str) -> Endpoint | None:
        return next((e for e in self.endpoints if e.path == path), None)


class Project(BaseModel):
    model_config = ConfigDict(frozen=True)

    root_path: str
    package_name: str = ""
    contract: Contract | None = None
    contract_path: str | None = None


class RouteFact(BaseModel):
    """A backend route declaration such as ``router.get('/users', handler)``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: str
    path: str
    # range of the path argument
    range: Range
    # range of the whole route call
    call_range: Range
    handler_range: Range | None = None
    # tree-sitter node of the inline handler; not serialized
    handler: Any = Field(default=None, exclude=True, repr=False)

    @property
    def navigation_range(self) -> Range:
        if self.handler_range is None:
            return self.range
        return Range(start=self.range.start, end=self.handler_range.end)


class CallFact(BaseModel):
    """A frontend HTTP client call such as ``this.http.get('/users')``."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    # range of the path argument
    range: Range


class SemanticError(BaseModel):
    range: Range
    message: str


class Severity(int, Enum):
    ERROR = 1
    WARNING = 2
    INFORMATION = 3
    HINT = 4


class Diagnostic(BaseModel):
    range: Range
    message: str
    severity: Severity = Severity.ERROR
    source: str = "restcontract"


class DiscrepancyKind(str, Enum):
    MISSING_IN_CODE = "missing-in-code"
    UNDECLARED_IN_CODE = "undeclared-in-code"


class Discrepancy(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: DiscrepancyKind
    name: str | None
    type: str
    actual: str | None = None


class TextDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    uri: str
    language_id: str
    version: int
    text: str


class LocationLink(BaseModel):
    target_uri: str
    target_range: Range
    target_selection_range: Range


class Location(BaseModel):
    uri: str
    range: Range
