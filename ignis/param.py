"""Parameter descriptions and the options that shape them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable


class ParamType(str, Enum):
    """Where a parameter is carried in a request."""

    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    PATH = "path"


@dataclass
class OpenAPIParam:
    """Description of one route parameter as documented in the spec."""

    name: str = ""
    description: str = ""
    type: ParamType | None = None
    go_type: str = ""
    required: bool = False
    nullable: bool = False
    default: Any = None
    examples: dict[str, Any] = field(default_factory=dict)
    status_codes: list[int] = field(default_factory=list)


ParamOption = Callable[[OpenAPIParam], None]


def required() -> ParamOption:
    """Mark the parameter as required."""

    def apply(param: OpenAPIParam) -> None:
        param.required = True

    return apply


def nullable() -> ParamOption:
    """Mark the parameter as nullable."""

    def apply(param: OpenAPIParam) -> None:
        param.nullable = True

    return apply


def string() -> ParamOption:
    """Declare the parameter as a string."""

    def apply(param: OpenAPIParam) -> None:
        param.go_type = "string"

    return apply


def integer() -> ParamOption:
    """Declare the parameter as an integer."""

    def apply(param: OpenAPIParam) -> None:
        param.go_type = "integer"

    return apply


def boolean() -> ParamOption:
    """Declare the parameter as a boolean."""

    def apply(param: OpenAPIParam) -> None:
        param.go_type = "boolean"

    return apply


def description(text: str) -> ParamOption:
    """Set the description of the parameter."""

    def apply(param: OpenAPIParam) -> None:
        param.description = text

    return apply


def default(value: Any) -> ParamOption:
    """Set the default value of the parameter."""

    def apply(param: OpenAPIParam) -> None:
        param.default = value

    return apply


def example(name: str, value: Any) -> ParamOption:
    """Add a named example to the parameter."""

    def apply(param: OpenAPIParam) -> None:
        param.examples[name] = value

    return apply


def status_codes(*codes: int) -> ParamOption:
    """Set the response status codes a response parameter applies to."""

    def apply(param: OpenAPIParam) -> None:
        param.status_codes = list(codes)

    return apply