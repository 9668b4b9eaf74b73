"""Routes and the documentation of their operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ignis.param import OpenAPIParam


@dataclass
class Operation:
    """The documented operation of a route."""

    tags: list[str] = field(default_factory=list)
    summary: str = ""
    description: str = ""
    operation_id: str = ""
    deprecated: bool = False
    parameters: list[dict[str, Any]] = field(default_factory=list)
    responses: dict[str, dict[str, Any]] = field(default_factory=dict)
    security: list[dict[str, list[str]]] | None = None

    def add_parameter(self, parameter: dict[str, Any]) -> None:
        """Append a parameter object to the operation."""
        self.parameters.append(parameter)

    def response(self, code: int | str) -> dict[str, Any] | None:
        """Return the response documented for ``code``, if any."""
        return self.responses.get(str(code))

    def set_response(self, code: int | str, response: dict[str, Any]) -> None:
        """Document ``response`` for ``code``, replacing any previous one."""
        self.responses[str(code)] = response


@dataclass
class BaseRoute:
    """A route together with its documentation and settings."""

    handler: Any = None
    operation: Operation = field(default_factory=Operation)
    openapi: dict[str, Any] | None = None
    params: dict[str, OpenAPIParam] = field(default_factory=dict)
    method: str = ""
    path: str = ""
    full_name: str = ""
    request_content_types: list[str] | None = None
    middlewares: list[Callable[[Any], Any]] = field(default_factory=list)
    default_status_code: int = 0
    hidden: bool = False
    override_description: bool = False
    middleware_config: Any = None

    def generate_default_operation_id(self) -> None:
        """Derive the operation id from the method and the path."""
        path = self.path.replace("{", ":").replace("}", "")
        self.operation.operation_id = f"{self.method}_{path}"


RouteOption = Callable[[BaseRoute], None]


def _func_name(handler: Any) -> str:
    if handler is None:
        return ""
    qualname = getattr(handler, "__qualname__", None) or type(handler).__qualname__
    module = getattr(handler, "__module__", None)
    return f"{module}.{qualname}" if module else qualname


def new_base_route(method: str, path: str, handler: Any, *options: RouteOption) -> BaseRoute:
    """Build a route and apply ``options`` to it in order."""
    route = BaseRoute(method=method, path=path, full_name=_func_name(handler))
    for option in options:
        option(route)
    return route