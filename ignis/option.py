"""Route options: callables that document and configure a route."""

from __future__ import annotations

from typing import Any, Callable, Iterable

from ignis import param as _param
from ignis.param import OpenAPIParam, ParamOption, ParamType
from ignis.route import BaseRoute, RouteOption

__all__ = [
    "build_param",
    "group",
    "middleware",
    "query",
    "query_int",
    "query_bool",
    "header",
    "cookie",
    "path",
    "response_header",
    "param",
    "tags",
    "summary",
    "description",
    "add_description",
    "override_description",
    "operation_id",
    "deprecated",
    "request_content_type",
    "hide",
    "show",
    "default_status_code",
    "security",
    "strip_trailing_slash",
]

_TYPE_CHECKS: dict[str, tuple[Callable[[Any], bool], str]] = {
    "integer": (
        lambda value: isinstance(value, int) and not isinstance(value, bool),
        "example value must be an integer",
    ),
    "boolean": (lambda value: isinstance(value, bool), "example value must be a boolean"),
    "string": (lambda value: isinstance(value, str), "example value must be a string"),
}


def _checked(schema_type: str, value: Any) -> Any:
    """Return ``value`` if it suits ``schema_type``; raise TypeError otherwise."""
    if value is None:
        return None
    check = _TYPE_CHECKS.get(schema_type)
    if check is not None and not check[0](value):
        raise TypeError(check[1])
    return value


def _param_type(kind: ParamType) -> ParamOption:
    def apply(p: OpenAPIParam) -> None:
        p.type = kind

    return apply


def build_param(name: str, *options: ParamOption) -> tuple[OpenAPIParam, dict[str, Any]]:
    """Apply ``options`` to a new parameter and build its spec object.

    Raises TypeError when the default or an example does not match the
    declared type.
    """
    description_param = OpenAPIParam(name=name)
    for option in options:
        option(description_param)

    schema_type = description_param.go_type or "string"
    schema: dict[str, Any] = {"type": schema_type}
    if description_param.nullable:
        schema["nullable"] = True
    default_value = _checked(schema_type, description_param.default)
    if default_value is not None:
        schema["default"] = default_value

    spec: dict[str, Any] = {
        "name": name,
        "in": description_param.type.value if description_param.type else "",
        "description": description_param.description,
        "schema": schema,
    }
    if description_param.required:
        spec["required"] = True
    examples = {
        example_name: {"value": _checked(schema_type, value)}
        for example_name, value in description_param.examples.items()
    }
    if examples:
        spec["examples"] = examples
    return description_param, spec


def group(*options: RouteOption) -> RouteOption:
    """Bundle several route options into one."""

    def apply(route: BaseRoute) -> None:
        for option in options:
            option(route)

    return apply


def middleware(*middlewares: Callable[[Any], Any]) -> RouteOption:
    """Add route-scoped middlewares."""

    def apply(route: BaseRoute) -> None:
        route.middlewares.extend(middlewares)

    return apply


def _declared(name: str, options: Iterable[ParamOption], *extra: ParamOption) -> RouteOption:
    all_options = [*options, *extra]

    def apply(route: BaseRoute) -> None:
        param(name, *all_options)(route)

    return apply


def query(name: str, text: str, *options: ParamOption) -> RouteOption:
    """Declare a string query parameter."""
    return _declared(
        name, options, _param.description(text), _param_type(ParamType.QUERY), _param.string()
    )


def query_int(name: str, text: str, *options: ParamOption) -> RouteOption:
    """Declare an integer query parameter."""
    return _declared(
        name, options, _param.description(text), _param_type(ParamType.QUERY), _param.integer()
    )


def query_bool(name: str, text: str, *options: ParamOption) -> RouteOption:
    """Declare a boolean query parameter."""
    return _declared(
        name, options, _param.description(text), _param_type(ParamType.QUERY), _param.boolean()
    )


def header(name: str, text: str, *options: ParamOption) -> RouteOption:
    """Declare a header parameter."""
    return _declared(name, options, _param.description(text), _param_type(ParamType.HEADER))


def cookie(name: str, text: str, *options: ParamOption) -> RouteOption:
    """Declare a cookie parameter."""
    return _declared(name, options, _param.description(text), _param_type(ParamType.COOKIE))


def path(name: str, text: str, *options: ParamOption) -> RouteOption:
    """Declare a path parameter; path parameters are always required."""
    return _declared(
        name, options, _param.description(text), _param_type(ParamType.PATH), _param.required()
    )


def response_header(name: str, text: str, *options: ParamOption) -> RouteOption:
    """Document a response header under the chosen status codes (200 by default).

    Only ``options`` shape the header; ``text`` is accepted for symmetry
    with the request parameter options.
    """
    header_param, spec = build_param(name, *options)
    spec.pop("name", None)
    spec.pop("in", None)
    codes = header_param.status_codes or [200]

    def apply(route: BaseRoute) -> None:
        for code in codes:
            response = route.operation.response(code)
            if response is None:
                route.operation.set_response(code, {"description": "OK"})
                response = route.operation.response(code)
            response.setdefault("headers", {})[name] = dict(spec)

    return apply


def param(name: str, *options: ParamOption) -> RouteOption:
    """Register a parameter on the route and in its operation."""
    registered, spec = build_param(name, *options)

    def apply(route: BaseRoute) -> None:
        route.operation.add_parameter(spec)
        route.params[name] = registered

    return apply


def tags(*names: str) -> RouteOption:
    """Add tags to the route; stops at the first tag already present."""

    def apply(route: BaseRoute) -> None:
        for tag in names:
            if tag in route.operation.tags:
                return
            route.operation.tags.append(tag)

    return apply


def summary(text: str) -> RouteOption:
    """Set the summary of the route."""

    def apply(route: BaseRoute) -> None:
        route.operation.summary = text

    return apply


def description(text: str) -> RouteOption:
    """Set the description of the route."""

    def apply(route: BaseRoute) -> None:
        route.operation.description = text

    return apply


def add_description(text: str) -> RouteOption:
    """Append text to the description of the route."""

    def apply(route: BaseRoute) -> None:
        route.operation.description += text

    return apply


def override_description(text: str) -> RouteOption:
    """Replace the description and keep the generated one from being added."""

    def apply(route: BaseRoute) -> None:
        route.override_description = True
        route.operation.description = text

    return apply


def operation_id(identifier: str) -> RouteOption:
    """Set the operation id of the route."""

    def apply(route: BaseRoute) -> None:
        route.operation.operation_id = identifier

    return apply


def deprecated() -> RouteOption:
    """Mark the route as deprecated."""

    def apply(route: BaseRoute) -> None:
        route.operation.deprecated = True

    return apply


def request_content_type(*content_types: str) -> RouteOption:
    """Set the content types accepted for the request body."""

    def apply(route: BaseRoute) -> None:
        route.request_content_types = list(content_types) if content_types else None

    return apply


def hide() -> RouteOption:
    """Hide the route from the spec."""

    def apply(route: BaseRoute) -> None:
        route.hidden = True

    return apply


def show() -> RouteOption:
    """Show the route in the spec."""

    def apply(route: BaseRoute) -> None:
        route.hidden = False

    return apply


def default_status_code(code: int) -> RouteOption:
    """Set the default response status code of the route."""

    def apply(route: BaseRoute) -> None:
        route.default_status_code = code

    return apply


def security(*requirements: dict[str, list[str]]) -> RouteOption:
    """Add security requirements; every scheme must be declared in the spec.

    Schemes within one requirement are combined with AND, separate
    requirements with OR.
    """

    def apply(route: BaseRoute) -> None:
        components = (route.openapi or {}).get("components")
        if components is None:
            raise ValueError("zero security schemes have been registered with the server")
        schemes = components.get("securitySchemes") or {}
        for requirement in requirements:
            for scheme_name in requirement:
                if scheme_name not in schemes:
                    raise ValueError(f"security scheme '{scheme_name}' not defined in components")
        if route.operation.security is None:
            route.operation.security = []
        route.operation.security.extend(requirements)

    return apply


def strip_trailing_slash() -> RouteOption:
    """Remove trailing slashes from the route path, except for the root."""

    def apply(route: BaseRoute) -> None:
        if len(route.path) > 1:
            route.path = route.path.rstrip("/")

    return apply