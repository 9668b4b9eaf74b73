"""Route options, OpenAPI parameter descriptions, content negotiation and JWT security helpers."""

__version__ = "0.1.0"

__all__ = [
    "exchange",
    "option",
    "param",
    "params",
    "perf",
    "route",
    "security",
    "serialization",
]