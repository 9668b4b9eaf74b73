"""In-memory HTTP requests and a recording response writer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from http.cookies import SimpleCookie
from typing import Any, Iterator
from urllib.parse import parse_qs, urlsplit


class Headers:
    """Case-insensitive multi-valued HTTP headers."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, tuple[str, list[str]]] = {}
        for name, value in (initial or {}).items():
            self.add(name, value)

    def get(self, name: str, default: str = "") -> str:
        """Return the first value of ``name``, or ``default``."""
        entry = self._values.get(name.lower())
        return entry[1][0] if entry and entry[1] else default

    def get_all(self, name: str) -> list[str]:
        """Return every value of ``name``."""
        entry = self._values.get(name.lower())
        return list(entry[1]) if entry else []

    def set(self, name: str, value: str) -> None:
        """Replace all values of ``name`` with ``value``."""
        self._values[name.lower()] = (name, [value])

    def add(self, name: str, value: str) -> None:
        """Append ``value`` to the values of ``name``."""
        entry = self._values.setdefault(name.lower(), (name, []))
        entry[1].append(value)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._values.values())

    def __len__(self) -> int:
        return len(self._values)


@dataclass
class Cookie:
    """An HTTP cookie."""

    name: str
    value: str = ""
    expires: datetime | None = None
    max_age: int = 0
    http_only: bool = False

    def __str__(self) -> str:
        parts = [f"{self.name}={self.value}"]
        if self.expires is not None:
            parts.append("Expires=" + self.expires.strftime("%a, %d %b %Y %H:%M:%S GMT"))
        if self.max_age > 0:
            parts.append(f"Max-Age={self.max_age}")
        elif self.max_age < 0:
            parts.append("Max-Age=0")
        if self.http_only:
            parts.append("HttpOnly")
        return "; ".join(parts)


@dataclass
class Request:
    """An incoming HTTP request."""

    method: str = "GET"
    target: str = "/"
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    context: dict[Any, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return urlsplit(self.target).path

    def form_value(self, name: str) -> str:
        """Return the first value of ``name`` from a form body or the query."""
        if self.headers.get("Content-Type").startswith("application/x-www-form-urlencoded"):
            values = parse_qs(self.body.decode("utf-8", "replace")).get(name)
            if values:
                return values[0]
        values = parse_qs(urlsplit(self.target).query).get(name)
        return values[0] if values else ""

    def cookie(self, name: str) -> Cookie | None:
        """Return the cookie named ``name``, or None if absent."""
        jar: SimpleCookie = SimpleCookie()
        for raw in self.headers.get_all("Cookie"):
            jar.load(raw)
        morsel = jar.get(name)
        return Cookie(name=name, value=morsel.value) if morsel is not None else None

    def with_context(self, key: Any, value: Any) -> Request:
        """Return a copy of the request whose context also maps ``key`` to ``value``."""
        return replace(self, context={**self.context, key: value})


class ResponseRecorder:
    """A response writer that keeps status, headers and body in memory."""

    def __init__(self) -> None:
        self.status = 200
        self.headers = Headers()
        self.body = bytearray()
        self._cookies: list[Cookie] = []
        self._header_written = False

    def write_header(self, status: int) -> None:
        """Set the status code; only the first call has an effect."""
        if self._header_written:
            return
        self.status = status
        self._header_written = True

    def write(self, data: bytes | str) -> int:
        """Append ``data`` to the body, writing a 200 status first if needed."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.write_header(200)
        self.body.extend(data)
        return len(data)

    def set_cookie(self, cookie: Cookie) -> None:
        """Add a Set-Cookie header for ``cookie``."""
        self._cookies.append(cookie)
        self.headers.add("Set-Cookie", str(cookie))

    def cookies(self) -> list[Cookie]:
        """Return the cookies set on the response, in order."""
        return list(self._cookies)

    def text(self) -> str:
        """Return the body decoded as UTF-8."""
        return self.body.decode("utf-8")