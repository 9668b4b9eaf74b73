"""Serialization of responses and errors in the formats clients accept."""

from __future__ import annotations

import dataclasses
import json
import logging
import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, ClassVar

import yaml

from ignis.exchange import Headers, Request, ResponseRecorder

_log = logging.getLogger(__name__)

_YAML_TYPES = ("application/x-yaml", "text/yaml; charset=utf-8", "application/yaml")


class HTML(str):
    """A string sent verbatim as HTML."""


@dataclass(eq=False)
class HTTPError(Exception):
    """An error carrying an HTTP status and problem details."""

    title: str = ""
    detail: str = ""
    status: int = 0
    err: BaseException | None = None
    errors: list[Any] = field(default_factory=list)
    instance: str = ""

    _default_status: ClassVar[int] = 500

    def status_code(self) -> int:
        return self.status or self._default_status

    def __str__(self) -> str:
        title = self.title or HTTPStatus(self.status_code()).phrase
        text = f"{title} ({self.status_code()})"
        reason = self.detail or (str(self.err) if self.err else "")
        return f"{text}: {reason}" if reason else text

    def public_error(self) -> str:
        """Return a message fit to show to a client."""
        status = self.status_code()
        text = f"{status} {self.title or HTTPStatus(status).phrase}"
        if self.detail:
            text += f" ({self.detail})"
        return text

    def to_dict(self) -> dict[str, Any]:
        """Return the non-empty problem fields, in document order."""
        data: dict[str, Any] = {}
        if self.title:
            data["title"] = self.title
        if self.status:
            data["status"] = self.status
        if self.detail:
            data["detail"] = self.detail
        if self.instance:
            data["instance"] = self.instance
        if self.errors:
            data["errors"] = list(self.errors)
        return data


@dataclass(eq=False)
class NotAcceptableError(HTTPError):
    _default_status: ClassVar[int] = 406


@dataclass(eq=False)
class InternalServerError(HTTPError):
    _default_status: ClassVar[int] = 500


@dataclass(eq=False)
class BadRequestError(HTTPError):
    _default_status: ClassVar[int] = 400


def _status_of(err: BaseException) -> int:
    method = getattr(err, "status_code", None)
    return method() if callable(method) else 500


def _plain(value: Any, seen: set[int] | None = None) -> Any:
    """Convert ``value`` to JSON-like builtins; raise TypeError or ValueError."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    seen = seen if seen is not None else set()
    if id(value) in seen:
        raise ValueError("circular reference detected")
    seen.add(id(value))
    try:
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return _plain(to_dict(), seen)
        if isinstance(value, BaseException):
            return {}
        if isinstance(value, Mapping):
            return {str(k): _plain(v, seen) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [_plain(item, seen) for item in value]
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {f.name: _plain(getattr(value, f.name), seen) for f in dataclasses.fields(value)}
        raise TypeError(f"unsupported type: {type(value).__name__}")
    finally:
        seen.discard(id(value))


def _positional_count(func: Any) -> int | None:
    """Count the positional parameters a callable takes, not counting a bound self."""
    target = getattr(func, "__func__", func)
    code = getattr(target, "__code__", None)
    if code is None:
        call = getattr(type(func), "__call__", None)
        code = getattr(call, "__code__", None)
        if code is None:
            return None
        return code.co_argcount - 1
    count = code.co_argcount
    if getattr(func, "__self__", None) is not None:
        count -= 1
    return count


def _render_kind(value: Any) -> str | None:
    if isinstance(value, str):
        return None
    render = getattr(value, "render", None)
    if not callable(render):
        return None
    return {1: "renderer", 2: "ctx"}.get(_positional_count(render))


def transform_out(ctx: Any, value: Any) -> Any:
    """Let ``value`` transform itself through ``out_transform(ctx)`` before sending."""
    if value is None:
        return None
    transform = getattr(value, "out_transform", None)
    if callable(transform):
        transform(ctx)
    return value


def send(w: ResponseRecorder, r: Request, value: Any) -> None:
    """Send ``value`` in the first format of the Accept header that succeeds."""
    error: BaseException | None = None
    senders = {
        "application/xml": send_xml,
        "text/html": send_html,
        "text/plain": send_text,
        "application/json": send_json,
        **{kind: send_yaml for kind in _YAML_TYPES},
    }
    for accepted in parse_accept_header(r.headers):
        sender = senders.get(infer_accept_header(accepted, value))
        if sender is None:
            continue
        try:
            sender(w, r, value)
            return
        except Exception as exc:  # noqa: BLE001 - try the next format
            error = exc
    if error is not None:
        raise error
    raise ValueError("no supported Accept header was not provided from: " + r.headers.get("Accept"))


def send_yaml(w: ResponseRecorder, r: Request | None, value: Any) -> None:
    """Write ``value`` as YAML."""
    w.headers.set("Content-Type", "application/x-yaml")
    try:
        text = yaml.safe_dump(_plain(value), sort_keys=False, default_flow_style=False)
    except (TypeError, ValueError, yaml.YAMLError) as exc:
        raise HTTPError(err=exc, detail="Cannot serialize returned response to YAML") from exc
    try:
        w.write(text.encode("utf-8"))
    except Exception:
        w.write_header(500)
        _log.error("Cannot serialize returned response to YAML")
        try:
            w.write(b'{"error":"Cannot serialize returned response to YAML"}')
        except Exception:  # noqa: BLE001
            pass
        raise


def send_yaml_error(w: ResponseRecorder, r: Request | None, err: BaseException) -> None:
    """Write ``err`` as YAML with its status."""
    w.write_header(_status_of(err))
    try:
        send_yaml(w, None, err)
    except Exception:  # noqa: BLE001
        pass


def send_json(w: ResponseRecorder, r: Request | None, value: Any) -> None:
    """Write ``value`` as JSON followed by a newline."""
    w.headers.set("Content-Type", "application/json")
    try:
        text = json.dumps(_plain(value), separators=(",", ":"), ensure_ascii=False)
    except TypeError as exc:
        _log.error("Cannot serialize returned response to JSON: %s", exc)
        raise NotAcceptableError(
            err=exc, detail=f"Cannot serialize type {type(value).__name__} to JSON"
        ) from exc
    w.write((text + "\n").encode("utf-8"))


def send_error(w: ResponseRecorder, r: Request | None, err: BaseException) -> None:
    """Write ``err`` in the first format of the Accept header, JSON otherwise."""
    senders = {
        "application/xml": send_xml_error,
        "text/html": send_html_error,
        "text/plain": send_text_error,
        "application/json": send_json_error,
        **{kind: send_yaml_error for kind in _YAML_TYPES},
    }
    headers = r.headers if r is not None else Headers()
    for accepted in parse_accept_header(headers):
        sender = senders.get(infer_accept_header(accepted, None))
        if sender is not None:
            sender(w, r, err)
            return
    send_json_error(w, r, err)


def send_json_error(w: ResponseRecorder, r: Request | None, err: BaseException) -> None:
    """Write ``err`` as JSON with its status."""
    status = _status_of(err)
    w.headers.set("Content-Type", "application/json")
    if isinstance(err, HTTPError):
        w.headers.set("Content-Type", "application/problem+json")
    w.write_header(status)
    try:
        send_json(w, None, err)
    except Exception:  # noqa: BLE001
        pass


def _xml_element(tag: str, value: Any) -> ET.Element:
    element = ET.Element(tag)
    data = _plain(value)
    if isinstance(data, Mapping):
        for key, item in data.items():
            items = item if isinstance(item, list) else [item]
            for entry in items:
                if entry is not None:
                    element.append(_xml_element(key, entry))
    elif isinstance(data, bool):
        element.text = "true" if data else "false"
    elif data is not None:
        element.text = str(data)
    return element


def send_xml(w: ResponseRecorder, r: Request | None, value: Any) -> None:
    """Write ``value`` as XML named after its type."""
    w.headers.set("Content-Type", "application/xml")
    try:
        text = ET.tostring(_xml_element(type(value).__name__, value), encoding="unicode")
    except TypeError as exc:
        _log.error("Cannot serialize returned response to XML: %s", exc)
        raise NotAcceptableError(
            err=exc, detail=f"Cannot serialize type {type(value).__name__} to XML"
        ) from exc
    w.write(text.encode("utf-8"))


def send_xml_error(w: ResponseRecorder, r: Request | None, err: BaseException) -> None:
    """Write ``err`` as XML with its status."""
    w.write_header(_status_of(err))
    try:
        send_xml(w, None, err)
    except Exception:  # noqa: BLE001
        _log.error("Cannot serialize returned response to XML")
        try:
            w.write(b'{"error":"Cannot serialize returned response to XML"}')
        except Exception:  # noqa: BLE001
            pass


def send_html(w: ResponseRecorder, r: Request | None, value: Any) -> None:
    """Write ``value`` as HTML: a renderer, HTML or a string."""
    w.headers.set("Content-Type", "text/html; charset=utf-8")
    kind = _render_kind(value)
    if kind == "ctx":
        value.render(r.context if r is not None else None, w)
    elif kind == "renderer":
        value.render(w)
    elif isinstance(value, str):
        w.write(value.encode("utf-8"))
    else:
        raise TypeError(
            f"cannot serialize HTML from type {type(value).__name__} "
            "(not string, HTML and not a renderer)"
        )


def send_html_error(w: ResponseRecorder, r: Request | None, err: BaseException) -> None:
    """Write ``err`` as HTML with its status."""
    status = _status_of(err)
    w.write_header(status)
    try:
        if isinstance(err, HTTPError):
            send_html(w, None, dataclasses.replace(err, status=status).public_error())
        else:
            send_html(w, None, str(err))
    except Exception:  # noqa: BLE001
        pass


def send_text(w: ResponseRecorder, r: Request | None, value: Any) -> None:
    """Write ``value`` as plain text."""
    w.headers.set("Content-Type", "text/plain; charset=utf-8")
    w.write(str(value).encode("utf-8"))


def send_text_error(w: ResponseRecorder, r: Request | None, err: BaseException) -> None:
    """Write ``err`` as plain text with its status."""
    status = _status_of(err)
    w.write_header(status)
    try:
        if isinstance(err, HTTPError):
            send_text(w, None, dataclasses.replace(err, status=status).public_error())
        else:
            send_text(w, None, str(err))
    except Exception:  # noqa: BLE001
        pass


def infer_accept_header_from_type(value: Any) -> str:
    """Guess the best content type for ``value``."""
    if isinstance(value, HTML) or _render_kind(value) is not None:
        return "text/html"
    if isinstance(value, str):
        return "text/plain"
    return "application/json"


def infer_accept_header(accept: str, value: Any) -> str:
    """Return ``accept``, or a guess from ``value`` when it is empty or */*."""
    if accept in ("", "*/*"):
        return infer_accept_header_from_type(value)
    return accept


def parse_accept_header(headers: Headers) -> list[str]:
    """Split the Accept header into media types, dropping quality parameters."""
    accept = headers.get("Accept")
    if not accept:
        return [""]
    values = []
    for part in accept.split(","):
        index = part.find(";")
        values.append(part[:index] if index > 0 else part)
    return values