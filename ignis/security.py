"""JWT issuing and checking, token extraction and role-based access walls."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, ClassVar

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

from ignis.exchange import Cookie, Request, ResponseRecorder
from ignis.serialization import HTTPError, send_json, send_json_error

_log = logging.getLogger(__name__)

JWT_COOKIE_NAME = "jwt_token"

_CONTEXT_KEY_JWT = "jwtInfo"

Handler = Callable[[ResponseRecorder, Request], None]
Middleware = Callable[[Handler], Handler]
TokenSearch = Callable[[Request], str]
RoleCheck = Callable[..., bool]


@dataclass(eq=False)
class UnauthorizedError(HTTPError):
    """The client is not authenticated."""

    _default_status: ClassVar[int] = 401


@dataclass(eq=False)
class ForbiddenError(HTTPError):
    """The client is authenticated but not allowed."""

    _default_status: ClassVar[int] = 403


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Security:
    """Signs and validates ES256 tokens with a key generated at creation.

    The key is kept private; use the methods to work with tokens.
    """

    def __init__(
        self,
        now: Callable[[], datetime] | None = None,
        expires_interval: timedelta = timedelta(hours=24),
    ) -> None:
        self._key = ec.generate_private_key(ec.SECP256R1())
        self.now: Callable[[], datetime] = now or _utc_now
        self.expires_interval = expires_interval

    def _timestamp(self) -> int:
        return int(self.now().timestamp())

    def generate_token(self, claims: Mapping[str, Any]) -> str:
        """Sign ``claims``; a plain dict of claims gets its ``iat`` set to now."""
        if isinstance(claims, MutableMapping):
            claims["iat"] = self._timestamp()
        return jwt.encode(dict(claims), self._key, algorithm="ES256")

    def generate_token_to_cookies(self, claims: Mapping[str, Any], w: ResponseRecorder) -> str:
        """Sign ``claims``, set the token as a cookie on ``w`` and return it."""
        token = self.generate_token(claims)
        w.set_cookie(
            Cookie(
                name=JWT_COOKIE_NAME,
                value=token,
                expires=self.now() + self.expires_interval,
                http_only=True,
                max_age=int(self.expires_interval.total_seconds()),
            )
        )
        return token

    def validate_token(self, token: str) -> dict[str, Any]:
        """Check the signature and age of ``token`` and return its claims.

        Raises jwt.InvalidTokenError for malformed or badly signed tokens
        and UnauthorizedError when the token is too old.
        """
        claims = jwt.decode(
            token,
            self._key.public_key(),
            algorithms=["ES256"],
            leeway=timedelta(seconds=5),
            options={"verify_aud": False},
        )
        issued_at = claims.get("iat")
        if issued_at is None or (
            float(issued_at) + self.expires_interval.total_seconds() < float(self._timestamp())
        ):
            raise UnauthorizedError(title="Token expired")
        return claims

    def token_to_context(self, *search_funcs: TokenSearch) -> Middleware:
        """Middleware that validates a found token and stores its claims in the request.

        Requests without a token pass through unchanged; an invalid token
        ends the request with an error.
        """

        def middleware(next_handler: Handler) -> Handler:
            def handler(w: ResponseRecorder, r: Request) -> None:
                token = next((found for found in (f(r) for f in search_funcs) if found), "")
                if not token:
                    next_handler(w, r)
                    return
                try:
                    claims = self.validate_token(token)
                except Exception as exc:  # noqa: BLE001 - reported to the client
                    send_json_error(w, None, exc)
                    return
                next_handler(w, r.with_context(_CONTEXT_KEY_JWT, claims))

            return handler

        return middleware

    def std_login_handler(
        self, verify_user_info: Callable[[Request], Mapping[str, Any]]
    ) -> Handler:
        """Handler that checks credentials with ``verify_user_info`` and issues a token."""

        def handler(w: ResponseRecorder, r: Request) -> None:
            try:
                claims = verify_user_info(r)
                token = self.generate_token_to_cookies(claims, w)
            except Exception as exc:  # noqa: BLE001 - reported to the client
                send_json_error(w, None, exc)
                return
            _send_token(w, r, token)

        return handler

    def refresh_handler(self, w: ResponseRecorder, r: Request) -> None:
        """Issue a new token with the claims of the one in the request."""
        try:
            claims = token_from_context(r)
        except UnauthorizedError:
            send_json_error(w, None, UnauthorizedError(title="Could not find token in context"))
            return
        try:
            token = self.generate_token_to_cookies(claims, w)
        except Exception as exc:  # noqa: BLE001 - reported to the client
            send_json_error(w, None, exc)
            return
        _send_token(w, None, token)

    def cookie_logout_handler(self, w: ResponseRecorder, r: Request) -> None:
        """Replace the token cookie with an expired one."""
        w.set_cookie(Cookie(name=JWT_COOKIE_NAME, expires=self.now() - self.expires_interval))


def _send_token(w: ResponseRecorder, r: Request | None, token: str) -> None:
    try:
        send_json(w, r, {"token": token})
    except Exception as exc:  # noqa: BLE001 - nothing more can be sent
        _log.error("Cannot send token: %s", exc)


def with_value(request: Request, claims: Any) -> Request:
    """Return a copy of ``request`` carrying ``claims`` as its token."""
    return request.with_context(_CONTEXT_KEY_JWT, claims)


def token_from_context(request: Request) -> dict[str, Any]:
    """Return the validated claims stored in ``request``.

    Raises UnauthorizedError if there are none or they are not a claims dict.
    """
    value = request.context.get(_CONTEXT_KEY_JWT)
    if value is None:
        raise UnauthorizedError(title="Could not find token in context")
    if not isinstance(value, dict):
        raise UnauthorizedError(title="Invalid token type")
    return value


def get_token(request: Request, kind: type = object) -> Any:
    """Return the claims stored in ``request``, checked to be of ``kind``."""
    claims = token_from_context(request)
    if not isinstance(claims, kind):
        raise UnauthorizedError(title="Invalid token type")
    return claims


def token_from_header(request: Request) -> str:
    """Return the bearer token of the Authorization header, or ''."""
    authorization = request.headers.get("Authorization")
    if len(authorization) < 7 or not authorization.startswith("Bearer "):
        return ""
    return authorization[7:].strip()


def token_from_cookie(request: Request) -> str:
    """Return the token cookie value, or ''."""
    cookie = request.cookie(JWT_COOKIE_NAME)
    return cookie.value if cookie is not None else ""


def token_from_query_param(request: Request) -> str:
    """Return the ``jwt`` form or query value, or ''."""
    return request.form_value("jwt")


def check_roles_or(*accepted_roles: str) -> RoleCheck:
    """Return a check passing when a user has at least one accepted role."""

    def check(*user_roles: str) -> bool:
        if not accepted_roles:
            _log.warning(
                "You are using AuthWall with no accepted roles. "
                "This means that no users can be accepted."
            )
        return any(role in user_roles for role in accepted_roles)

    return check


def check_roles_regex(pattern: re.Pattern[str]) -> RoleCheck:
    """Return a check passing when a user role matches ``pattern``."""

    def check(*user_roles: str) -> bool:
        return any(pattern.search(role) for role in user_roles)

    return check


def _auth_wall(authorize: RoleCheck) -> Middleware:
    def middleware(next_handler: Handler) -> Handler:
        def handler(w: ResponseRecorder, r: Request) -> None:
            try:
                claims = token_from_context(r)
            except UnauthorizedError:
                send_json_error(w, None, UnauthorizedError(title="Unauthorized"))
                return
            roles = claims.get("roles")
            if not isinstance(roles, (list, tuple)) or not all(
                isinstance(role, str) for role in roles
            ):
                send_json_error(w, None, UnauthorizedError(title="Could not find roles in token"))
                return
            if not authorize(*roles):
                send_json_error(w, None, ForbiddenError(title="Access denied"))
                return
            next_handler(w, r)

        return handler

    return middleware


def auth_wall(*authorized_roles: str) -> Middleware:
    """Middleware letting through users with at least one of the given roles.

    With no roles given, every user is blocked.
    """
    return _auth_wall(check_roles_or(*authorized_roles))


def auth_wall_regexp(pattern: re.Pattern[str]) -> Middleware:
    """Middleware letting through users with a role matching ``pattern``."""
    return _auth_wall(check_roles_regex(pattern))


def auth_wall_regex(pattern: str) -> Middleware:
    """Middleware letting through users with a role matching the regex ``pattern``."""
    return auth_wall_regexp(re.compile(pattern))