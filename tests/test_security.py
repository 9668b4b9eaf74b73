import json
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from ignis.exchange import Headers, Request, ResponseRecorder
from ignis.security import (
    JWT_COOKIE_NAME,
    ForbiddenError,
    Security,
    UnauthorizedError,
    auth_wall,
    auth_wall_regex,
    auth_wall_regexp,
    check_roles_or,
    check_roles_regex,
    get_token,
    token_from_context,
    token_from_cookie,
    token_from_header,
    token_from_query_param,
    with_value,
)


def ok_handler(w, r):
    w.write_header(200)


def make_security(now, interval=timedelta(minutes=10)):
    security = Security()
    security.now = lambda: now
    security.expires_interval = interval
    return security


class TestTokens:
    def test_encode_decode(self):
        now = datetime.now(timezone.utc)
        security = make_security(now)
        signed = security.generate_token({"sub": "123"})
        assert signed.count(".") == 2

        security.now = lambda: now + timedelta(minutes=5)
        claims = security.validate_token(signed)
        assert claims["sub"] == "123"
        assert claims["iat"] == int(now.timestamp())

    def test_expired(self):
        now = datetime.now(timezone.utc)
        security = make_security(now)
        signed = security.generate_token({"sub": "123"})

        security.now = lambda: now + timedelta(minutes=15)
        with pytest.raises(UnauthorizedError) as info:
            security.validate_token(signed)
        assert info.value.title == "Token expired"
        assert info.value.status_code() == 401

    def test_token_from_other_key_is_rejected(self):
        signer = Security()
        signed = signer.generate_token({"sub": "123"})
        assert signer.validate_token(signed)["sub"] == "123"
        with pytest.raises(jwt.InvalidTokenError):
            Security().validate_token(signed)

    def test_generate_token_to_cookies(self):
        security = Security()
        w = ResponseRecorder()
        signed = security.generate_token_to_cookies(
            {"aud": "test", "iss": "test", "sub": "123"}, w
        )
        cookies = w.cookies()
        assert len(cookies) == 1
        assert cookies[0].name == JWT_COOKIE_NAME
        assert cookies[0].value == signed
        assert cookies[0].http_only is True
        assert cookies[0].max_age == 24 * 3600


class TestCheckRolesOr:
    def test_empty(self):
        check = check_roles_or("a", "b")
        assert check() is False

    def test_one(self):
        check = check_roles_or("a", "b")
        assert check("a") is True
        assert check("b") is True
        assert check("c") is False

    def test_multiple(self):
        check = check_roles_or("a", "b")
        assert check("a", "b") is True
        assert check("a", "c") is True
        assert check("b", "c") is True
        assert check("c", "d") is False

    def test_nobody_accepted(self):
        check = check_roles_or()
        assert check() is False
        assert check("a", "c") is False
        assert check("b", "c") is False


class TestCheckRolesRegex:
    def test_empty(self):
        check = check_roles_regex(re.compile(r"^a.*"))
        assert check() is False

    def test_one(self):
        check = check_roles_regex(re.compile(r"^a.*"))
        assert check("a") is True
        assert check("ab") is True
        assert check("b") is False

    def test_multiple(self):
        check = check_roles_regex(re.compile(r"^a.*"))
        assert check("a", "b") is True
        assert check("a", "c") is True
        assert check("b", "c") is False
        assert check("ca", "d") is False


class TestTokenExtraction:
    def test_query_param_missing(self):
        assert token_from_query_param(Request(target="/")) == ""

    def test_query_param_present(self):
        assert token_from_query_param(Request(target="/?jwt=token")) == "token"

    def test_header_missing(self):
        assert token_from_header(Request()) == ""

    @pytest.mark.parametrize("value", ["Bla", "Blabla token"])
    def test_header_invalid(self, value):
        request = Request(headers=Headers({"Authorization": value}))
        assert token_from_header(request) == ""

    def test_header_valid(self):
        request = Request(headers=Headers({"Authorization": "Bearer token"}))
        assert token_from_header(request) == "token"

    def test_cookie(self):
        request = Request(headers=Headers({"Cookie": f"{JWT_COOKIE_NAME}=token"}))
        assert token_from_cookie(request) == "token"

    def test_cookie_missing(self):
        assert token_from_cookie(Request()) == ""


class TestAuthWall:
    @pytest.mark.parametrize(
        "wall", [auth_wall("a", "b"), auth_wall_regex(r"^a.*"), auth_wall_regexp(re.compile("^a"))]
    )
    def test_forbidden_roles(self, wall):
        r = with_value(Request(), {"sub": "123", "roles": ["c", "d"]})
        w = ResponseRecorder()
        wall(ok_handler)(w, r)
        assert w.status == 403

    @pytest.mark.parametrize(
        "wall", [auth_wall("a", "b"), auth_wall_regex(r"^a.*"), auth_wall_regexp(re.compile("^a"))]
    )
    def test_accepted_roles(self, wall):
        r = with_value(Request(), {"sub": "123", "roles": ["a", "d"]})
        w = ResponseRecorder()
        wall(ok_handler)(w, r)
        assert w.status == 200

    def test_no_token(self):
        w = ResponseRecorder()
        auth_wall("a")(ok_handler)(w, Request())
        assert w.status == 401
        assert json.loads(w.text())["title"] == "Unauthorized"

    def test_no_roles(self):
        w = ResponseRecorder()
        auth_wall("a")(ok_handler)(w, with_value(Request(), {"sub": "123"}))
        assert w.status == 401
        assert json.loads(w.text())["title"] == "Could not find roles in token"

    def test_no_accepted_roles_blocks_everyone(self):
        w = ResponseRecorder()
        auth_wall()(ok_handler)(w, with_value(Request(), {"roles": ["a"]}))
        assert w.status == 403


class TestTokenFromContext:
    def test_no_token(self):
        with pytest.raises(UnauthorizedError):
            token_from_context(Request())

    def test_invalid_type(self):
        with pytest.raises(UnauthorizedError) as info:
            token_from_context(with_value(Request(), "123"))
        assert info.value.title == "Invalid token type"

    def test_with_token(self):
        claims = token_from_context(with_value(Request(), {"sub": "123"}))
        assert claims["sub"] == "123"


class TestTokenToContext:
    def setup_method(self):
        self.security = Security()
        self.seen = []

        def handler(w, r):
            self.seen.append(r.context)
            w.write_header(200)

        self.middleware = self.security.token_to_context(token_from_header)(handler)

    def test_no_token(self):
        w = ResponseRecorder()
        self.middleware(w, Request())
        assert w.status == 200

    def test_wrong_token(self):
        w = ResponseRecorder()
        self.middleware(w, Request(headers=Headers({"Authorization": "Bearer token"})))
        assert w.status == 500
        assert self.seen == []

    def test_correct_token(self):
        signed = self.security.generate_token({"sub": "123"})
        w = ResponseRecorder()
        request = Request(headers=Headers({"Authorization": "Bearer " + signed}))
        self.middleware(w, request)
        assert w.status == 200
        assert token_from_context(Request(context=self.seen[0]))["sub"] == "123"


def test_cookie_logout_handler():
    security = Security()
    w = ResponseRecorder()
    security.cookie_logout_handler(w, Request())
    cookies = w.cookies()
    assert len(cookies) == 1
    assert cookies[0].name == JWT_COOKIE_NAME
    assert cookies[0].value == ""
    assert cookies[0].expires < datetime.now(timezone.utc)


class TestRefreshHandler:
    def test_no_token(self):
        w = ResponseRecorder()
        Security().refresh_handler(w, Request())
        assert w.cookies() == []
        assert w.status == 401

    def test_with_token(self):
        now = datetime.now(timezone.utc)
        security = Security()
        r = with_value(
            Request(),
            {
                "aud": "test",
                "exp": now + timedelta(hours=1),
                "iat": now,
                "iss": "test",
                "nbf": now,
                "sub": "123",
            },
        )
        w = ResponseRecorder()
        security.refresh_handler(w, r)
        assert w.status == 200
        cookies = w.cookies()
        assert len(cookies) == 1
        assert cookies[0].name == JWT_COOKIE_NAME
        assert json.loads(w.text()) == {"token": cookies[0].value}


class TestStdLoginHandler:
    def setup_method(self):
        self.security = Security()

        def verify(r):
            if r.form_value("user") != "test" or r.form_value("password") != "password":
                raise UnauthorizedError()
            return {"sub": "123"}

        self.handler = self.security.std_login_handler(verify)

    def test_incorrect_ids(self):
        w = ResponseRecorder()
        self.handler(w, Request(target="/"))
        assert w.cookies() == []
        assert w.status == 401

    def test_correct_ids(self):
        w = ResponseRecorder()
        self.handler(w, Request(target="/?user=test&password=password"))
        cookies = w.cookies()
        assert len(cookies) == 1
        assert cookies[0].name == JWT_COOKIE_NAME
        assert self.security.validate_token(cookies[0].value)["sub"] == "123"


class TestGetToken:
    def test_no_token(self):
        with pytest.raises(UnauthorizedError):
            get_token(Request(), object)

    def test_valid_token(self):
        claims = get_token(with_value(Request(), {"sub": "123"}), dict)
        assert claims["sub"] == "123"

    def test_custom_type(self):
        @dataclass
        class MyToken:
            claims: dict = field(default_factory=dict)
            username: str = ""

        with pytest.raises(UnauthorizedError):
            get_token(with_value(Request(), MyToken(claims={"sub": "123"})), MyToken)


def test_error_statuses():
    assert UnauthorizedError().status_code() == 401
    assert ForbiddenError(title="Access denied").public_error() == "403 Access denied"