from ignis.exchange import Cookie, Headers, Request, ResponseRecorder


def test_headers_are_case_insensitive():
    headers = Headers()
    headers.set("Content-Type", "text/plain")
    assert headers.get("content-type") == "text/plain"
    assert "CONTENT-TYPE" in headers


def test_headers_get_default_and_add():
    headers = Headers()
    assert headers.get("Accept") == ""
    assert headers.get("Accept", "x") == "x"
    headers.add("Accept", "a")
    headers.add("accept", "b")
    assert headers.get("Accept") == "a"
    assert headers.get_all("ACCEPT") == ["a", "b"]
    headers.set("Accept", "c")
    assert headers.get_all("Accept") == ["c"]


def test_form_value_from_query():
    request = Request(target="/?jwt=123")
    assert request.form_value("jwt") == "123"
    assert request.form_value("missing") == ""


def test_form_value_from_body():
    request = Request(
        method="POST",
        headers=Headers({"Content-Type": "application/x-www-form-urlencoded"}),
        body=b"user=test",
    )
    assert request.form_value("user") == "test"


def test_cookie_lookup():
    request = Request(headers=Headers({"Cookie": "jwt_token=456"}))
    found = request.cookie("jwt_token")
    assert found.value == "456"
    assert request.cookie("other") is None


def test_with_context_copies():
    request = Request()
    other = request.with_context("k", 1)
    assert other.context == {"k": 1}
    assert request.context == {}


def test_recorder_first_status_wins():
    recorder = ResponseRecorder()
    recorder.write_header(201)
    recorder.write_header(500)
    recorder.write(b"hi")
    assert recorder.status == 201
    assert recorder.text() == "hi"


def test_recorder_write_defaults_to_ok():
    recorder = ResponseRecorder()
    recorder.write("x")
    recorder.write_header(404)
    assert recorder.status == 200


def test_recorder_cookies():
    recorder = ResponseRecorder()
    recorder.set_cookie(Cookie(name="jwt_token", value="token", http_only=True))
    assert [c.name for c in recorder.cookies()] == ["jwt_token"]
    assert recorder.headers.get("Set-Cookie").startswith("jwt_token=token")