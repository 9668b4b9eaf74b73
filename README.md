# ignis

Building blocks for HTTP applications that document themselves in OpenAPI terms:

- **Route options** (`ignis.option`, `ignis.param`, `ignis.route`): composable functions that
  declare query, header, cookie and path parameters, response headers, tags, summaries,
  descriptions, security requirements and more on a route.
- **Content negotiation** (`ignis.serialization`): send a value or an error as JSON, XML,
  YAML, HTML or plain text, chosen from the request's `Accept` header.
- **JWT security** (`ignis.security`): ES256-signed tokens, cookie handling, middleware that
  puts validated claims on the request, and role-based access walls.
- **In-memory HTTP objects** (`ignis.exchange`): `Headers`, `Cookie`, `Request` and a
  `ResponseRecorder` that the helpers above read from and write to.
- **Helpers**: `ignis.params.parse_path_params` lists the parameters of a path pattern, and
  `ignis.perf.Timing` formats a `Server-Timing` header entry.

## Installation

```
pip install ignis
```

To run the test suite, install the `test` extra and run `pytest`:

```
pip install "ignis[test]"
pytest
```

## Declaring routes

```python
from ignis import option, param
from ignis.route import new_base_route

def list_pets():
    ...

route = new_base_route(
    "GET",
    "/pets/{id}/",
    list_pets,
    option.query("name", "Filter by name", param.example("cat name", "felix")),
    option.query_int("per_page", "Items per page", param.default(20)),
    option.path("id", "Pet identifier"),
    option.tags("pets"),
    option.summary("List pets"),
    option.strip_trailing_slash(),
)
route.generate_default_operation_id()

print(route.path)                    # /pets/{id}
print(route.operation.operation_id)  # GET_/pets/:id
print(route.params["per_page"].default)  # 20
```

Each parameter option also adds a parameter object to `route.operation.parameters`.
A default or example whose type does not match the declared type (`string`, `integer`,
`boolean`) raises `TypeError` when the option is built.

Options can be bundled and reused with `option.group(...)`. Response headers are documented
on chosen responses (200 when none are given) with
`option.response_header("Content-Range", "Pagination range", param.status_codes(200, 206))`.
`option.security(...)` raises `ValueError` unless every scheme it names is declared under
`components.securitySchemes` in `route.openapi`.

Path parameters in a pattern can be listed with `parse_path_params`:

```python
from ignis.params import parse_path_params

parse_path_params("/item/{user}/{id}")  # ['user', 'id']
```

## Sending responses

```python
from ignis.exchange import Headers, Request, ResponseRecorder
from ignis.serialization import BadRequestError, send, send_error

request = Request("GET", "/", headers=Headers({"Accept": "application/json"}))

response = ResponseRecorder()
send(response, request, {"message": "Hello World", "code": 200})
print(response.text())  # {"message":"Hello World","code":200}

failed = ResponseRecorder()
send_error(failed, request, BadRequestError(detail="missing field"))
print(failed.status)  # 400
```

When the client accepts anything, strings go out as `text/plain`, and `HTML` values or
objects with a `render` method as `text/html`; everything else goes out as JSON. Errors with
a status (`HTTPError` and its subclasses) set the response status; other errors give 500.
Before sending, `transform_out(ctx, value)` calls `value.out_transform(ctx)` when the value
has one.

## Security

```python
from ignis.exchange import ResponseRecorder
from ignis.security import Security, auth_wall, token_from_cookie, token_from_header

security = Security()
issued = security.generate_token({"sub": "123", "roles": ["admin"]})

def my_handler(w, r):
    w.write("welcome")

# Put validated claims on the request, then only let admins through.
protect = security.token_to_context(token_from_header, token_from_cookie)
handler = protect(auth_wall("admin")(my_handler))
```

`security.std_login_handler(verify)` issues a token in a cookie and in the body once
`verify` accepts the request; `security.refresh_handler` renews the token found on the
request, and `security.cookie_logout_handler` replaces the cookie with an expired one.
`auth_wall_regex(pattern)` lets through users with a role matching a regular expression.

## What this package does not do

It does not listen on a socket or route requests: there is no server and no router, and
`Request` and `ResponseRecorder` are in-memory objects. It does not assemble or publish a
complete OpenAPI document, and it does not decode or validate request bodies. Handlers are
plain callables taking `(response, request)`, to be wired into whatever serves them.