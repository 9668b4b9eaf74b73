from ignis.route import BaseRoute, Operation, new_base_route


def sample_handler():
    return "ok"


def test_new_base_route_fields():
    spec = {"components": {}}
    route = new_base_route(
        "GET", "/items", sample_handler, openapi=spec, request_content_types=["application/json"]
    )
    assert route.method == "GET"
    assert route.path == "/items"
    assert route.params == {}
    assert route.openapi is spec
    assert route.request_content_types == ["application/json"]
    assert route.full_name.endswith("sample_handler")


def test_new_base_route_applies_options_in_order():
    def first(route):
        route.operation.summary = "first"

    def second(route):
        route.operation.summary += "+second"

    route = new_base_route("POST", "/x", sample_handler, first, second)
    assert route.operation.summary == "first+second"


def test_routes_do_not_share_state():
    one = new_base_route("GET", "/a", sample_handler)
    two = new_base_route("GET", "/b", sample_handler)
    one.operation.tags.append("tag")
    one.params["p"] = None
    assert two.operation.tags == []
    assert two.params == {}


def test_generate_default_operation_id():
    route = BaseRoute(method="GET", path="/item/{id}")
    route.generate_default_operation_id()
    assert route.operation.operation_id == "GET_/item/:id"


def test_generate_default_operation_id_removes_braces():
    route = BaseRoute(method="POST", path="/a/{x}/{y}")
    route.generate_default_operation_id()
    operation_id = route.operation.operation_id
    assert operation_id.startswith("POST_")
    assert "{" not in operation_id and "}" not in operation_id
    assert operation_id.count(":") == 2


def test_operation_response_round_trip():
    operation = Operation()
    response = {"description": "Created"}
    operation.set_response(201, response)
    assert operation.response(201) is response
    assert operation.response("201") is response
    assert operation.response(404) is None


def test_operation_set_response_replaces():
    operation = Operation()
    operation.set_response("default", {"description": "a"})
    operation.set_response("default", {"description": "b"})
    assert operation.response("default") == {"description": "b"}
    assert len(operation.responses) == 1


def test_operation_add_parameter_keeps_order():
    operation = Operation()
    operation.add_parameter({"name": "a"})
    operation.add_parameter({"name": "b"})
    assert [p["name"] for p in operation.parameters] == ["a", "b"]