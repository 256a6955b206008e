# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for the fluent Router API and reusable components."""

import pytest

from genro_layers import (
    GuardedHandler,
    Handler,
    Layer,
    Middleware,
    MiddlewareRouter,
    RequestMiddleware,
    RouteHandle,
    Router,
    create,
    execute_chain,
    middleware,
    route,
)


class Response:
    def __init__(self):
        self.headers_sent = False
        self.body = None

    def send(self, body):
        self.body = body
        self.headers_sent = True


def list_users(request, response, next):
    response.send(["alice", "bob"])


def stats(request, response, next):
    response.send({"users": 2})


def show(request, response, next):
    response.send(request["user"])


def make_authenticate(calls):
    def authenticate(request, response, next):
        calls.append("authenticate")
        request["user"] = "alice"
        next()

    return authenticate


def test_create_and_flatten_quick_example():
    app = create()
    app.get("/users", doc_summary="list").handler(list_users)
    admin = app.route("/admin", {"tags": ["ops"]})
    admin.get("/stats").handler(stats)

    routes = app.routes

    assert [(r.index, r.method, r.path, r.doc) for r in routes] == [
        (0, "get", "/users", {"summary": "list"}),
        (1, "get", "/admin/stats", {"tags": ["ops"]}),
    ]
    assert all(isinstance(h, GuardedHandler) for r in routes for h in r.handlers)
    assert routes[0].handler.func is list_users


def test_router_path_and_repr():
    app = create("/api/")
    child = app.route("v1")
    assert app.path == "/api"
    assert child.path == "/api/v1"
    assert "'/api/v1'" in repr(child)


def test_doc_keyword_arguments_merge_with_explicit_doc():
    app = create()
    app.post("/items", {"tags": ["items"]}, doc_summary="create", doc_tags=["write"]).handler(stats)

    assert app.routes[0].doc == {"tags": ["items", "write"], "summary": "create"}


def test_unexpected_keyword_argument_is_rejected():
    with pytest.raises(TypeError, match="summary"):
        create().get("/x", summary="nope")


def test_route_handle_exposes_entry_and_amends_doc():
    app = create()
    handle = app.get("/users/:id").middleware(lambda rq, rs, nx: nx()).handler(show)

    assert isinstance(handle, RouteHandle)
    assert handle.method == "get"
    assert handle.path == "/users/:id"
    assert len(handle.middlewares) == 2
    assert handle.handler.func is show

    returned = handle.doc(
        {"summary": "Get a user", "components": {"schemas": {"User": {"type": "object"}}}},
        {"securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer"}}},
    )

    assert returned is handle
    assert app.routes[0].doc == {
        "summary": "Get a user",
        "components": {
            "schemas": {"User": {"type": "object"}},
            "securitySchemes": {"BearerAuth": {"type": "http", "scheme": "bearer"}},
        },
    }
    assert handle.fragment == app.routes[0].doc


def test_request_handler_middleware_doc_joins_route_fragment():
    app = create()
    app.get("/x", doc_summary="x").middleware(
        lambda rq, rs, nx: nx(), {"parameters": [{"name": "q", "in": "query"}]}
    ).handler(stats, {"tags": ["x"]})

    assert app.routes[0].doc == {
        "summary": "x",
        "parameters": [{"name": "q", "in": "query"}],
        "tags": ["x"],
    }


def test_router_doc_sets_base_for_later_entries():
    app = create()
    app.get("/before").handler(stats)
    app.doc({"tags": ["base"]})
    app.get("/after").handler(stats)

    before, after = app.routes
    assert before.doc == {}
    assert after.doc == {"tags": ["base"]}


def test_router_amend_doc():
    app = create()
    app.get("/a").handler(stats)
    app.route("/b").get("").handler(stats)

    app.amend_doc(1, {"summary": "B"}, {"schemas": {"B": {"type": "string"}}})

    assert app.routes[1].doc == {"summary": "B", "components": {"schemas": {"B": {"type": "string"}}}}
    assert app.routes[0].doc == {}


def test_middleware_doc_is_inherited_by_following_routes():
    app = create()
    app.middleware(lambda rq, rs, nx: nx(), {"security": [{"BearerAuth": []}]})
    app.get("/me").handler(show, {"summary": "me"})

    assert app.routes[0].doc == {"security": [{"BearerAuth": []}], "summary": "me"}


def test_middleware_decorator_attaches_fragment():
    @middleware(tags=["audit"])
    def audit(request, response, next):
        next()

    auth = middleware(make_authenticate([]), {"security": [{"BearerAuth": []}]})

    app = create()
    app.middleware(audit)
    app.middleware(auth)
    app.get("/x").handler(stats)

    assert app.routes[0].doc == {"tags": ["audit"], "security": [{"BearerAuth": []}]}


@pytest.mark.asyncio
async def test_middleware_component_shared_across_routers_runs_once():
    calls = []
    auth = Middleware(make_authenticate(calls), doc={"security": [{"BearerAuth": []}]})

    app = create()
    app.middleware(auth)
    admin = app.route("/admin")
    admin.middleware(auth)
    admin.get("/me").handler(show)

    route_ = app.routes[0]
    assert route_.handlers[0] is route_.handlers[1]
    assert route_.doc == {"security": [{"BearerAuth": []}]}

    response = Response()
    await execute_chain(route_.handlers, {}, response)
    assert calls == ["authenticate"]
    assert response.body == "alice"


def test_middleware_component_on_request_handler():
    auth = Middleware(make_authenticate([]))
    app = create()
    app.get("/me").middleware(auth).handler(show)

    assert app.routes[0].handlers[0] is auth.handlers[0]
    assert len(app.routes[0].handlers) == 2


def test_middleware_component_chains_callbacks():
    def load(request, response, next):
        next()

    base = Middleware(make_authenticate([]))
    chained = base.middleware(load)

    assert isinstance(chained, Middleware)
    assert [h.func for h in chained.handlers][1] is load
    assert chained.router is base.router
    assert len(chained.chains) == 2


def test_request_middleware_wraps_another_component():
    inner = RequestMiddleware(make_authenticate([]))
    outer = RequestMiddleware(inner)

    assert outer.handlers == inner.handlers
    with pytest.raises(TypeError):
        RequestMiddleware(42)


@pytest.mark.asyncio
async def test_handler_component_closes_chain():
    calls = []
    finished = Middleware(make_authenticate(calls)).handler(show)

    assert isinstance(finished, Handler)
    assert len(finished.handlers) == 2

    app = create()
    app.get("/me").handler(finished)
    route_ = app.routes[0]
    assert route_.handlers == finished.handlers

    response = Response()
    await execute_chain(route_.handlers, {}, response)
    assert calls == ["authenticate"]
    assert response.body == "alice"


def test_router_handler_builds_component():
    app = create()
    component = app.handler(stats, {"summary": "stats"})

    assert isinstance(component, Handler)
    assert component.handlers[0].doc == {"summary": "stats"}
    app.get("/stats").handler(component)
    assert app.routes[0].doc == {"summary": "stats"}


def test_handler_component_copies_another():
    original = Handler(stats)
    copy = Handler(original)
    assert copy.handlers == original.handlers
    with pytest.raises(TypeError):
        Handler("nope")


def test_middleware_router_declares_routes_behind_middleware():
    auth = make_authenticate([])
    guarded = MiddlewareRouter(auth)
    guarded.route("/api").get("/x").handler(stats)

    routes = guarded.router.routes
    assert [r.path for r in routes] == ["/api/x"]
    assert routes[0].handlers[0].func is auth


def test_middleware_router_by_attaches_router():
    users = route("/users")
    users.get("").handler(list_users)
    guarded = MiddlewareRouter(make_authenticate([]))

    assert guarded.by(users) is guarded
    assert [r.path for r in guarded.router.routes] == ["/users"]
    assert len(guarded.router.routes[0].handlers) == 2


def test_by_attaches_router_or_layer_by_reference():
    users = route("/users")
    users.get("").handler(list_users)
    layer = Layer("/raw")
    layer.get("/x", [stats])

    app = create("/api")
    app.by(users).by(layer, "/v1")
    users.post("").handler(stats)

    assert [(r.method, r.path) for r in app.routes] == [
        ("get", "/api/users"),
        ("post", "/api/users"),
        ("get", "/api/v1/raw/x"),
    ]


def test_misuse_raises():
    app = create()
    with pytest.raises(TypeError):
        app.by(123)
    with pytest.raises(TypeError):
        app.middleware(123)
    with pytest.raises(TypeError):
        app.get("/x").middleware(123)
    with pytest.raises(TypeError):
        app.get("/x").handler(123)
    with pytest.raises(TypeError):
        Router(layer="not a layer")
    assert app.routes == []


def test_router_over_existing_layer():
    layer = Layer("/base")
    router = Router(layer=layer)
    router.get("/x").handler(stats)

    assert layer.routes[0].path == "/base/x"
    assert router.layer is layer
