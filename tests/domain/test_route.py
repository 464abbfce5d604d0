import pickle

from routecache.domain.route import Route, RouteCollection, join_path


def test_join_path():
    assert join_path("", "/users") == "/users"
    assert join_path("/api", "/") == "/api"
    assert join_path("api/", "users/{id}") == "/api/users/{id}"
    assert join_path("/", "/") == "/"

def test_route_normalizes_methods_and_path():
    route = Route(name="home", path="home", methods=frozenset({"get", "Post"}))
    assert route.path == "/home"
    assert route.methods == frozenset({"GET", "POST"})

def test_route_with_prefix():
    route = Route(name="show", path="/{id}", requirements={"id": r"\d+"})
    prefixed = route.with_prefix("/users")
    assert prefixed.path == "/users/{id}"
    assert prefixed.requirements == {"id": r"\d+"}
    assert route.path == "/{id}"
    assert route.with_prefix("") is route

def test_collection_add_replaces_and_moves_to_end():
    collection = RouteCollection([
        Route(name="a", path="/a"),
        Route(name="b", path="/b"),
    ])
    collection.add(Route(name="a", path="/a2"))

    assert collection.names() == ["b", "a"]
    assert collection.get("a").path == "/a2"
    assert len(collection) == 2

def test_collection_merge_later_definitions_win():
    base = RouteCollection([Route(name="home", path="/"), Route(name="about", path="/about")])
    other = RouteCollection([Route(name="home", path="/index"), Route(name="contact", path="/contact")])

    base.merge(other)

    assert base.names() == ["about", "home", "contact"]
    assert base.get("home").path == "/index"
    assert "contact" in base
    assert base.get("missing") is None

def test_collection_with_prefix_returns_new_collection():
    collection = RouteCollection([Route(name="list", path="/")])
    prefixed = collection.with_prefix("/users")
    assert prefixed.get("list").path == "/users"
    assert collection.get("list").path == "/"

def test_collection_equality_and_pickle():
    collection = RouteCollection([Route(name="home", path="/", methods=frozenset({"GET"}), handler="app:home")])
    restored = pickle.loads(pickle.dumps(collection))
    assert restored == collection
    assert restored != RouteCollection()
