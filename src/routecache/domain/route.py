from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional


def join_path(prefix: str, path: str) -> str:
    """Joins a route prefix and a route path with exactly one slash between them."""
    prefix = prefix.strip("/")
    prefix = f"/{prefix}" if prefix else ""
    if path in ("", "/"):
        return prefix or "/"
    return f"{prefix}/{path.lstrip('/')}"


@dataclass(frozen=True)
class Route:
    """
    A single compiled route definition.
    Handlers are kept as dotted references ("package.module:function") so collections stay picklable.
    コンパイル済みの単一のルート定義。
    コレクションを pickle 可能に保つため、ハンドラーはドット区切りの参照として保持されます。

    Attributes:
        name (str): Unique route name. ルートの一意な名前。
        path (str): URL path pattern, e.g. "/users/{id}". URL パスパターン。
        methods (FrozenSet[str]): Allowed HTTP methods; empty means any method.
                                  許可される HTTP メソッド。空の場合は任意のメソッド。
        handler (Optional[str]): Reference to the handler callable. ハンドラーへの参照。
        requirements (Dict[str, str]): Regex requirements for path parameters. パスパラメータの正規表現要件。
        defaults (Dict[str, str]): Default values for path parameters. パスパラメータのデフォルト値。
        source (Optional[Path]): The resource file the route was defined in. ルートが定義されたファイル。
    """
    name: str
    path: str
    methods: FrozenSet[str] = frozenset()
    handler: Optional[str] = None
    requirements: Dict[str, str] = field(default_factory=dict)
    defaults: Dict[str, str] = field(default_factory=dict)
    source: Optional[Path] = None

    def __post_init__(self):
        object.__setattr__(self, "methods", frozenset(m.upper() for m in self.methods))
        if not self.path.startswith("/"):
            object.__setattr__(self, "path", f"/{self.path}")

    def with_prefix(self, prefix: str) -> "Route":
        """Returns a copy of this route with the path prefixed."""
        if not prefix:
            return self
        return replace(self, path=join_path(prefix, self.path))


class RouteCollection:
    """
    An ordered collection of routes keyed by name.
    Adding a route whose name already exists replaces the old one and moves it to the end,
    so later definitions override earlier ones.
    名前をキーとするルートの順序付きコレクション。
    既存の名前のルートを追加すると古いルートが置き換えられて末尾に移動するため、
    後の定義が前の定義を上書きします。
    """

    def __init__(self, routes: Optional[Iterable[Route]] = None):
        self._routes: Dict[str, Route] = {}
        for route in routes or ():
            self.add(route)

    def add(self, route: Route) -> None:
        self._routes.pop(route.name, None)
        self._routes[route.name] = route

    def merge(self, other: "RouteCollection") -> None:
        """
        Adds every route of another collection, in its order.
        別のコレクションのすべてのルートをその順序で追加します。

        Args:
            other (RouteCollection): The collection to merge into this one.
                                     このコレクションにマージするコレクション。
        """
        for route in other:
            self.add(route)

    def with_prefix(self, prefix: str) -> "RouteCollection":
        return RouteCollection(route.with_prefix(prefix) for route in self)

    def get(self, name: str) -> Optional[Route]:
        return self._routes.get(name)

    def names(self) -> List[str]:
        return list(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(list(self._routes.values()))

    def __len__(self) -> int:
        return len(self._routes)

    def __contains__(self, name: object) -> bool:
        return name in self._routes

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RouteCollection):
            return NotImplemented
        return list(self._routes.items()) == list(other._routes.items())

    def __repr__(self) -> str:
        return f"RouteCollection({self.names()!r})"
