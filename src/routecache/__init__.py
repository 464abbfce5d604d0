from .core import RouteCache, __version__
from .domain.exceptions import (
    RouteCacheError,
    CacheIOError,
    ManifestError,
    StorageError,
    CacheCorruptionError,
    RouteLoadError,
    ConfigError,
)
from .domain.file_resource import FileResource, FileResourceCollector
from .domain.load_listener import LoadListener
from .domain.route import Route, RouteCollection
from .gateway.cache_storage import CacheStorage
from .gateway.manifest_store import ManifestStore
from .gateway.route_file_loader import RouteFileLoader
from .usecase.router_cache import RouterCache

__all__ = [
    "RouteCache",
    "RouterCache",
    "Route",
    "RouteCollection",
    "FileResource",
    "FileResourceCollector",
    "LoadListener",
    "CacheStorage",
    "ManifestStore",
    "RouteFileLoader",
    "RouteCacheError",
    "CacheIOError",
    "ManifestError",
    "StorageError",
    "CacheCorruptionError",
    "RouteLoadError",
    "ConfigError",
    "__version__",
]
