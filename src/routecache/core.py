from pathlib import Path
from typing import Iterable, List, Optional, Union
import logging
import importlib.metadata

from .domain.cache_config import CacheConfig
from .domain.cache_status import CacheStatus, ResourceStatus
from .domain.exceptions import CacheCorruptionError, ConfigError, ManifestError
from .domain.interfaces import ResourceLoader
from .domain.route import RouteCollection
from .gateway.cache_storage import CacheStorage
from .gateway.manifest_store import ManifestStore
from .gateway.route_file_loader import RouteFileLoader
from .usecase.config_manager import ConfigManager
from .usecase.router_cache import RouterCache
from .utility.path_resolver import PathResolver

logger = logging.getLogger(__name__)

try:
    __version__ = importlib.metadata.version("routecache")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"


class RouteCache:
    """
    The main facade of the routecache library.
    Wires configuration, storage, manifests and the route file loader into a RouterCache.
    routecache ライブラリのメインファサードクラス。
    設定、ストレージ、マニフェスト、ルートファイルローダーを RouterCache に結び付けます。

    Example::

        cache = RouteCache(["config/routes.yaml"], debug=True)
        routes = cache.load()
    """

    def __init__(
        self,
        resources: Optional[Iterable[Union[str, Path]]] = None,
        project_root: Optional[Union[str, Path]] = None,
        config_path: Optional[Union[str, Path]] = None,
        cache_dir: Optional[Union[str, Path]] = None,
        debug: Optional[bool] = None,
        loader: Optional[ResourceLoader] = None,
    ):
        """
        Initializes the facade. Explicit arguments override the configuration file.
        ファサードを初期化します。明示的な引数は設定ファイルより優先されます。

        Args:
            resources (Optional[Iterable[str | Path]]): Top-level route files. Relative paths are resolved
                                                        against the project root.
                                                        トップレベルのルートファイル。相対パスはプロジェクトルート基準で解決されます。
            project_root (Optional[str | Path]): Where to look for .routecache.yml. Defaults to the current directory.
                                                 .routecache.yml を探す場所。デフォルトはカレントディレクトリ。
            config_path (Optional[str | Path]): Explicit configuration file.
                                                明示的な設定ファイル。
            cache_dir (Optional[str | Path]): Overrides the configured cache directory.
                                              設定されたキャッシュディレクトリを上書きします。
            debug (Optional[bool]): Overrides the configured debug flag.
                                    設定されたデバッグフラグを上書きします。
            loader (Optional[ResourceLoader]): Custom resource loader. Defaults to RouteFileLoader.
                                               カスタムリソースローダー。デフォルトは RouteFileLoader。

        Raises:
            ConfigError: If the configuration is invalid or no resources are configured.
                         設定が無効、またはリソースが設定されていない場合。
        """
        self._path_resolver = PathResolver()
        self._project_root = self._path_resolver.resolve_absolute(project_root or Path("."))
        self._config_manager = ConfigManager(
            self._path_resolver,
            self._project_root,
            Path(config_path) if config_path else None,
        )
        self.config: CacheConfig = self._apply_overrides(self._config_manager.get_config(), resources, cache_dir, debug)
        if not self.config.resources:
            raise ConfigError("No route resources configured.")

        self.storage = CacheStorage(self.config.cache_file)
        self.manifest_store = ManifestStore(self.config.manifest_root)
        self.loader = loader or RouteFileLoader(path_resolver=self._path_resolver)
        self.router_cache = RouterCache(
            self.config.resources,
            None,
            self.storage,
            self.loader,
            debug=self.config.debug,
            manifest_store=self.manifest_store,
        )
        logger.debug(f"routecache v{__version__} initialized with {len(self.config.resources)} resource(s), debug={self.config.debug}")

    def _apply_overrides(self, config: CacheConfig, resources, cache_dir, debug) -> CacheConfig:
        if resources is not None:
            config.resources = [self._path_resolver.resolve_absolute(r, base_dir=self._project_root) for r in resources]
        if cache_dir is not None:
            config.cache_dir = self._path_resolver.resolve_absolute(cache_dir, base_dir=self._project_root)
        if debug is not None:
            config.debug = debug
        return config

    @property
    def project_root(self) -> Path:
        return self._project_root

    @property
    def debug(self) -> bool:
        return self.config.debug

    def load(self) -> RouteCollection:
        """
        Returns the compiled route collection, rebuilding the cache if needed.
        コンパイル済みルートコレクションを返します。必要に応じてキャッシュを再構築します。
        """
        return self.router_cache.load()

    def is_valid(self) -> bool:
        return self.router_cache.is_valid()

    def status(self) -> CacheStatus:
        """
        Collects the current state of the cache entry and, in debug mode, of every manifest.
        キャッシュエントリと、デバッグモードではすべてのマニフェストの現在の状態を収集します。
        """
        metadata = self.storage.read_metadata()
        resources: List[ResourceStatus] = []
        for resource in self.router_cache.resources.get_resources():
            resource_status = ResourceStatus(path=resource.path, exists=resource.path.is_file())
            if self.debug and resource_status.exists:
                try:
                    manifest_path = self.router_cache.get_manifest_file_name(resource.path)
                except ManifestError as e:
                    logger.debug(f"No manifest path for {resource.path}: {e}")
                else:
                    resource_status.manifest_path = manifest_path
                    resource_status.manifest_present = manifest_path.is_file()
                    if resource_status.manifest_present:
                        try:
                            resource_status.tracked_files = len(self.manifest_store.read_manifest(manifest_path))
                        except CacheCorruptionError as e:
                            logger.warning(f"Ignoring corrupt manifest: {e}")
            resources.append(resource_status)

        return CacheStatus(
            valid=self.is_valid(),
            debug=self.debug,
            cache_file=self.storage.cache_file,
            cache_time=metadata.cache_time if metadata else None,
            route_count=metadata.route_count if metadata else None,
            resources=resources,
        )

    def clear(self) -> bool:
        """
        Removes the cache entry and all manifests.
        キャッシュエントリとすべてのマニフェストを削除します。

        Returns:
            bool: True if everything was removed (or already absent).
                  すべて削除された（または既に存在しなかった）場合は True。
        """
        storage_cleared = self.storage.clear()
        manifests_cleared = self.manifest_store.clear()
        return storage_cleared and manifests_cleared
