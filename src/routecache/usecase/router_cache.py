from pathlib import Path
import logging
from typing import Dict, Iterable, Optional, Union

from ..domain.exceptions import CacheCorruptionError, ManifestError
from ..domain.file_resource import FileResourceCollector
from ..domain.interfaces import ResourceLoader, RouteStorage
from ..domain.route import RouteCollection
from ..gateway.manifest_store import ManifestStore
from ..utility.path_resolver import PathResolver

logger = logging.getLogger(__name__)

ResourceInput = Union[str, Path, Iterable[Union[str, Path]], FileResourceCollector]


class RouterCache:
    """
    Manages the lifecycle of the compiled route cache.
    Loads the persisted route collection if it is still valid, otherwise reloads every
    top-level resource through the loader, merges the results and persists them.
    コンパイル済みルートキャッシュのライフサイクルを管理します。
    永続化されたルートコレクションが有効であればそれを読み込み、そうでなければ
    すべてのトップレベルリソースをローダー経由で再読み込みし、結果をマージして永続化します。

    In debug mode, every file the loader opens while expanding a top-level resource is
    recorded in a per-resource manifest, and all of them are checked before the cache is trusted.
    Outside debug mode only the top-level files' timestamps are checked.
    デバッグモードでは、トップレベルリソースの展開中にローダーが開いたすべてのファイルが
    リソースごとのマニフェストに記録され、キャッシュを信頼する前にそれらすべてが検証されます。
    デバッグモード以外では、トップレベルファイルのタイムスタンプのみが検証されます。
    """

    def __init__(
        self,
        resources: ResourceInput,
        manifest_root: Optional[Union[str, Path]],
        storage: RouteStorage,
        loader: ResourceLoader,
        debug: bool = False,
        manifest_store: Optional[ManifestStore] = None,
    ):
        """
        Initializes the RouterCache and registers it as a listener on the loader.
        RouterCache を初期化し、ローダーにリスナーとして登録します。

        Args:
            resources: One resource path, a sequence of paths, or a FileResourceCollector.
                       1つのリソースパス、パスのシーケンス、または FileResourceCollector。
            manifest_root (Optional[str | Path]): Root directory of the manifests. Ignored if manifest_store is given.
                                                  マニフェストのルートディレクトリ。manifest_store 指定時は無視されます。
            storage (RouteStorage): Backend holding the persisted collection.
                                    永続化されたコレクションを保持するバックエンド。
            loader (ResourceLoader): Loader that parses resource files into route collections.
                                     リソースファイルをルートコレクションに解析するローダー。
            debug (bool): Track transitive includes and validate manifests.
                          推移的なインクルードを追跡し、マニフェストを検証します。
            manifest_store (Optional[ManifestStore]): Preconfigured manifest store.
                                                      事前に構成されたマニフェストストア。
        """
        if manifest_store is None:
            if manifest_root is None:
                raise ValueError("Either manifest_root or manifest_store must be given.")
            manifest_store = ManifestStore(manifest_root)

        self.debug = debug
        self.storage = storage
        self.loader = loader
        self.manifest_store = manifest_store
        self.resources = FileResourceCollector.from_paths(resources)
        self.rebuild_count = 0

        self._current: Optional[Path] = None
        self._meta: Dict[Path, FileResourceCollector] = {}

        self.loader.add_listener(self)

    def is_valid(self) -> bool:
        """
        Checks whether the persisted collection can be used as is.
        永続化されたコレクションをそのまま使用できるかを確認します。

        Returns:
            bool: False if there is no cache entry or a top-level resource changed after it was
                  written; in debug mode, additionally False if any manifest fails validation.
                  キャッシュエントリが存在しない、またはトップレベルリソースが書き込み後に変更された場合は False。
                  デバッグモードでは、いずれかのマニフェストの検証に失敗した場合も False。
        """
        if not self.storage.exists():
            logger.debug("No cache entry found.")
            return False
        try:
            last_write_time = self.storage.get_last_write_time()
        except OSError as e:
            logger.debug(f"Cannot read cache write time: {e}")
            return False

        if not self.resources.is_valid(last_write_time):
            logger.info("Route cache is stale: a resource file changed or disappeared.")
            return False

        return self.validate_manifest() if self.debug else True

    def validate_manifest(self) -> bool:
        """
        Validates the manifest of every top-level resource against the manifest file's own mtime.
        A missing, corrupt or stale manifest makes the cache invalid.
        すべてのトップレベルリソースのマニフェストを、マニフェストファイル自体の mtime と照合して検証します。
        マニフェストが存在しない、破損している、または古い場合、キャッシュは無効になります。
        """
        for resource in self.resources.get_resources():
            try:
                manifest_path = self.get_manifest_file_name(resource.path)
            except ManifestError as e:
                logger.info(f"Route cache is stale: {e}")
                return False

            manifest_time = self.manifest_store.get_manifest_time(manifest_path)
            if manifest_time is None:
                logger.info(f"Route cache is stale: no manifest for {resource.path}")
                return False

            try:
                manifest = self.manifest_store.read_manifest(manifest_path)
            except CacheCorruptionError as e:
                logger.warning(f"Ignoring corrupt manifest: {e}")
                return False

            if not manifest.is_valid(manifest_time):
                logger.info(f"Route cache is stale: a file included by {resource.path} changed.")
                return False
        return True

    def load(self) -> RouteCollection:
        """
        Returns the compiled route collection, rebuilding the cache first if it is invalid.
        The collection is always read back from storage.
        コンパイル済みルートコレクションを返します。キャッシュが無効な場合は先に再構築します。
        コレクションは常にストレージから読み戻されます。

        Raises:
            CacheIOError: If writing the cache entry or a manifest fails.
                          キャッシュエントリまたはマニフェストの書き込みに失敗した場合。
            RouteLoadError: If the loader cannot parse a resource.
                            ローダーがリソースを解析できない場合。
        """
        if self.is_valid():
            logger.info("Route cache is valid.")
        else:
            self.do_load_resources()

        try:
            return self.storage.read()
        except CacheCorruptionError as e:
            logger.warning(f"Cached routes are unreadable ({e}); rebuilding.")
            self.do_load_resources()
            return self.storage.read()

    def on_file_loaded(self, path: Union[str, Path]) -> None:
        """
        Records a file opened by the loader as a dependency of the resource currently being loaded.
        Ignored outside debug mode and for the top-level file itself.
        ローダーが開いたファイルを、現在読み込み中のリソースの依存関係として記録します。
        デバッグモード以外、およびトップレベルファイル自体については無視されます。
        """
        if not self.debug or self._current is None:
            return
        path = PathResolver.normalize(path)
        if path == self._current:
            return
        self._ensure_collector(self._current).add_file_resource(path)

    def do_load_resources(self) -> None:
        """
        Loads every top-level resource, merges the results and persists them.
        In debug mode, writes one manifest per top-level resource first.
        すべてのトップレベルリソースを読み込み、結果をマージして永続化します。
        デバッグモードでは、先にトップレベルリソースごとに1つのマニフェストを書き込みます。
        """
        logger.info(f"Rebuilding route cache from {len(self.resources)} resource(s)...")
        collection = RouteCollection()
        self._meta = {}

        try:
            for resource in self.resources.get_resources():
                self._current = resource.path
                collection.merge(self.loader.load(resource.path))

            if self.debug:
                self.write_manifests()
        finally:
            self._current = None

        self.storage.write(collection)
        self.rebuild_count += 1
        logger.info(f"Route cache rebuilt with {len(collection)} route(s).")

    def write_manifests(self) -> None:
        """Writes the manifest of every top-level resource, empty ones included."""
        for resource in self.resources.get_resources():
            manifest_path = self.get_manifest_file_name(resource.path)
            self.manifest_store.write_manifest(manifest_path, self._ensure_collector(resource.path))

    def get_manifest_file_name(self, resource_path: Union[str, Path]) -> Path:
        return self.manifest_store.manifest_path_for(resource_path)

    def get_collector(self, resource_path: Union[str, Path]) -> Optional[FileResourceCollector]:
        """Returns the files recorded for a top-level resource during the last rebuild, if any."""
        return self._meta.get(PathResolver.normalize(resource_path))

    def _ensure_collector(self, resource_path: Path) -> FileResourceCollector:
        if resource_path not in self._meta:
            self._meta[resource_path] = FileResourceCollector()
        return self._meta[resource_path]
