from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

DEFAULT_CACHE_DIR_NAME = ".routecache"
DEFAULT_CACHE_FILE_NAME = "routes.pkl"
DEFAULT_MANIFEST_DIR_NAME = "manifests"


@dataclass
class CacheConfig:
    """
    Configuration for a route cache.
    ルートキャッシュの設定。

    Attributes:
        resources (List[Path]): Top-level route resource files. トップレベルのルートリソースファイル。
        cache_dir (Path): Directory holding the compiled cache entry. コンパイル済みキャッシュを保持するディレクトリ。
        manifest_dir (Optional[Path]): Manifest root; defaults to <cache_dir>/manifests.
                                       マニフェストのルート。デフォルトは <cache_dir>/manifests。
        cache_file_name (str): File name of the cache entry inside cache_dir. cache_dir 内のキャッシュファイル名。
        debug (bool): Track transitive includes and validate manifests. 推移的なインクルードを追跡し、マニフェストを検証します。
    """
    resources: List[Path] = field(default_factory=list)
    cache_dir: Path = Path(DEFAULT_CACHE_DIR_NAME)
    manifest_dir: Optional[Path] = None
    cache_file_name: str = DEFAULT_CACHE_FILE_NAME
    debug: bool = False

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / self.cache_file_name

    @property
    def manifest_root(self) -> Path:
        return self.manifest_dir if self.manifest_dir is not None else self.cache_dir / DEFAULT_MANIFEST_DIR_NAME
