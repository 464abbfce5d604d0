class RouteCacheError(Exception):
    """
    Base exception for all routecache errors.
    routecache のすべてのエラーの基底例外。
    """
    pass


class CacheIOError(RouteCacheError, OSError):
    """
    Raised when writing a cache artifact (directory, manifest, cache entry) fails.
    キャッシュ成果物（ディレクトリ、マニフェスト、キャッシュエントリ）の書き込みに失敗した場合に発生します。
    """
    pass


class ManifestError(CacheIOError):
    """Raised when a manifest cannot be derived or written."""
    pass


class StorageError(CacheIOError):
    """Raised when the compiled route collection cannot be persisted."""
    pass


class CacheCorruptionError(RouteCacheError):
    """
    Raised when a persisted manifest or cache entry cannot be deserialized.
    Callers treat this as a cache miss.
    永続化されたマニフェストまたはキャッシュエントリをデシリアライズできない場合に発生します。
    呼び出し側はこれをキャッシュミスとして扱います。
    """
    pass


class RouteLoadError(RouteCacheError):
    """
    Raised when a route resource file cannot be loaded or parsed.
    ルートリソースファイルを読み込めない、または解析できない場合に発生します。
    """
    pass


class ConfigError(RouteCacheError):
    """Raised when the configuration file is invalid."""
    pass
