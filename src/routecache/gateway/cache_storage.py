import pickle
from pathlib import Path
import datetime
import logging
import os
from typing import Optional, Tuple

from ..domain.cache_config import DEFAULT_CACHE_DIR_NAME, DEFAULT_CACHE_FILE_NAME
from ..domain.cache_metadata import CacheMetadata
from ..domain.exceptions import CacheCorruptionError, StorageError
from ..domain.route import RouteCollection

logger = logging.getLogger(__name__)

UNPICKLE_ERRORS = (pickle.UnpicklingError, EOFError, TypeError, AttributeError, ValueError, ImportError, IndexError)


class CacheStorage:
    """
    Handles reading and writing the compiled route collection (and its metadata) to disk.
    Uses pickle for serialization. The last write time is the cache file's modification time.
    コンパイル済みルートコレクション（とそのメタデータ）のディスクへの読み書きを処理します。
    シリアライズには pickle を使用します。最終書き込み時刻はキャッシュファイルの更新日時です。
    """

    def __init__(self, cache_file: Optional[Path] = None):
        """
        Initializes the CacheStorage.
        CacheStorage を初期化します。

        Args:
            cache_file (Optional[Path]): Path of the cache file.
                                         Defaults to ./.routecache/routes.pkl.
                                         キャッシュファイルのパス。
                                         デフォルトは ./.routecache/routes.pkl。
        """
        cache_file = cache_file or Path(DEFAULT_CACHE_DIR_NAME) / DEFAULT_CACHE_FILE_NAME
        self.cache_file = Path(os.path.abspath(cache_file))
        self.cache_dir = self.cache_file.parent
        logger.debug(f"Cache file set to: {self.cache_file}")

    def _ensure_cache_dir_exists(self):
        """Ensures the cache directory exists."""
        if not self.cache_dir.is_dir():
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created cache directory: {self.cache_dir}")
            except OSError as e:
                logger.error(f"Failed to create cache directory {self.cache_dir}: {e}")
                raise StorageError(f"Failed to create cache directory {self.cache_dir}: {e}") from e

    def exists(self) -> bool:
        return self.cache_file.is_file()

    def get_last_write_time(self) -> float:
        """
        Returns the modification time of the cache file.
        キャッシュファイルの更新日時を返します。

        Raises:
            FileNotFoundError: If the cache file does not exist.
                               キャッシュファイルが存在しない場合。
        """
        return self.cache_file.stat().st_mtime

    def load(self) -> Tuple[RouteCollection, CacheMetadata]:
        """
        Loads the cached route collection and metadata from the cache file.
        キャッシュファイルからキャッシュされたルートコレクションとメタデータを読み込みます。

        Returns:
            Tuple[RouteCollection, CacheMetadata]: The cached collection and its metadata.
                                                   キャッシュされたコレクションとそのメタデータ。

        Raises:
            CacheCorruptionError: If the cache file is missing, cannot be unpickled, or has an
                                  unexpected format. Unreadable files are removed.
                                  キャッシュファイルが存在しない、unpickle できない、または
                                  形式が想定外の場合。読み取れないファイルは削除されます。
        """
        try:
            with self.cache_file.open('rb') as f:
                cached_data = pickle.load(f)
        except FileNotFoundError as e:
            raise CacheCorruptionError(f"Cache file {self.cache_file} does not exist.") from e
        except UNPICKLE_ERRORS as e:
            logger.warning(f"Failed to unpickle cache file {self.cache_file}: {e}. Discarding cache.")
            self.clear()
            raise CacheCorruptionError(f"Cache file {self.cache_file} is corrupt: {e}") from e

        # Basic validation: Check if it's a tuple of expected types (RouteCollection, CacheMetadata)
        # 基本的な検証: 期待される型（RouteCollection、CacheMetadata）のタプルであるかを確認します
        if (
            isinstance(cached_data, tuple) and
            len(cached_data) == 2 and
            isinstance(cached_data[0], RouteCollection) and
            isinstance(cached_data[1], CacheMetadata)
        ):
            logger.debug(f"Loaded cache from {self.cache_file}")
            result: Tuple[RouteCollection, CacheMetadata] = cached_data
            return result

        logger.warning(f"Cache file {self.cache_file} has unexpected format. Discarding cache.")
        self.clear()
        raise CacheCorruptionError(f"Cache file {self.cache_file} has unexpected format.")

    def read(self) -> RouteCollection:
        """Returns the cached route collection."""
        collection, _metadata = self.load()
        return collection

    def read_metadata(self) -> Optional[CacheMetadata]:
        """Returns the metadata of the cache entry, or None if there is no readable entry."""
        if not self.exists():
            return None
        try:
            return self.load()[1]
        except CacheCorruptionError:
            return None

    def write(self, collection: RouteCollection):
        """
        Saves the route collection, with fresh metadata, to the cache file.
        ルートコレクションを新しいメタデータと共にキャッシュファイルに保存します。

        Args:
            collection (RouteCollection): The compiled route collection to cache.
                                          キャッシュするコンパイル済みルートコレクション。

        Raises:
            StorageError: If the cache directory or file cannot be written.
                          キャッシュディレクトリまたはファイルに書き込めない場合。
        """
        self._ensure_cache_dir_exists()
        metadata = CacheMetadata(
            cache_time=datetime.datetime.now(datetime.timezone.utc),
            route_count=len(collection),
        )
        data_to_save = (collection, metadata)
        # Write to a temporary file first, then rename to make the save atomic
        # 最初に一時ファイルに書き込み、次に名前を変更して保存をアトミックにします
        temp_file_path = self.cache_file.with_suffix(f".{os.getpid()}.tmp")
        try:
            with temp_file_path.open('wb') as f:
                pickle.dump(data_to_save, f, protocol=pickle.HIGHEST_PROTOCOL)
            os.replace(temp_file_path, self.cache_file)
            logger.info(f"Saved {len(collection)} route(s) to {self.cache_file}")
        except (pickle.PicklingError, OSError) as e:
            logger.error(f"Failed to save cache to {self.cache_file}: {e}", exc_info=True)
            # Attempt to clean up temporary file if it exists
            # 存在する場合、一時ファイルのクリーンアップを試みます
            if temp_file_path.exists():
                try:
                    temp_file_path.unlink()
                except OSError:
                    logger.debug(f"Could not remove temporary file {temp_file_path}")
            raise StorageError(f"Failed to save cache to {self.cache_file}: {e}") from e

    def clear(self) -> bool:
        """
        Deletes the cache file if it exists.
        キャッシュファイルが存在する場合は削除します。

        Returns:
            bool: True if the cache file was deleted or didn't exist, False otherwise.
                  キャッシュファイルが削除されたか存在しなかった場合は True、それ以外の場合は False。
        """
        if self.cache_file.is_file():
            try:
                self.cache_file.unlink()
                logger.info(f"Cache file {self.cache_file} deleted.")
                return True
            except OSError as e:
                logger.error(f"Failed to delete cache file {self.cache_file}: {e}")
                return False
        logger.info("Cache file does not exist, nothing to clear.")
        return True
