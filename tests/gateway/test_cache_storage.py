import pytest
from pathlib import Path
import pickle
import datetime

from routecache.gateway.cache_storage import CacheStorage
from routecache.domain.cache_config import DEFAULT_CACHE_DIR_NAME, DEFAULT_CACHE_FILE_NAME
from routecache.domain.cache_metadata import CacheMetadata
from routecache.domain.exceptions import CacheCorruptionError, StorageError
from routecache.domain.route import Route, RouteCollection


@pytest.fixture
def collection() -> RouteCollection:
    return RouteCollection([
        Route(name="home", path="/", methods=frozenset({"GET"}), handler="app.views:home"),
        Route(name="user_show", path="/users/{id}", requirements={"id": r"\d+"}),
    ])

# Fixture for CacheStorage instance pointing to tmp_path
@pytest.fixture
def cache_storage(tmp_path: Path) -> CacheStorage:
    return CacheStorage(tmp_path / "cache" / "routes.pkl")

# --- Test Initialization --- #

def test_cache_storage_default_location(tmp_path: Path, monkeypatch):
    """
    Tests the default cache file location.
    デフォルトのキャッシュファイルの場所をテストします。
    """
    monkeypatch.chdir(tmp_path)
    storage = CacheStorage()
    assert storage.cache_file == tmp_path / DEFAULT_CACHE_DIR_NAME / DEFAULT_CACHE_FILE_NAME
    assert storage.cache_dir == tmp_path / DEFAULT_CACHE_DIR_NAME

def test_exists_false_before_write(cache_storage: CacheStorage):
    assert not cache_storage.exists()
    assert cache_storage.read_metadata() is None

# --- Test write --- #

def test_write_creates_directory_and_file(cache_storage: CacheStorage, collection: RouteCollection):
    """
    Tests that write creates the cache directory and a pickle with (collection, metadata).
    write がキャッシュディレクトリと (collection, metadata) の pickle を作成することをテストします。
    """
    assert not cache_storage.cache_dir.exists()
    cache_storage.write(collection)
    assert cache_storage.exists()

    with cache_storage.cache_file.open('rb') as f:
        loaded_collection, metadata = pickle.load(f)
    assert loaded_collection == collection
    assert isinstance(metadata, CacheMetadata)
    assert metadata.route_count == 2
    assert (datetime.datetime.now(datetime.timezone.utc) - metadata.cache_time).total_seconds() < 5
    # No temporary files are left behind
    # 一時ファイルが残っていないことを確認します
    assert list(cache_storage.cache_dir.iterdir()) == [cache_storage.cache_file]

def test_write_updates_last_write_time(cache_storage: CacheStorage, collection: RouteCollection, age):
    cache_storage.write(collection)
    old = age(cache_storage.cache_file, 100)
    cache_storage.write(collection)
    assert cache_storage.get_last_write_time() > old

def test_write_failure_raises_storage_error(tmp_path: Path, collection: RouteCollection):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way", encoding='utf-8')
    storage = CacheStorage(blocker / "routes.pkl")
    with pytest.raises(StorageError):
        storage.write(collection)

def test_storage_error_is_an_os_error(tmp_path: Path, collection: RouteCollection):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("", encoding='utf-8')
    with pytest.raises(OSError):
        CacheStorage(blocker / "routes.pkl").write(collection)

# --- Test read --- #

def test_read_round_trip(cache_storage: CacheStorage, collection: RouteCollection):
    cache_storage.write(collection)
    assert cache_storage.read() == collection
    metadata = cache_storage.read_metadata()
    assert metadata is not None
    assert metadata.route_count == len(collection)

def test_read_missing_file_raises_corruption(cache_storage: CacheStorage):
    with pytest.raises(CacheCorruptionError):
        cache_storage.read()

def test_read_corrupted_file(cache_storage: CacheStorage):
    """
    Tests reading a corrupted pickle file: it raises and the file is discarded.
    破損した pickle ファイルの読み込みをテストします: 例外が発生し、ファイルは破棄されます。
    """
    cache_storage.cache_dir.mkdir(parents=True)
    cache_storage.cache_file.write_text("this is not pickle data", encoding='utf-8')

    with pytest.raises(CacheCorruptionError):
        cache_storage.read()
    assert not cache_storage.cache_file.exists()

def test_read_invalid_format(cache_storage: CacheStorage):
    """
    Tests a file with valid pickle data but an unexpected structure.
    有効な pickle データだが構造が想定外のファイルをテストします。
    """
    cache_storage.cache_dir.mkdir(parents=True)
    with cache_storage.cache_file.open('wb') as f:
        pickle.dump(["just", "a", "list"], f)

    with pytest.raises(CacheCorruptionError):
        cache_storage.read()
    assert not cache_storage.cache_file.exists()
    assert cache_storage.read_metadata() is None

# --- Test clear --- #

def test_clear_deletes_file(cache_storage: CacheStorage, collection: RouteCollection):
    cache_storage.write(collection)
    assert cache_storage.clear() is True
    assert not cache_storage.exists()

def test_clear_file_not_found(cache_storage: CacheStorage):
    assert cache_storage.clear() is True
