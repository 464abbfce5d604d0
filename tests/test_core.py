import pytest
from pathlib import Path
from unittest.mock import MagicMock
import logging

from routecache import RouteCache, __version__
from routecache.domain.exceptions import ConfigError, RouteLoadError
from routecache.domain.route import RouteCollection

logger = logging.getLogger(__name__)


@pytest.fixture
def project(route_files):
    """
    Adds a .routecache.yml listing both top-level route files to the route tree fixture.
    ルートツリーフィクスチャに、両方のトップレベルルートファイルを列挙する .routecache.yml を追加します。
    """
    root = route_files["dir"].parent
    (root / ".routecache.yml").write_text(
        "resources:\n"
        "  - config/routes.yaml\n"
        "  - config/admin.yaml\n"
        "debug: true\n",
        encoding='utf-8'
    )
    return root

def test_version_is_exposed():
    assert isinstance(__version__, str) and __version__

def test_init_from_config_file(project: Path, route_files):
    """
    Resources and the debug flag are taken from .routecache.yml.
    リソースとデバッグフラグは .routecache.yml から取得されます。
    """
    cache = RouteCache(project_root=project)
    assert cache.project_root == project
    assert cache.debug is True
    assert cache.config.resources == [route_files["main"], route_files["admin"]]
    assert cache.storage.cache_file == project / ".routecache" / "routes.pkl"
    assert cache.manifest_store.manifest_root == project / ".routecache" / "manifests"

def test_explicit_arguments_override_config(project: Path, route_files, tmp_path: Path):
    cache = RouteCache(
        resources=["config/admin.yaml"],
        project_root=project,
        cache_dir=tmp_path / "elsewhere",
        debug=False,
    )
    assert cache.config.resources == [route_files["admin"]]
    assert cache.debug is False
    assert cache.storage.cache_file == tmp_path / "elsewhere" / "routes.pkl"

def test_no_resources_raises_config_error(tmp_path: Path):
    empty_root = tmp_path / "empty"
    empty_root.mkdir()
    with pytest.raises(ConfigError):
        RouteCache(project_root=empty_root)

def test_load_and_reuse(project: Path):
    """
    The first load compiles the routes; a second facade on the same project reuses them.
    最初の読み込みでルートをコンパイルし、同じプロジェクトの2つ目のファサードはそれを再利用します。
    """
    first = RouteCache(project_root=project)
    routes = first.load()
    assert routes.names() == ["user_list", "user_show", "home", "dashboard"]
    assert routes.get("user_show").path == "/users/{id}"
    assert routes.get("dashboard").path == "/admin"
    assert first.router_cache.rebuild_count == 1
    assert first.is_valid()

    second = RouteCache(project_root=project)
    assert second.load() == routes
    assert second.router_cache.rebuild_count == 0

def test_status_before_and_after_load(project: Path, route_files):
    cache = RouteCache(project_root=project)

    before = cache.status()
    assert before.valid is False
    assert before.cache_time is None
    assert before.route_count is None
    assert [r.manifest_present for r in before.resources] == [False, False]

    cache.load()
    after = cache.status()
    assert after.valid is True
    assert after.debug is True
    assert after.route_count == 4
    assert after.cache_time is not None
    main_status, admin_status = after.resources
    assert main_status.path == route_files["main"]
    assert main_status.exists and main_status.manifest_present
    # routes.yaml includes users.yaml; admin.yaml includes nothing
    # routes.yaml は users.yaml をインクルードし、admin.yaml は何もインクルードしません
    assert main_status.tracked_files == 1
    assert admin_status.tracked_files == 0
    assert main_status.manifest_path.name.endswith("_routes.yaml.manifest")

def test_status_without_debug_skips_manifests(project: Path):
    cache = RouteCache(project_root=project, debug=False)
    cache.load()
    status = cache.status()
    assert status.valid is True
    assert all(r.manifest_path is None for r in status.resources)

def test_status_reports_missing_resource(project: Path, route_files):
    route_files["admin"].unlink()
    status = RouteCache(project_root=project).status()
    assert status.resources[1].exists is False
    assert status.resources[1].manifest_path is None

def test_clear_removes_cache_and_manifests(project: Path):
    cache = RouteCache(project_root=project)
    cache.load()
    assert cache.storage.cache_file.exists()
    assert cache.manifest_store.manifest_root.exists()

    assert cache.clear() is True
    assert not cache.storage.cache_file.exists()
    assert not cache.manifest_store.manifest_root.exists()
    assert cache.is_valid() is False
    # Clearing twice is harmless
    assert cache.clear() is True

def test_custom_loader_is_used(project: Path):
    loader = MagicMock()
    loader.load.return_value = RouteCollection()
    cache = RouteCache(project_root=project, loader=loader)
    loader.add_listener.assert_called_once_with(cache.router_cache)

    assert len(cache.load()) == 0
    assert loader.load.call_count == 2

def test_load_error_propagates(project: Path, route_files):
    route_files["main"].write_text("routes: [not, a, mapping]\n", encoding='utf-8')
    cache = RouteCache(project_root=project)
    with pytest.raises(RouteLoadError):
        cache.load()
    assert not cache.storage.exists()
