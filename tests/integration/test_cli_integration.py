import pytest
from pathlib import Path

from typer.testing import CliRunner

from routecache.gateway.cli_parser import app

runner = CliRunner()


@pytest.fixture
def cli_project(route_files):
    """
    Sets up a project whose .routecache.yml lists the fixture route files.
    フィクスチャのルートファイルを列挙する .routecache.yml を持つプロジェクトをセットアップします。

    Returns:
        Path: The project root. プロジェクトルート。
    """
    root = route_files["dir"].parent
    (root / ".routecache.yml").write_text(
        "resources:\n"
        "  - config/routes.yaml\n"
        "  - config/admin.yaml\n",
        encoding='utf-8'
    )
    return root


def run_cli_command(args: list[str]):
    """
    Invokes the routecache CLI in-process.
    routecache CLI をプロセス内で呼び出します。
    """
    result = runner.invoke(app, args)
    print(result.output)
    return result


def test_load_rebuilds_then_serves_from_cache(cli_project: Path):
    first = run_cli_command(["load", "-p", str(cli_project)])
    assert first.exit_code == 0
    assert "user_show" in first.output
    assert "dashboard" in first.output
    assert "4 route(s), rebuilt." in first.output

    second = run_cli_command(["load", "-p", str(cli_project)])
    assert second.exit_code == 0
    assert "4 route(s), served from cache." in second.output

def test_load_with_explicit_resource(cli_project: Path, route_files):
    result = run_cli_command(["load", str(route_files["admin"]), "-p", str(cli_project), "--debug"])
    assert result.exit_code == 0
    assert "dashboard" in result.output
    assert "home" not in result.output
    assert "1 route(s), rebuilt." in result.output

def test_load_reports_route_errors(cli_project: Path, route_files):
    route_files["users"].write_text("routes:\n  broken: 42\n", encoding='utf-8')
    result = run_cli_command(["load", "-p", str(cli_project)])
    assert result.exit_code == 1
    assert "Route Load Error" in result.output

def test_missing_configuration_exits_with_error(tmp_path: Path):
    empty_root = tmp_path / "empty"
    empty_root.mkdir()
    result = run_cli_command(["load", "-p", str(empty_root)])
    assert result.exit_code == 1
    assert "Configuration Error" in result.output

def test_status_in_debug_mode(cli_project: Path):
    before = run_cli_command(["status", "-p", str(cli_project), "--debug"])
    assert before.exit_code == 0
    assert "Route Cache" in before.output
    assert "missing" in before.output

    run_cli_command(["load", "-p", str(cli_project), "--debug"])
    after = run_cli_command(["status", "-p", str(cli_project), "--debug"])
    assert after.exit_code == 0
    assert "Manifest" in after.output
    assert "missing" not in after.output

def test_clear_removes_cache(cli_project: Path):
    run_cli_command(["load", "-p", str(cli_project), "--debug"])
    cache_dir = cli_project / ".routecache"
    assert (cache_dir / "routes.pkl").exists()
    assert (cache_dir / "manifests").exists()

    result = run_cli_command(["clear", "-p", str(cli_project)])
    assert result.exit_code == 0
    assert "Route cache cleared." in result.output
    assert not (cache_dir / "routes.pkl").exists()
    assert not (cache_dir / "manifests").exists()

    reloaded = run_cli_command(["load", "-p", str(cli_project)])
    assert "rebuilt" in reloaded.output
