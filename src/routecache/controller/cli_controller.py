from pathlib import Path
from typing import List, Optional
import logging

from rich.console import Console
from rich.table import Table
from rich import box
import typer

from ..core import RouteCache
from ..domain.cache_status import CacheStatus
from ..domain.exceptions import RouteCacheError, RouteLoadError
from ..domain.route import RouteCollection

logger = logging.getLogger(__name__)

console = Console()


class CliController:
    """
    Handles the logic for CLI commands, interfacing with the RouteCache facade.
    CLIコマンドのロジックを処理し、RouteCache ファサードとのインターフェースを提供します。
    """
    def __init__(
        self,
        resources: Optional[List[str]] = None,
        project_root: str = ".",
        config_path: Optional[str] = None,
        cache_dir: Optional[str] = None,
        debug: Optional[bool] = None,
    ):
        """
        Stores the command options; the RouteCache instance is created lazily.
        コマンドオプションを保持します。RouteCache インスタンスは遅延生成されます。

        Args:
            resources: Top-level route files given on the command line (None = use the config file).
                       コマンドラインで指定されたトップレベルのルートファイル（None の場合は設定ファイルを使用）。
            project_root: Directory to search for .routecache.yml.
                          .routecache.yml を検索するディレクトリ。
            config_path: Optional path to the configuration file.
                         設定ファイルへのオプションのパス。
            cache_dir: Optional cache directory override.
                       キャッシュディレクトリの上書き（オプション）。
            debug: Optional debug mode override.
                   デバッグモードの上書き（オプション）。
        """
        self.resources = resources or None
        self.project_root = project_root
        self.config_path = config_path
        self.cache_dir = cache_dir
        self.debug = debug
        self._route_cache: Optional[RouteCache] = None
        self.console = Console()

    def _get_route_cache(self) -> RouteCache:
        """Gets or initializes the RouteCache instance."""
        if self._route_cache is None:
            try:
                self._route_cache = RouteCache(
                    resources=self.resources,
                    project_root=Path(self.project_root),
                    config_path=self.config_path,
                    cache_dir=self.cache_dir,
                    debug=self.debug,
                )
            except RouteCacheError as e:
                console.print(f"[bold red]Configuration Error:[/bold red] {e}")
                raise typer.Exit(code=1)
        return self._route_cache

    def load_and_display(self):
        """
        Loads the routes through the cache and displays them as a table.
        キャッシュ経由でルートを読み込み、テーブルとして表示します。
        """
        route_cache = self._get_route_cache()
        try:
            rebuilds_before = route_cache.router_cache.rebuild_count
            collection = route_cache.load()
            rebuilt = route_cache.router_cache.rebuild_count > rebuilds_before
        except RouteLoadError as e:
            console.print(f"[bold red]Route Load Error:[/bold red] {e}")
            raise typer.Exit(code=1)
        except RouteCacheError as e:
            console.print(f"[bold red]Cache Error:[/bold red] {e}")
            raise typer.Exit(code=1)

        self._display_routes(collection)
        origin = "rebuilt" if rebuilt else "served from cache"
        self.console.print(f"{len(collection)} route(s), {origin}.")

    def _display_routes(self, collection: RouteCollection):
        if not len(collection):
            self.console.print("No routes defined.")
            return
        table = Table(title="Routes", box=box.ROUNDED)
        table.add_column("Name", style="cyan")
        table.add_column("Methods", style="magenta")
        table.add_column("Path", style="green")
        table.add_column("Handler")
        for route in collection:
            methods = "|".join(sorted(route.methods)) or "ANY"
            table.add_row(route.name, methods, route.path, route.handler or "")
        self.console.print(table)

    def display_status(self):
        """
        Shows whether the cache is valid, with manifest details in debug mode.
        キャッシュが有効かどうかを表示します。デバッグモードではマニフェストの詳細も表示します。
        """
        route_cache = self._get_route_cache()
        try:
            status = route_cache.status()
        except RouteCacheError as e:
            console.print(f"[bold red]Cache Error:[/bold red] {e}")
            raise typer.Exit(code=1)
        self._display_status(status)

    def _display_status(self, status: CacheStatus):
        summary = Table(title="Route Cache", show_header=False, box=box.ROUNDED)
        summary.add_row("Valid", "[green]yes[/green]" if status.valid else "[red]no[/red]")
        summary.add_row("Debug", "yes" if status.debug else "no")
        summary.add_row("Cache file", str(status.cache_file))
        summary.add_row("Cached at", status.cache_time.isoformat() if status.cache_time else "-")
        summary.add_row("Routes", str(status.route_count) if status.route_count is not None else "-")
        self.console.print(summary)

        table = Table(title="Resources", box=box.ROUNDED)
        table.add_column("Resource", style="cyan")
        table.add_column("Exists")
        if status.debug:
            table.add_column("Manifest")
            table.add_column("Tracked files", justify="right")
        for resource in status.resources:
            row = [str(resource.path), "yes" if resource.exists else "[red]no[/red]"]
            if status.debug:
                manifest = str(resource.manifest_path) if resource.manifest_present else "[yellow]missing[/yellow]"
                row += [manifest, str(resource.tracked_files)]
            table.add_row(*row)
        self.console.print(table)

    def clear_cache(self):
        """Removes the cache entry and manifests."""
        route_cache = self._get_route_cache()
        if route_cache.clear():
            self.console.print("Route cache cleared.")
        else:
            console.print("[bold red]Failed to clear the route cache completely.[/bold red]")
            raise typer.Exit(code=1)
