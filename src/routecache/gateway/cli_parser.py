import typer
from typing_extensions import Annotated
from pathlib import Path
import logging
from typing import List, Optional

from ..controller.cli_controller import CliController

# Basic logger setup (adjust level and format as needed)
logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
logger = logging.getLogger(__name__)

app = typer.Typer(help="routecache: compile route files once and reuse the result until they change.")

# --- Common Type Annotations with Options ---
# 再利用するために共通オプションの Annotated 型を定義します
ResourcesType = Annotated[
    Optional[List[Path]],
    typer.Argument(
        help="Top-level route files. Defaults to the resources in .routecache.yml.",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
        show_default=False
    )
]

ProjectType = Annotated[
    Path,
    typer.Option(
        "--project-root", "-p",
        help="Directory to search for .routecache.yml.",
        exists=True, file_okay=False, dir_okay=True, readable=True, resolve_path=True
    )
]

ConfigType = Annotated[
    Optional[Path],
    typer.Option(
        "--config", "-c",
        help="Path to the routecache configuration file (.routecache.yml).",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True
    )
]

CacheDirType = Annotated[
    Optional[Path],
    typer.Option("--cache-dir", help="Directory for the cache entry and manifests.")
]

DebugType = Annotated[
    Optional[bool],
    typer.Option("--debug/--no-debug", help="Track included files with manifests.", show_default=False)
]

VerboseType = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable verbose output.")
]


def _build_controller(resources, project_root, config_path, cache_dir, debug, verbose) -> CliController:
    if verbose:
        logging.getLogger("routecache").setLevel(logging.DEBUG)
        logger.info("Verbose mode enabled.")
    return CliController(
        resources=[str(r) for r in resources] if resources else None,
        project_root=str(project_root),
        config_path=str(config_path) if config_path else None,
        cache_dir=str(cache_dir) if cache_dir else None,
        debug=debug,
    )

# --- Commands ---

@app.command()
def load(
    resources: ResourcesType = None,
    project_root: ProjectType = Path("."),
    config_path: ConfigType = None,
    cache_dir: CacheDirType = None,
    debug: DebugType = None,
    verbose: VerboseType = False
):
    """Load routes through the cache (rebuilding it if stale) and list them."""
    controller = _build_controller(resources, project_root, config_path, cache_dir, debug, verbose)
    controller.load_and_display()


@app.command()
def status(
    resources: ResourcesType = None,
    project_root: ProjectType = Path("."),
    config_path: ConfigType = None,
    cache_dir: CacheDirType = None,
    debug: DebugType = None,
    verbose: VerboseType = False
):
    """Show whether the cached routes are still valid."""
    controller = _build_controller(resources, project_root, config_path, cache_dir, debug, verbose)
    controller.display_status()


@app.command()
def clear(
    resources: ResourcesType = None,
    project_root: ProjectType = Path("."),
    config_path: ConfigType = None,
    cache_dir: CacheDirType = None,
    verbose: VerboseType = False
):
    """Delete the cached routes and all manifests."""
    controller = _build_controller(resources, project_root, config_path, cache_dir, None, verbose)
    controller.clear_cache()

# --- Entry point for CLI ---
def main():
    app()

if __name__ == "__main__":
    main()
