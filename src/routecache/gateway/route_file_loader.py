from pathlib import Path
import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pathspec
import yaml

from ..domain.exceptions import RouteLoadError
from ..domain.load_listener import LoadListener
from ..domain.route import Route, RouteCollection
from ..utility.path_resolver import PathResolver
from .file_system_accessor import FileSystemAccessor

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
JSON_SUFFIXES = (".json",)
GLOB_CHARACTERS = ("*", "?", "[")


class RouteFileLoader:
    """
    Loads route definitions from YAML or JSON resource files.
    Every file opened during a load (the requested file and everything it imports)
    is reported to the registered listeners, as is every directory scanned for a glob import.
    YAML または JSON のリソースファイルからルート定義を読み込みます。
    読み込み中に開かれたすべてのファイル（要求されたファイルとそのインポート先すべて）は
    登録されたリスナーに通知されます。グロブインポートでスキャンされたディレクトリも同様です。

    File format / ファイル形式::

        prefix: /api
        imports:
          - users.yaml
          - resource: admin/*.yaml
            prefix: /admin
        routes:
          home:
            path: /
            methods: [GET]
            handler: app.views:home
    """

    def __init__(self, fs_accessor: Optional[FileSystemAccessor] = None, path_resolver: Optional[PathResolver] = None):
        self.path_resolver = path_resolver or PathResolver()
        self.fs_accessor = fs_accessor or FileSystemAccessor(self.path_resolver)
        self._listeners: List[LoadListener] = []

    def add_listener(self, listener: LoadListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: LoadListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def load(self, resource_path: Union[str, Path]) -> RouteCollection:
        """
        Loads a route resource file and everything it imports.
        ルートリソースファイルとそのインポート先すべてを読み込みます。

        Args:
            resource_path (str | Path): The route file to load.
                                        読み込むルートファイル。

        Returns:
            RouteCollection: The routes defined by the file and its imports.
                             ファイルとそのインポート先で定義されたルート。

        Raises:
            RouteLoadError: If a file is missing, unsupported, malformed, or imports form a cycle.
                            ファイルが存在しない、未対応、不正な形式、またはインポートが循環している場合。
        """
        path = self.path_resolver.resolve_absolute(resource_path)
        logger.debug(f"Loading route resource {path}")
        return self._load_file(path, ())

    def _notify(self, path: Path) -> None:
        for listener in list(self._listeners):
            listener.on_file_loaded(path)

    def _load_file(self, path: Path, stack: Tuple[Path, ...]) -> RouteCollection:
        if path in stack:
            chain = " -> ".join(str(p) for p in stack + (path,))
            raise RouteLoadError(f"Circular route import detected: {chain}")
        if path.suffix.lower() not in YAML_SUFFIXES + JSON_SUFFIXES:
            raise RouteLoadError(f"Unsupported route resource type: {path}")

        try:
            content = self.fs_accessor.read_file(path)
        except OSError as e:
            raise RouteLoadError(f"Cannot read route resource {path}: {e}") from e
        self._notify(path)

        document = self._parse(content, path)
        collection = RouteCollection()
        if document is None:
            logger.debug(f"Route resource {path} is empty.")
            return collection
        if not isinstance(document, dict):
            raise RouteLoadError(f"Route resource {path} must contain a mapping at the top level.")

        # Imports first, so routes defined in this file override imported ones by name
        for entry in document.get("imports") or []:
            resource, import_prefix = self._parse_import(entry, path)
            for target in self._resolve_import(resource, path):
                collection.merge(self._load_file(target, stack + (path,)).with_prefix(import_prefix))

        routes = document.get("routes") or {}
        if not isinstance(routes, dict):
            raise RouteLoadError(f"'routes' in {path} must be a mapping of route names to definitions.")
        for name, definition in routes.items():
            collection.add(self._build_route(str(name), definition, path))

        prefix = document.get("prefix") or ""
        if not isinstance(prefix, str):
            raise RouteLoadError(f"'prefix' in {path} must be a string.")
        logger.debug(f"Loaded {len(collection)} route(s) from {path}")
        return collection.with_prefix(prefix)

    @staticmethod
    def _parse(content: str, path: Path) -> Any:
        try:
            if path.suffix.lower() in JSON_SUFFIXES:
                return json.loads(content) if content.strip() else None
            return yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise RouteLoadError(f"Malformed route resource {path}: {e}") from e

    @staticmethod
    def _parse_import(entry: Any, path: Path) -> Tuple[str, str]:
        if isinstance(entry, str):
            return entry, ""
        if isinstance(entry, dict) and isinstance(entry.get("resource"), str):
            prefix = entry.get("prefix") or ""
            if not isinstance(prefix, str):
                raise RouteLoadError(f"Import prefix in {path} must be a string.")
            return entry["resource"], prefix
        raise RouteLoadError(f"Invalid import entry in {path}: {entry!r}")

    def _resolve_import(self, resource: str, importer: Path) -> Iterable[Path]:
        """
        Resolves an import entry relative to the importing file.
        Glob patterns are split into a plain directory part, resolved like a plain import,
        and a gitwildmatch pattern anchored at that directory. "*.yaml" only matches files
        directly inside it; use "**/*.yaml" to descend. Hidden entries are skipped.
        Every scanned directory is reported to the listeners, so adding or removing a
        matching file is visible through the directory's mtime.
        インポートエントリをインポート元ファイルからの相対パスとして解決します。
        グロブパターンは、通常のインポートと同様に解決されるディレクトリ部分と、
        そのディレクトリを基点とする gitwildmatch パターンに分割されます。"*.yaml" は
        直下のファイルのみに一致し、下位に降りるには "**/*.yaml" を使用します。隠しエントリは除外されます。
        スキャンしたすべてのディレクトリはリスナーに通知されるため、一致するファイルの追加・削除は
        ディレクトリの mtime から検知できます。
        """
        base_dir = importer.parent
        if not any(ch in resource for ch in GLOB_CHARACTERS):
            return [self.path_resolver.resolve_absolute(resource, base_dir=base_dir)]

        directory, pattern = split_glob(resource)
        scan_root = self.path_resolver.resolve_absolute(directory or ".", base_dir=base_dir)
        if not scan_root.is_dir():
            # Creating the directory later changes the mtime of its nearest existing ancestor
            self._notify(_nearest_existing_directory(scan_root))
            logger.warning(f"Import pattern '{resource}' in {importer} matched no files: {scan_root} does not exist.")
            return []

        spec = pathspec.PathSpec.from_lines('gitwildmatch', [f"/{pattern}"])
        recursive = "/" in pattern or "**" in pattern

        def include(candidate: Path) -> bool:
            if candidate == importer or _is_hidden(candidate) or candidate.suffix.lower() not in YAML_SUFFIXES + JSON_SUFFIXES:
                return False
            return spec.match_file(candidate.relative_to(scan_root).as_posix())

        def include_dir(candidate: Path) -> bool:
            return not _is_hidden(candidate)

        for directory_path in self.fs_accessor.list_directories(scan_root, include_dir=include_dir, recursive=recursive):
            self._notify(directory_path)
        matches = list(self.fs_accessor.scan_directory(scan_root, include_func=include, include_dir=include_dir, recursive=recursive))
        if not matches:
            logger.warning(f"Import pattern '{resource}' in {importer} matched no files.")
        return matches

    @staticmethod
    def _build_route(name: str, definition: Any, source: Path) -> Route:
        if not isinstance(definition, dict):
            raise RouteLoadError(f"Route '{name}' in {source} must be a mapping.")
        route_path = definition.get("path")
        if not isinstance(route_path, str) or not route_path:
            raise RouteLoadError(f"Route '{name}' in {source} has no path.")

        methods = definition.get("methods") or []
        if isinstance(methods, str):
            methods = [m for m in methods.replace("|", ",").split(",") if m.strip()]
        if not isinstance(methods, list):
            raise RouteLoadError(f"Route '{name}' in {source} has invalid methods: {methods!r}")

        handler = definition.get("handler")
        if handler is not None and not isinstance(handler, str):
            raise RouteLoadError(f"Route '{name}' in {source} has a non-string handler.")

        return Route(
            name=name,
            path=route_path,
            methods=frozenset(str(m).strip() for m in methods),
            handler=handler,
            requirements=_string_mapping(definition.get("requirements"), "requirements", name, source),
            defaults=_string_mapping(definition.get("defaults"), "defaults", name, source),
            source=source,
        )


def _string_mapping(value: Any, key: str, name: str, source: Path) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RouteLoadError(f"'{key}' of route '{name}' in {source} must be a mapping.")
    return {str(k): str(v) for k, v in value.items()}


def split_glob(resource: str) -> Tuple[str, str]:
    """
    Splits an import pattern into its leading plain directory and the glob part.
    "../shared/*.yaml" -> ("../shared", "*.yaml"), "/etc/routes/**/*.yaml" -> ("/etc/routes", "**/*.yaml").
    """
    parts = resource.split("/")
    for index, part in enumerate(parts):
        if any(ch in part for ch in GLOB_CHARACTERS):
            directory = "/".join(parts[:index])
            if not directory and resource.startswith("/"):
                directory = "/"
            return directory, "/".join(parts[index:])
    return resource, ""


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def _nearest_existing_directory(path: Path) -> Path:
    while not path.is_dir() and path.parent != path:
        path = path.parent
    return path
