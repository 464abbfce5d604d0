from pathlib import Path
import logging
import os
from typing import Any, Dict, List, Optional, Union

import yaml

from ..domain.cache_config import CacheConfig, DEFAULT_CACHE_DIR_NAME, DEFAULT_CACHE_FILE_NAME
from ..domain.exceptions import ConfigError
from ..utility.path_resolver import PathResolver

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".routecache.yml"
ENV_DEBUG = "ROUTECACHE_DEBUG"
ENV_CACHE_DIR = "ROUTECACHE_CACHE_DIR"
TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")


def parse_bool(value: Union[str, bool, int]) -> bool:
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean value: {value!r}")


class ConfigManager:
    """
    Finds, loads and caches the routecache configuration.
    Settings come from a .routecache.yml file (explicit, or searched upwards from the project root),
    then environment variables override them.
    routecache の設定を検索、読み込み、キャッシュします。
    設定は .routecache.yml ファイル（明示的に指定、またはプロジェクトルートから上方に検索）から読み込まれ、
    その後環境変数で上書きされます。
    """

    def __init__(self, path_resolver: PathResolver, project_root: Path, config_path: Optional[Path] = None):
        self.path_resolver = path_resolver
        self.project_root = path_resolver.resolve_absolute(project_root)
        self.config_path = path_resolver.resolve_absolute(config_path, base_dir=self.project_root) if config_path else None
        self._config: Optional[CacheConfig] = None

    def find_config_file(self) -> Optional[Path]:
        """
        Returns the configuration file to use, or None if there is none.
        使用する設定ファイルを返します。存在しない場合は None を返します。

        Raises:
            ConfigError: If an explicitly given config file does not exist.
                         明示的に指定された設定ファイルが存在しない場合。
        """
        if self.config_path is not None:
            if not self.config_path.is_file():
                raise ConfigError(f"Config file not found: {self.config_path}")
            return self.config_path

        current_dir = self.project_root
        while True:
            candidate = current_dir / CONFIG_FILE_NAME
            if candidate.is_file():
                logger.debug(f"Found config file: {candidate}")
                return candidate
            if current_dir.parent == current_dir:  # Reached the root
                return None
            current_dir = current_dir.parent

    def get_config(self) -> CacheConfig:
        """
        Returns the configuration, loading it on first use.
        設定を返します。初回使用時に読み込みます。

        Returns:
            CacheConfig: The loaded configuration with absolute paths.
                         絶対パスを含む読み込み済みの設定。

        Raises:
            ConfigError: If the config file is unreadable or invalid.
                         設定ファイルが読み取れない、または無効な場合。
        """
        if self._config is None:
            config_file = self.find_config_file()
            if config_file is None:
                logger.debug("No config file found; using defaults.")
                raw: Dict[str, Any] = {}
                base_dir = self.project_root
            else:
                raw = self._load_yaml(config_file)
                base_dir = config_file.parent
            raw = self._apply_env_overrides(raw)
            self._config = self._build_config(raw, base_dir)
        return self._config

    @staticmethod
    def _load_yaml(config_file: Path) -> Dict[str, Any]:
        try:
            with config_file.open('r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config file {config_file}: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_file} must contain a mapping.")
        logger.info(f"Loaded configuration from {config_file}")
        return data

    @staticmethod
    def _apply_env_overrides(raw: Dict[str, Any]) -> Dict[str, Any]:
        raw = dict(raw)
        if ENV_DEBUG in os.environ:
            raw["debug"] = os.environ[ENV_DEBUG]
        if os.environ.get(ENV_CACHE_DIR):
            raw["cache_dir"] = os.environ[ENV_CACHE_DIR]
        return raw

    def _build_config(self, raw: Dict[str, Any], base_dir: Path) -> CacheConfig:
        unknown = set(raw) - {"resources", "cache_dir", "manifest_dir", "cache_file_name", "debug"}
        if unknown:
            raise ConfigError(f"Unknown configuration key(s): {', '.join(sorted(unknown))}")

        resources = raw.get("resources") or []
        if isinstance(resources, str):
            resources = [resources]
        if not isinstance(resources, list) or not all(isinstance(r, str) for r in resources):
            raise ConfigError("'resources' must be a path or a list of paths.")
        resource_paths: List[Path] = [self.path_resolver.resolve_absolute(r, base_dir=base_dir) for r in resources]

        manifest_dir = raw.get("manifest_dir")
        cache_file_name = raw.get("cache_file_name")
        return CacheConfig(
            resources=resource_paths,
            cache_dir=self.path_resolver.resolve_absolute(raw.get("cache_dir") or DEFAULT_CACHE_DIR_NAME, base_dir=base_dir),
            manifest_dir=self.path_resolver.resolve_absolute(manifest_dir, base_dir=base_dir) if manifest_dir else None,
            cache_file_name=str(cache_file_name) if cache_file_name else DEFAULT_CACHE_FILE_NAME,
            debug=parse_bool(raw.get("debug", False)),
        )
