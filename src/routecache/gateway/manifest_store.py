import pickle
from pathlib import Path
import logging
import os
import shutil
from typing import Dict, Optional, Union

from ..domain.exceptions import CacheCorruptionError, ManifestError
from ..domain.file_resource import FileResourceCollector
from ..service.hash_calculator import HashCalculator
from ..utility.path_resolver import PathResolver
from .cache_storage import UNPICKLE_ERRORS

logger = logging.getLogger(__name__)

MANIFEST_SUFFIX = ".manifest"
DIRECTORY_MODE = 0o755


def _directory_mask() -> int:
    # os.umask can only be read by setting it, so restore it immediately.
    current = os.umask(0)
    os.umask(current)
    return DIRECTORY_MODE & ~current


class ManifestStore:
    """
    Persists one manifest per top-level route resource.
    A manifest lists every file transitively touched while loading that resource.
    トップレベルのルートリソースごとに1つのマニフェストを永続化します。
    マニフェストには、そのリソースの読み込み中に推移的に触れたすべてのファイルが記録されます。

    Manifest paths look like <root>/<h[0:2]>/<h[2:4]>/<h>_<basename>.manifest,
    where h is the MD5 of the resource file content.
    Editing a resource moves its manifest to a new path and the old one is left behind;
    clear() is what prunes the tree.
    マニフェストのパスは <root>/<h[0:2]>/<h[2:4]>/<h>_<basename>.manifest の形式で、
    h はリソースファイル内容の MD5 です。
    リソースを編集するとマニフェストは新しいパスに移り、古いものは残ります。
    ツリーの整理は clear() で行います。
    """

    def __init__(self, manifest_root: Union[str, Path], hash_calculator: Optional[HashCalculator] = None):
        self.manifest_root = PathResolver.normalize(manifest_root)
        self.hash_calculator = hash_calculator or HashCalculator()
        self._path_cache: Dict[Path, Path] = {}

    def manifest_path_for(self, resource_path: Union[str, Path]) -> Path:
        """
        Derives the manifest path of a resource file from its content hash and base name.
        The result is memoized for the lifetime of this store.
        リソースファイルの内容ハッシュとベース名からマニフェストパスを導出します。
        結果はこのストアの存続期間中メモ化されます。

        Args:
            resource_path (str | Path): The top-level resource file.
                                        トップレベルのリソースファイル。

        Returns:
            Path: The manifest path.
                  マニフェストのパス。

        Raises:
            ManifestError: If the resource file cannot be read for hashing.
                           ハッシュ計算のためにリソースファイルを読み取れない場合。
        """
        resource_path = PathResolver.normalize(resource_path)
        cached = self._path_cache.get(resource_path)
        if cached is not None:
            return cached

        try:
            digest = self.hash_calculator.calculate_file_hash(resource_path, "md5")
        except OSError as e:
            raise ManifestError(f"Cannot hash resource file {resource_path}: {e}") from e

        manifest_path = self.manifest_root / digest[:2] / digest[2:4] / f"{digest}_{resource_path.name}{MANIFEST_SUFFIX}"
        self._path_cache[resource_path] = manifest_path
        logger.debug(f"Manifest for {resource_path}: {manifest_path}")
        return manifest_path

    def _prepare_directory(self, directory: Path):
        mask = _directory_mask()
        if not directory.is_dir():
            try:
                directory.mkdir(mode=mask, parents=True, exist_ok=True)
            except OSError as e:
                raise ManifestError(f"Creating manifest directory {directory} failed: {e}") from e
        else:
            try:
                os.chmod(directory, mask)
            except OSError as e:
                raise ManifestError(f"Cannot apply permissions on manifest directory {directory}: {e}") from e

    def write_manifest(self, manifest_path: Union[str, Path], collector: FileResourceCollector):
        """
        Writes a collector to a manifest file.
        The file is written to a temporary file first and then moved into place,
        so concurrent readers never see a partial manifest.
        コレクターをマニフェストファイルに書き込みます。
        まず一時ファイルに書き込んでから所定の位置に移動するため、
        同時に読み取るプロセスが不完全なマニフェストを見ることはありません。

        Args:
            manifest_path (str | Path): Target manifest path (see manifest_path_for).
                                        書き込み先のマニフェストパス。
            collector (FileResourceCollector): The files to record.
                                               記録するファイル。

        Raises:
            ManifestError: If the directory cannot be created or chmod'ed, or the write fails.
                           ディレクトリの作成・権限変更、または書き込みに失敗した場合。
        """
        manifest_path = Path(manifest_path)
        self._prepare_directory(manifest_path.parent)

        temp_file_path = manifest_path.with_name(f"{manifest_path.name}.{os.getpid()}.tmp")
        try:
            with temp_file_path.open('wb') as f:
                pickle.dump(collector, f, protocol=pickle.HIGHEST_PROTOCOL)
            os.replace(temp_file_path, manifest_path)
        except (pickle.PicklingError, OSError) as e:
            logger.error(f"Failed to write manifest {manifest_path}: {e}", exc_info=True)
            if temp_file_path.exists():
                try:
                    temp_file_path.unlink()
                except OSError:
                    logger.debug(f"Could not remove temporary file {temp_file_path}")
            raise ManifestError(f"Failed to write manifest {manifest_path}: {e}") from e
        logger.debug(f"Wrote manifest {manifest_path} ({len(collector)} file(s))")

    def read_manifest(self, manifest_path: Union[str, Path]) -> FileResourceCollector:
        """
        Reads a manifest file. A missing manifest yields an empty collector.
        マニフェストファイルを読み込みます。マニフェストが存在しない場合は空のコレクターを返します。

        Raises:
            CacheCorruptionError: If the manifest cannot be deserialized.
                                  マニフェストをデシリアライズできない場合。
        """
        manifest_path = Path(manifest_path)
        try:
            with manifest_path.open('rb') as f:
                collector = pickle.load(f)
        except FileNotFoundError:
            return FileResourceCollector()
        except UNPICKLE_ERRORS as e:
            raise CacheCorruptionError(f"Manifest {manifest_path} is corrupt: {e}") from e
        except OSError as e:
            raise CacheCorruptionError(f"Manifest {manifest_path} is unreadable: {e}") from e

        if not isinstance(collector, FileResourceCollector):
            raise CacheCorruptionError(f"Manifest {manifest_path} has unexpected format.")
        return collector

    @staticmethod
    def get_manifest_time(manifest_path: Union[str, Path]) -> Optional[float]:
        """Returns the modification time of a manifest file, or None if it does not exist."""
        try:
            return Path(manifest_path).stat().st_mtime
        except OSError:
            return None

    def clear(self) -> bool:
        """
        Removes the whole manifest tree.
        マニフェストツリー全体を削除します。

        Returns:
            bool: True if the tree was removed or didn't exist, False otherwise.
                  ツリーが削除されたか存在しなかった場合は True、それ以外の場合は False。
        """
        self._path_cache.clear()
        if not self.manifest_root.exists():
            return True
        try:
            shutil.rmtree(self.manifest_root)
            logger.info(f"Manifest directory {self.manifest_root} deleted.")
            return True
        except OSError as e:
            logger.error(f"Failed to delete manifest directory {self.manifest_root}: {e}")
            return False
