from dataclasses import dataclass
from pathlib import Path
import os
from typing import Dict, Iterable, Iterator, Optional, Union


@dataclass(frozen=True)
class FileResource:
    """
    A file a route collection depends on.
    The modification time is never stored; freshness is read from the file system on demand.
    ルートコレクションが依存するファイル。
    更新日時は保持せず、鮮度は必要に応じてファイルシステムから読み取ります。

    Attributes:
        path (Path): Absolute path of the file. Equality is by path.
                     ファイルの絶対パス。等価性はパスで判定されます。
    """
    path: Path

    def __post_init__(self):
        # No resolve(): adding a resource must not touch the file system.
        object.__setattr__(self, "path", Path(os.path.abspath(os.fspath(self.path))))

    def get_mtime(self) -> Optional[float]:
        """Returns the current modification time, or None if the file is gone."""
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None

    def is_fresh(self, timestamp: float) -> bool:
        """
        Checks that the file exists and was not modified after the given timestamp.
        ファイルが存在し、指定されたタイムスタンプ以降に変更されていないことを確認します。

        Args:
            timestamp (float): POSIX timestamp to compare against.
                               比較対象の POSIX タイムスタンプ。

        Returns:
            bool: True if the file exists and its mtime <= timestamp.
                  ファイルが存在し、mtime <= timestamp の場合は True。
        """
        mtime = self.get_mtime()
        return mtime is not None and mtime <= timestamp

    def __str__(self) -> str:
        return str(self.path)


class FileResourceCollector:
    """
    An ordered, duplicate-free collection of FileResource entries.
    Insertion order is discovery order.
    FileResource の順序付きで重複のないコレクション。
    挿入順は発見順です。
    """

    def __init__(self, paths: Optional[Iterable[Union[str, Path]]] = None):
        self._resources: Dict[Path, FileResource] = {}
        for path in paths or ():
            self.add_file_resource(path)

    @classmethod
    def from_paths(cls, paths: Union[str, Path, Iterable[Union[str, Path]], "FileResourceCollector"]) -> "FileResourceCollector":
        """
        Normalizes a single path, a sequence of paths, or an existing collector into a collector.
        単一のパス、パスのシーケンス、または既存のコレクターをコレクターに正規化します。

        Args:
            paths: One path, an iterable of paths, or a FileResourceCollector (returned as is).
                   1つのパス、パスのイテラブル、または FileResourceCollector（そのまま返されます）。

        Returns:
            FileResourceCollector: The normalized collector.
                                   正規化されたコレクター。
        """
        if isinstance(paths, FileResourceCollector):
            return paths
        if isinstance(paths, (str, os.PathLike)):
            return cls([paths])
        return cls(paths)

    def add_file_resource(self, path: Union[str, Path]) -> None:
        """Registers a file path. Adding an already registered path is a no-op."""
        resource = FileResource(Path(path))
        if resource.path not in self._resources:
            self._resources[resource.path] = resource

    def get_resources(self) -> Iterator[FileResource]:
        """
        Returns a fresh iterator over the registered resources in insertion order.
        登録されたリソースを挿入順に走査する新しいイテレータを返します。
        """
        return iter(list(self._resources.values()))

    def is_valid(self, since_timestamp: float) -> bool:
        """
        Checks whether every registered file still exists and is not newer than the timestamp.
        An empty collector is always valid.
        登録されたすべてのファイルが存在し、タイムスタンプより新しくないかを確認します。
        空のコレクターは常に有効です。

        Args:
            since_timestamp (float): The reference POSIX timestamp (e.g. the cache write time).
                                     基準となる POSIX タイムスタンプ（例: キャッシュ書き込み時刻）。

        Returns:
            bool: False on the first missing or newer file, True otherwise.
                  最初に見つかった欠落ファイルまたは新しいファイルで False、それ以外は True。
        """
        return all(resource.is_fresh(since_timestamp) for resource in self._resources.values())

    def __iter__(self) -> Iterator[FileResource]:
        return self.get_resources()

    def __len__(self) -> int:
        return len(self._resources)

    def __contains__(self, path: object) -> bool:
        if isinstance(path, FileResource):
            return path.path in self._resources
        if isinstance(path, (str, os.PathLike)):
            return Path(os.path.abspath(os.fspath(path))) in self._resources
        return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileResourceCollector):
            return NotImplemented
        return list(self._resources) == list(other._resources)

    def __repr__(self) -> str:
        return f"FileResourceCollector({[str(p) for p in self._resources]!r})"
