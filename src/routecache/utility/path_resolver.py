from pathlib import Path
import os
from typing import Optional, Union


class PathResolver:
    """
    Utility for normalizing and resolving file system paths.
    ファイルシステムパスを正規化および解決するためのユーティリティ。
    """

    @staticmethod
    def normalize(path: Union[str, Path]) -> Path:
        """
        Makes a path absolute and collapses "." and ".." segments without touching the file system.
        ファイルシステムにアクセスせずにパスを絶対パスにし、"." と ".." を畳み込みます。
        """
        return Path(os.path.abspath(os.fspath(path)))

    def resolve_absolute(self, path: Union[str, Path], base_dir: Optional[Path] = None) -> Path:
        """
        Resolves a path to an absolute path, relative to base_dir if given.
        パスを絶対パスに解決します。base_dir が指定された場合はそれを基準にします。

        Args:
            path (str | Path): The path to resolve. 解決するパス。
            base_dir (Optional[Path]): Base directory for relative paths. Defaults to the current directory.
                                       相対パスの基準ディレクトリ。デフォルトはカレントディレクトリ。

        Returns:
            Path: The absolute path. 絶対パス。
        """
        path = Path(os.path.expanduser(os.fspath(path)))
        if not path.is_absolute() and base_dir is not None:
            path = Path(base_dir) / path
        return self.normalize(path)
