from pathlib import Path
import os
from typing import Callable, Iterator, List, Optional, Tuple

from ..utility.path_resolver import PathResolver


class FileSystemAccessor:
    """
    Provides access to the file system for reading files and listing directories.
    ファイル読み込みとディレクトリ一覧表示のためにファイルシステムへのアクセスを提供します。
    """

    def __init__(self, path_resolver: Optional[PathResolver] = None):
        """
        Initializes the FileSystemAccessor.
        FileSystemAccessorを初期化します。

        Args:
            path_resolver (Optional[PathResolver]): An instance of PathResolver for path operations.
                                                    パス操作のためのPathResolverのインスタンス。
        """
        self.path_resolver = path_resolver or PathResolver()

    def read_file(self, file_path: Path | str) -> str:
        """
        Reads the content of a file.
        ファイルの内容を読み込みます。

        Args:
            file_path (Path | str): The path to the file to read.
                                    読み込むファイルのパス。

        Returns:
            str: The content of the file.
                 ファイルの内容。

        Raises:
            FileNotFoundError: If the file does not exist.
                               ファイルが存在しない場合。
            IOError: If there is an error reading the file.
                     ファイルの読み込み中にエラーが発生した場合。
        """
        abs_path = self.path_resolver.resolve_absolute(file_path)
        try:
            with open(abs_path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            raise
        except (OSError, UnicodeDecodeError) as e:
            raise IOError(f"Error reading file {abs_path}: {e}") from e

    def scan_directory(
        self,
        dir_path: Path | str,
        include_func: Callable[[Path], bool] | None = None,
        include_dir: Callable[[Path], bool] | None = None,
        recursive: bool = True,
    ) -> Iterator[Path]:
        """
        Scans a directory and yields the files found, in sorted order.
        Optionally applies an include function to select files.
        ディレクトリをスキャンし、見つかったファイルをソート順にyieldします。
        オプションで包含関数を適用してファイルを選択します。

        Args:
            dir_path (Path | str): The path to the directory to scan.
                                   スキャンするディレクトリのパス。
            include_func (Callable[[Path], bool] | None, optional):
                A function that takes a Path object and returns True if it should be yielded.
                Defaults to None (all files).
                Pathオブジェクトを受け取り、yieldすべき場合にTrueを返す関数。
                デフォルトは None (すべてのファイル)。
            include_dir (Callable[[Path], bool] | None, optional):
                Returns False for subdirectories that should not be descended into.
                降りるべきでないサブディレクトリに対して False を返す関数。
            recursive (bool): Descend into subdirectories. Defaults to True.
                              サブディレクトリに降りるかどうか。デフォルトは True。

        Yields:
            Iterator[Path]: Absolute paths of matching files.
                            一致したファイルの絶対パス。

        Raises:
            FileNotFoundError: If the directory does not exist.
                               ディレクトリが存在しない場合。
        """
        for root_path, files in self._walk(dir_path, include_dir, recursive):
            for file_name in files:
                file_path = root_path / file_name
                if include_func and not include_func(file_path):
                    continue
                yield file_path

    def list_directories(
        self,
        dir_path: Path | str,
        include_dir: Callable[[Path], bool] | None = None,
        recursive: bool = True,
    ) -> Iterator[Path]:
        """
        Yields the directory itself and, if recursive, every subdirectory scan_directory would visit.
        ディレクトリ自体と、再帰的な場合は scan_directory が訪れるすべてのサブディレクトリをyieldします。
        """
        for root_path, _files in self._walk(dir_path, include_dir, recursive):
            yield root_path

    def _walk(self, dir_path, include_dir, recursive) -> Iterator[Tuple[Path, List[str]]]:
        abs_dir_path = self.path_resolver.resolve_absolute(dir_path)
        if not abs_dir_path.is_dir():
            raise FileNotFoundError(f"Directory not found: {abs_dir_path}")

        for root, dirs, files in os.walk(abs_dir_path, topdown=True):
            root_path = Path(root)
            if not recursive:
                dirs[:] = []
            else:
                # Prune and sort in-place so the walk order is deterministic
                # 走査順序を決定的にするためにインプレースで絞り込みとソートを行う
                dirs[:] = sorted(d for d in dirs if include_dir is None or include_dir(root_path / d))
            yield root_path, sorted(files)
