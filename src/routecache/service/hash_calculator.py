from pathlib import Path
import hashlib
import logging
from typing import Union

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536


class HashCalculator:
    """
    Calculates content hashes of files.
    ファイル内容のハッシュを計算します。
    """

    @staticmethod
    def calculate_file_hash(file_path: Union[str, Path], algorithm: str = "md5") -> str:
        """
        Calculates the hex digest of a file's content, reading it in chunks.
        ファイルの内容のハッシュ（16進数）をチャンク単位で読み込んで計算します。

        Args:
            file_path (str | Path): The file to hash. ハッシュ化するファイル。
            algorithm (str): Any algorithm name accepted by hashlib.new. Defaults to "md5".
                             hashlib.new が受け付けるアルゴリズム名。デフォルトは "md5"。

        Returns:
            str: The hex digest. 16進数のダイジェスト。

        Raises:
            OSError: If the file cannot be read. ファイルを読み取れない場合。
        """
        hasher = hashlib.new(algorithm)
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                hasher.update(chunk)
        digest = hasher.hexdigest()
        logger.debug(f"{algorithm} of {file_path}: {digest}")
        return digest
