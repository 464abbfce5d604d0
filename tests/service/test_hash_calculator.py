import hashlib
from pathlib import Path

import pytest

from routecache.service.hash_calculator import CHUNK_SIZE, HashCalculator


def test_md5_matches_hashlib(tmp_path: Path):
    path = tmp_path / "routes.yaml"
    content = b"routes: {}\n" * (CHUNK_SIZE // 5)  # spans several chunks
    path.write_bytes(content)
    assert HashCalculator.calculate_file_hash(path) == hashlib.md5(content).hexdigest()

def test_other_algorithm(tmp_path: Path):
    path = tmp_path / "routes.yaml"
    path.write_bytes(b"abc")
    assert HashCalculator().calculate_file_hash(path, "sha256") == hashlib.sha256(b"abc").hexdigest()

def test_missing_file_raises_os_error(tmp_path: Path):
    with pytest.raises(OSError):
        HashCalculator.calculate_file_hash(tmp_path / "missing.yaml")
