from pathlib import Path

from routecache.utility.path_resolver import PathResolver


def test_normalize_collapses_segments(tmp_path: Path):
    assert PathResolver.normalize(tmp_path / "a" / ".." / "b.yaml") == tmp_path / "b.yaml"

def test_resolve_relative_to_base_dir(tmp_path: Path):
    resolver = PathResolver()
    assert resolver.resolve_absolute("config/routes.yaml", base_dir=tmp_path) == tmp_path / "config" / "routes.yaml"

def test_resolve_absolute_path_ignores_base_dir(tmp_path: Path):
    resolver = PathResolver()
    assert resolver.resolve_absolute(tmp_path / "x.yaml", base_dir=Path("/elsewhere")) == tmp_path / "x.yaml"

def test_resolve_without_base_dir_uses_cwd(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert PathResolver().resolve_absolute("routes.yaml") == Path.cwd() / "routes.yaml"
