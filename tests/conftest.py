import os
import time
from pathlib import Path

import pytest


def set_age(path: Path, seconds_ago: float) -> float:
    """Sets both atime and mtime of a path to `seconds_ago` seconds in the past and returns the timestamp."""
    timestamp = int(time.time() - seconds_ago)
    os.utime(path, (timestamp, timestamp))
    return path.stat().st_mtime


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keeps ROUTECACHE_* variables of the calling shell out of the tests."""
    monkeypatch.delenv("ROUTECACHE_DEBUG", raising=False)
    monkeypatch.delenv("ROUTECACHE_CACHE_DIR", raising=False)


@pytest.fixture
def age():
    return set_age


@pytest.fixture
def route_files(tmp_path: Path):
    """
    Creates a small route tree:
    routes.yaml imports users.yaml (with a prefix); admin.yaml stands alone.
    All files are dated 300 seconds in the past.
    """
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    main = config_dir / "routes.yaml"
    main.write_text(
        "imports:\n"
        "  - resource: users.yaml\n"
        "    prefix: /users\n"
        "routes:\n"
        "  home:\n"
        "    path: /\n"
        "    methods: [GET]\n"
        "    handler: app.views:home\n",
        encoding='utf-8'
    )
    users = config_dir / "users.yaml"
    users.write_text(
        "routes:\n"
        "  user_list:\n"
        "    path: /\n"
        "    methods: [GET]\n"
        "    handler: app.users:index\n"
        "  user_show:\n"
        "    path: /{id}\n"
        "    handler: app.users:show\n"
        "    requirements:\n"
        "      id: '\\d+'\n",
        encoding='utf-8'
    )
    admin = config_dir / "admin.yaml"
    admin.write_text(
        "prefix: /admin\n"
        "routes:\n"
        "  dashboard:\n"
        "    path: /\n"
        "    handler: app.admin:dashboard\n",
        encoding='utf-8'
    )
    for path in (main, users, admin):
        set_age(path, 300)
    return {"dir": config_dir, "main": main, "users": users, "admin": admin}
