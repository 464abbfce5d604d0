from dataclasses import dataclass, field
import datetime
from pathlib import Path
from typing import List, Optional


@dataclass
class ResourceStatus:
    """State of one top-level resource and its manifest."""
    path: Path
    exists: bool
    manifest_path: Optional[Path] = None
    manifest_present: bool = False
    tracked_files: int = 0


@dataclass
class CacheStatus:
    """
    A snapshot of the route cache state, used for reporting.
    レポート用のルートキャッシュ状態のスナップショット。
    """
    valid: bool
    debug: bool
    cache_file: Path
    cache_time: Optional[datetime.datetime] = None
    route_count: Optional[int] = None
    resources: List[ResourceStatus] = field(default_factory=list)
