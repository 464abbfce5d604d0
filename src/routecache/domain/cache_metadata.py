from dataclasses import dataclass
import datetime


@dataclass
class CacheMetadata:
    """
    Represents metadata stored alongside the compiled route collection.
    コンパイル済みルートコレクションと共に保存されるメタ情報を表します。

    Attributes:
        cache_time (datetime.datetime): The timestamp when the collection was cached.
                                        コレクションがキャッシュされた日時。
        route_count (int): Number of routes in the cached collection.
                           キャッシュされたコレクション内のルート数。
    """
    cache_time: datetime.datetime
    route_count: int = 0
