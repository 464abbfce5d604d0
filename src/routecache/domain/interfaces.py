from pathlib import Path
from typing import Protocol, Union

from .load_listener import LoadListener
from .route import RouteCollection


class RouteStorage(Protocol):
    """
    The persisted cache entry holding the compiled route collection.
    コンパイル済みルートコレクションを保持する永続化されたキャッシュエントリ。
    """

    def exists(self) -> bool:
        ...

    def get_last_write_time(self) -> float:
        ...

    def read(self) -> RouteCollection:
        ...

    def write(self, collection: RouteCollection) -> None:
        ...


class ResourceLoader(Protocol):
    """
    Parses a route resource file into a RouteCollection.
    Implementations must call every registered listener for each file they open.
    ルートリソースファイルを RouteCollection に解析します。
    実装は開いた各ファイルについて、登録されたすべてのリスナーを呼び出す必要があります。
    """

    def load(self, resource_path: Union[str, Path]) -> RouteCollection:
        ...

    def add_listener(self, listener: LoadListener) -> None:
        ...
