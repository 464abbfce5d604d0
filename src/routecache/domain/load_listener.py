from pathlib import Path
from typing import Protocol, Union, runtime_checkable


@runtime_checkable
class LoadListener(Protocol):
    """
    Receives a notification for every file a resource loader opens during a load pass,
    including the top-level file and any file it imports. Loaders that expand glob patterns
    also report the directories they scan, since their mtime changes when entries come or go.
    リソースローダーが読み込み中に開くすべてのファイル（トップレベルのファイルと、
    そこからインポートされるファイルを含む）の通知を受け取ります。グロブパターンを展開するローダーは、
    エントリの増減で mtime が変わるため、スキャンしたディレクトリも通知します。
    """

    def on_file_loaded(self, path: Union[str, Path]) -> None:
        ...
