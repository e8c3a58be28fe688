"""In-memory storage provider.

Used by `publish uri`, which registers a bundle without uploading anything,
and by tests.
"""

from collections.abc import Iterable, Iterator

from carti.core.storage.abc import StorageProvider


class MemoryProvider(StorageProvider):
    def __init__(self) -> None:
        self._contents: dict[str, tuple[str, bytes]] = {}

    def exists(self, cid: str) -> bool:
        return cid in self._contents

    def put(self, cid: str, file_name: str, chunks: Iterable[bytes]) -> None:
        self._contents[cid] = (file_name, b"".join(chunks))

    def get(self, cid: str) -> Iterator[bytes]:
        if cid not in self._contents:
            raise FileNotFoundError(f"No content stored for {cid} in memory")
        yield self._contents[cid][1]

    def location(self, cid: str) -> str:
        if cid in self._contents:
            return f"memory://{cid}/{self._contents[cid][0]}"
        return f"memory://{cid}"
