"""Disk storage provider: <root>/<cid>/<file_name>."""

import shutil
from collections.abc import Iterable, Iterator
from pathlib import Path

from carti.core.storage.abc import StorageProvider

CHUNK_SIZE = 64 * 1024


class DiskProvider(StorageProvider):
    """Stores each bundle in its own directory named after its content id."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def exists(self, cid: str) -> bool:
        return self.find(cid) is not None

    def find(self, cid: str) -> Path | None:
        """Return the stored file for cid, or None if absent."""
        cid_dir = self.root / cid
        if not cid_dir.is_dir():
            return None
        for candidate in sorted(cid_dir.iterdir()):
            if candidate.is_file() and not candidate.name.startswith("."):
                return candidate
        return None

    def put(self, cid: str, file_name: str, chunks: Iterable[bytes]) -> None:
        cid_dir = self.root / cid
        cid_dir.mkdir(parents=True, exist_ok=True)
        # Write beside the target and rename so a partial write never looks stored
        partial = cid_dir / f".{file_name}.partial"
        with partial.open("wb") as f:
            for chunk in chunks:
                f.write(chunk)
        partial.replace(cid_dir / file_name)

    def get(self, cid: str) -> Iterator[bytes]:
        stored = self.find(cid)
        if stored is None:
            raise FileNotFoundError(f"No content stored for {cid} under {self.root}")
        with stored.open("rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                yield chunk

    def location(self, cid: str) -> str:
        stored = self.find(cid)
        if stored is None:
            return str(self.root / cid)
        return str(stored)

    def remove(self, cid: str) -> None:
        """Delete everything stored for cid."""
        cid_dir = self.root / cid
        if cid_dir.exists():
            shutil.rmtree(cid_dir)
