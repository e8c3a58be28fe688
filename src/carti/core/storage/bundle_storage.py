"""Content-addressed bundle storage on top of a StorageProvider."""

import logging
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path

from carti.core.bundle import Bundle, BundleMeta, ContentHasher
from carti.core.errors import ContentMismatch
from carti.core.storage.abc import StorageProvider
from carti.core.storage.disk import CHUNK_SIZE, DiskProvider

logger = logging.getLogger(__name__)

SPOOL_LIMIT = 16 * 1024 * 1024


def _read_staged(staged: "tempfile.SpooledTemporaryFile[bytes]") -> Iterator[bytes]:
    staged.seek(0)
    while chunk := staged.read(CHUNK_SIZE):
        yield chunk


class BundleStorage:
    """Hashes content on the way in and stores it under its content id.

    The id is computed while the stream is staged, so the provider only ever
    receives content whose id is known and verified.
    """

    def __init__(self, provider: StorageProvider) -> None:
        self.provider = provider

    def exists(self, cid: str) -> bool:
        return self.provider.exists(cid)

    def add(self, chunks: Iterable[bytes], file_name: str, expected_id: str | None = None) -> str:
        """Store a byte stream and return its content id.

        Args:
            chunks: Content to store
            file_name: File name the content is stored under
            expected_id: If given, the computed id must match it

        Returns:
            The content id

        Raises:
            ContentMismatch: If the content does not hash to expected_id.
                Nothing is stored in that case.
        """
        hasher = ContentHasher()
        with tempfile.SpooledTemporaryFile(max_size=SPOOL_LIMIT) as staged:
            for chunk in chunks:
                hasher.update(chunk)
                staged.write(chunk)
            cid = hasher.content_id()
            if expected_id is not None and cid != expected_id:
                raise ContentMismatch(expected=expected_id, actual=cid)
            if self.provider.exists(cid):
                logger.debug("Content %s already stored, skipping write", cid)
                return cid
            self.provider.put(cid, file_name, _read_staged(staged))
        logger.debug("Stored %s as %s", file_name, cid)
        return cid

    def get(self, cid: str) -> Iterator[bytes]:
        return self.provider.get(cid)

    def location(self, cid: str) -> str:
        return self.provider.location(cid)

    def path(self, cid: str) -> Path:
        """Filesystem path of stored content; only disk-backed storage has one.

        Raises:
            FileNotFoundError: If the content is absent
            TypeError: If the provider is not disk-backed
        """
        if not isinstance(self.provider, DiskProvider):
            raise TypeError(f"{type(self.provider).__name__} does not store content on disk")
        stored = self.provider.find(cid)
        if stored is None:
            raise FileNotFoundError(f"No content stored for {cid} under {self.provider.root}")
        return stored


def pack_bundle(meta: BundleMeta, storage: BundleStorage) -> Bundle:
    """Pack a local file into storage and return its bundle record.

    The returned record's uri is the storage location of the content.

    Raises:
        FileNotFoundError: If meta.path does not exist
    """
    if not meta.path.is_file():
        raise FileNotFoundError(f"Bundle source file not found: {meta.path}")

    def _chunks() -> Iterator[bytes]:
        with meta.path.open("rb") as f:
            while chunk := f.read(CHUNK_SIZE):
                yield chunk

    cid = storage.add(_chunks(), meta.path.name)
    return Bundle(
        id=cid,
        name=meta.name,
        version=meta.version,
        bundle_type=meta.bundle_type,
        file_name=meta.path.name,
        description=meta.description,
        uri=storage.location(cid),
    )
