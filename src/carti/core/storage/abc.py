"""Storage provider interface for content-addressed bundle storage.

Providers are a small closed set (disk, memory, S3) chosen by the caller and
injected into BundleStorage. They store content keyed by content identifier
and know nothing about hashing or listings.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator


class StorageProvider(ABC):
    """Abstract key/value store for bundle content keyed by content id."""

    @abstractmethod
    def exists(self, cid: str) -> bool:
        """Check whether content for cid is present."""
        ...

    @abstractmethod
    def put(self, cid: str, file_name: str, chunks: Iterable[bytes]) -> None:
        """Store content under cid.

        Args:
            cid: Content identifier the caller already computed
            file_name: Original file name, preserved for consumers that need it
            chunks: Content as a byte stream
        """
        ...

    @abstractmethod
    def get(self, cid: str) -> Iterator[bytes]:
        """Stream the content stored under cid.

        Raises:
            FileNotFoundError: If nothing is stored under cid
        """
        ...

    @abstractmethod
    def location(self, cid: str) -> str:
        """Return a human-meaningful location for cid (path, key or url)."""
        ...
