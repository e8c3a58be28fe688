from carti.core.storage.abc import StorageProvider
from carti.core.storage.bundle_storage import BundleStorage, pack_bundle
from carti.core.storage.disk import DiskProvider
from carti.core.storage.memory import MemoryProvider

__all__ = [
    "BundleStorage",
    "DiskProvider",
    "MemoryProvider",
    "StorageProvider",
    "pack_bundle",
]
