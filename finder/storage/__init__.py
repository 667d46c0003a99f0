"""
Storage layer: adapter interface, path resolution and the adapter registry.

Backends:
- Local filesystem / mounted NAS
- Others plug in through `register_adapter_type`
"""

from finder.storage.base import StorageAdapter, StorageItem
from finder.storage.errors import (
    StorageError,
    InvalidPathError,
    NotFoundError,
    StorageIOError,
)
from finder.storage.local import LocalStorageAdapter
from finder.storage.registry import AdapterRegistry, build_registry

__all__ = [
    "StorageAdapter",
    "StorageItem",
    "StorageError",
    "InvalidPathError",
    "NotFoundError",
    "StorageIOError",
    "LocalStorageAdapter",
    "AdapterRegistry",
    "build_registry",
]
