# finder/storage/registry.py
"""
Adapter registry.

Two levels:
- `ADAPTER_TYPES` maps an adapter *type* ("local") to the class implementing
  it, so new backends can be plugged in by registering a class.
- `AdapterRegistry` maps adapter *names* to live adapter instances. It is
  built once at startup from configuration and is read-only afterwards.
"""
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

from finder.storage.base import StorageAdapter
from finder.storage.errors import NoAdaptersError
from finder.storage.local import LocalStorageAdapter

logger = structlog.get_logger()


# Registry of available adapter types
ADAPTER_TYPES: Dict[str, type] = {
    "local": LocalStorageAdapter,
}


def register_adapter_type(name: str, adapter_class: type) -> None:
    """
    Register a new storage adapter type.

    Args:
        name: Adapter type identifier (e.g., "s3")
        adapter_class: Class implementing StorageAdapter, constructible via `from_config`

    Raises:
        ValueError: If adapter_class doesn't implement StorageAdapter
    """
    if not isinstance(adapter_class, type) or not issubclass(adapter_class, StorageAdapter):
        raise ValueError(
            f"Adapter class must inherit from StorageAdapter, got {adapter_class}"
        )

    ADAPTER_TYPES[name.lower().strip()] = adapter_class
    logger.info("adapter_type_registered", adapter_type=name, adapter=adapter_class.__name__)


def list_adapter_types() -> List[str]:
    return list(ADAPTER_TYPES.keys())


def build_adapter(adapter_type: str, config: Dict[str, Any]) -> StorageAdapter:
    """
    Instantiate an adapter by type name and config.

    Raises:
        ValueError: If the type is unknown or the configuration is invalid
    """
    adapter_type = adapter_type.lower().strip()
    adapter_class = ADAPTER_TYPES.get(adapter_type)

    if not adapter_class:
        raise ValueError(
            f"Unknown storage adapter type: '{adapter_type}'. "
            f"Available types: {list_adapter_types()}"
        )

    try:
        return adapter_class.from_config(config)
    except ValueError:
        raise
    except Exception as exc:
        raise ValueError(
            f"Failed to initialize {adapter_type} adapter: {exc}"
        ) from exc


class AdapterRegistry:
    """
    Immutable name → adapter mapping with default-adapter resolution.

    Iteration order is registration order; the first adapter is the default
    whenever a request names no adapter or an unknown one.
    """

    def __init__(self, adapters: Iterable[StorageAdapter] = ()):
        by_name: Dict[str, StorageAdapter] = {}
        for adapter in adapters:
            if adapter.name in by_name:
                raise ValueError(f"Duplicate storage adapter name: '{adapter.name}'")
            by_name[adapter.name] = adapter
        self._adapters: Mapping[str, StorageAdapter] = MappingProxyType(by_name)

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)

    def __iter__(self):
        return iter(self._adapters.values())

    def names(self) -> List[str]:
        return list(self._adapters.keys())

    def get(self, name: str) -> Optional[StorageAdapter]:
        return self._adapters.get(name)

    def default_name(self, requested: Optional[str] = None) -> str:
        """Name of the adapter `resolve(requested)` would return."""
        if requested and requested in self._adapters:
            return requested
        for name in self._adapters:
            return name
        raise NoAdaptersError()

    def resolve(self, requested: Optional[str] = None) -> StorageAdapter:
        """
        Return the requested adapter, or the first registered one.

        Raises:
            NoAdaptersError: If the registry is empty
        """
        return self._adapters[self.default_name(requested)]


def build_registry(storages: Iterable[Mapping[str, Any]]) -> AdapterRegistry:
    """
    Build the registry from storage entries `{"name", "type", "root", ...}`.

    Raises:
        ValueError: On unknown types, invalid config or duplicate names
    """
    adapters = []
    for entry in storages:
        config = dict(entry)
        adapter_type = config.pop("type", "local")
        adapters.append(build_adapter(adapter_type, config))
    return AdapterRegistry(adapters)
