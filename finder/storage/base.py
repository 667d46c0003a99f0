# finder/storage/base.py
"""
Base interface for storage adapters.

Every storage backend (local disk today, other backends later) implements
this interface. The file-manager operations only ever talk to adapters
through it, so a backend is picked once when the registry is built and is
never downcast afterwards.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


DIR = "dir"
FILE = "file"


@dataclass
class StorageItem:
    """One directory entry as produced by `list_contents`."""
    node_type: str
    path: str
    basename: str
    extension: Optional[str] = None
    mime_type: Optional[str] = None
    last_modified: Optional[int] = None
    size: Optional[int] = None

    @property
    def is_dir(self) -> bool:
        return self.node_type == DIR

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = data.pop("node_type")
        data["file_size"] = data.pop("size")
        return data


class StorageAdapter(ABC):
    """
    Abstract base class for storage adapters.

    All operations are async. Paths are virtual paths, either
    `<name>://relative/path` or a bare relative path.

    Failures are raised as `finder.storage.errors` exceptions:
    `InvalidPathError`, `NotFoundError` or `StorageIOError`.
    """

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "StorageAdapter":
        """Build an adapter from its storage config entry (minus `type`)."""
        return cls(**config)

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of the adapter; also the scheme of its virtual paths."""

    @abstractmethod
    async def list_contents(self, path: str) -> List[StorageItem]:
        """
        List the direct children of a directory.

        Args:
            path: Directory virtual path

        Returns:
            List of StorageItem, one per child

        Raises:
            NotFoundError: If the directory doesn't exist
            InvalidPathError: If the path escapes the root
        """

    @abstractmethod
    async def read(self, path: str) -> bytes:
        """
        Read file contents as bytes.

        Raises:
            NotFoundError: If the file doesn't exist
            InvalidPathError: If the path escapes the root
        """

    @abstractmethod
    async def write(self, path: str, data: bytes) -> None:
        """
        Write bytes to a file, creating missing parent directories.

        Overwrites an existing file. Not transactional: an interrupted
        write may leave a partially written file behind.
        """

    @abstractmethod
    async def delete(self, path: str) -> None:
        """
        Delete a file, or a directory with all of its contents.

        Raises:
            NotFoundError: If the path doesn't exist
        """

    @abstractmethod
    async def create_dir(self, path: str) -> None:
        """Create a directory and its missing ancestors. Existing directories are not an error."""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Check whether a file or directory exists. Only path errors propagate."""

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """
        Check adapter health.

        Returns:
            Dict with health check results:
            {
                "healthy": bool,
                "adapter": str,
                "message": str,
                "details": {...}
            }
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name}>"
