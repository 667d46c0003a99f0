# finder/storage/local.py
"""
Local filesystem adapter.

Serves one directory tree (a local disk, or any NAS mounted at a local
path). Every operation resolves its virtual path through `PathResolver`
before touching the filesystem.
"""
import mimetypes
import os
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles
import aiofiles.os

from finder.monitoring.logger import log
from finder.storage.base import DIR, FILE, StorageAdapter, StorageItem
from finder.storage.errors import InvalidPathError, NotFoundError, StorageIOError
from finder.storage.paths import PathResolver

DEFAULT_MIME_TYPE = "application/octet-stream"

_rmtree = aiofiles.os.wrap(shutil.rmtree)


def guess_mime_type(path: str) -> str:
    """Guess MIME type from the file extension."""
    mime_type, _ = mimetypes.guess_type(path)
    return mime_type or DEFAULT_MIME_TYPE


class LocalStorageAdapter(StorageAdapter):
    """
    Local filesystem adapter.

    Config schema:
    {
        "root": "/path/to/storage",  # Required, must already exist
        "name": "local"              # Optional, registry name and path scheme
    }
    """

    def __init__(self, root: str, name: str = "local"):
        self._name = name
        self.resolver = PathResolver(root, scheme=name)
        self._scan = aiofiles.os.wrap(self._scan_directory)

        log("INFO", f"LocalStorageAdapter '{name}' initialized with root={self.root}",
            module="local_storage")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "LocalStorageAdapter":
        if "root" not in config:
            raise ValueError("LocalStorageAdapter requires 'root' in config")
        return cls(config["root"], name=config.get("name", "local"))

    @property
    def name(self) -> str:
        return self._name

    @property
    def root(self) -> Path:
        return self.resolver.root

    def _resolve_path(self, path: str) -> Path:
        return self.resolver.resolve(path)

    async def list_contents(self, path: str) -> List[StorageItem]:
        """List the direct children of a directory, sorted by name."""
        resolved_dir = self._resolve_path(path)

        try:
            entries = await self._scan(resolved_dir)
        except FileNotFoundError:
            raise NotFoundError(path) from None
        except NotADirectoryError:
            raise StorageIOError(f"Not a directory: {path}", path=path) from None
        except OSError as exc:
            raise StorageIOError(exc.strerror or str(exc), path=path) from exc

        entries.sort(key=lambda item: item.basename)
        return entries

    def _scan_directory(self, directory: Path) -> List[StorageItem]:
        items = []
        with os.scandir(directory) as it:
            for entry in it:
                try:
                    items.append(self._to_item(directory / entry.name, entry.stat()))
                except OSError as exc:
                    log("WARNING", f"Failed to get metadata for {entry.path}: {exc}",
                        module="local_storage")
        return items

    def _to_item(self, entry_path: Path, stat: os.stat_result) -> StorageItem:
        is_dir = os.path.isdir(entry_path)
        suffix = entry_path.suffix
        return StorageItem(
            node_type=DIR if is_dir else FILE,
            path=self.resolver.to_virtual(entry_path),
            basename=entry_path.name,
            extension=suffix[1:] if suffix else None,
            mime_type=None if is_dir else guess_mime_type(entry_path.name),
            last_modified=int(stat.st_mtime),
            size=None if is_dir else stat.st_size,
        )

    async def read(self, path: str) -> bytes:
        """Read file contents as bytes."""
        resolved_path = self._resolve_path(path)

        try:
            async with aiofiles.open(resolved_path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise NotFoundError(path) from None
        except OSError as exc:
            raise StorageIOError(exc.strerror or str(exc), path=path) from exc

    async def write(self, path: str, data: bytes) -> None:
        """Write bytes to file, creating parent directories."""
        resolved_path = self._resolve_path(path)
        if self.resolver.is_root(resolved_path):
            raise InvalidPathError(path, "cannot write to the storage root")

        try:
            await aiofiles.os.makedirs(resolved_path.parent, exist_ok=True)
            async with aiofiles.open(resolved_path, "wb") as f:
                await f.write(data)
        except OSError as exc:
            log("ERROR", f"Write file error: {exc}", module="local_storage", path=path)
            raise StorageIOError(exc.strerror or str(exc), path=path) from exc

    async def delete(self, path: str) -> None:
        """Delete a file, or a directory and everything below it."""
        resolved_path = self._resolve_path(path)
        if self.resolver.is_root(resolved_path):
            raise InvalidPathError(path, "cannot delete the storage root")

        try:
            if await aiofiles.os.path.isdir(resolved_path):
                await _rmtree(resolved_path)
            else:
                await aiofiles.os.remove(resolved_path)
        except FileNotFoundError:
            raise NotFoundError(path) from None
        except OSError as exc:
            log("ERROR", f"Delete error: {exc}", module="local_storage", path=path)
            raise StorageIOError(exc.strerror or str(exc), path=path) from exc

    async def create_dir(self, path: str) -> None:
        """Create directory (and parents if needed)."""
        resolved_path = self._resolve_path(path)

        try:
            await aiofiles.os.makedirs(resolved_path, exist_ok=True)
        except FileExistsError:
            # exist_ok only covers directories; a file is in the way
            raise StorageIOError(f"Not a directory: {path}", path=path) from None
        except OSError as exc:
            raise StorageIOError(exc.strerror or str(exc), path=path) from exc

    async def exists(self, path: str) -> bool:
        """Check if a file or directory exists."""
        resolved_path = self._resolve_path(path)
        return await aiofiles.os.path.exists(resolved_path)

    async def health_check(self) -> Dict[str, Any]:
        """
        Check adapter health.

        Verifies:
        - Root exists
        - Read permissions
        - Write permissions
        """
        checks: Dict[str, Optional[Any]] = {
            "root_exists": False,
            "root_readable": False,
            "root_writable": False,
            "disk_space_available": None,
        }

        if self.root.is_dir():
            checks["root_exists"] = True
            checks["root_readable"] = os.access(self.root, os.R_OK)
            checks["root_writable"] = os.access(self.root, os.W_OK)
            try:
                usage = shutil.disk_usage(self.root)
                checks["disk_space_available"] = f"{usage.free / (1024 ** 3):.2f} GB"
            except OSError:
                pass

        healthy = bool(
            checks["root_exists"] and checks["root_readable"] and checks["root_writable"]
        )

        if healthy:
            message = "Local storage healthy"
        else:
            issues = []
            if not checks["root_exists"]:
                issues.append("root doesn't exist")
            if not checks["root_readable"]:
                issues.append("no read access")
            if not checks["root_writable"]:
                issues.append("no write access")
            message = "Local storage unhealthy: " + ", ".join(issues)

        return {
            "healthy": healthy,
            "adapter": self.name,
            "message": message,
            "details": {
                "root": str(self.root),
                "checks": checks,
            },
        }
