# finder/core/operations.py
"""
File-manager operations on top of the storage adapters.

Each operation is a fixed, ordered sequence of adapter calls. Nothing here
is transactional: a failure stops the sequence and the first adapter error
propagates unchanged, leaving whatever steps already ran in place. The
orderings below are chosen so that an interruption never loses data:

- rename/move: read -> write -> delete. Interrupted after the write, both
  copies exist; interrupted before it, only the original does.
- move: every destination is checked before anything is touched, so a name
  collision, with an existing entry or between two items of the batch,
  aborts the whole batch. Failures after that point leave earlier
  items moved.
- archive: entry names must be unique. All sources are read and the zip
  is assembled in memory before the single write, so a partial archive
  never reaches storage.

Mutating operations return a fresh listing of the request directory (save
returns the written file instead), never a locally constructed guess.
"""
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Tuple

from finder.core.archive import build_zip, iter_entries
from finder.core.nodes import FileNode, PublicLinks, project
from finder.monitoring.context import set_request_context
from finder.monitoring.logger import log
from finder.storage.base import FILE, StorageAdapter
from finder.storage.errors import AlreadyExistsError, ValidationError
from finder.storage.local import guess_mime_type
from finder.storage.registry import AdapterRegistry


@dataclass
class Listing:
    adapter: str
    storages: List[str]
    dirname: str
    files: List[FileNode] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "adapter": self.adapter,
            "storages": self.storages,
            "dirname": self.dirname,
            "files": [node.to_dict() for node in self.files],
        }


@dataclass
class Preview:
    path: str
    mime_type: str
    content: bytes

    @property
    def filename(self) -> str:
        return basename(self.path)


def join(parent: str, name: str) -> str:
    """Join a child name onto a virtual directory path."""
    if not parent or parent.endswith("/"):
        return f"{parent}{name}"
    return f"{parent}/{name}"


def basename(path: str) -> str:
    return PurePosixPath(path.split("://", 1)[-1]).name


def stem(path: str) -> str:
    return PurePosixPath(path.split("://", 1)[-1]).stem


def _normalize(path: str) -> Tuple[str, ...]:
    relative = path.split("://", 1)[-1]
    return tuple(part for part in relative.split("/") if part not in ("", "."))


def _require_name(name: str, what: str = "name") -> str:
    if not name or not name.strip():
        raise ValidationError(f"Missing {what}")
    return name


class Finder:
    """
    Entry point for every file-manager request.

    Holds the read-only adapter registry and public-link table shared by
    all requests; holds no per-request state.
    """

    def __init__(self, registry: AdapterRegistry, public_links: Optional[Dict[str, str]] = None):
        self.registry = registry
        self.public_links = PublicLinks(public_links)

    def _storage(self, adapter: Optional[str]) -> Tuple[str, StorageAdapter]:
        name = self.registry.default_name(adapter)
        set_request_context(adapter=name)
        return name, self.registry.resolve(name)

    @staticmethod
    def _dirname(name: str, path: Optional[str]) -> str:
        return path or f"{name}://"

    # Read-side operations

    async def index(self, adapter: Optional[str] = None, path: Optional[str] = None) -> Listing:
        name, storage = self._storage(adapter)
        dirname = self._dirname(name, path)
        items = await storage.list_contents(dirname)
        return Listing(
            adapter=name,
            storages=self.registry.names(),
            dirname=dirname,
            files=[project(item, name, self.public_links) for item in items],
        )

    async def subfolders(self, adapter: Optional[str] = None, path: Optional[str] = None) -> List[Dict[str, str]]:
        name, storage = self._storage(adapter)
        items = await storage.list_contents(self._dirname(name, path))
        return [
            {"adapter": name, "path": item.path, "basename": item.basename}
            for item in items
            if item.is_dir
        ]

    async def search(self, adapter: Optional[str] = None, path: Optional[str] = None,
                     term: Optional[str] = None) -> Listing:
        """Files directly under `path` whose name contains `term`, case-insensitively."""
        listing = await self.index(adapter, path)
        needle = (term or "").lower()
        listing.files = [
            node for node in listing.files
            if node.item.node_type == FILE and needle in node.item.basename.lower()
        ]
        return listing

    async def preview(self, adapter: Optional[str], path: str) -> Preview:
        _, storage = self._storage(adapter)
        _require_name(path, "path")
        content = await storage.read(path)
        return Preview(path=path, mime_type=guess_mime_type(basename(path)), content=content)

    download = preview

    # Mutating operations

    async def new_folder(self, adapter: Optional[str], path: Optional[str], name: str) -> Listing:
        adapter_name, storage = self._storage(adapter)
        dirname = self._dirname(adapter_name, path)
        await storage.create_dir(join(dirname, _require_name(name)))
        log("INFO", f"Created folder {name} in {dirname}", module="operations")
        return await self.index(adapter_name, dirname)

    async def new_file(self, adapter: Optional[str], path: Optional[str], name: str) -> Listing:
        adapter_name, storage = self._storage(adapter)
        dirname = self._dirname(adapter_name, path)
        await storage.write(join(dirname, _require_name(name)), b"")
        log("INFO", f"Created file {name} in {dirname}", module="operations")
        return await self.index(adapter_name, dirname)

    async def upload(self, adapter: Optional[str], path: Optional[str],
                     filename: str, data: bytes) -> Listing:
        adapter_name, storage = self._storage(adapter)
        dirname = self._dirname(adapter_name, path)
        if not filename or not data:
            raise ValidationError("Missing file or filename")
        await storage.write(join(dirname, filename), data)
        log("INFO", f"Uploaded {filename} ({len(data)} bytes) to {dirname}", module="operations")
        return await self.index(adapter_name, dirname)

    async def rename(self, adapter: Optional[str], path: Optional[str],
                     item: str, name: str) -> Listing:
        adapter_name, storage = self._storage(adapter)
        dirname = self._dirname(adapter_name, path)
        target = join(dirname, _require_name(name))
        if _normalize(target) == _normalize(item):
            raise ValidationError(f"Source and destination are the same: {item}")

        contents = await storage.read(item)
        await storage.write(target, contents)
        await storage.delete(item)

        log("INFO", f"Renamed {item} to {target}", module="operations")
        return await self.index(adapter_name, dirname)

    async def move(self, adapter: Optional[str], path: Optional[str],
                   target_dir: str, items: Iterable[str]) -> Listing:
        adapter_name, storage = self._storage(adapter)
        dirname = self._dirname(adapter_name, path)
        moves = [(source, join(target_dir, basename(source))) for source in items]

        seen = set()
        for _, destination in moves:
            key = _normalize(destination)
            if key in seen or await storage.exists(destination):
                raise AlreadyExistsError("One of the files already exists.")
            seen.add(key)

        for source, destination in moves:
            contents = await storage.read(source)
            await storage.write(destination, contents)
            await storage.delete(source)
            log("INFO", f"Moved {source} to {destination}", module="operations")

        return await self.index(adapter_name, dirname)

    async def delete_many(self, adapter: Optional[str], path: Optional[str],
                          items: Iterable[str]) -> Listing:
        adapter_name, storage = self._storage(adapter)
        dirname = self._dirname(adapter_name, path)
        for item in items:
            await storage.delete(item)
            log("INFO", f"Deleted {item}", module="operations")
        return await self.index(adapter_name, dirname)

    async def save(self, adapter: Optional[str], path: str, content: str) -> Preview:
        _, storage = self._storage(adapter)
        _require_name(path, "path")
        await storage.write(path, content.encode("utf-8"))
        log("INFO", f"Saved {path}", module="operations")
        return await self.preview(adapter, path)

    async def archive(self, adapter: Optional[str], path: Optional[str],
                      name: str, items: Iterable[str]) -> Listing:
        adapter_name, storage = self._storage(adapter)
        dirname = self._dirname(adapter_name, path)
        zip_path = join(dirname, f"{_require_name(name)}.zip")

        if await storage.exists(zip_path):
            raise AlreadyExistsError("Zip file already exists. Please use a different name.")

        items = list(items)
        names = [basename(item) for item in items]
        duplicates = sorted({entry for entry in names if names.count(entry) > 1})
        if duplicates:
            raise AlreadyExistsError(f"Duplicate archive entry names: {', '.join(duplicates)}")

        members = []
        for item, entry in zip(items, names):
            members.append((entry, await storage.read(item)))

        await storage.write(zip_path, build_zip(members))
        log("INFO", f"Archived {len(members)} item(s) into {zip_path}", module="operations")
        return await self.index(adapter_name, dirname)

    async def unarchive(self, adapter: Optional[str], path: Optional[str], item: str) -> Listing:
        """
        Extract `item` into `<path>/<archive name without extension>`.

        Entry names are not sanitized here; an entry escaping the storage
        root is rejected by the adapter's path resolution on write.
        """
        adapter_name, storage = self._storage(adapter)
        dirname = self._dirname(adapter_name, path)

        contents = await storage.read(item)
        extract_path = join(dirname, stem(item))
        await storage.create_dir(extract_path)

        count = 0
        for entry in iter_entries(contents):
            outpath = join(extract_path, entry.name)
            if entry.is_dir:
                await storage.create_dir(outpath)
                continue
            await storage.create_dir(outpath.rsplit("/", 1)[0])
            await storage.write(outpath, entry.data)
            count += 1

        log("INFO", f"Extracted {count} file(s) from {item} into {extract_path}", module="operations")
        return await self.index(adapter_name, dirname)
