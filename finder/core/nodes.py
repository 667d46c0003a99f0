"""
Projection of adapter listings into the externally visible file nodes.
"""
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from finder.storage.base import StorageItem


@dataclass
class FileNode:
    item: StorageItem
    storage: str
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.item.to_dict()
        data["storage"] = self.storage
        data["url"] = self.url
        return data


class PublicLinks:
    """
    Prefix → domain table turning file paths into public URLs.

    Prefixes are tried longest first (ties broken alphabetically), so the
    URL assigned to a path never depends on configuration order.
    """

    def __init__(self, links: Optional[Mapping[str, str]] = None):
        self._links = sorted((links or {}).items(), key=lambda kv: (-len(kv[0]), kv[0]))

    def __bool__(self) -> bool:
        return bool(self._links)

    def url_for(self, item: StorageItem) -> Optional[str]:
        if item.is_dir:
            return None
        for prefix, domain in self._links:
            if item.path.startswith(prefix):
                return domain + item.path[len(prefix):]
        return None


def project(item: StorageItem, adapter_name: str, public_links: PublicLinks) -> FileNode:
    return FileNode(item=item, storage=adapter_name, url=public_links.url_for(item))
