"""
In-memory zip assembly and extraction helpers.

Archives are built and read entirely in memory; the storage adapter only
ever sees the finished archive bytes (one write) or individual extracted
entries.
"""
import io
import time
import zipfile
import zlib
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from finder.storage.errors import ArchiveError

# rwxr-xr-x, stored in the high 16 bits of external_attr
_ENTRY_PERMISSIONS = 0o755 << 16


@dataclass
class ArchiveEntry:
    name: str
    is_dir: bool
    data: Optional[bytes] = None


def build_zip(members: Iterable[Tuple[str, bytes]]) -> bytes:
    """Build a deflate-compressed zip from `(entry name, contents)` pairs."""
    buffer = io.BytesIO()
    date_time = time.localtime()[:6]
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in members:
            info = zipfile.ZipInfo(name, date_time=date_time)
            info.compress_type = zipfile.ZIP_DEFLATED
            info.external_attr = _ENTRY_PERMISSIONS
            zf.writestr(info, data)
    return buffer.getvalue()


def iter_entries(data: bytes) -> Iterator[ArchiveEntry]:
    """
    Yield archive entries in the archive's index order.

    Raises:
        ArchiveError: If the archive or one of its entries cannot be read
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as exc:
        raise ArchiveError(f"Failed to open ZIP file: {exc}") from exc

    with zf:
        for info in zf.infolist():
            if info.filename.endswith("/"):
                yield ArchiveEntry(name=info.filename, is_dir=True)
                continue
            try:
                contents = zf.read(info)
            except (zipfile.BadZipFile, zlib.error, NotImplementedError, RuntimeError, OSError) as exc:
                raise ArchiveError(f"Failed to read ZIP file entry {info.filename}: {exc}") from exc
            yield ArchiveEntry(name=info.filename, is_dir=False, data=contents)
