# finder/storage/paths.py
"""
Virtual path resolution for filesystem-backed adapters.

A virtual path (`local://docs/a.txt` or `docs/a.txt`) is turned into an
absolute, symlink-resolved path that is guaranteed to sit at or below the
adapter root. The check runs on the canonical path, after joining, so both
`../` traversal and symlinks pointing outside the root are rejected, while
targets that do not exist yet (new files, missing parent directories) can
still be validated.
"""
import os
import re
from pathlib import Path, PurePosixPath
from typing import List

from finder.storage.errors import InvalidPathError

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_SEPARATORS = "".join(sorted({"/", os.sep, os.altsep or "/"}))
_SPLIT_RE = re.compile("[" + re.escape(_SEPARATORS) + "]")


class PathResolver:
    """
    Resolves virtual paths against one storage root.

    The root is canonicalized once, here; a root that does not exist fails
    at construction rather than on first use.
    """

    def __init__(self, root: str, scheme: str):
        try:
            canonical_root = Path(root).resolve(strict=True)
        except (OSError, RuntimeError) as exc:
            raise ValueError(f"Storage root does not exist: {root}") from exc

        if not canonical_root.is_dir():
            raise ValueError(f"Storage root is not a directory: {root}")

        self.root = canonical_root
        self.scheme = scheme
        self.prefix = f"{scheme}://"

    def segments(self, virtual_path: str) -> List[str]:
        """Split a virtual path into clean relative segments (no scheme, no empty or `.` parts)."""
        if "\x00" in virtual_path:
            raise InvalidPathError(virtual_path, "embedded null byte")

        clean = virtual_path
        if clean.startswith(self.prefix):
            clean = clean[len(self.prefix):]
        elif _SCHEME_RE.match(clean):
            raise InvalidPathError(virtual_path, f"scheme does not match adapter '{self.scheme}'")

        clean = clean.lstrip(_SEPARATORS)
        if Path(clean).is_absolute() or Path(clean).drive:
            raise InvalidPathError(virtual_path, "absolute paths are not allowed")

        parts = [part for part in _SPLIT_RE.split(clean) if part not in ("", ".")]
        if ".." in parts:
            raise InvalidPathError(virtual_path)
        return parts

    def resolve(self, virtual_path: str) -> Path:
        """
        Resolve a virtual path to a canonical absolute path under the root.

        Raises:
            InvalidPathError: If the path is malformed or escapes the root
        """
        parts = self.segments(virtual_path)
        joined = self.root.joinpath(*parts)

        # Non-strict resolve canonicalizes the deepest existing ancestor and
        # re-appends the missing components.
        try:
            canonical = joined.resolve(strict=False)
        except (OSError, RuntimeError, ValueError) as exc:
            raise InvalidPathError(virtual_path, str(exc)) from exc

        try:
            canonical.relative_to(self.root)
        except ValueError:
            raise InvalidPathError(virtual_path) from None

        return canonical

    def is_root(self, resolved: Path) -> bool:
        return resolved == self.root

    def to_virtual(self, resolved: Path) -> str:
        """Inverse of `resolve`: `<scheme>://<posix relative path>`."""
        relative = resolved.relative_to(self.root)
        posix = PurePosixPath(*relative.parts).as_posix() if relative.parts else ""
        return f"{self.prefix}{posix}"


def resolve_path(root: str, virtual_path: str, scheme: str = "local") -> Path:
    """One-shot resolution of `virtual_path` against `root`."""
    return PathResolver(root, scheme).resolve(virtual_path)
