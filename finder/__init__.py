
"""
Finder package initialization.

Expose the package version so the API and scripts can report it
(e.g. `from finder import __version__`).

The version is read from the top-level `VERSION` file at import time when
available; releases are bumped by editing that single file. If the file is
missing (e.g. in a non-editable install), a default is used.
"""

from pathlib import Path

_root = Path(__file__).resolve().parents[1]
_version_file = _root / "VERSION"
if _version_file.exists():
	__version__ = _version_file.read_text(encoding="utf-8").strip()
else:
	__version__ = "0.0.0"
