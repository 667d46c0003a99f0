"""
Typed failures raised by storage adapters and file operations.

Every error carries a short machine-readable `kind`; the transport layer maps
kinds to HTTP status codes and never needs to inspect messages.
"""
from typing import Optional


class StorageError(Exception):
    """Base class for all storage failures."""

    kind = "storage_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidPathError(StorageError):
    """Path is malformed or resolves outside the adapter root."""

    kind = "invalid_path"

    def __init__(self, path: str, reason: str = "Path attempts to escape root directory"):
        super().__init__(f"Invalid path: {path} ({reason})")
        self.path = path
        self.reason = reason


class NotFoundError(StorageError):
    kind = "not_found"

    def __init__(self, path: str):
        super().__init__(f"Path not found: {path}")
        self.path = path


class StorageIOError(StorageError):
    """Any other filesystem failure; carries the underlying OS message."""

    kind = "io"

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(f"IO error: {message}")
        self.path = path


class ArchiveError(StorageIOError):
    """The archive could not be opened or one of its entries could not be read."""


class AlreadyExistsError(StorageError):
    kind = "already_exists"


class NoAdaptersError(StorageError):
    kind = "no_adapters"

    def __init__(self, message: str = "No storage adapters available"):
        super().__init__(message)


class ValidationError(StorageError):
    """Request is structurally valid but cannot be carried out (e.g. empty upload)."""

    kind = "invalid_request"
