from __future__ import annotations

from pathlib import Path


class NekoPadError(Exception):
    """Base for every failure the document store and session layer report."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base}: {self.path}" if self.path is not None else base


class DirectoryNotConfigured(NekoPadError):
    """No working directory has been chosen."""


class PermissionDenied(NekoPadError):
    """Scoped access to a folder or file could not be obtained."""


class NotFound(NekoPadError):
    """The path vanished or never existed."""


class EncodingError(NekoPadError):
    """Content is not valid UTF-8 text."""


class NameCollisionExhausted(NekoPadError):
    """Every candidate name up to the collision bound is taken."""


class StorageIOError(NekoPadError):
    """Generic read/write failure."""


class RecordFormatError(NekoPadError):
    """A session or wrapper record could not be parsed."""
