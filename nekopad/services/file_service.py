from __future__ import annotations

from pathlib import Path

from PyQt6.QtCore import QIODevice, QSaveFile

from nekopad.domain.interfaces import IFileService


class FileService(IFileService):
    """Atomic reads/writes for text files."""

    def read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8")

    def read_bytes(self, path: Path) -> bytes:
        return path.read_bytes()

    def write_text_atomic(self, path: Path, text: str) -> None:
        # QSaveFile writes to a temporary sibling and renames on commit.
        sf = QSaveFile(str(path))
        if not sf.open(QIODevice.OpenModeFlag.WriteOnly):
            raise OSError(f"Cannot open for write: {path}")
        sf.write(text.encode("utf-8"))
        if not sf.commit():
            raise OSError(f"Commit failed for: {path}")

    def create_text_exclusive(self, path: Path, text: str) -> None:
        """Create ``path``; raises FileExistsError instead of overwriting."""
        with path.open("x", encoding="utf-8") as fh:
            fh.write(text)
