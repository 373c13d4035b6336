from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager, nullcontext
from datetime import datetime
from pathlib import Path

from PyQt6.QtCore import QObject, pyqtSignal

from nekopad.domain.errors import (
    DirectoryNotConfigured,
    EncodingError,
    NameCollisionExhausted,
    NekoPadError,
    NotFound,
    PermissionDenied,
    RecordFormatError,
    StorageIOError,
)
from nekopad.domain.interfaces import IFileService, ISettingsService
from nekopad.domain.models import Document, ProvenanceKind, new_document_id, now
from nekopad.domain.records import DocumentRecord, blank_record, is_record_mapping
from nekopad.utils.constants import MAX_NAME_COLLISIONS, WRAPPER_EXT
from nekopad.workdir.bookmark import Bookmark

LOGGER = logging.getLogger(__name__)


def translate_os_error(exc: OSError | UnicodeDecodeError, path: Path) -> NekoPadError:
    if isinstance(exc, UnicodeDecodeError):
        return EncodingError("Content is not valid UTF-8 text", path=path)
    if isinstance(exc, FileNotFoundError):
        return NotFound("No such file or directory", path=path)
    if isinstance(exc, PermissionError):
        return PermissionDenied("Access denied", path=path)
    return StorageIOError(exc.strerror or str(exc), path=path)


def timestamp_name(when: datetime | None = None) -> str:
    """Millisecond timestamp without separators, e.g. 20250906212332123."""
    return (when or now()).strftime("%Y%m%d%H%M%S%f")[:-3]


def _file_name(base: str, ext: str, index: int) -> str:
    stem = base if index < 2 else f"{base} {index}"
    return f"{stem}.{ext}" if ext else stem


def _creation_key(path: Path) -> tuple[float, str]:
    try:
        st = path.stat()
    except OSError:
        return (0.0, path.name)
    return (getattr(st, "st_birthtime", st.st_ctime), path.name)


def _is_within(path: Path, root: Path) -> bool:
    try:
        return Path(path).resolve().is_relative_to(root.resolve())
    except OSError:
        return False


class WorkingDirectoryAccessor(QObject):
    """
    Mediates every read/write/list/rename/delete against the user-chosen folder.

    Folder-level operations always run inside the access bracket (``access()``).
    Per-path operations are bracketed when the path lies inside the working
    directory and run directly against the path otherwise (external files).
    """

    directory_changed = pyqtSignal(object)  # Path | None

    def __init__(
        self,
        settings: ISettingsService,
        files: IFileService,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._settings = settings
        self._files = files
        self._depth = 0
        self._active_root: Path | None = None
        self.begin_count = 0
        self.end_count = 0

    # ---------- Location ----------

    @property
    def directory(self) -> Path | None:
        path, bookmark = self._settings.get_working_directory()
        if bookmark:
            try:
                resolved = Bookmark.resolve(bookmark)
            except NotFound as exc:
                LOGGER.warning("Ignoring working directory bookmark: %s", exc)
            else:
                if resolved.stale:
                    LOGGER.info("Working directory bookmark is stale: %s", resolved.path)
                return resolved.path
        return Path(path) if path else None

    @property
    def is_configured(self) -> bool:
        return self.directory is not None

    def contains(self, path: Path) -> bool:
        """True if ``path`` lies inside the working directory."""
        root = self.directory
        return root is not None and _is_within(path, root)

    def set_directory(self, path: Path | None) -> None:
        if path is None:
            self._settings.set_working_directory(None, None)
            LOGGER.info("Working directory cleared")
        else:
            path = Path(path).expanduser().resolve()
            self._settings.set_working_directory(str(path), Bookmark.create(path))
            LOGGER.info("Working directory set to %s", path)
        self.directory_changed.emit(path)

    def choose_directory(self, prompt: Callable[[], Path | None]) -> Path | None:
        """Ask ``prompt`` (usually a folder dialog) for a folder and store it."""
        chosen = prompt()
        if chosen is None:
            return None
        self.set_directory(chosen)
        return self.directory

    # ---------- Access bracket ----------

    @property
    def access_depth(self) -> int:
        return self._depth

    @contextmanager
    def access(self) -> Iterator[Path]:
        root = self._active_root if self._depth else self._begin()
        self._depth += 1
        try:
            yield root
        finally:
            self._depth -= 1
            if self._depth == 0:
                self._end()

    def _begin(self) -> Path:
        root = self.directory
        if root is None:
            raise DirectoryNotConfigured("Working directory not set")
        if not root.is_dir():
            raise NotFound("Working directory is missing", path=root)
        if not os.access(root, os.R_OK | os.W_OK | os.X_OK):
            raise PermissionDenied("Working directory is not accessible", path=root)
        self.begin_count += 1
        self._active_root = root
        LOGGER.debug("Begin access: %s", root)
        return root

    def _end(self) -> None:
        LOGGER.debug("End access: %s", self._active_root)
        self.end_count += 1
        self._active_root = None

    def _scoped(self, path: Path) -> AbstractContextManager[Path | None]:
        if self.contains(path):
            return self.access()
        return nullcontext(None)

    # ---------- Folder operations ----------

    def list_files(self) -> list[Path]:
        """Non-hidden regular files, oldest first."""
        with self.access() as root:
            try:
                entries = [p for p in root.iterdir() if not p.name.startswith(".") and p.is_file()]
            except OSError as exc:
                raise translate_os_error(exc, root) from exc
            return sorted(entries, key=_creation_key)

    def create_empty_file(self, base_name: str | None = None, ext: str = WRAPPER_EXT) -> Path:
        base = (base_name or "").strip() or timestamp_name()
        payload = self._dump(blank_record(base))
        with self.access() as root:
            path = self._create_unique(root, base, ext, payload)
        LOGGER.info("Created %s", path)
        return path

    def rename_file(self, path: Path, new_base_name: str, ext: str = WRAPPER_EXT) -> Path:
        name = new_base_name.strip()
        if not name:
            LOGGER.debug("Rejected blank rename of %s", path)
            return path
        with self.access() as root:
            if not path.exists():
                raise NotFound("Cannot rename a missing file", path=path)
            if path.parent.resolve() == root.resolve() and path.name == _file_name(name, ext, 1):
                return path
            dest = self._free_name(root, name, ext)
            try:
                path.rename(dest)
            except OSError as exc:
                raise translate_os_error(exc, path) from exc
        LOGGER.info("Renamed %s -> %s", path, dest)
        return dest

    def wrap_external_file(self, path: Path) -> Path:
        """Create ``<stem>.json`` in the working directory referring to ``path``."""
        source = Path(path).expanduser().resolve()
        content = self.read_text(source)
        stamp = now()
        record = DocumentRecord(
            id=new_document_id(),
            title=source.name,
            kind=ProvenanceKind.EXTERNAL,
            content=content,
            path=str(source),
            created_at=stamp,
            last_modified=stamp,
            file_path=str(source),
            is_untitled=False,
            bookmark=Bookmark.create(source),
        )
        with self.access() as root:
            wrapper = self._create_unique(root, source.stem, WRAPPER_EXT, self._dump(record))
        LOGGER.info("Wrapped %s as %s", source, wrapper)
        return wrapper

    # ---------- Per-path operations ----------

    def delete_file(self, path: Path) -> bool:
        """Remove ``path``; a missing entry is not an error. Returns True if removed."""
        with self._scoped(path):
            try:
                path.unlink()
            except FileNotFoundError:
                return False
            except OSError as exc:
                raise translate_os_error(exc, path) from exc
        LOGGER.info("Deleted %s", path)
        return True

    def is_whitespace_only(self, path: Path) -> bool:
        with self._scoped(path):
            try:
                if path.stat().st_size == 0:
                    return True
                data = self._files.read_bytes(path)
            except OSError as exc:
                LOGGER.debug("Cannot inspect %s: %s", path, exc)
                return False
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            # Unknown binary data is never treated as blank.
            return False
        return not text.strip()

    def read_text(self, path: Path) -> str:
        with self._scoped(path):
            try:
                return self._files.read_text(path)
            except (OSError, UnicodeDecodeError) as exc:
                raise translate_os_error(exc, path) from exc

    def write_text(self, path: Path, text: str) -> None:
        with self._scoped(path):
            try:
                self._files.write_text_atomic(path, text)
            except OSError as exc:
                raise translate_os_error(exc, path) from exc

    def load_wrapper(self, path: Path) -> Document:
        """Parse a wrapper record; raises RecordFormatError if ``path`` is not one."""
        raw = self.read_text(path)
        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise RecordFormatError("Not a JSON document", path=path) from exc
        if not is_record_mapping(data):
            raise RecordFormatError("Not a document record", path=path)
        record = DocumentRecord.from_dict(data)
        if record.kind is ProvenanceKind.EXTERNAL and record.path:
            content = self._read_referenced(record)
        else:
            content = record.content or ""
        doc = record.to_document(content, wrapper_path=path)
        if not record.title:
            doc.title = path.stem
        return doc

    def save_wrapper(self, doc: Document) -> None:
        if doc.wrapper_path is None:
            raise NotFound(f"Document {doc.id} has no wrapper record")
        record = DocumentRecord.from_document(doc, inline_external=True)
        self.write_text(doc.wrapper_path, self._dump(record))

    # ---------- Internals ----------

    def _read_referenced(self, record: DocumentRecord) -> str:
        target = Path(record.path or "")
        if record.bookmark:
            try:
                target = Bookmark.resolve(record.bookmark).path
            except NotFound as exc:
                LOGGER.debug("Bookmark unusable for %s: %s", record.path, exc)
        try:
            return self.read_text(target)
        except NekoPadError as exc:
            LOGGER.warning("Using stored snapshot for %s: %s", target, exc)
            return record.content or ""

    def _create_unique(self, root: Path, base: str, ext: str, payload: str) -> Path:
        for index in range(1, MAX_NAME_COLLISIONS + 1):
            candidate = root / _file_name(base, ext, index)
            try:
                self._files.create_text_exclusive(candidate, payload)
            except FileExistsError:
                continue
            except OSError as exc:
                raise translate_os_error(exc, candidate) from exc
            return candidate
        raise NameCollisionExhausted(f"No free name for {base!r}", path=root)

    def _free_name(self, root: Path, base: str, ext: str) -> Path:
        for index in range(1, MAX_NAME_COLLISIONS + 1):
            candidate = root / _file_name(base, ext, index)
            if not candidate.exists():
                return candidate
        raise NameCollisionExhausted(f"No free name for {base!r}", path=root)

    @staticmethod
    def _dump(record: DocumentRecord) -> str:
        return json.dumps(record.to_dict(), indent=2, ensure_ascii=False)
