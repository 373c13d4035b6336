from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Iterable, Iterator
from pathlib import Path

from nekopad.domain.errors import NekoPadError, RecordFormatError
from nekopad.domain.interfaces import IFileService
from nekopad.domain.models import Document, ProvenanceKind
from nekopad.domain.records import DocumentRecord
from nekopad.store.registry import StoreRegistry
from nekopad.utils.constants import SESSION_FILE_NAME, SNAPSHOT_SUFFIX
from nekopad.workdir.accessor import WorkingDirectoryAccessor, translate_os_error
from nekopad.workdir.bookmark import Bookmark

LOGGER = logging.getLogger(__name__)


class SessionManager:
    """
    Persists every open document of every live store into ``session.json``
    plus one ``<id>.txt`` content snapshot per document, and reads them back.

    Failures on a single document never abort a pass; they are collected in
    ``last_errors`` for the caller to report.
    """

    def __init__(
        self,
        session_dir: Path,
        registry: StoreRegistry,
        files: IFileService,
        accessor: WorkingDirectoryAccessor,
    ) -> None:
        self.session_dir = Path(session_dir)
        self._registry = registry
        self._files = files
        self._accessor = accessor
        self._errors: list[NekoPadError] = []

    @property
    def session_file(self) -> Path:
        return self.session_dir / SESSION_FILE_NAME

    def snapshot_path(self, doc_id: str) -> Path:
        return self.session_dir / f"{doc_id}{SNAPSHOT_SUFFIX}"

    @property
    def last_errors(self) -> list[NekoPadError]:
        return list(self._errors)

    # ---------- Save ----------

    def save_all(self, pending: Iterable[Document] = ()) -> int:
        """
        Write the session file; returns the number of records written.

        ``pending`` documents belong to no store yet and are saved after the
        stores' own.
        """
        self._errors = []
        try:
            self.session_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise translate_os_error(exc, self.session_dir) from exc

        records: list[dict] = []
        for doc in self._documents(pending):
            if doc.is_freestanding and doc.is_blank:
                continue
            snapshot = self.snapshot_path(doc.id)
            if doc.dirty or not snapshot.exists():
                try:
                    self._files.write_text_atomic(snapshot, doc.content)
                except OSError as exc:
                    self._fail(translate_os_error(exc, snapshot))
                else:
                    doc.dirty = False
            records.append(DocumentRecord.from_document(doc, content_file=snapshot).to_dict())

        payload = json.dumps(records, indent=2, ensure_ascii=False)
        try:
            self._files.write_text_atomic(self.session_file, payload)
        except OSError as exc:
            raise translate_os_error(exc, self.session_file) from exc

        self._prune_snapshots({r["id"] for r in records})
        LOGGER.debug("Saved %d document(s) to %s", len(records), self.session_file)
        return len(records)

    def flush_external(self) -> int:
        """Write edited documents back to their backing files and wrapper records."""
        self._errors = []
        written = 0
        for doc in self._documents():
            if not doc.needs_flush:
                continue
            ok = True
            if doc.external_path is not None:
                try:
                    self._accessor.write_text(doc.external_path, doc.content)
                    written += 1
                except NekoPadError as exc:
                    self._fail(exc)
                    ok = False
            if doc.wrapper_path is not None:
                try:
                    self._accessor.save_wrapper(doc)
                    written += 1
                except NekoPadError as exc:
                    self._fail(exc)
                    ok = False
            if ok:
                doc.mark_flushed()
        return written

    # ---------- Restore ----------

    def restore_session(self) -> list[Document]:
        """Documents of the previous run, in saved order. Never touches stores."""
        self._errors = []
        path = self.session_file
        if not path.exists():
            return []
        try:
            data = json.loads(self._files.read_text(path))
        except (OSError, UnicodeDecodeError) as exc:
            self._fail(translate_os_error(exc, path))
            return []
        except ValueError:
            self._fail(RecordFormatError("Session file is corrupt", path=path))
            return []
        if not isinstance(data, list):
            self._fail(RecordFormatError("Session file is not a list of records", path=path))
            return []

        docs: list[Document] = []
        for entry in data:
            try:
                record = DocumentRecord.from_dict(entry)
            except RecordFormatError as exc:
                self._fail(exc)
                continue
            docs.append(self._restore(record))
        LOGGER.info("Restored %d document(s) from %s", len(docs), path)
        return docs

    def _restore(self, record: DocumentRecord) -> Document:
        if record.content_file_path:
            snapshot = Path(record.content_file_path)
        else:
            snapshot = self.snapshot_path(record.id)

        if record.kind is ProvenanceKind.FREESTANDING:
            content = record.content
            if content is None:
                content = self._read_snapshot(snapshot)
        else:
            content = self._read_external(record)
            if content is None:
                content = self._read_snapshot(snapshot)

        wrapper: Path | None = None
        if record.file_path and record.file_path != record.path:
            candidate = Path(record.file_path)
            if candidate.is_file():
                wrapper = candidate
        return record.to_document(content or "", wrapper_path=wrapper)

    def _read_external(self, record: DocumentRecord) -> str | None:
        if not record.path:
            return None
        target = Path(record.path)
        if record.bookmark:
            try:
                target = Bookmark.resolve(record.bookmark).path
            except NekoPadError as exc:
                LOGGER.debug("Bookmark unusable for %s: %s", record.path, exc)
        try:
            return self._accessor.read_text(target)
        except NekoPadError as exc:
            self._fail(exc)
            return None

    def _read_snapshot(self, path: Path) -> str | None:
        try:
            return self._files.read_text(path)
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            self._fail(translate_os_error(exc, path))
            return None

    # ---------- Internals ----------

    def _documents(self, pending: Iterable[Document] = ()) -> Iterator[Document]:
        seen: set[str] = set()
        groups = [store.documents for store in self._registry.live_stores()]
        groups.append(tuple(pending))
        for group in groups:
            for doc in group:
                if doc.id in seen:
                    continue
                seen.add(doc.id)
                yield doc

    def _prune_snapshots(self, keep: set[str]) -> None:
        for path in self.session_dir.glob(f"*{SNAPSHOT_SUFFIX}"):
            try:
                uuid.UUID(path.stem)
            except ValueError:
                # Only snapshot files named after a document id are ours.
                continue
            if path.stem in keep:
                continue
            try:
                path.unlink()
                LOGGER.debug("Pruned orphan snapshot %s", path.name)
            except OSError as exc:
                LOGGER.warning("Could not prune %s: %s", path, exc)

    def _fail(self, error: NekoPadError) -> None:
        LOGGER.warning("%s", error)
        self._errors.append(error)
