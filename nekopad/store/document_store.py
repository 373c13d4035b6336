from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from PyQt6.QtCore import QObject, pyqtSignal

from nekopad.domain.errors import NekoPadError, RecordFormatError
from nekopad.domain.models import (
    DEFAULT_FONT_SIZE,
    Document,
    Provenance,
    clamp_font_size,
    untitled_title,
)
from nekopad.session.fanout import AssignmentState
from nekopad.store.registry import StoreRegistry
from nekopad.utils.constants import WRAPPER_EXT
from nekopad.workdir.accessor import WorkingDirectoryAccessor

LOGGER = logging.getLogger(__name__)


class DocumentStore(QObject):
    """
    Ordered documents shown by one window, plus the current selection.

    The selection is always a member of the sequence or None. The store
    registers itself on construction and leaves the registry on ``dispose()``.
    """

    document_changed = pyqtSignal(object)  # Document
    title_changed = pyqtSignal(object)  # Document
    selection_changed = pyqtSignal(object)  # Document | None
    error_occurred = pyqtSignal(object)  # NekoPadError

    def __init__(
        self,
        registry: StoreRegistry,
        accessor: WorkingDirectoryAccessor,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._accessor = accessor
        self._documents: list[Document] = []
        self._selected: Document | None = None
        self.assignment = AssignmentState.AWAITING_ASSIGNMENT
        self._handle = registry.register(self)

    # ---------- Queries ----------

    @property
    def documents(self) -> tuple[Document, ...]:
        return tuple(self._documents)

    def selected_document(self) -> Document | None:
        return self._selected

    @property
    def is_registered(self) -> bool:
        return self._handle.active

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, doc: object) -> bool:
        return any(d is doc for d in self._documents)

    # ---------- Sequence ----------

    def create_untitled(self) -> Document:
        doc = Document(title=untitled_title())
        self.adopt(doc)
        return doc

    def open(self, path: Path) -> Document:
        """Open ``path`` as a wrapper record, a new wrapper, or raw external text."""
        doc = self._ingest(Path(path))
        self.adopt(doc)
        LOGGER.info("Opened %s", path)
        return doc

    def adopt(self, doc: Document) -> None:
        self._documents.append(doc)
        self.select(doc)

    def close(self, doc: Document) -> bool:
        if doc not in self:
            return False
        self._documents = [d for d in self._documents if d is not doc]
        if self._selected is doc:
            self._set_selection(self._documents[-1] if self._documents else None)
        return True

    def select(self, doc: Document | None) -> None:
        if doc is not None and doc not in self:
            raise ValueError(f"Document {doc.id} is not in this store")
        self._set_selection(doc)

    def replace_all(self, docs: Iterable[Document]) -> None:
        self._documents = list(docs)
        self._set_selection(self._documents[-1] if self._documents else None)

    # ---------- Editing ----------

    def update_content(self, doc: Document, text: str) -> bool:
        if not doc.set_content(text):
            return False
        self.document_changed.emit(doc)
        return True

    def adjust_font_size(self, delta: float) -> None:
        doc = self._selected
        if doc is None:
            return
        self._apply_font_size(doc, doc.font_size + delta)

    def reset_font_size(self) -> None:
        if self._selected is not None:
            self._apply_font_size(self._selected, DEFAULT_FONT_SIZE)

    def rename(self, doc: Document, title: str) -> bool:
        """
        Retitle ``doc`` and keep its file name in the working directory in step
        with the title: the wrapper record if it has one, otherwise the plain
        file it edits in place.
        """
        title = title.strip()
        if not title:
            return False
        doc.title = title
        self.title_changed.emit(doc)

        if doc.wrapper_path is not None:
            self._rename_wrapper(doc, title)
        elif doc.external_path is not None and self._accessor.contains(doc.external_path):
            self._rename_backing_file(doc, title)
        return True

    def _rename_wrapper(self, doc: Document, title: str) -> None:
        wrapper = doc.wrapper_path
        if wrapper.stem == title:
            return
        ext = wrapper.suffix.lstrip(".") or WRAPPER_EXT
        try:
            doc.wrapper_path = self._accessor.rename_file(wrapper, title, ext=ext)
            self._accessor.save_wrapper(doc)
        except NekoPadError as exc:
            self.report(exc)

    def _rename_backing_file(self, doc: Document, title: str) -> None:
        path = doc.external_path
        suffix = path.suffix
        base = title
        if suffix and base.endswith(suffix) and len(base) > len(suffix):
            base = base[: -len(suffix)]
        try:
            new_path = self._accessor.rename_file(path, base, ext=suffix.lstrip("."))
        except NekoPadError as exc:
            self.report(exc)
            return
        doc.provenance = Provenance.external(new_path)

    # ---------- Lifecycle ----------

    def dispose(self) -> None:
        self._handle.close()

    def report(self, error: NekoPadError) -> None:
        LOGGER.warning("%s", error)
        self.error_occurred.emit(error)

    # ---------- Internals ----------

    def _set_selection(self, doc: Document | None) -> None:
        if doc is self._selected:
            return
        self._selected = doc
        self.selection_changed.emit(doc)

    def _apply_font_size(self, doc: Document, size: float) -> None:
        size = clamp_font_size(size)
        if size == doc.font_size:
            return
        doc.font_size = size
        self.document_changed.emit(doc)

    def _ingest(self, path: Path) -> Document:
        try:
            return self._accessor.load_wrapper(path)
        except RecordFormatError:
            pass
        except NekoPadError as exc:
            self.report(exc)
            return self._external(path, "")

        if self._accessor.is_configured:
            try:
                return self._accessor.load_wrapper(self._accessor.wrap_external_file(path))
            except NekoPadError as exc:
                self.report(exc)

        try:
            content = self._accessor.read_text(path)
        except NekoPadError as exc:
            self.report(exc)
            content = ""
        return self._external(path, content)

    @staticmethod
    def _external(path: Path, content: str) -> Document:
        return Document(
            title=path.name,
            content=content,
            provenance=Provenance.external(path.expanduser().resolve()),
        )
