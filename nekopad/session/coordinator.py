from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from pathlib import Path

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from nekopad.domain.errors import NekoPadError, RecordFormatError
from nekopad.domain.interfaces import ISettingsService
from nekopad.domain.models import Document, Provenance, untitled_title
from nekopad.session.fanout import AssignmentState, FanOutQueue
from nekopad.session.manager import SessionManager
from nekopad.store.document_store import DocumentStore
from nekopad.store.registry import StoreRegistry
from nekopad.utils.constants import (
    DEFAULT_AUTOSAVE_INTERVAL_MS,
    DEFAULT_FAN_OUT_ATTEMPTS,
    DEFAULT_FAN_OUT_DELAY_MS,
)
from nekopad.workdir.accessor import WorkingDirectoryAccessor

LOGGER = logging.getLogger(__name__)

Scheduler = Callable[[int, Callable[[], None]], None]


def _qt_schedule(delay_ms: int, fn: Callable[[], None]) -> None:
    QTimer.singleShot(delay_ms, fn)


class SessionCoordinator(QObject):
    """
    Process-wide session state: which documents go to which store, periodic
    autosave, and the termination flag.

    Built once at startup and handed to every window; there is no global.
    """

    error_occurred = pyqtSignal(object)  # NekoPadError
    fan_out_abandoned = pyqtSignal(int)  # number of documents dropped
    autosave_tick = pyqtSignal(int)  # number of records saved

    def __init__(
        self,
        manager: SessionManager,
        registry: StoreRegistry,
        accessor: WorkingDirectoryAccessor,
        settings: ISettingsService,
        *,
        autosave_interval_ms: int = DEFAULT_AUTOSAVE_INTERVAL_MS,
        retry_attempts: int = DEFAULT_FAN_OUT_ATTEMPTS,
        retry_delay_ms: int = DEFAULT_FAN_OUT_DELAY_MS,
        scheduler: Scheduler | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._manager = manager
        self._registry = registry
        self._accessor = accessor
        self._settings = settings
        self._retry_attempts = max(0, retry_attempts)
        self._retry_delay_ms = max(0, retry_delay_ms)
        self._schedule = scheduler or _qt_schedule

        self._queue = FanOutQueue()
        self._seeded = False
        self._terminating = False
        self._spawner: Callable[[], bool] | None = None

        self._timer = QTimer(self)
        self._timer.setInterval(autosave_interval_ms)
        self._timer.timeout.connect(self._on_autosave_tick)

        accessor.directory_changed.connect(self.on_directory_changed)

    # ---------- Properties ----------

    @property
    def manager(self) -> SessionManager:
        return self._manager

    @property
    def registry(self) -> StoreRegistry:
        return self._registry

    @property
    def accessor(self) -> WorkingDirectoryAccessor:
        return self._accessor

    @property
    def is_terminating(self) -> bool:
        return self._terminating

    @property
    def pending_documents(self) -> int:
        return self._queue.remaining

    @property
    def autosave_active(self) -> bool:
        return self._timer.isActive()

    # ---------- Stores ----------

    def create_store(self, parent: QObject | None = None) -> DocumentStore:
        store = DocumentStore(self._registry, self._accessor, parent)
        store.error_occurred.connect(self.error_occurred.emit)
        return store

    def new_document(self, store: DocumentStore) -> Document:
        """Fresh document for ``store``: a new wrapper file or an untitled document."""
        doc = self._fresh_document()
        store.adopt(doc)
        return doc

    def set_store_spawner(self, spawner: Callable[[], bool] | None) -> None:
        """``spawner()`` opens a new window with its own store; False if it cannot yet."""
        self._spawner = spawner

    def store_became_visible(self, store: DocumentStore) -> AssignmentState:
        if store.assignment is not AssignmentState.AWAITING_ASSIGNMENT:
            return store.assignment

        seeding = not self._seeded
        if seeding:
            self._seeded = True
            self._queue.load(self._seed_documents())

        if len(store):
            # Already populated (e.g. opened with a file); restored documents go elsewhere.
            store.assignment = AssignmentState.ASSIGNED
        elif self._queue:
            store.adopt(self._queue.claim())
            store.assignment = AssignmentState.ASSIGNED
        else:
            store.adopt(self._fresh_document())
            store.assignment = AssignmentState.EMPTY_CREATED

        if seeding:
            # Each remaining entry gets its own store.
            for _ in range(self._queue.remaining):
                self._schedule(0, lambda: self._spawn(self._retry_attempts))
        return store.assignment

    def _spawn(self, attempts_left: int) -> None:
        if self._terminating or not self._queue:
            return
        if self._spawner is not None and self._spawner():
            return
        if attempts_left <= 0:
            self._abandon_fan_out()
            return
        self._schedule(self._retry_delay_ms, lambda: self._spawn(attempts_left - 1))

    def _abandon_fan_out(self) -> None:
        dropped = self._queue.abandon()
        if not dropped:
            return
        LOGGER.warning(
            "No window available after %d attempts; %d document(s) not reopened",
            self._retry_attempts,
            len(dropped),
        )
        self.fan_out_abandoned.emit(len(dropped))

    # ---------- Seeding ----------

    def _seed_documents(self) -> list[Document]:
        if self._accessor.is_configured:
            try:
                return self._seed_from_directory()
            except NekoPadError as exc:
                self._report(exc)
        docs = self._manager.restore_session()
        self._report_all(self._manager.last_errors)
        return docs

    def _seed_from_directory(self) -> list[Document]:
        with self._accessor.access():
            kept: list[Path] = []
            for path in self._accessor.list_files():
                if not self._accessor.is_whitespace_only(path):
                    kept.append(path)
                    continue
                try:
                    self._accessor.delete_file(path)
                except NekoPadError as exc:
                    self._report(exc)
            if not kept:
                kept.append(self._accessor.create_empty_file())

            docs: list[Document] = []
            for path in kept:
                doc = self._load_directory_file(path)
                if doc is not None:
                    docs.append(doc)
        LOGGER.info("Loaded %d document(s) from the working directory", len(docs))
        return docs

    def _load_directory_file(self, path: Path) -> Document | None:
        try:
            return self._accessor.load_wrapper(path)
        except RecordFormatError:
            pass
        except NekoPadError as exc:
            self._report(exc)
            return None
        # Plain text file living in the folder: edit it in place.
        try:
            content = self._accessor.read_text(path)
        except NekoPadError as exc:
            self._report(exc)
            return None
        return Document(title=path.name, content=content, provenance=Provenance.external(path))

    def _fresh_document(self) -> Document:
        if self._accessor.is_configured:
            try:
                return self._accessor.load_wrapper(self._accessor.create_empty_file())
            except NekoPadError as exc:
                self._report(exc)
        return Document(title=untitled_title())

    # ---------- Autosave ----------

    def start_autosave(self) -> None:
        if self._terminating or not self._settings.get_autosave_enabled():
            return
        if not self._timer.isActive():
            self._timer.start()
            LOGGER.debug("Autosave every %d ms", self._timer.interval())

    def stop_autosave(self) -> None:
        self._timer.stop()

    def set_autosave_enabled(self, enabled: bool) -> None:
        self._settings.set_autosave_enabled(enabled)
        if enabled:
            self.start_autosave()
        else:
            self.stop_autosave()

    def _on_autosave_tick(self) -> None:
        if self._terminating or not self._settings.get_autosave_enabled():
            return
        self.autosave_tick.emit(self._persist())

    def save_now(self) -> int:
        return self._persist()

    def _persist(self) -> int:
        self._manager.flush_external()
        self._report_all(self._manager.last_errors)
        try:
            # Documents still waiting for a store stay in the session.
            count = self._manager.save_all(pending=self._queue.pending())
        except NekoPadError as exc:
            self._report(exc)
            return 0
        self._report_all(self._manager.last_errors)
        return count

    # ---------- Lifecycle ----------

    def shutdown(self) -> None:
        """Final save; after this no window close deletes anything."""
        if self._terminating:
            return
        self._terminating = True
        self.stop_autosave()
        count = self._persist()
        self._queue.abandon()
        LOGGER.info("Shutdown: saved %d document(s)", count)

    def window_closing(self, store: DocumentStore, delete_current: bool = False) -> None:
        """
        Tear down ``store``. Closing the last live store ends the session: the
        final save runs while the store is still registered.
        """
        if not self._terminating:
            if delete_current:
                self._delete_selected(store)
            others = [s for s in self._registry.live_stores() if s is not store]
            if others:
                self._manager.flush_external()
                self._report_all(self._manager.last_errors)
            else:
                self.shutdown()
        store.dispose()

    def _delete_selected(self, store: DocumentStore) -> None:
        doc = store.selected_document()
        if doc is None or doc.wrapper_path is None:
            return
        try:
            self._accessor.delete_file(doc.wrapper_path)
        except NekoPadError as exc:
            self._report(exc)
            return
        store.close(doc)

    def on_directory_changed(self, path: Path | None) -> None:
        if self._terminating:
            return
        self._persist()
        self._queue.abandon()
        for store in self._registry.live_stores():
            store.replace_all([self._fresh_document()])
            store.assignment = AssignmentState.EMPTY_CREATED
        LOGGER.info("Working directory changed to %s; stores reset", path)

    # ---------- Errors ----------

    def _report(self, error: NekoPadError) -> None:
        LOGGER.warning("%s", error)
        self.error_occurred.emit(error)

    def _report_all(self, errors: Iterable[NekoPadError]) -> None:
        for error in errors:
            self.error_occurred.emit(error)
