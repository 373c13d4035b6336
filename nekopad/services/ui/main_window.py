from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from PyQt6.QtCore import QByteArray, pyqtSignal
from PyQt6.QtGui import QAction, QKeySequence
from PyQt6.QtWidgets import (
    QApplication,
    QMainWindow,
    QStatusBar,
    QTabBar,
    QTextEdit,
    QToolBar,
    QVBoxLayout,
    QWidget,
)

from nekopad.domain.errors import NekoPadError
from nekopad.domain.interfaces import ISettingsService
from nekopad.domain.models import Document, display_title
from nekopad.session.coordinator import SessionCoordinator
from nekopad.services.ui.ports.dialogs import IFileDialogService
from nekopad.services.ui.ports.messages import IMessageService
from nekopad.store.document_store import DocumentStore

LOGGER = logging.getLogger(__name__)


class EditorWindow(QMainWindow):
    """Thin PyQt window over one DocumentStore; persistence lives in the coordinator."""

    closed = pyqtSignal(object)  # EditorWindow

    def __init__(
        self,
        coordinator: SessionCoordinator,
        store: DocumentStore,
        settings: ISettingsService,
        *,
        dialogs: IFileDialogService,
        messages: IMessageService,
        new_window: Callable[[], object] | None = None,
        app_title: str = "NekoPad",
    ) -> None:
        super().__init__()
        self.app_title = app_title
        self.setWindowTitle(app_title)
        self.resize(900, 640)

        self.coordinator = coordinator
        self.store = store
        self.settings = settings
        self.dialogs = dialogs
        self.messages = messages
        self._new_window = new_window

        self._loading = False
        self._shown_once = False
        self._delete_on_close = False
        self._closed = False

        # Widgets
        self.tabs = QTabBar(self)
        self.tabs.setExpanding(False)
        self.tabs.setDocumentMode(True)
        self.editor = QTextEdit(self)
        self.editor.setAcceptRichText(False)
        self.editor.setTabStopDistance(4 * self.editor.fontMetrics().horizontalAdvance(" "))

        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(self.tabs)
        layout.addWidget(self.editor)
        self.setCentralWidget(central)

        # Signals
        self.editor.textChanged.connect(self._on_text_changed)
        self.tabs.currentChanged.connect(self._on_tab_changed)
        store.selection_changed.connect(self._show_document)
        store.document_changed.connect(self._on_document_changed)
        store.title_changed.connect(self._on_document_changed)
        coordinator.error_occurred.connect(self._on_error)
        coordinator.fan_out_abandoned.connect(self._on_fan_out_abandoned)

        # UI
        self._build_actions()
        self._build_toolbar()
        self._build_menu()
        self.setStatusBar(QStatusBar(self))

        geo = self.settings.get_geometry()
        if isinstance(geo, (bytes, bytearray)):
            self.restoreGeometry(QByteArray(geo))

        self._show_document(store.selected_document())

    # ---------- UI creation ----------
    def _build_actions(self):
        self.act_new_window = QAction(
            "New Window", self, shortcut="Ctrl+Shift+N", triggered=self._open_new_window
        )
        self.act_new = QAction(
            "New Document", self, shortcut=QKeySequence.StandardKey.New, triggered=self._new_document
        )
        self.act_open = QAction(
            "Open…", self, shortcut=QKeySequence.StandardKey.Open, triggered=self._open_dialog
        )
        self.act_close_doc = QAction(
            "Close Document", self, shortcut=QKeySequence.StandardKey.Close, triggered=self._close_document
        )
        self.act_save = QAction(
            "Save", self, shortcut=QKeySequence.StandardKey.Save, triggered=self._save
        )
        self.act_delete = QAction(
            "Delete Current File…", self, shortcut="Ctrl+Shift+Backspace", triggered=self._delete_current
        )
        self.act_rename = QAction("Rename…", self, shortcut="F2", triggered=self._rename)

        self.act_zoom_in = QAction(
            "Zoom In", self, shortcut=QKeySequence.StandardKey.ZoomIn,
            triggered=lambda: self.store.adjust_font_size(1),
        )
        self.act_zoom_out = QAction(
            "Zoom Out", self, shortcut=QKeySequence.StandardKey.ZoomOut,
            triggered=lambda: self.store.adjust_font_size(-1),
        )
        self.act_zoom_reset = QAction(
            "Actual Size", self, shortcut="Ctrl+0", triggered=self.store.reset_font_size
        )

        self.act_choose_dir = QAction(
            "Choose Working Directory…", self, triggered=self._choose_directory
        )
        self.act_autosave = QAction(
            "Autosave",
            self,
            checkable=True,
            checked=self.settings.get_autosave_enabled(),
            triggered=self._toggle_autosave,
        )

        self.act_quit = QAction("&Quit", self)
        self.act_quit.setShortcut(QKeySequence.StandardKey.Quit)
        self.act_quit.setStatusTip("Save the session and exit")
        self.act_quit.triggered.connect(self._quit)

    def _build_toolbar(self):
        tb = QToolBar("Main", self)
        tb.setMovable(False)
        for a in (self.act_new, self.act_open, self.act_save):
            tb.addAction(a)
        tb.addSeparator()
        for a in (self.act_zoom_out, self.act_zoom_reset, self.act_zoom_in):
            tb.addAction(a)
        self.addToolBar(tb)

    def _build_menu(self):
        m = self.menuBar()
        filem = m.addMenu("&File")
        for a in (self.act_new_window, self.act_new, self.act_open):
            filem.addAction(a)
        filem.addSeparator()
        for a in (self.act_save, self.act_rename, self.act_close_doc, self.act_delete):
            filem.addAction(a)
        filem.addSeparator()
        filem.addAction(self.act_choose_dir)
        filem.addAction(self.act_autosave)
        filem.addSeparator()
        filem.addAction(self.act_quit)

        viewm = m.addMenu("&View")
        for a in (self.act_zoom_in, self.act_zoom_out, self.act_zoom_reset):
            viewm.addAction(a)

    # ---------- Actions ----------
    def _open_new_window(self):
        if self._new_window is not None:
            self._new_window()

    def _new_document(self):
        self.coordinator.new_document(self.store)

    def _open_dialog(self):
        start = str(self.coordinator.accessor.directory or "")
        path = self.dialogs.get_open_file(self, "Open", start, "Text (*.txt *.md *.json);;All files (*)")
        if path is not None:
            self.open_path(path)

    def open_path(self, path: Path) -> Document:
        doc = self.store.open(path)
        self.settings.add_recent(str(path))
        return doc

    def _close_document(self):
        doc = self.store.selected_document()
        if doc is None:
            return
        self.store.close(doc)
        if not len(self.store):
            self.close()

    def _save(self):
        count = self.coordinator.save_now()
        self.statusBar().showMessage(f"Saved {count} document(s)", 3000)

    def _delete_current(self):
        doc = self.store.selected_document()
        if doc is None or doc.wrapper_path is None:
            self.statusBar().showMessage("Current document has no file to delete", 3000)
            return
        if not self.messages.confirm(
            self, "Delete file?", f"Delete {doc.wrapper_path.name}?", destructive=True
        ):
            return
        self._delete_on_close = True
        self.close()

    def _rename(self):
        doc = self.store.selected_document()
        if doc is None:
            return
        title = self.dialogs.get_text(self, "Rename", "Title:", doc.title)
        if title is not None:
            self.store.rename(doc, title)

    def _choose_directory(self):
        accessor = self.coordinator.accessor
        start = str(accessor.directory or "")
        chosen = accessor.choose_directory(
            lambda: self.dialogs.get_directory(self, "Choose Working Directory", start)
        )
        if chosen is None:
            return
        try:
            accessor.list_files()
        except NekoPadError as exc:
            self.messages.error(self, "Working Directory", str(exc))

    def _toggle_autosave(self, on: bool):
        self.coordinator.set_autosave_enabled(on)

    def _quit(self):
        self.coordinator.shutdown()
        app = QApplication.instance()
        if app is not None:
            app.closeAllWindows()
            app.quit()

    # ---------- Store -> view ----------
    def _show_document(self, doc: Document | None):
        self._loading = True
        try:
            self.editor.setPlainText(doc.content if doc is not None else "")
        finally:
            self._loading = False
        self.editor.setReadOnly(doc is None)
        if doc is not None:
            self._apply_font(doc)
        self._refresh_tabs()
        self._update_title()

    def _on_document_changed(self, doc: Document):
        if doc is self.store.selected_document():
            self._apply_font(doc)
            self._update_title()
        self._refresh_tabs()

    def _apply_font(self, doc: Document):
        font = self.editor.font()
        if font.pointSizeF() != doc.font_size:
            font.setPointSizeF(doc.font_size)
            self.editor.setFont(font)

    def _refresh_tabs(self):
        docs = self.store.documents
        selected = self.store.selected_document()
        self.tabs.blockSignals(True)
        try:
            while self.tabs.count():
                self.tabs.removeTab(0)
            for d in docs:
                self.tabs.addTab(display_title(d, 24) or "Untitled")
            for i, d in enumerate(docs):
                if d is selected:
                    self.tabs.setCurrentIndex(i)
        finally:
            self.tabs.blockSignals(False)
        self.tabs.setVisible(len(docs) > 1)

    def _update_title(self):
        doc = self.store.selected_document()
        name = display_title(doc) if doc is not None else ""
        self.setWindowTitle(f"{name} - {self.app_title}" if name else self.app_title)

    def _on_error(self, error: NekoPadError):
        self.statusBar().showMessage(str(error), 5000)

    def _on_fan_out_abandoned(self, count: int):
        self.statusBar().showMessage(f"{count} document(s) from the last session were not reopened", 5000)

    # ---------- View -> store ----------
    def _on_text_changed(self):
        if self._loading:
            return
        doc = self.store.selected_document()
        if doc is not None:
            self.store.update_content(doc, self.editor.toPlainText())

    def _on_tab_changed(self, index: int):
        docs = self.store.documents
        if 0 <= index < len(docs):
            self.store.select(docs[index])

    # ---------- Show / Close ----------
    def showEvent(self, event):
        super().showEvent(event)
        if not self._shown_once:
            self._shown_once = True
            self.coordinator.store_became_visible(self.store)
            self.coordinator.start_autosave()

    def closeEvent(self, event):
        if self._closed:
            super().closeEvent(event)
            return
        self._closed = True
        self.settings.set_geometry(bytes(self.saveGeometry()))
        self.coordinator.window_closing(self.store, delete_current=self._delete_on_close)
        self.coordinator.error_occurred.disconnect(self._on_error)
        self.coordinator.fan_out_abandoned.disconnect(self._on_fan_out_abandoned)
        self.closed.emit(self)
        super().closeEvent(event)
