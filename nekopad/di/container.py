from __future__ import annotations

import logging
from pathlib import Path

from PyQt6.QtCore import QSettings

from nekopad.domain.interfaces import IAppConfig, IFileService, ISettingsService
from nekopad.services.config import build_app_config
from nekopad.services.file_service import FileService
from nekopad.services.settings_service import SettingsService
from nekopad.services.ui.adapters import QtFileDialogService, QtMessageService
from nekopad.services.ui.main_window import EditorWindow
from nekopad.services.ui.ports import IFileDialogService, IMessageService
from nekopad.session.coordinator import Scheduler, SessionCoordinator
from nekopad.session.manager import SessionManager
from nekopad.store.registry import StoreRegistry
from nekopad.utils.constants import APP_NAME, APP_ORG
from nekopad.workdir.accessor import WorkingDirectoryAccessor, translate_os_error

LOGGER = logging.getLogger(__name__)


class Container:
    """
    Lightweight DI container:
      - Wires default services if not provided
      - Owns the one SessionCoordinator of the process
      - Builds editor windows and spawns extra ones for session fan-out
    """

    def __init__(
        self,
        *,
        config: IAppConfig | None = None,
        files: IFileService | None = None,
        settings: ISettingsService | None = None,
        qsettings: QSettings | None = None,
        dialogs: IFileDialogService | None = None,
        messages: IMessageService | None = None,
        session_dir: Path | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        # Core services (defaults if not supplied)
        self.config: IAppConfig = config or build_app_config()
        self.file_service: IFileService = files or FileService()
        self.settings_service: ISettingsService = settings or SettingsService(
            qsettings or QSettings()
        )

        # UI service ports
        self.dialogs: IFileDialogService = dialogs or QtFileDialogService()
        self.messages: IMessageService = messages or QtMessageService()

        # Session layer
        self.registry = StoreRegistry()
        self.accessor = WorkingDirectoryAccessor(self.settings_service, self.file_service)
        self.session_manager = SessionManager(
            session_dir or self.config.session_dir(),
            self.registry,
            self.file_service,
            self.accessor,
        )
        self.coordinator = SessionCoordinator(
            self.session_manager,
            self.registry,
            self.accessor,
            self.settings_service,
            autosave_interval_ms=self.config.autosave_interval_ms(),
            retry_attempts=self.config.fan_out_retry_attempts(),
            retry_delay_ms=self.config.fan_out_retry_delay_ms(),
            scheduler=scheduler,
        )
        self.coordinator.set_store_spawner(self._spawn_window)

        self.windows: list[EditorWindow] = []

    # ---------- Class helpers ----------

    @staticmethod
    def default(
        qsettings: QSettings | None = None,
        *,
        organization: str = APP_ORG,
        application: str = APP_NAME,
    ) -> Container:
        if qsettings is None:
            qsettings = QSettings(organization, application)
        return Container(qsettings=qsettings)

    # ---------- Startup ----------

    def prepare_session(self) -> None:
        """Create the session directory; report the working directory state."""
        session_dir = self.session_manager.session_dir
        try:
            session_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise translate_os_error(exc, session_dir) from exc
        workdir = self.accessor.directory
        if workdir is None:
            LOGGER.info("No working directory; session stored in %s", session_dir)
        else:
            LOGGER.info("Working directory: %s", workdir)

    # ---------- UI factories ----------

    def build_main_window(self, *, app_title: str = APP_NAME) -> EditorWindow:
        """Create a window with its own registered store."""
        store = self.coordinator.create_store()
        window = EditorWindow(
            self.coordinator,
            store,
            self.settings_service,
            dialogs=self.dialogs,
            messages=self.messages,
            new_window=self.open_new_window,
            app_title=app_title,
        )
        store.setParent(window)
        window.closed.connect(self._forget_window)
        self.windows.append(window)
        return window

    def open_new_window(self) -> EditorWindow:
        window = self.build_main_window()
        window.show()
        return window

    # ---------- Internals ----------

    def _spawn_window(self) -> bool:
        # Fan-out windows open next to an existing one; none yet means retry later.
        if self.coordinator.is_terminating or not any(w.isVisible() for w in self.windows):
            return False
        self.open_new_window()
        return True

    def _forget_window(self, window: EditorWindow) -> None:
        if window in self.windows:
            self.windows.remove(window)


# --- Convenience top-level function ------------------------------------------


def build_main_window(
    qsettings: QSettings | None = None,
    *,
    app_title: str = APP_NAME,
) -> EditorWindow:
    """One-call convenience for a ready-to-use window."""
    container = Container.default(qsettings=qsettings)
    return container.build_main_window(app_title=app_title)
