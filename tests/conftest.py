from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest
from PyQt6.QtCore import QSettings
from PyQt6.QtWidgets import QApplication

from nekopad.services.file_service import FileService
from nekopad.services.settings_service import SettingsService
from nekopad.session.coordinator import SessionCoordinator
from nekopad.session.manager import SessionManager
from nekopad.store.registry import StoreRegistry
from nekopad.workdir.accessor import WorkingDirectoryAccessor

# Headless CI has no display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


# --- Fallback QApplication fixture (works with or without pytest-qt) ---
@pytest.fixture(scope="session")
def qapp():
    """Provide a QApplication for tests that need Qt.
    Creates one if not present; reuses existing otherwise.
    """
    app = QApplication.instance()
    created = False
    if app is None:
        app = QApplication([])
        created = True
    try:
        yield app
    finally:
        # Don't forcibly quit a shared app; only close if we created it here.
        if created:
            app.quit()


# --- Fakes ---


class FakeScheduler:
    """Collects delayed callbacks instead of handing them to a Qt timer."""

    def __init__(self) -> None:
        self.pending: list[tuple[int, Callable[[], None]]] = []
        self.delays: list[int] = []

    def __call__(self, delay_ms: int, fn: Callable[[], None]) -> None:
        self.pending.append((delay_ms, fn))
        self.delays.append(delay_ms)

    def run_all(self, limit: int = 1000) -> int:
        ran = 0
        while self.pending and ran < limit:
            _, fn = self.pending.pop(0)
            fn()
            ran += 1
        return ran


# --- Other common fixtures ---


@pytest.fixture()
def tmp_settings_path(tmp_path: Path) -> Path:
    return tmp_path / "settings.ini"


@pytest.fixture()
def qsettings(tmp_settings_path: Path) -> QSettings:
    # Use an INI file so we don't touch system registry / platform stores
    s = QSettings(str(tmp_settings_path), QSettings.Format.IniFormat)
    s.clear()
    return s


@pytest.fixture()
def settings_service(qsettings: QSettings) -> SettingsService:
    return SettingsService(qsettings)


@pytest.fixture()
def file_service() -> FileService:
    return FileService()


@pytest.fixture()
def workdir(tmp_path: Path) -> Path:
    d = tmp_path / "work"
    d.mkdir()
    return d.resolve()


@pytest.fixture()
def session_dir(tmp_path: Path) -> Path:
    return tmp_path / "sessions"


@pytest.fixture()
def registry() -> StoreRegistry:
    return StoreRegistry()


@pytest.fixture()
def accessor(qapp, settings_service, file_service) -> WorkingDirectoryAccessor:
    return WorkingDirectoryAccessor(settings_service, file_service)


@pytest.fixture()
def manager(session_dir, registry, file_service, accessor) -> SessionManager:
    return SessionManager(session_dir, registry, file_service, accessor)


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def coordinator(qapp, manager, registry, accessor, settings_service, scheduler) -> SessionCoordinator:
    coord = SessionCoordinator(
        manager,
        registry,
        accessor,
        settings_service,
        autosave_interval_ms=1000,
        retry_attempts=3,
        retry_delay_ms=5,
        scheduler=scheduler,
    )
    yield coord
    coord.stop_autosave()
