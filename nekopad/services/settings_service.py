from __future__ import annotations

from typing import Any, Iterable

from PyQt6.QtCore import QByteArray, QSettings

from nekopad.domain.interfaces import ISettingsService
from nekopad.utils.constants import (
    MAX_RECENTS,
    SETTINGS_AUTOSAVE,
    SETTINGS_GEOMETRY,
    SETTINGS_RECENTS,
    SETTINGS_WORKDIR_BOOKMARK,
    SETTINGS_WORKDIR_PATH,
)


class SettingsService(ISettingsService):
    """Persist user preferences: geometry, recents, autosave and the working directory."""

    def __init__(self, qsettings: QSettings) -> None:
        self._s = qsettings

    def get_geometry(self) -> bytes | None:
        v = self._s.value(SETTINGS_GEOMETRY)
        return bytes(v) if isinstance(v, QByteArray) else None

    def set_geometry(self, blob: bytes) -> None:
        self._s.setValue(SETTINGS_GEOMETRY, QByteArray(blob))

    def get_recent(self) -> list[str]:
        v = self._s.value(SETTINGS_RECENTS, [])
        if isinstance(v, str):
            # INI backend collapses single-item lists into a plain string.
            return [v] if v else []
        return [str(x) for x in v] if isinstance(v, list) else []

    def set_recent(self, recent: Iterable[str]) -> None:
        self._s.setValue(SETTINGS_RECENTS, list(recent)[:MAX_RECENTS])

    def add_recent(self, path: str) -> list[str]:
        items = [p for p in self.get_recent() if p != path]
        items.insert(0, path)
        self.set_recent(items)
        return items[:MAX_RECENTS]

    def get_autosave_enabled(self) -> bool:
        value = self._s.value(SETTINGS_AUTOSAVE, True)
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}

    def set_autosave_enabled(self, enabled: bool) -> None:
        self._s.setValue(SETTINGS_AUTOSAVE, bool(enabled))
        self._s.sync()

    def get_working_directory(self) -> tuple[str | None, str | None]:
        path = self._s.value(SETTINGS_WORKDIR_PATH, "")
        bookmark = self._s.value(SETTINGS_WORKDIR_BOOKMARK, "")
        return (
            path if isinstance(path, str) and path else None,
            bookmark if isinstance(bookmark, str) and bookmark else None,
        )

    def set_working_directory(self, path: str | None, bookmark: str | None) -> None:
        if path:
            self._s.setValue(SETTINGS_WORKDIR_PATH, path)
        else:
            self._s.remove(SETTINGS_WORKDIR_PATH)
        if path and bookmark:
            self._s.setValue(SETTINGS_WORKDIR_BOOKMARK, bookmark)
        else:
            self._s.remove(SETTINGS_WORKDIR_BOOKMARK)
        self._s.sync()

    def get_raw(self, key: str, default: Any = None) -> Any:
        return self._s.value(key, default)

    def set_raw(self, key: str, value: Any) -> None:
        self._s.setValue(key, value)
