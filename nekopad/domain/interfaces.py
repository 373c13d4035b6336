from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Iterable, Protocol


class IFileService(Protocol):
    """Read/write text files. Writes should be atomic when possible."""

    def read_text(self, path: Path) -> str: ...
    def read_bytes(self, path: Path) -> bytes: ...
    def write_text_atomic(self, path: Path, text: str) -> None: ...
    def create_text_exclusive(self, path: Path, text: str) -> None: ...


class ISettingsService(Protocol):
    """Persist and retrieve lightweight user preferences."""

    def get_geometry(self) -> bytes | None: ...
    def set_geometry(self, blob: bytes) -> None: ...
    def get_recent(self) -> list[str]: ...
    def set_recent(self, recent: Iterable[str]) -> None: ...
    def add_recent(self, path: str) -> list[str]: ...
    def get_autosave_enabled(self) -> bool: ...
    def set_autosave_enabled(self, enabled: bool) -> None: ...
    def get_working_directory(self) -> tuple[str | None, str | None]: ...
    def set_working_directory(self, path: str | None, bookmark: str | None) -> None: ...


class IConfigService(Protocol):
    """Read-only application configuration."""

    def get(self, section: str, key: str, default: str | None = None) -> str | None: ...
    def get_int(self, section: str, key: str, default: int | None = None) -> int | None: ...
    def get_bool(self, section: str, key: str, default: bool | None = None) -> bool | None: ...
    def as_dict(self) -> Mapping[str, Mapping[str, str]]: ...
    def app_version(self) -> str: ...


class IAppConfig(IConfigService, Protocol):
    """Configuration plus the typed values the session layer needs."""

    def get_version(self) -> str: ...
    def autosave_interval_ms(self) -> int: ...
    def session_dir(self) -> Path: ...
    def fan_out_retry_attempts(self) -> int: ...
    def fan_out_retry_delay_ms(self) -> int: ...
    def log_level(self) -> str: ...
