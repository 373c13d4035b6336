from __future__ import annotations

import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_data_dir

from nekopad.domain.interfaces import IAppConfig
from nekopad.services.config.ini_config_service import IniConfigService
from nekopad.utils.constants import (
    APP_NAME,
    DEFAULT_AUTOSAVE_INTERVAL_MS,
    DEFAULT_FAN_OUT_ATTEMPTS,
    DEFAULT_FAN_OUT_DELAY_MS,
)

_VERSION_RE = re.compile(r"^v?(\d+\.\d+\.\d+)(?:[-+].*)?$", re.IGNORECASE)


def _project_root_fallback() -> Path:
    """
    Best-effort project root resolution that also works in PyInstaller:
      - PyInstaller onefile/onedir uses sys._MEIPASS as bundle root
      - dev mode uses this file location to walk upward
    """
    meipass = getattr(sys, "_MEIPASS", None)  # type: ignore[attr-defined]
    if meipass:
        return Path(meipass)

    # nekopad/services/config/app_config.py -> parents[3] = repository root
    return Path(__file__).resolve().parents[3]


def _read_version_file(version_path: Path) -> str | None:
    try:
        raw = version_path.read_text(encoding="utf-8").strip()
    except OSError:
        return None

    m = _VERSION_RE.match(raw)
    if not m:
        return None
    return m.group(1)


@dataclass(frozen=True)
class AppConfig(IAppConfig):
    """
    Adapter that wraps IniConfigService, adds get_version() from <root>/version
    and typed accessors for the session layer.

    Precedence for version:
      1) <project_root>/version file (semantic e.g. v1.0.5)
      2) ini_config_service.app_version() (fallback)
      3) "0.0.0"
    """

    ini: IniConfigService
    project_root: Path

    def get_version(self) -> str:
        v = _read_version_file(self.project_root / "version")
        if v:
            return v

        v2 = (self.ini.app_version() or "").strip()
        if v2:
            m = _VERSION_RE.match(v2)
            return m.group(1) if m else v2

        return "0.0.0"

    # ---- typed session/fan-out settings ----

    def autosave_interval_ms(self) -> int:
        value = self.ini.get_int("session", "autosave_interval_ms", DEFAULT_AUTOSAVE_INTERVAL_MS)
        return max(250, value or DEFAULT_AUTOSAVE_INTERVAL_MS)

    def session_dir(self) -> Path:
        raw = (self.ini.get("session", "directory", "") or "").strip()
        if raw:
            return Path(raw).expanduser()
        return Path(user_data_dir(APP_NAME)) / "Sessions"

    def fan_out_retry_attempts(self) -> int:
        value = self.ini.get_int("fanout", "retry_attempts", DEFAULT_FAN_OUT_ATTEMPTS)
        return max(0, DEFAULT_FAN_OUT_ATTEMPTS if value is None else value)

    def fan_out_retry_delay_ms(self) -> int:
        value = self.ini.get_int("fanout", "retry_delay_ms", DEFAULT_FAN_OUT_DELAY_MS)
        return max(1, DEFAULT_FAN_OUT_DELAY_MS if value is None else value)

    def log_level(self) -> str:
        return (self.ini.get("logging", "level", "INFO") or "INFO").strip().upper()

    # ---- delegate IniConfigService methods (full surface) ----

    def get(self, section: str, key: str, default: str | None = None) -> str | None:
        return self.ini.get(section, key, default)

    def get_int(self, section: str, key: str, default: int | None = None) -> int | None:
        return self.ini.get_int(section, key, default)

    def get_bool(self, section: str, key: str, default: bool | None = None) -> bool | None:
        return self.ini.get_bool(section, key, default)

    def as_dict(self) -> Mapping[str, Mapping[str, str]]:
        return self.ini.as_dict()

    def app_version(self) -> str:
        return self.ini.app_version()

    @property
    def loaded_from(self) -> Path | None:
        return self.ini.loaded_from


def build_app_config(
    *, explicit_ini: Path | None = None, project_root: Path | None = None
) -> AppConfig:
    root = project_root or _project_root_fallback()
    ini = IniConfigService(explicit_path=explicit_ini, project_root=root)
    return AppConfig(ini=ini, project_root=root)
