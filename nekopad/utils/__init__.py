"""App constants and utilities."""

from .constants import (
    APP_NAME,
    APP_ORG,
    DEFAULT_AUTOSAVE_INTERVAL_MS,
    DEFAULT_FAN_OUT_ATTEMPTS,
    DEFAULT_FAN_OUT_DELAY_MS,
    MAX_NAME_COLLISIONS,
    MAX_RECENTS,
    SESSION_FILE_NAME,
    SETTINGS_AUTOSAVE,
    SETTINGS_GEOMETRY,
    SETTINGS_RECENTS,
    SETTINGS_WORKDIR_BOOKMARK,
    SETTINGS_WORKDIR_PATH,
    SNAPSHOT_SUFFIX,
    WRAPPER_EXT,
)
from .logging import get_log_path, setup_logging

__all__ = [
    "APP_ORG",
    "APP_NAME",
    "SETTINGS_GEOMETRY",
    "SETTINGS_RECENTS",
    "SETTINGS_AUTOSAVE",
    "SETTINGS_WORKDIR_PATH",
    "SETTINGS_WORKDIR_BOOKMARK",
    "MAX_RECENTS",
    "SESSION_FILE_NAME",
    "SNAPSHOT_SUFFIX",
    "WRAPPER_EXT",
    "DEFAULT_AUTOSAVE_INTERVAL_MS",
    "DEFAULT_FAN_OUT_ATTEMPTS",
    "DEFAULT_FAN_OUT_DELAY_MS",
    "MAX_NAME_COLLISIONS",
    "setup_logging",
    "get_log_path",
]
