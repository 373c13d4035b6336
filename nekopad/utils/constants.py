APP_ORG = "NekoPad"
APP_NAME = "NekoPad"

SETTINGS_GEOMETRY = "window/geometry"
SETTINGS_RECENTS = "file/recent"
SETTINGS_AUTOSAVE = "editor/enable_autosave"
SETTINGS_WORKDIR_PATH = "workdir/path"
SETTINGS_WORKDIR_BOOKMARK = "workdir/bookmark"
MAX_RECENTS = 8

SESSION_FILE_NAME = "session.json"
SNAPSHOT_SUFFIX = ".txt"
WRAPPER_EXT = "json"

DEFAULT_AUTOSAVE_INTERVAL_MS = 2000
DEFAULT_FAN_OUT_ATTEMPTS = 30
DEFAULT_FAN_OUT_DELAY_MS = 50

# Upper bound for "Name 2", "Name 3", ... candidates.
MAX_NAME_COLLISIONS = 10_000
