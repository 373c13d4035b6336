from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from PyQt6.QtCore import QEventLoop, QTimer

from nekopad.domain.errors import NekoPadError

LOGGER = logging.getLogger(__name__)


class IStartupProgress(Protocol):
    def set_status(self, text: str) -> None: ...

    def set_progress(self, *, value: int | None = None, maximum: int | None = None) -> None: ...


class LogProgress:
    """IStartupProgress that only writes to the log."""

    def set_status(self, text: str) -> None:
        LOGGER.info("Startup: %s", text)

    def set_progress(self, *, value: int | None = None, maximum: int | None = None) -> None:
        LOGGER.debug("Startup progress: %s/%s", value, maximum)


@dataclass(frozen=True)
class BootstrapResult:
    window: object
    container: object | None = None


class AppBootstrapper:
    """
    SRP: orchestrates startup steps and reports progress.

    Session seeding is not done here: the first window claims its documents
    when it becomes visible.
    """

    def __init__(self, *, progress: IStartupProgress, delay_ms: int = 0) -> None:
        self._progress = progress
        self._delay_ms = delay_ms

    # ----------------------------- internal helpers -----------------------------

    def _intentional_delay(self) -> None:
        """
        Keeps Qt event loop responsive while enforcing a minimum startup duration.
        Avoids blocking the UI thread with time.sleep().
        """
        if self._delay_ms <= 0:
            return
        loop = QEventLoop()
        QTimer.singleShot(self._delay_ms, loop.quit)
        loop.exec()

    # ----------------------------- boot sequence -----------------------------

    def boot(self, *, container_factory: Callable[[], object]) -> BootstrapResult:
        # 1) Initial state
        self._progress.set_status("Initializing…")
        self._progress.set_progress(maximum=None)

        self._intentional_delay()

        # 2) Build container
        self._progress.set_status("Loading services…")
        container = container_factory()

        # 3) Session storage must exist before the first autosave tick
        self._progress.set_status("Preparing session…")
        prepare = getattr(container, "prepare_session", None)
        if prepare is not None:
            try:
                prepare()
            except NekoPadError as exc:
                LOGGER.warning("Session storage not ready: %s", exc)

        # 4) Build main window
        self._progress.set_status("Building interface…")
        window = container.build_main_window()

        # 5) Finish
        self._progress.set_status("Ready")
        self._progress.set_progress(maximum=1, value=1)

        return BootstrapResult(window=window, container=container)
