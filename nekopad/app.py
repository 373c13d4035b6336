from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from nekopad.app_bootstrapper import AppBootstrapper, LogProgress
from nekopad.di.container import Container
from nekopad.utils.constants import APP_NAME, APP_ORG
from nekopad.utils.logging import setup_logging

LOGGER = logging.getLogger(__name__)


def run_app(argv: Sequence[str]) -> int:
    """
    Bootstraps Qt, composes the application via the DI container,
    and launches the first editor window.
    """
    QApplication.setOrganizationName(APP_ORG)
    QApplication.setApplicationName(APP_NAME)
    app = QApplication(list(argv))

    setup_logging()

    booted = AppBootstrapper(progress=LogProgress()).boot(container_factory=Container.default)
    container = booted.container
    win = booted.window

    # The configured level is only known once the container has loaded config.
    log_path = setup_logging(container.config.log_level(), force=True)
    LOGGER.info("%s %s started; log at %s", APP_NAME, container.config.get_version(), log_path)

    app.aboutToQuit.connect(container.coordinator.shutdown)
    win.show()

    # Optional file path to open passed as first CLI argument
    if len(argv) > 1:
        win.open_path(Path(argv[1]))

    return app.exec()
