from __future__ import annotations

from typing import Any

from PyQt6.QtWidgets import QMessageBox

from nekopad.services.ui.ports.messages import IMessageService


class QtMessageService(IMessageService):
    """QMessageBox-backed prompts."""

    def error(self, parent: Any | None, title: str, text: str) -> None:
        QMessageBox.critical(parent, title, text)

    def confirm(self, parent: Any | None, title: str, text: str, *, destructive: bool = False) -> bool:
        buttons = QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        default = QMessageBox.StandardButton.No if destructive else QMessageBox.StandardButton.Yes
        resp = QMessageBox.question(parent, title, text, buttons, default)
        return resp == QMessageBox.StandardButton.Yes
