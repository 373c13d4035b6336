"""Qt implementations of the UI ports."""

from .qt_dialogs import QtFileDialogService
from .qt_messages import QtMessageService

__all__ = ["QtFileDialogService", "QtMessageService"]
