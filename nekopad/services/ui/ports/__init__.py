"""Abstract UI ports used by editor windows."""

from .dialogs import IFileDialogService
from .messages import IMessageService

__all__ = ["IFileDialogService", "IMessageService"]
