from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IMessageService(Protocol):
    """
    UI port for the few blocking prompts an editor window needs.
    Keeps QMessageBox out of the window logic so tests can script answers.
    """

    def error(self, parent: Any | None, title: str, text: str) -> None: ...

    def confirm(self, parent: Any | None, title: str, text: str, *, destructive: bool = False) -> bool:
        """True only on an explicit Yes; ``destructive`` makes No the default button."""
        ...
