from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum, auto

from nekopad.domain.models import Document

LOGGER = logging.getLogger(__name__)


class AssignmentState(Enum):
    AWAITING_ASSIGNMENT = auto()
    ASSIGNED = auto()
    EMPTY_CREATED = auto()


class FanOutQueue:
    """
    Documents waiting to be handed to stores, one per store.

    The cursor only moves forward, so each entry is claimed at most once and
    entries go out in the order they were loaded. The queue clears itself once
    the last entry is claimed.
    """

    def __init__(self) -> None:
        self._entries: list[Document] = []
        self._cursor = 0

    def load(self, docs: Iterable[Document]) -> None:
        self._entries = list(docs)
        self._cursor = 0

    def claim(self) -> Document | None:
        if self._cursor >= len(self._entries):
            return None
        doc = self._entries[self._cursor]
        self._cursor += 1
        if self._cursor >= len(self._entries):
            self._clear()
        return doc

    @property
    def remaining(self) -> int:
        return len(self._entries) - self._cursor

    def pending(self) -> list[Document]:
        """Unclaimed entries, in claim order."""
        return self._entries[self._cursor :]

    def abandon(self) -> list[Document]:
        """Drop unclaimed entries and return them."""
        dropped = self._entries[self._cursor :]
        self._clear()
        if dropped:
            LOGGER.debug("Abandoned %d queued document(s)", len(dropped))
        return dropped

    def _clear(self) -> None:
        self._entries = []
        self._cursor = 0

    def __bool__(self) -> bool:
        return self.remaining > 0
