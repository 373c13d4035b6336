from __future__ import annotations

import itertools
import logging
import weakref
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nekopad.store.document_store import DocumentStore

LOGGER = logging.getLogger(__name__)


class RegistrationHandle:
    """Token returned by ``StoreRegistry.register``; closing it deregisters the store."""

    def __init__(self, registry: StoreRegistry, key: int) -> None:
        self._registry = registry
        self.key = key

    @property
    def active(self) -> bool:
        return self.key in self._registry._entries

    def close(self) -> None:
        self._registry.unregister(self)

    def __enter__(self) -> RegistrationHandle:
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class StoreRegistry:
    """
    Enumerates the live document stores of the process.

    Entries are weak: the registry never keeps a store alive, and entries whose
    store was collected without unregistering are dropped on enumeration.
    """

    def __init__(self) -> None:
        self._entries: dict[int, weakref.ref[DocumentStore]] = {}
        self._keys = itertools.count(1)

    def register(self, store: DocumentStore) -> RegistrationHandle:
        key = next(self._keys)
        self._entries[key] = weakref.ref(store)
        LOGGER.debug("Registered store #%d", key)
        return RegistrationHandle(self, key)

    def unregister(self, handle: RegistrationHandle) -> None:
        if self._entries.pop(handle.key, None) is not None:
            LOGGER.debug("Unregistered store #%d", handle.key)

    def live_stores(self) -> list[DocumentStore]:
        """Live stores in registration order."""
        alive: list[DocumentStore] = []
        for key, ref in list(self._entries.items()):
            store = ref()
            if store is None:
                del self._entries[key]
                continue
            alive.append(store)
        return alive

    def __len__(self) -> int:
        return len(self.live_stores())

    def __contains__(self, store: object) -> bool:
        return any(s is store for s in self.live_stores())
