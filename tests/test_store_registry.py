from __future__ import annotations

import gc

from nekopad.store.document_store import DocumentStore
from nekopad.store.registry import StoreRegistry


def test_registration_order_and_unregister(qapp, accessor):
    reg = StoreRegistry()
    a = DocumentStore(reg, accessor)
    b = DocumentStore(reg, accessor)
    assert reg.live_stores() == [a, b]
    assert len(reg) == 2

    a.dispose()
    assert reg.live_stores() == [b]
    assert not a.is_registered

    # idempotent
    a.dispose()
    assert len(reg) == 1


def test_registry_does_not_keep_stores_alive(qapp, accessor):
    reg = StoreRegistry()
    keep = DocumentStore(reg, accessor)
    temp = DocumentStore(reg, accessor)
    assert len(reg) == 2

    del temp
    gc.collect()

    assert reg.live_stores() == [keep]


def test_handle_is_a_scoped_registration():
    reg = StoreRegistry()

    class Thing:
        pass

    thing = Thing()
    with reg.register(thing) as handle:  # type: ignore[arg-type]
        assert handle.active
        assert thing in reg
    assert not handle.active
    assert thing not in reg
