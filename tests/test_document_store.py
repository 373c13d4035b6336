from __future__ import annotations

import json
from pathlib import Path

import pytest

from nekopad.domain.errors import EncodingError
from nekopad.domain.models import Document, Provenance, ProvenanceKind
from nekopad.session.fanout import AssignmentState
from nekopad.store.document_store import DocumentStore


@pytest.fixture()
def store(registry, accessor) -> DocumentStore:
    s = DocumentStore(registry, accessor)
    yield s
    s.dispose()


def _record(signal) -> list:
    got: list = []
    signal.connect(got.append)
    return got


def test_new_store_is_registered_and_awaiting(store, registry):
    assert store in registry
    assert store.assignment is AssignmentState.AWAITING_ASSIGNMENT
    assert store.selected_document() is None


def test_create_untitled_appends_and_selects(store):
    selections = _record(store.selection_changed)
    doc = store.create_untitled()
    assert store.documents == (doc,)
    assert store.selected_document() is doc
    assert selections == [doc]
    assert doc.is_freestanding


def test_close_selected_moves_selection_to_last(store):
    a, b, c = Document(title="a"), Document(title="b"), Document(title="c")
    for d in (a, b, c):
        store.adopt(d)
    store.select(b)

    assert store.close(b) is True
    assert store.selected_document() is c

    store.close(c)
    store.close(a)
    assert store.selected_document() is None
    assert len(store) == 0


def test_close_non_member_is_ignored(store):
    assert store.close(Document(title="stranger")) is False


def test_select_non_member_raises(store):
    with pytest.raises(ValueError):
        store.select(Document(title="stranger"))


def test_font_size_adjust_clamps_and_skips_noop(store):
    doc = Document(title="t", font_size=63)
    store.adopt(doc)
    changes = _record(store.document_changed)

    store.adjust_font_size(1)
    assert doc.font_size == 64
    store.adjust_font_size(1)
    assert doc.font_size == 64
    assert changes == [doc]

    store.reset_font_size()
    assert doc.font_size == 14


def test_update_content_emits_only_on_change(store):
    doc = store.create_untitled()
    changes = _record(store.document_changed)
    assert store.update_content(doc, "hi") is True
    assert store.update_content(doc, "hi") is False
    assert changes == [doc]
    assert doc.dirty


def test_replace_all_selects_last(store):
    store.create_untitled()
    x, y = Document(title="x"), Document(title="y")
    store.replace_all([x, y])
    assert store.documents == (x, y)
    assert store.selected_document() is y


# ---------- open ----------


def test_open_plain_file_without_workdir_is_external(store, tmp_path: Path):
    p = tmp_path / "plain.txt"
    p.write_text("text body", encoding="utf-8")

    doc = store.open(p)
    assert doc.provenance.kind is ProvenanceKind.EXTERNAL
    assert doc.external_path == p.resolve()
    assert doc.content == "text body"
    assert doc.title == "plain.txt"
    assert store.selected_document() is doc


def test_open_wrapper_record(store, tmp_path: Path):
    p = tmp_path / "Draft.json"
    p.write_text(
        json.dumps({"id": "fixed-id", "title": "Draft", "type": "local_document", "content": "kept"}),
        encoding="utf-8",
    )
    doc = store.open(p)
    assert doc.id == "fixed-id"
    assert doc.content == "kept"
    assert doc.wrapper_path == p


def test_open_plain_file_with_workdir_creates_wrapper(store, accessor, workdir, tmp_path: Path):
    accessor.set_directory(workdir)
    src = tmp_path / "outside.txt"
    src.write_text("outside content", encoding="utf-8")

    doc = store.open(src)

    wrapper = workdir / "outside.json"
    assert wrapper.exists()
    assert doc.wrapper_path == wrapper
    assert doc.external_path == src.resolve()
    assert doc.content == "outside content"
    data = json.loads(wrapper.read_text(encoding="utf-8"))
    assert data["type"] == "opened_document"
    assert data["path"] == str(src.resolve())
    assert data["securityBookmark"]


def test_open_unreadable_file_yields_empty_document_and_error(store, tmp_path: Path):
    p = tmp_path / "blob.bin"
    p.write_bytes(b"\xff\xfe\x00\x81")
    errors = _record(store.error_occurred)

    doc = store.open(p)
    assert doc.content == ""
    assert errors and isinstance(errors[0], EncodingError)


# ---------- rename ----------


def test_rename_renames_wrapper_file(store, accessor, workdir):
    accessor.set_directory(workdir)
    path = accessor.create_empty_file("Old")
    doc = accessor.load_wrapper(path)
    store.adopt(doc)
    titles = _record(store.title_changed)

    assert store.rename(doc, "  New name ") is True

    assert titles == [doc]
    assert doc.title == "New name"
    assert doc.wrapper_path == workdir / "New name.json"
    assert not path.exists()
    assert json.loads(doc.wrapper_path.read_text(encoding="utf-8"))["title"] == "New name"


def test_rename_collision_and_blank_title(store, accessor, workdir):
    accessor.set_directory(workdir)
    accessor.create_empty_file("Note")
    doc = accessor.load_wrapper(accessor.create_empty_file("Other"))
    store.adopt(doc)

    assert store.rename(doc, "   ") is False
    assert doc.wrapper_path == workdir / "Other.json"

    store.rename(doc, "Note")
    assert doc.wrapper_path == workdir / "Note 2.json"


def test_rename_plain_file_in_workdir_renames_it(store, accessor, workdir):
    notes = workdir / "notes.txt"
    notes.write_text("plain notes", encoding="utf-8")
    accessor.set_directory(workdir)
    doc = Document(title="notes.txt", content="plain notes", provenance=Provenance.external(notes))
    store.adopt(doc)

    assert store.rename(doc, "renamed") is True

    assert doc.title == "renamed"
    assert doc.external_path == workdir / "renamed.txt"
    assert sorted(p.name for p in workdir.iterdir()) == ["renamed.txt"]

    # Typing the extension does not double it.
    store.rename(doc, "final.txt")
    assert doc.external_path == workdir / "final.txt"


def test_rename_plain_file_outside_workdir_only_retitles(store, accessor, workdir, tmp_path: Path):
    outside = tmp_path / "elsewhere.txt"
    outside.write_text("x", encoding="utf-8")
    accessor.set_directory(workdir)
    doc = Document(title="elsewhere.txt", content="x", provenance=Provenance.external(outside))
    store.adopt(doc)

    store.rename(doc, "other")

    assert doc.external_path == outside
    assert outside.exists()


def test_rename_without_wrapper_only_retitles(store):
    doc = store.create_untitled()
    store.rename(doc, "Plain")
    assert doc.title == "Plain"
    assert doc.wrapper_path is None
