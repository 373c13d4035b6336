from __future__ import annotations

import pytest

from nekopad.domain.errors import NotFound
from nekopad.workdir.bookmark import Bookmark


def test_bookmark_resolves_to_same_path(tmp_path):
    target = tmp_path / "folder"
    target.mkdir()
    token = Bookmark.create(target)

    resolved = Bookmark.resolve(token)
    assert resolved.path == target.resolve()
    assert resolved.stale is False


def test_bookmark_is_stale_when_target_missing(tmp_path):
    target = tmp_path / "a.txt"
    target.write_text("one", encoding="utf-8")
    token = Bookmark.create(target)

    target.unlink()
    assert Bookmark.resolve(token).stale is True

    # The stored path is still reported so callers can fall back to it.
    assert Bookmark.resolve(token).path == target.resolve()


@pytest.mark.parametrize("token", ["%%%%", "bm90IGpzb24=", "WzEsMl0="])
def test_unreadable_tokens_raise_not_found(token):
    # "%%%%" is not base64, the others decode to non-JSON and a JSON list.
    with pytest.raises(NotFound):
        Bookmark.resolve(token)
