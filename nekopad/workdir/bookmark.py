"""Durable, re-resolvable references to files and folders.

A bookmark token is opaque to callers: URL-safe base64 over a small JSON
payload holding the path and the device/inode pair seen when it was made.
Resolving checks the path still points at the same filesystem object; if it
does not, the reference is reported stale but the path is still returned so
callers can decide whether to trust it.
"""

from __future__ import annotations

import base64
import binascii
import json
import os
from dataclasses import dataclass
from pathlib import Path

from nekopad.domain.errors import NotFound


@dataclass(frozen=True)
class ResolvedBookmark:
    path: Path
    stale: bool


class Bookmark:
    VERSION = 1

    @staticmethod
    def create(path: Path) -> str:
        p = Path(path).expanduser().resolve()
        try:
            st = p.stat()
            ident = {"dev": st.st_dev, "ino": st.st_ino}
        except OSError:
            ident = {"dev": None, "ino": None}
        payload = {"v": Bookmark.VERSION, "path": str(p), **ident}
        raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    @staticmethod
    def resolve(token: str) -> ResolvedBookmark:
        try:
            data = json.loads(base64.urlsafe_b64decode(token.encode("ascii")))
            path = Path(data["path"])
        except (binascii.Error, ValueError, KeyError, TypeError, UnicodeError) as exc:
            raise NotFound(f"Unreadable bookmark ({exc})") from exc

        try:
            st = os.stat(path)
        except OSError:
            return ResolvedBookmark(path=path, stale=True)
        same = data.get("ino") == st.st_ino and data.get("dev") == st.st_dev
        return ResolvedBookmark(path=path, stale=not same)
