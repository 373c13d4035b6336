"""JSON record shared by the session file and working-directory wrapper files.

Field names are camelCase so files written by earlier releases stay readable.
Legacy fields (``contentFilePath``, ``filePath``, ``isUntitled``) are still
written and, when ``type`` is absent, used to infer provenance.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from nekopad.domain.errors import RecordFormatError
from nekopad.domain.models import (
    DEFAULT_FONT_SIZE,
    Document,
    Provenance,
    ProvenanceKind,
    clamp_font_size,
    new_document_id,
    now,
)

# Reference date of the legacy numeric timestamps (seconds since 2001-01-01 UTC).
_LEGACY_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)


def _format_date(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def _parse_date(value: Any) -> datetime:
    if isinstance(value, bool):
        return now()
    if isinstance(value, (int, float)):
        return (_LEGACY_EPOCH + timedelta(seconds=float(value))).astimezone()
    if isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return now()
        return parsed if parsed.tzinfo else parsed.astimezone()
    return now()


def _opt_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


@dataclass
class DocumentRecord:
    id: str
    title: str
    kind: ProvenanceKind
    content: str | None
    path: str | None
    created_at: datetime
    last_modified: datetime
    font_size: float = DEFAULT_FONT_SIZE
    content_file_path: str | None = None
    file_path: str | None = None
    is_untitled: bool = True
    bookmark: str | None = None

    # ---------- Construction ----------

    @classmethod
    def from_document(
        cls,
        doc: Document,
        *,
        content_file: Path | None = None,
        inline_external: bool = False,
    ) -> DocumentRecord:
        external = doc.external_path
        inline = doc.is_freestanding or inline_external
        return cls(
            id=doc.id,
            title=doc.title,
            kind=doc.provenance.kind,
            content=doc.content if inline else None,
            path=str(external) if external is not None else None,
            created_at=doc.created_at,
            last_modified=doc.modified_at,
            font_size=doc.font_size,
            content_file_path=str(content_file) if content_file else None,
            file_path=str(doc.wrapper_path or external) if (doc.wrapper_path or external) else None,
            is_untitled=doc.is_freestanding,
            bookmark=doc.bookmark,
        )

    @classmethod
    def from_dict(cls, data: Any) -> DocumentRecord:
        if not isinstance(data, Mapping):
            raise RecordFormatError(f"Expected a JSON object, got {type(data).__name__}")

        kind_raw = data.get("type")
        try:
            kind = ProvenanceKind(kind_raw)
        except ValueError:
            # No (or unknown) type: infer from the legacy flags.
            untitled = data.get("isUntitled")
            if untitled is None:
                untitled = not _opt_str(data.get("filePath"))
            kind = ProvenanceKind.FREESTANDING if untitled else ProvenanceKind.EXTERNAL

        path = _opt_str(data.get("path"))
        if kind is ProvenanceKind.EXTERNAL and path is None:
            path = _opt_str(data.get("filePath"))

        raw_size = data.get("fontSize", DEFAULT_FONT_SIZE)
        try:
            font_size = clamp_font_size(float(raw_size))
        except (TypeError, ValueError):
            font_size = DEFAULT_FONT_SIZE

        content = data.get("content")
        return cls(
            id=_opt_str(data.get("id")) or new_document_id(),
            title=str(data.get("title") or ""),
            kind=kind,
            content=content if isinstance(content, str) else None,
            path=path,
            created_at=_parse_date(data.get("createdAt")),
            last_modified=_parse_date(data.get("lastModified")),
            font_size=font_size,
            content_file_path=_opt_str(data.get("contentFilePath")),
            file_path=_opt_str(data.get("filePath")),
            is_untitled=bool(data.get("isUntitled", kind is ProvenanceKind.FREESTANDING)),
            bookmark=_opt_str(data.get("securityBookmark")),
        )

    # ---------- Output ----------

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "type": self.kind.value,
            "content": self.content,
            "path": self.path,
            "createdAt": _format_date(self.created_at),
            "lastModified": _format_date(self.last_modified),
            "fontSize": self.font_size,
            "contentFilePath": self.content_file_path,
            "filePath": self.file_path,
            "isUntitled": self.is_untitled,
        }
        if self.bookmark is not None:
            out["securityBookmark"] = self.bookmark
        return out

    def to_document(self, content: str, *, wrapper_path: Path | None = None) -> Document:
        if self.kind is ProvenanceKind.EXTERNAL and self.path:
            provenance = Provenance.external(Path(self.path))
        else:
            provenance = Provenance.freestanding()
        title = self.title
        if not title:
            title = Path(self.path).name if self.path else (wrapper_path.stem if wrapper_path else "")
        return Document(
            id=self.id,
            title=title,
            content=content,
            font_size=self.font_size,
            dirty=False,
            provenance=provenance,
            created_at=self.created_at,
            modified_at=self.last_modified,
            wrapper_path=wrapper_path,
            bookmark=self.bookmark,
        )


def is_record_mapping(data: Any) -> bool:
    """True for JSON objects carrying the fields every record writer emits."""
    return isinstance(data, Mapping) and ("type" in data or "isUntitled" in data)


def blank_record(title: str, when: datetime | None = None) -> DocumentRecord:
    """Default record written for a brand-new file in the working directory."""
    stamp = when or now()
    return DocumentRecord(
        id=new_document_id(),
        title=title,
        kind=ProvenanceKind.FREESTANDING,
        content="",
        path=None,
        created_at=stamp,
        last_modified=stamp,
    )
