from __future__ import annotations

import string
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

MIN_FONT_SIZE = 8.0
MAX_FONT_SIZE = 64.0
DEFAULT_FONT_SIZE = 14.0

_TITLE_STRIP = set(string.punctuation + string.whitespace) | set(
    "／、，。！？；：—…·・“”‘’《》【】（）"
)


def now() -> datetime:
    return datetime.now().astimezone()


def new_document_id() -> str:
    return str(uuid.uuid4())


def clamp_font_size(value: float) -> float:
    return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, float(value)))


def untitled_title(when: datetime | None = None) -> str:
    return (when or now()).strftime("%Y-%m-%d %H:%M:%S")


class ProvenanceKind(Enum):
    FREESTANDING = "local_document"
    EXTERNAL = "opened_document"


@dataclass(frozen=True)
class Provenance:
    kind: ProvenanceKind
    path: Path | None = None

    def __post_init__(self) -> None:
        if self.kind is ProvenanceKind.EXTERNAL and self.path is None:
            raise ValueError("Externally backed documents need a backing path.")
        if self.kind is ProvenanceKind.FREESTANDING and self.path is not None:
            raise ValueError("Freestanding documents have no backing path.")

    @classmethod
    def freestanding(cls) -> Provenance:
        return cls(ProvenanceKind.FREESTANDING)

    @classmethod
    def external(cls, path: Path) -> Provenance:
        return cls(ProvenanceKind.EXTERNAL, Path(path))

    @property
    def is_external(self) -> bool:
        return self.kind is ProvenanceKind.EXTERNAL


@dataclass(eq=False)
class Document:
    """One editable text unit. Identity is the id; everything else may change."""

    title: str
    content: str = ""
    font_size: float = DEFAULT_FONT_SIZE
    dirty: bool = False
    provenance: Provenance = field(default_factory=Provenance.freestanding)
    created_at: datetime = field(default_factory=now)
    modified_at: datetime = field(default_factory=now)
    wrapper_path: Path | None = None
    bookmark: str | None = None
    id: str = field(default_factory=new_document_id)
    _revision: int = field(default=0, repr=False)
    _flushed_revision: int = field(default=0, repr=False)

    def __post_init__(self) -> None:
        self.font_size = clamp_font_size(self.font_size)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Document) and other.id == self.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def is_freestanding(self) -> bool:
        return not self.provenance.is_external

    @property
    def is_blank(self) -> bool:
        return not self.content.strip()

    @property
    def external_path(self) -> Path | None:
        return self.provenance.path

    @property
    def needs_flush(self) -> bool:
        """The backing file or wrapper record lags behind ``content``."""
        return self._revision != self._flushed_revision

    def set_content(self, text: str) -> bool:
        if text == self.content:
            return False
        self.content = text
        self.dirty = True
        self.modified_at = now()
        self._revision += 1
        return True

    def mark_flushed(self) -> None:
        self._flushed_revision = self._revision


def display_title(doc: Document, max_length: int = 40) -> str:
    """Window title for ``doc``: the first meaningful content line, else a file name or title."""
    if doc.wrapper_path is not None:
        fallback = doc.wrapper_path.name
    elif doc.external_path is not None:
        fallback = doc.external_path.name
    else:
        fallback = doc.title
    lines = [ln for ln in doc.content.replace("\r", "\n").split("\n") if ln.strip()][:10]
    title = _title_from_lines(lines) or fallback
    return title[:max_length]


def _title_from_lines(lines: list[str]) -> str:
    if not lines:
        return ""
    first = lines[0]
    if not first.strip().startswith("//"):
        return _strip_leading(first)
    from_comment = _strip_leading(first.replace("//", ""))
    if from_comment:
        return from_comment
    for line in lines[:5]:
        s = line.replace("//", "").strip()
        if s.endswith((".py", ".txt")):
            return s
    for line in lines:
        if not line.strip().startswith("//"):
            return _strip_leading(line)
    return ""


def _strip_leading(text: str) -> str:
    s = text.strip()
    i = 0
    while i < len(s) and s[i] in _TITLE_STRIP:
        i += 1
    return s[i:]
