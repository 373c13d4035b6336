"""Domain layer: interfaces, models, records and the error taxonomy."""

from .errors import (
    DirectoryNotConfigured,
    EncodingError,
    NameCollisionExhausted,
    NekoPadError,
    NotFound,
    PermissionDenied,
    RecordFormatError,
    StorageIOError,
)
from .interfaces import IAppConfig, IConfigService, IFileService, ISettingsService
from .models import Document, Provenance, ProvenanceKind
from .records import DocumentRecord, blank_record, is_record_mapping

__all__ = [
    "IAppConfig",
    "IConfigService",
    "IFileService",
    "ISettingsService",
    "Document",
    "DocumentRecord",
    "blank_record",
    "is_record_mapping",
    "Provenance",
    "ProvenanceKind",
    "NekoPadError",
    "DirectoryNotConfigured",
    "PermissionDenied",
    "NotFound",
    "EncodingError",
    "NameCollisionExhausted",
    "StorageIOError",
    "RecordFormatError",
]
