from .document_store import DocumentStore
from .registry import RegistrationHandle, StoreRegistry

__all__ = ["DocumentStore", "RegistrationHandle", "StoreRegistry"]
