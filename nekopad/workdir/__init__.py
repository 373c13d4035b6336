from .accessor import WorkingDirectoryAccessor
from .bookmark import Bookmark, ResolvedBookmark

__all__ = ["WorkingDirectoryAccessor", "Bookmark", "ResolvedBookmark"]
