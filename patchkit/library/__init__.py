"""Patch library — persistence, index, search, and backups.

Submodules:
  models  LibraryEntry and the library error hierarchy.
  index   Atomic index file reads/writes.
  store   PatchLibrary, the file-backed store.
"""

from .models import LibraryEntry, LibraryError, PatchNotFoundError, PatchValidationFailed
from .index import entry_to_dict, parse_entry, atomic_write_text
from .store import PatchLibrary, entry_id_for, default_filename

__all__ = [
    # Models
    "LibraryEntry", "LibraryError", "PatchNotFoundError", "PatchValidationFailed",
    # Index
    "entry_to_dict", "parse_entry", "atomic_write_text",
    # Store
    "PatchLibrary", "entry_id_for", "default_filename",
]
