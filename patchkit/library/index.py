"""Library index file — atomic JSON writes and lenient reads."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from patchkit.patch.parsing import parse_metadata
from patchkit.patch.serialization import metadata_to_dict

from .models import LibraryEntry


log = logging.getLogger(__name__)


def atomic_write_text(path: Path, text: str) -> None:
    """Write *text* to *path* through a temp file and ``os.replace``.

    Either the new content lands completely or the old file stays as
    it was.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def entry_to_dict(entry: LibraryEntry) -> dict:
    return {
        "id": entry.id,
        "name": entry.name,
        "file_path": entry.file_path,
        "metadata": metadata_to_dict(entry.metadata),
        "last_used": entry.last_used,
        **({"preview_svg": entry.preview_svg} if entry.preview_svg else {}),
    }


def parse_entry(data: dict) -> LibraryEntry:
    return LibraryEntry(
        id=data["id"],
        name=data["name"],
        file_path=data.get("file_path") or data["filePath"],
        metadata=parse_metadata(data.get("metadata"), data["name"]),
        last_used=data.get("last_used", data.get("lastUsed")),
        preview_svg=data.get("preview_svg", data.get("previewSvg")),
    )


def write_index(path: Path, entries: dict[str, LibraryEntry]) -> None:
    """Rewrite the whole index file."""
    data = [entry_to_dict(e) for e in entries.values()]
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False))


def read_index(path: Path) -> dict[str, LibraryEntry]:
    """Read the index file.  A missing file is an empty index.

    Raises ValueError when the file is not a JSON list.  Individual
    records that fail to parse are skipped with a warning.
    """
    if not path.exists():
        return {}
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Index {path} is not a list of entries")

    entries: dict[str, LibraryEntry] = {}
    for i, item in enumerate(raw):
        try:
            entry = parse_entry(item)
        except (KeyError, TypeError, AttributeError) as exc:
            log.warning("Skipping malformed index record #%d in %s: %s", i, path, exc)
            continue
        entries[entry.id] = entry
    return entries
