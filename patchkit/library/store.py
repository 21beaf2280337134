"""
Patch library — durable storage of patches plus a searchable index.

On disk (see ``LibraryConfig``):
  <patch_dir>/<Name>_v<version>.patch.json   one file per saved patch
  <library_dir>/index.json                  every LibraryEntry, as a list
  <backup_dir>/                             snapshots taken before an
                                            overwrite or a delete

``delete`` copies the file into the backup directory and only drops the
index entry.  Pre-overwrite backups can be listed (``versions``), put
back (``restore``) and pruned (``cleanup_backups``); pruning is the only
operation that removes files.  The index is rewritten as a whole,
through a temp file, after every mutation.

Mutations for one entry id are serialized by a per-id lock, dropped
when the id leaves the index.  The index map itself is guarded by a
re-entrant lock, and reads return copies.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import threading
import time
from dataclasses import replace
from pathlib import Path

from patchkit.config import LibraryConfig, PATCH_SUFFIX
from patchkit.connectivity import analyze_connectivity, connectivity_issues
from patchkit.patch.models import Metadata, Patch, ValidationError, utc_now
from patchkit.patch.parsing import parse_patch
from patchkit.patch.serialization import patch_to_dict
from patchkit.patch.validation import blocking_errors, validate_patch, warnings_only

from .index import atomic_write_text, read_index, write_index
from .models import LibraryEntry, LibraryError, PatchNotFoundError, PatchValidationFailed


log = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _underscored(name: str) -> str:
    """Whitespace runs and path separators become underscores."""
    return re.sub(r"[\s/\\]+", "_", name.strip())


def entry_id_for(name: str) -> str:
    """Deterministic index id that ``save`` derives from a patch name."""
    return f"patch_{_underscored(name)}"


def default_filename(patch: Patch) -> str:
    return f"{_underscored(patch.metadata.name)}_v{patch.metadata.version}{PATCH_SUFFIX}"


class PatchLibrary:
    """File-backed patch store.

    Construction creates the directories and loads the index
    (load-or-create).
    """

    def __init__(self, config: LibraryConfig | None = None) -> None:
        self.config = config or LibraryConfig()
        self._index_lock = threading.RLock()
        self._id_locks: dict[str, threading.Lock] = {}
        self._id_locks_guard = threading.Lock()

        for d in (self.config.patch_dir, self.config.library_dir, self.config.backup_dir):
            d.mkdir(parents=True, exist_ok=True)

        self._entries: dict[str, LibraryEntry] = self._load_index()

    # ── Locking ────────────────────────────────────────────────────

    def _lock_for(self, entry_id: str) -> threading.Lock:
        with self._id_locks_guard:
            lock = self._id_locks.get(entry_id)
            if lock is None:
                lock = self._id_locks[entry_id] = threading.Lock()
            return lock

    def _drop_lock(self, entry_id: str) -> None:
        with self._id_locks_guard:
            self._id_locks.pop(entry_id, None)

    # ── Index ──────────────────────────────────────────────────────

    def _load_index(self) -> dict[str, LibraryEntry]:
        path = self.config.index_path
        try:
            entries = read_index(path)
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            aside = self._unique_backup(f"{path.name}.{_now_ms()}.corrupt")
            log.warning("Could not load library index %s (%s); moved to %s", path, exc, aside)
            shutil.move(str(path), aside)
            return {}
        if entries:
            log.info("Library index loaded: %d patches", len(entries))
        return entries

    def _commit(self, entries: dict[str, LibraryEntry]) -> None:
        """Persist *entries*, then make them the live index.

        Called with the index lock held.  If the write fails the live
        index and the file on disk both keep their previous state.
        """
        write_index(self.config.index_path, entries)
        self._entries = entries

    def _put_entry(self, entry: LibraryEntry) -> None:
        with self._index_lock:
            entries = dict(self._entries)
            entries[entry.id] = entry
            self._commit(entries)

    # ── Files ──────────────────────────────────────────────────────

    def _unique_backup(self, name: str) -> Path:
        """Path in the backup dir; bumps the name if it is already taken."""
        path = self.config.backup_dir / name
        n = 1
        while path.exists():
            path = self.config.backup_dir / f"{name}.{n}"
            n += 1
        return path

    def _target_path(self, patch: Patch, filename: str | None) -> Path:
        name = filename or default_filename(patch)
        if Path(name).name != name or name in ("", ".", ".."):
            raise LibraryError(f"Invalid patch filename '{name}': must be a bare file name")
        return self.config.patch_dir / name

    # ── Save / load ────────────────────────────────────────────────

    def save(self, patch: Patch, filename: str | None = None) -> Path:
        """Validate and write a patch.  Returns the file location.

        Raises PatchValidationFailed (with every blocking error) when
        validation reports an error.  An existing file at the target is
        copied to the backup directory before it is overwritten.
        """
        findings = validate_patch(patch)
        errors = blocking_errors(findings)
        if errors:
            raise PatchValidationFailed(patch.metadata.name, errors, warnings_only(findings))

        for issue in connectivity_issues(analyze_connectivity(patch)):
            log.warning("Patch '%s': %s", patch.metadata.name, issue)

        path = self._target_path(patch, filename)
        entry_id = entry_id_for(patch.metadata.name)

        with self._lock_for(entry_id):
            patch.metadata.touch()

            if path.exists():
                backup = self._unique_backup(f"{path.name}.{_now_ms()}.backup")
                shutil.copy2(path, backup)
                log.info("Backed up %s to %s", path, backup)

            atomic_write_text(path, json.dumps(patch_to_dict(patch), indent=2, ensure_ascii=False))

            self._put_entry(LibraryEntry(
                id=entry_id,
                name=patch.metadata.name,
                file_path=str(path),
                metadata=_snapshot(patch),
                last_used=utc_now(),
                preview_svg=patch.symbol_svg,
            ))

        log.info("Patch saved: %s", path)
        return path

    def load(self, location: Path | str) -> Patch:
        """Read a patch file.  Missing optional fields are defaulted."""
        path = Path(location)
        if not path.exists():
            raise PatchNotFoundError(str(path))
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as exc:
            raise LibraryError(f"Cannot read patch file {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise LibraryError(f"Patch file {path} does not hold a JSON object")
        try:
            patch = parse_patch(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise LibraryError(f"Invalid patch file {path}: {exc}") from exc
        log.info("Patch loaded: %s", path)
        return patch

    # ── Reads ──────────────────────────────────────────────────────

    def get_library(self) -> list[LibraryEntry]:
        with self._index_lock:
            return list(self._entries.values())

    def get_entry(self, entry_id: str) -> LibraryEntry | None:
        with self._index_lock:
            return self._entries.get(entry_id)

    def search(self, query: str) -> list[LibraryEntry]:
        """Case-insensitive substring match over entry names and tags."""
        q = query.lower()
        with self._index_lock:
            return [
                e for e in self._entries.values()
                if q in e.name.lower() or any(q in t.lower() for t in e.metadata.tags)
            ]

    def fetch(self, entry_id: str) -> Patch:
        """Load the patch behind an index entry and mark it as used."""
        if self.get_entry(entry_id) is None:
            raise PatchNotFoundError(entry_id)
        with self._lock_for(entry_id):
            entry = self.get_entry(entry_id)
            if entry is None:
                raise PatchNotFoundError(entry_id)
            patch = self.load(entry.file_path)
            with self._index_lock:
                current = self._entries.get(entry_id)
                if current is not None:
                    entries = dict(self._entries)
                    entries[entry_id] = replace(current, last_used=utc_now())
                    self._commit(entries)
        return patch

    def validate_entry(self, entry_id: str) -> list[ValidationError]:
        """Re-validate a stored patch.  Unknown ids give an empty list."""
        entry = self.get_entry(entry_id)
        if entry is None:
            return []
        return validate_patch(self.load(entry.file_path))

    # ── Delete / export / import ───────────────────────────────────

    def delete(self, entry_id: str) -> bool:
        """Drop an entry from the index, keeping a copy of its file.

        Returns False for an unknown id and leaves the index untouched.
        """
        if self.get_entry(entry_id) is None:
            return False
        with self._lock_for(entry_id):
            entry = self.get_entry(entry_id)
            if entry is None:
                return False

            src = Path(entry.file_path)
            if src.exists():
                backup = self._unique_backup(
                    f"deleted_{_now_ms()}_{_underscored(entry.name)}{PATCH_SUFFIX}")
                try:
                    shutil.copy2(src, backup)
                except OSError as exc:
                    raise LibraryError(f"Cannot back up {src} before delete: {exc}") from exc

            with self._index_lock:
                entries = dict(self._entries)
                entries.pop(entry_id, None)
                self._commit(entries)
            self._drop_lock(entry_id)

        log.info("Patch deleted (moved to backup): %s", entry_id)
        return True

    def export(self, entry_id: str, output_path: Path | str) -> bool:
        """Copy a stored patch file elsewhere.  False if the id is unknown."""
        entry = self.get_entry(entry_id)
        if entry is None:
            return False
        try:
            shutil.copyfile(entry.file_path, output_path)
        except OSError as exc:
            log.error("Error exporting patch %s: %s", entry_id, exc)
            return False
        log.info("Patch exported: %s", output_path)
        return True

    def import_patch(self, patch: Patch) -> LibraryEntry:
        """Store an in-memory patch and give it its own index entry.

        The entry id follows ``config.import_id_policy``.
        """
        path = self.save(patch)

        def _entry(entry_id: str) -> LibraryEntry:
            return LibraryEntry(
                id=entry_id,
                name=patch.metadata.name,
                file_path=str(path),
                metadata=_snapshot(patch),
                last_used=utc_now(),
                preview_svg=patch.symbol_svg,
            )

        if self.config.import_id_policy == "name":
            entry_id = entry_id_for(patch.metadata.name)
            with self._lock_for(entry_id):
                entry = _entry(entry_id)
                self._put_entry(entry)
        else:
            with self._index_lock:
                stamp = _now_ms()
                while f"patch_{stamp}" in self._entries:
                    stamp += 1
                entry = _entry(f"patch_{stamp}")
                self._put_entry(entry)

        log.info("Patch imported: %s (%s)", entry.name, entry.id)
        return entry

    def import_file(self, location: Path | str) -> LibraryEntry:
        """Load a patch file from anywhere and store it in the library."""
        return self.import_patch(self.load(location))

    # ── Backup versions ────────────────────────────────────────────

    def _version_files(self, entry: LibraryEntry) -> list[Path]:
        """Pre-overwrite backups of an entry's file, oldest first."""
        pattern = re.compile(
            rf"^{re.escape(Path(entry.file_path).name)}\.(\d+)\.backup(?:\.(\d+))?$")
        found = []
        for p in self.config.backup_dir.iterdir():
            m = pattern.match(p.name)
            if m:
                found.append((int(m.group(1)), int(m.group(2) or 0), p))
        return [p for _, _, p in sorted(found)]

    def versions(self, entry_id: str) -> list[str]:
        """Backup file names kept for an entry, oldest first.

        Unknown ids give an empty list.
        """
        entry = self.get_entry(entry_id)
        if entry is None:
            return []
        return [p.name for p in self._version_files(entry)]

    def restore(self, entry_id: str, backup_name: str) -> bool:
        """Put a backup back in place of the entry's current file.

        The current file is backed up first, so a restore can itself be
        undone.  Returns False when the id or the backup is unknown;
        raises LibraryError when the backup cannot be read as a patch.
        """
        if self.get_entry(entry_id) is None:
            return False
        with self._lock_for(entry_id):
            entry = self.get_entry(entry_id)
            if entry is None:
                return False
            source = next(
                (p for p in self._version_files(entry) if p.name == backup_name), None)
            if source is None:
                return False

            patch = self.load(source)
            target = Path(entry.file_path)
            if target.exists():
                backup = self._unique_backup(f"{target.name}.{_now_ms()}.backup")
                shutil.copy2(target, backup)
            atomic_write_text(target, source.read_text(encoding="utf-8"))

            with self._index_lock:
                current = self._entries.get(entry_id)
                if current is not None:
                    entries = dict(self._entries)
                    entries[entry_id] = replace(
                        current,
                        metadata=_snapshot(patch),
                        last_used=utc_now(),
                        preview_svg=patch.symbol_svg,
                    )
                    self._commit(entries)

        log.info("Patch %s restored from %s", entry_id, backup_name)
        return True

    def cleanup_backups(self, entry_id: str, keep: int = 10) -> int:
        """Delete all but the newest *keep* backups of an entry.

        Returns how many files were removed.
        """
        if keep < 0:
            raise ValueError(f"keep must be >= 0, got {keep}")
        if self.get_entry(entry_id) is None:
            return 0
        with self._lock_for(entry_id):
            entry = self.get_entry(entry_id)
            if entry is None:
                return 0
            files = self._version_files(entry)
            stale = files[:max(0, len(files) - keep)]
            for p in stale:
                p.unlink()

        if stale:
            log.info("Cleaned up %d old backup(s) of %s", len(stale), entry_id)
        return len(stale)


def _snapshot(patch: Patch) -> Metadata:
    """Copy of the patch metadata, detached from later edits."""
    return replace(patch.metadata, tags=list(patch.metadata.tags))
