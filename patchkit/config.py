"""Shared configuration for the patch library and the insertion engine.

The library directories default to a ``patches/`` folder in the current
working directory.  Every value can be overridden through environment
variables (see ``LibraryConfig.from_env``) or by constructing a
``LibraryConfig`` directly, which is what the tests do.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path


IMPORT_ID_POLICIES = frozenset({"timestamp", "name"})

PATCH_SUFFIX = ".patch.json"
INDEX_FILENAME = "index.json"

# Spatial offset applied to every inserted component, in diagram units.
DEFAULT_INSERT_OFFSET: tuple[float, float] = (80.0, 80.0)


@dataclass(frozen=True)
class LibraryConfig:
    """Where the patch library keeps its files.

    All three directories are created on demand by the store.
    """

    patch_dir: Path = Path("patches")
    """One ``*.patch.json`` file per saved patch."""

    library_dir: Path = Path("patches") / "library"
    """Holds ``index.json``, the aggregated library index."""

    backup_dir: Path = Path("patches") / ".backup"
    """Receives pre-overwrite and pre-delete snapshots."""

    import_id_policy: str = "timestamp"
    """How ``import_file`` names the index entry it creates.

    ``"timestamp"`` gives every import its own ``patch_<ms>`` entry, so
    several imports of same-named patches coexist.  ``"name"`` reuses
    the id ``save`` derives from the patch name, so a re-import replaces
    the earlier entry.
    """

    def __post_init__(self) -> None:
        if self.import_id_policy not in IMPORT_ID_POLICIES:
            raise ValueError(
                f"Unknown import_id_policy '{self.import_id_policy}', "
                f"expected one of {sorted(IMPORT_ID_POLICIES)}"
            )
        # Accept plain strings for the directories
        for name in ("patch_dir", "library_dir", "backup_dir"):
            value = getattr(self, name)
            if not isinstance(value, Path):
                object.__setattr__(self, name, Path(value))

    @property
    def index_path(self) -> Path:
        return self.library_dir / INDEX_FILENAME

    @classmethod
    def under(cls, root: Path | str, **overrides) -> LibraryConfig:
        """Lay out all three directories below a single root folder."""
        root = Path(root)
        cfg = cls(
            patch_dir=root,
            library_dir=root / "library",
            backup_dir=root / ".backup",
        )
        return replace(cfg, **overrides) if overrides else cfg

    @classmethod
    def from_env(cls) -> LibraryConfig:
        """Build a config from ``PATCHKIT_*`` environment variables."""
        root = os.environ.get("PATCHKIT_PATCH_DIR")
        cfg = cls.under(root) if root else cls()
        overrides: dict = {}
        if os.environ.get("PATCHKIT_LIBRARY_DIR"):
            overrides["library_dir"] = Path(os.environ["PATCHKIT_LIBRARY_DIR"])
        if os.environ.get("PATCHKIT_BACKUP_DIR"):
            overrides["backup_dir"] = Path(os.environ["PATCHKIT_BACKUP_DIR"])
        if os.environ.get("PATCHKIT_IMPORT_ID_POLICY"):
            overrides["import_id_policy"] = os.environ["PATCHKIT_IMPORT_ID_POLICY"]
        return replace(cfg, **overrides) if overrides else cfg
