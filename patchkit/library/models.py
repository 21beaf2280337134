"""Library dataclasses and errors."""

from __future__ import annotations

from dataclasses import dataclass

from patchkit.patch.models import Metadata, ValidationError


@dataclass
class LibraryEntry:
    """Index record for one stored patch."""

    id: str
    name: str
    file_path: str
    metadata: Metadata                  # snapshot taken at save time
    last_used: str | None = None        # ISO 8601
    preview_svg: str | None = None


class LibraryError(Exception):
    """Base class for patch library failures."""


class PatchNotFoundError(LibraryError):
    """Raised when a patch file or library entry does not exist."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Patch not found: {ref}")


class PatchValidationFailed(LibraryError):
    """Raised when a patch with error-severity findings is saved.

    Carries every blocking error, not only the first, plus the
    warnings so the caller can fix everything in one round.
    """

    def __init__(
        self,
        patch_name: str,
        errors: list[ValidationError],
        warnings: list[ValidationError] | None = None,
    ) -> None:
        self.patch_name = patch_name
        self.errors = errors
        self.warnings = warnings or []
        messages = ", ".join(e.message for e in errors)
        super().__init__(f"Cannot save patch '{patch_name}' with errors: {messages}")

    @property
    def messages(self) -> list[str]:
        return [e.message for e in self.errors]
