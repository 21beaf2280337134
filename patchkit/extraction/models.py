"""Extraction result dataclasses and errors."""

from __future__ import annotations

from dataclasses import dataclass, field

from patchkit.patch.models import Patch


@dataclass
class ExtractionResult:
    """A freshly extracted patch plus any non-fatal findings."""

    patch: Patch
    warnings: list[str] = field(default_factory=list)


@dataclass
class ExtractionCheck:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return len(self.errors) == 0


class ExtractionError(Exception):
    """Raised when the selection cannot be turned into a patch."""

    def __init__(self, reason: str, component_ids: list[str] | None = None) -> None:
        self.reason = reason
        self.component_ids = component_ids or []
        super().__init__(f"Cannot extract patch: {reason}")
