"""Insertion result dataclasses and errors."""

from __future__ import annotations

from dataclasses import dataclass, field

from patchkit.diagram.models import DiagramComponent, DiagramConnection


@dataclass
class InsertionResult:
    """What one insertion added to the target diagram."""

    token: str                                  # suffix shared by all new ids
    components: list[DiagramComponent] = field(default_factory=list)
    connections: list[DiagramConnection] = field(default_factory=list)
    id_map: dict[str, str] = field(default_factory=dict)   # patch id -> new id


class InsertionError(Exception):
    """Raised when a patch cannot be merged into a diagram.

    The target diagram is left untouched when this is raised.
    """

    def __init__(self, patch_id: str, reason: str) -> None:
        self.patch_id = patch_id
        self.reason = reason
        super().__init__(f"Cannot insert patch '{patch_id}': {reason}")
