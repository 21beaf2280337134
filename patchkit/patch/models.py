"""Patch dataclasses — a reusable, named sub-circuit and its parts."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone


SCHEMA_VERSION = "1.0"
DEFAULT_PATCH_VERSION = "1.0.0"

# Property keys with this prefix declare a pin slot on a component.
PIN_SLOT_PREFIX = "pin_"

PIN_SIDES = frozenset({"top", "bottom", "left", "right"})
PIN_KINDS = frozenset({"power", "ground", "signal", "clock", "reset", "data"})

ERROR_KINDS = frozenset({
    "unconnected-pin", "floating-net", "missing-interface-pin", "invalid-connection",
})
SEVERITIES = frozenset({"error", "warning"})


def utc_now() -> str:
    """Current time as an ISO 8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def normalize_patch_id(name: str) -> str:
    """Lowercase the name and turn whitespace runs into hyphens."""
    return re.sub(r"\s+", "-", name.strip().lower())


# ── Parts ──────────────────────────────────────────────────────────


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class Component:
    """An element instance inside a patch."""

    id: str
    name: str                           # join key for diagram endpoints
    type: str                           # "resistor", "led", ...
    properties: dict[str, str | int | float | bool] = field(default_factory=dict)
    position: Position = field(default_factory=Position)
    rotation: float = 0

    @property
    def pin_slots(self) -> list[str]:
        """Property keys that declare a pin slot, in declaration order."""
        return [k for k in self.properties if k.startswith(PIN_SLOT_PREFIX)]


@dataclass
class Endpoint:
    component_id: str
    pin_name: str

    def __str__(self) -> str:
        return f"{self.component_id}.{self.pin_name}"


@dataclass
class Net:
    """An internal wire.  Endpoint order is not significant."""

    id: str
    name: str | None = None
    endpoints: list[Endpoint] = field(default_factory=list)

    @property
    def label(self) -> str:
        return self.name or self.id

    @property
    def is_floating(self) -> bool:
        return len(self.endpoints) < 2


@dataclass
class InterfacePin:
    """An external connection point of a patch."""

    id: str
    name: str
    side: str = "left"                  # see PIN_SIDES
    internal_net_name: str = ""
    kind: str = "signal"                # see PIN_KINDS
    endpoint: Endpoint | None = None    # set when extracted from a diagram


@dataclass
class Metadata:
    name: str
    version: str = DEFAULT_PATCH_VERSION
    created_at: str = field(default_factory=utc_now)
    modified_at: str = field(default_factory=utc_now)
    description: str = ""
    author: str | None = None
    tags: list[str] = field(default_factory=list)

    def touch(self) -> None:
        self.modified_at = utc_now()


@dataclass
class Patch:
    id: str
    metadata: Metadata
    components: list[Component] = field(default_factory=list)
    nets: list[Net] = field(default_factory=list)
    interface_pins: list[InterfacePin] = field(default_factory=list)
    schema_version: str = SCHEMA_VERSION
    symbol_svg: str | None = None       # cached preview image

    @property
    def name(self) -> str:
        return self.metadata.name

    def component_by_id(self, component_id: str) -> Component | None:
        for c in self.components:
            if c.id == component_id:
                return c
        return None


# ── Validation results ─────────────────────────────────────────────


@dataclass
class ValidationError:
    kind: str                           # see ERROR_KINDS
    severity: str                       # "error" | "warning"
    message: str
    component_id: str | None = None
    net_id: str | None = None
    pin_id: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"

    def __str__(self) -> str:
        return f"[{self.severity}] {self.kind}: {self.message}"


# ── Construction ───────────────────────────────────────────────────


def create_empty_patch(name: str) -> Patch:
    """Create a patch with no contents and both timestamps set to now."""
    now = utc_now()
    return Patch(
        id=normalize_patch_id(name),
        metadata=Metadata(name=name, created_at=now, modified_at=now),
    )
