"""Diagram dataclasses — the live schematic that patches are cut from and pasted into.

Connections reference components by *name*, never by id: each endpoint
is a ``"<componentName>.<pinName>"`` string.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DiagramComponent:
    id: str
    type: str
    name: str
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0
    properties: dict = field(default_factory=dict)


@dataclass
class DiagramConnection:
    id: str
    net: str | None = None
    endpoints: list[str] = field(default_factory=list)  # "R1.pin_1"


@dataclass
class Diagram:
    components: list[DiagramComponent] = field(default_factory=list)
    connections: list[DiagramConnection] = field(default_factory=list)

    def component_ids(self) -> set[str]:
        return {c.id for c in self.components}

    def connection_ids(self) -> set[str]:
        return {c.id for c in self.connections}


def split_endpoint(endpoint: str) -> tuple[str, str]:
    """Split ``"R1.pin_1"`` into ``("R1", "pin_1")``.

    Only the first ``.`` separates component from pin; an endpoint
    without a ``.`` is a bare component name with an empty pin.
    """
    comp, _, pin = endpoint.partition(".")
    return comp, pin


def format_endpoint(component: str, pin: str) -> str:
    return f"{component}.{pin}"
