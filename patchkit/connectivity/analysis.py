"""Connectivity analysis — unconnected pins, floating nets, island count.

Two unconnected-pin checks live here, kept apart:

  find_unconnected_pins        component granularity: a component that
                               no net references at all.
  find_unconnected_pin_slots   pin granularity: a declared ``pin_*``
                               slot that no net endpoint references.

They agree on simple patches but diverge for a component whose pin
slots are only partly wired.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from patchkit.patch.models import Patch

from .graph import PinGraph, build_pin_graph, count_islands, pin_node_id


UNSPECIFIED_PIN = "unspecified"


@dataclass
class UnconnectedPin:
    component_id: str
    component_name: str
    pin_name: str


@dataclass
class FloatingNet:
    net_id: str
    net_name: str | None
    connection_count: int


@dataclass
class ConnectivityReport:
    """Read-only summary of a patch's connectivity."""

    component_count: int
    net_count: int
    unconnected_pins: list[UnconnectedPin] = field(default_factory=list)
    unconnected_pin_slots: list[UnconnectedPin] = field(default_factory=list)
    floating_nets: list[FloatingNet] = field(default_factory=list)
    island_count: int = 0

    @property
    def is_fully_connected(self) -> bool:
        # Island count is a warning-level signal and does not count here.
        return not self.unconnected_pins and not self.floating_nets


def find_unconnected_pins(patch: Patch) -> list[UnconnectedPin]:
    """Components that no net references at all (one entry each)."""
    referenced = {ep.component_id for net in patch.nets for ep in net.endpoints}
    return [
        UnconnectedPin(c.id, c.name, UNSPECIFIED_PIN)
        for c in patch.components
        if c.id not in referenced
    ]


def find_unconnected_pin_slots(
    patch: Patch, graph: PinGraph | None = None,
) -> list[UnconnectedPin]:
    """Declared pin slots that no net endpoint references."""
    graph = graph or build_pin_graph(patch)
    # Walk endpoints, not edges: a single-endpoint net has no edge
    wired = {
        pin_node_id(ep.component_id, ep.pin_name)
        for net in patch.nets
        for ep in net.endpoints
    }

    names = {c.id: c.name for c in patch.components}
    return [
        UnconnectedPin(n.component_id, names.get(n.component_id, n.component_id), n.pin_name)
        for n in graph.nodes
        if n.id not in wired
    ]


def find_floating_nets(patch: Patch) -> list[FloatingNet]:
    return [
        FloatingNet(n.id, n.name, len(n.endpoints))
        for n in patch.nets
        if n.is_floating
    ]


def analyze_connectivity(patch: Patch) -> ConnectivityReport:
    """Run every connectivity check on a patch.  Never raises."""
    graph = build_pin_graph(patch)
    return ConnectivityReport(
        component_count=len(patch.components),
        net_count=len(patch.nets),
        unconnected_pins=find_unconnected_pins(patch),
        unconnected_pin_slots=find_unconnected_pin_slots(patch, graph),
        floating_nets=find_floating_nets(patch),
        island_count=count_islands(graph),
    )
