"""Pin-level connectivity graph for a patch."""

from __future__ import annotations

from dataclasses import dataclass, field

from patchkit.patch.models import Endpoint, Patch


@dataclass
class PinNode:
    id: str                 # "<componentId>_<pinName>"
    component_id: str
    pin_name: str
    label: str              # "<componentName>.<pinName>"


@dataclass
class PinEdge:
    id: str                 # "<netId>_<i>"
    source: str
    target: str
    net_id: str


@dataclass
class PinGraph:
    nodes: list[PinNode] = field(default_factory=list)
    edges: list[PinEdge] = field(default_factory=list)
    adjacency: dict[str, list[str]] = field(default_factory=dict)


def pin_node_id(component_id: str, pin_name: str) -> str:
    return f"{component_id}_{pin_name}"


def _endpoint_node_id(ep: Endpoint) -> str:
    return pin_node_id(ep.component_id, ep.pin_name)


def build_pin_graph(patch: Patch) -> PinGraph:
    """Build the pin graph: one node per declared pin slot.

    Endpoints inside a net are chained pairwise
    (``endpoint[i] – endpoint[i+1]``), so a net with *n* endpoints adds
    a path of *n - 1* edges, not a clique.  An edge whose end is not a
    declared pin slot is still listed in ``edges`` but only the sides
    that exist as nodes get an adjacency entry.
    """
    graph = PinGraph()

    for comp in patch.components:
        for slot in comp.pin_slots:
            nid = pin_node_id(comp.id, slot)
            graph.nodes.append(PinNode(nid, comp.id, slot, f"{comp.name}.{slot}"))
            graph.adjacency[nid] = []

    for net in patch.nets:
        for i in range(len(net.endpoints) - 1):
            a = _endpoint_node_id(net.endpoints[i])
            b = _endpoint_node_id(net.endpoints[i + 1])
            graph.edges.append(PinEdge(f"{net.id}_{i}", a, b, net.id))
            if a in graph.adjacency:
                graph.adjacency[a].append(b)
            if b in graph.adjacency:
                graph.adjacency[b].append(a)

    return graph


def count_islands(graph: PinGraph) -> int:
    """Count connected components ("islands") with a depth-first walk.

    Neighbours that are not graph nodes are skipped.
    """
    visited: set[str] = set()
    islands = 0

    for node in graph.nodes:
        if node.id in visited:
            continue
        islands += 1
        stack = [node.id]
        visited.add(node.id)
        while stack:
            current = stack.pop()
            for neighbour in graph.adjacency.get(current, []):
                if neighbour in graph.adjacency and neighbour not in visited:
                    visited.add(neighbour)
                    stack.append(neighbour)

    return islands
