"""Diagram parsing — convert raw dicts/JSON into a Diagram."""

from __future__ import annotations

from .models import Diagram, DiagramComponent, DiagramConnection


def parse_diagram(data: dict) -> Diagram:
    """Parse a raw ``{components, connections}`` dict into a Diagram."""
    components = [
        DiagramComponent(
            id=str(c["id"]),
            type=c.get("type", ""),
            name=c.get("name", str(c["id"])),
            x=float(c.get("x", 0)),
            y=float(c.get("y", 0)),
            rotation=c.get("rotation") or 0,
            properties=dict(c.get("properties") or {}),
        )
        for c in data.get("components") or []
    ]

    # "connections" holds the endpoint list in the editor's own format
    connections = [
        DiagramConnection(
            id=str(conn["id"]),
            net=conn.get("net"),
            endpoints=list(conn.get("endpoints", conn.get("connections")) or []),
        )
        for conn in data.get("connections") or []
    ]

    return Diagram(components=components, connections=connections)
