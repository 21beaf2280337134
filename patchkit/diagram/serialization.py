"""Diagram serialization — convert a Diagram to a JSON-safe dict."""

from __future__ import annotations

from .models import Diagram, DiagramComponent, DiagramConnection


def component_to_dict(c: DiagramComponent) -> dict:
    return {
        "id": c.id,
        "type": c.type,
        "name": c.name,
        "x": c.x,
        "y": c.y,
        **({"rotation": c.rotation} if c.rotation else {}),
        **({"properties": c.properties} if c.properties else {}),
    }


def connection_to_dict(c: DiagramConnection) -> dict:
    return {
        "id": c.id,
        **({"net": c.net} if c.net is not None else {}),
        "endpoints": list(c.endpoints),
    }


def diagram_to_dict(diagram: Diagram) -> dict:
    return {
        "components": [component_to_dict(c) for c in diagram.components],
        "connections": [connection_to_dict(c) for c in diagram.connections],
    }
