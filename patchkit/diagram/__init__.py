"""Diagram model — the host schematic's components and connections."""

from .models import (
    Diagram, DiagramComponent, DiagramConnection, split_endpoint, format_endpoint,
)
from .parsing import parse_diagram
from .serialization import diagram_to_dict, component_to_dict, connection_to_dict

__all__ = [
    "Diagram", "DiagramComponent", "DiagramConnection",
    "split_endpoint", "format_endpoint",
    "parse_diagram", "diagram_to_dict", "component_to_dict", "connection_to_dict",
]
