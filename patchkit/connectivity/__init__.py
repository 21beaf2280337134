"""Connectivity — pin-level graph checks for a patch.

Submodules:
  graph     Pin graph (pairwise-chained nets) and island counting.
  analysis  Unconnected pins / pin slots, floating nets, full report.
  report    Issue lists, text rendering, JSON conversion.
"""

from .graph import PinNode, PinEdge, PinGraph, build_pin_graph, count_islands
from .analysis import (
    UnconnectedPin, FloatingNet, ConnectivityReport,
    find_unconnected_pins, find_unconnected_pin_slots, find_floating_nets,
    analyze_connectivity,
)
from .report import connectivity_issues, format_connectivity_report, report_to_dict

__all__ = [
    # Graph
    "PinNode", "PinEdge", "PinGraph", "build_pin_graph", "count_islands",
    # Analysis
    "UnconnectedPin", "FloatingNet", "ConnectivityReport",
    "find_unconnected_pins", "find_unconnected_pin_slots", "find_floating_nets",
    "analyze_connectivity",
    # Report
    "connectivity_issues", "format_connectivity_report", "report_to_dict",
]
