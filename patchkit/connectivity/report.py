"""Connectivity report rendering — issue lists, text, and JSON-safe dicts."""

from __future__ import annotations

from .analysis import ConnectivityReport


def connectivity_issues(report: ConnectivityReport) -> list[str]:
    """Flatten a report into one message per problem."""
    issues: list[str] = []
    for pin in report.unconnected_pins:
        issues.append(f"Unconnected pin: {pin.component_name}.{pin.pin_name}")
    for net in report.floating_nets:
        issues.append(
            f'Floating net: "{net.net_name or net.net_id}" '
            f"({net.connection_count} connection(s))"
        )
    if report.island_count > 1:
        issues.append(f"Warning: Circuit has {report.island_count} isolated islands")
    return issues


def format_connectivity_report(report: ConnectivityReport) -> str:
    """Render a report as plain text."""
    lines = []
    lines.append("Connectivity Analysis Report")
    lines.append("=" * 28)
    lines.append("")
    lines.append(f"Components:        {report.component_count}")
    lines.append(f"Nets:              {report.net_count}")
    lines.append(f"Isolated islands:  {report.island_count}")
    status = "FULLY CONNECTED" if report.is_fully_connected else "ISSUES FOUND"
    lines.append(f"Status:            {status}")
    lines.append("")

    if report.unconnected_pins:
        lines.append(f"Unconnected components ({len(report.unconnected_pins)}):")
        for pin in report.unconnected_pins:
            lines.append(f"  - {pin.component_name} {pin.pin_name}")
        lines.append("")

    if report.unconnected_pin_slots:
        lines.append(f"Unconnected pin slots ({len(report.unconnected_pin_slots)}):")
        for pin in report.unconnected_pin_slots:
            lines.append(f"  - {pin.component_name}.{pin.pin_name}")
        lines.append("")

    if report.floating_nets:
        lines.append(f"Floating nets ({len(report.floating_nets)}):")
        for net in report.floating_nets:
            lines.append(
                f'  - Net "{net.net_name or net.net_id}" has '
                f"{net.connection_count} connection(s)"
            )
        lines.append("")

    if report.is_fully_connected:
        lines.append("All components are connected.")

    return "\n".join(lines)


def report_to_dict(report: ConnectivityReport) -> dict:
    """Serialize a ConnectivityReport to a JSON-safe dict."""

    def _pins(pins):
        return [
            {"component_id": p.component_id, "component_name": p.component_name,
             "pin_name": p.pin_name}
            for p in pins
        ]

    return {
        "component_count": report.component_count,
        "net_count": report.net_count,
        "island_count": report.island_count,
        "is_fully_connected": report.is_fully_connected,
        "unconnected_pins": _pins(report.unconnected_pins),
        "unconnected_pin_slots": _pins(report.unconnected_pin_slots),
        "floating_nets": [
            {"net_id": n.net_id, "net_name": n.net_name,
             "connection_count": n.connection_count}
            for n in report.floating_nets
        ],
        "issues": connectivity_issues(report),
    }
