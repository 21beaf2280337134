"""Extraction — cut a selection out of a diagram and turn it into a Patch.

Every diagram connection lands in exactly one bucket:

  internal   all endpoints belong to selected components → patch net
  boundary   endpoints on both sides → one interface pin per selected
             endpoint (not one per net)
  ignored    no selected endpoint at all

Components are matched by *name*, the join key of connection endpoints.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from patchkit.diagram.models import Diagram, split_endpoint
from patchkit.patch.models import (
    Component, Endpoint, InterfacePin, Metadata, Net, Patch, Position,
    normalize_patch_id, utc_now,
)

from .models import ExtractionCheck, ExtractionError, ExtractionResult


log = logging.getLogger(__name__)

NO_CONNECTIONS_WARNING = "Patch has no connections"
SINGLE_COMPONENT_WARNING = "Patch has only one component; consider using a symbol instead"


# ── Interface pin classification ───────────────────────────────────

# Checked in order; first match wins.
_KIND_PATTERNS: list[tuple[str, re.Pattern]] = [
    ("ground", re.compile(r"GND|VSS|GROUND")),
    ("power", re.compile(r"VCC|VDD|VIN|VBAT|V\+|PWR|POWER|\d+V\d*")),
    ("clock", re.compile(r"CLK|CLOCK|SCK|SCL")),
    ("reset", re.compile(r"RST|RESET")),
    ("data", re.compile(r"DATA|SDA|MOSI|MISO|TX|RX|D\d+$")),
]

_SIDE_BY_KIND = {
    "power": "top",
    "ground": "bottom",
    "clock": "left",
    "reset": "left",
}


def infer_pin_kind(net_name: str | None) -> str:
    """Guess an interface pin's kind from the name of the net it exposes."""
    if not net_name:
        return "signal"
    upper = net_name.upper()
    for kind, pattern in _KIND_PATTERNS:
        if pattern.search(upper):
            return kind
    return "signal"


def side_for_kind(kind: str) -> str:
    return _SIDE_BY_KIND.get(kind, "right")


# ── Extraction ─────────────────────────────────────────────────────


def extract_patch(
    diagram: Diagram,
    selected_ids: Iterable[str],
    name: str,
) -> ExtractionResult:
    """Build a Patch from the selected components of a diagram.

    Raises ExtractionError when nothing is selected or when two selected
    components share a name.  A selection without any wiring still
    succeeds, with a warning.
    """
    wanted = set(selected_ids)
    selected = [c for c in diagram.components if c.id in wanted]
    if not selected:
        raise ExtractionError("select at least one component", sorted(wanted))

    # ── Selected names must be unique: they are the join key ──
    id_by_name: dict[str, str] = {}
    for c in selected:
        if c.name in id_by_name:
            raise ExtractionError(
                f"components '{id_by_name[c.name]}' and '{c.id}' share the name '{c.name}'",
                [id_by_name[c.name], c.id],
            )
        id_by_name[c.name] = c.id

    warnings: list[str] = []
    if len(selected) == 1:
        warnings.append(SINGLE_COMPONENT_WARNING)

    components = [
        Component(
            id=c.id,
            name=c.name,
            type=c.type,
            properties=dict(c.properties),
            position=Position(x=c.x, y=c.y),
            rotation=c.rotation,
        )
        for c in selected
    ]

    def _resolve(endpoint: str) -> Endpoint:
        comp_name, pin = split_endpoint(endpoint)
        return Endpoint(component_id=id_by_name[comp_name], pin_name=pin)

    nets: list[Net] = []
    interface_pins: list[InterfacePin] = []
    pin_ids: set[str] = set()
    processed: set[str] = set()

    for conn in diagram.connections:
        if conn.id in processed:
            continue
        processed.add(conn.id)

        inside = [ep for ep in conn.endpoints if split_endpoint(ep)[0] in id_by_name]
        outside = [ep for ep in conn.endpoints if split_endpoint(ep)[0] not in id_by_name]

        if inside and not outside:
            nets.append(Net(
                id=conn.id,
                name=conn.net,
                endpoints=[_resolve(ep) for ep in inside],
            ))
        elif inside and outside:
            kind = infer_pin_kind(conn.net)
            for ep in inside:
                # An endpoint on several boundary connections gets one pin each
                pin_id = ep if ep not in pin_ids else f"{ep}@{conn.id}"
                n = 2
                while pin_id in pin_ids:
                    pin_id = f"{ep}@{conn.id}~{n}"
                    n += 1
                pin_ids.add(pin_id)
                interface_pins.append(InterfacePin(
                    id=pin_id,
                    name=ep,
                    side=side_for_kind(kind),
                    internal_net_name=conn.net or conn.id,
                    kind=kind,
                    endpoint=_resolve(ep),
                ))

    if not nets and not interface_pins:
        log.warning("Extracted patch '%s' has no connections", name)
        warnings.append(NO_CONNECTIONS_WARNING)

    now = utc_now()
    patch = Patch(
        id=normalize_patch_id(name),
        metadata=Metadata(
            name=name,
            created_at=now,
            modified_at=now,
            description=f"Extracted patch from schematic containing "
                        f"{len(components)} components",
        ),
        components=components,
        nets=nets,
        interface_pins=interface_pins,
    )
    log.info(
        "Extracted patch '%s': %d components, %d nets, %d interface pins",
        name, len(components), len(nets), len(interface_pins),
    )
    return ExtractionResult(patch=patch, warnings=warnings)


def check_extracted_patch(patch: Patch) -> ExtractionCheck:
    """Sanity-check an extracted patch before it is handed on."""
    check = ExtractionCheck()

    if not patch.id or not patch.name:
        check.errors.append("Patch must have an id and a name")
    if not patch.components:
        check.errors.append("Patch must contain at least one component")
    elif len(patch.components) == 1:
        check.warnings.append(SINGLE_COMPONENT_WARNING)

    component_ids = {c.id for c in patch.components}
    for net in patch.nets:
        for ep in net.endpoints:
            if ep.component_id not in component_ids:
                check.errors.append(
                    f"Net {net.label} references missing component {ep.component_id}")

    for pin in patch.interface_pins:
        if pin.endpoint is not None and pin.endpoint.component_id not in component_ids:
            check.errors.append(
                f"Interface pin {pin.name} references missing component "
                f"{pin.endpoint.component_id}")

    return check
