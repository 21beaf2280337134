"""Patch validation — structural checks that decide whether a patch may be saved."""

from __future__ import annotations

from .models import Patch, ValidationError


def validate_patch(patch: Patch) -> list[ValidationError]:
    """Check a patch's wiring.  Returns every finding (empty = clean).

    Never raises.  ``error`` findings block persistence, ``warning``
    findings are informational.
    """
    errors: list[ValidationError] = []
    component_ids = {c.id for c in patch.components}

    connected: set[tuple[str, str]] = set()
    for net in patch.nets:
        for ep in net.endpoints:
            connected.add((ep.component_id, ep.pin_name))

    # ── Every declared pin slot must be wired ──
    for comp in patch.components:
        for slot in comp.pin_slots:
            if (comp.id, slot) not in connected:
                errors.append(ValidationError(
                    kind="unconnected-pin",
                    severity="error",
                    message=f"{comp.name} pin {slot} is unconnected",
                    component_id=comp.id,
                    pin_id=slot,
                ))

    # ── Nets ──
    for net in patch.nets:
        if net.is_floating:
            errors.append(ValidationError(
                kind="floating-net",
                severity="warning",
                message=f'Net "{net.label}" has only {len(net.endpoints)} connection(s)',
                net_id=net.id,
            ))
        for ep in net.endpoints:
            if ep.component_id not in component_ids:
                errors.append(ValidationError(
                    kind="invalid-connection",
                    severity="error",
                    message=f'Net "{net.label}" references unknown component '
                            f"'{ep.component_id}' ({ep})",
                    component_id=ep.component_id,
                    net_id=net.id,
                    pin_id=ep.pin_name,
                ))

    # ── Interface pins must resolve to something inside the patch ──
    nets_by_name = {n.name: n for n in patch.nets if n.name}
    for pin in patch.interface_pins:
        if pin.endpoint is not None:
            resolved = pin.endpoint.component_id in component_ids
        else:
            net = nets_by_name.get(pin.internal_net_name)
            resolved = net is not None and any(
                ep.component_id in component_ids for ep in net.endpoints)
        if not resolved:
            errors.append(ValidationError(
                kind="missing-interface-pin",
                severity="warning",
                message=f"Interface pin '{pin.name}' does not resolve to a "
                        f"component inside the patch (net '{pin.internal_net_name}')",
                pin_id=pin.id,
            ))

    return errors


def blocking_errors(errors: list[ValidationError]) -> list[ValidationError]:
    """Findings that block persistence."""
    return [e for e in errors if e.is_error]


def warnings_only(errors: list[ValidationError]) -> list[ValidationError]:
    return [e for e in errors if not e.is_error]
