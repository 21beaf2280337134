"""Patch parsing — convert raw dicts/JSON into a Patch.

Parsing is lenient: any missing optional field falls back to its
default instead of failing.  Besides the snake_case keys written by
``patch_to_dict`` it also reads the camelCase files produced by the
older editor (``schemaVersion``, ``interfacePins``, ``componentId`` ...),
including nets whose endpoints are ``"Component.pin"`` strings.
"""

from __future__ import annotations

from typing import Any

from .models import (
    Component, Endpoint, InterfacePin, Metadata, Net, Patch, Position,
    SCHEMA_VERSION, DEFAULT_PATCH_VERSION, normalize_patch_id, utc_now,
)


UNNAMED_PATCH = "Unnamed Patch"


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first key present in *data* (snake_case first)."""
    for k in keys:
        if k in data and data[k] is not None:
            return data[k]
    return default


def parse_endpoint(raw: Any) -> Endpoint:
    """Parse ``{"component_id", "pin_name"}`` or a ``"Comp.pin"`` string."""
    if isinstance(raw, str):
        comp, _, pin = raw.partition(".")
        return Endpoint(component_id=comp, pin_name=pin)
    return Endpoint(
        component_id=str(_pick(raw, "component_id", "componentId", default="")),
        pin_name=str(_pick(raw, "pin_name", "pinName", default="")),
    )


def parse_metadata(raw: dict | None, fallback_name: str | None = None) -> Metadata:
    """Parse a metadata block, defaulting anything that is missing."""
    if not isinstance(raw, dict):
        raw = {}
    now = utc_now()
    return Metadata(
        name=_pick(raw, "name", default=fallback_name or UNNAMED_PATCH),
        version=str(_pick(raw, "version", default=DEFAULT_PATCH_VERSION)),
        created_at=_pick(raw, "created_at", "createdAt", default=now),
        modified_at=_pick(raw, "modified_at", "modifiedAt", "updatedAt", default=now),
        description=_pick(raw, "description", default=""),
        author=_pick(raw, "author"),
        tags=list(_pick(raw, "tags", default=[])),
    )


def _parse_component(raw: dict) -> Component:
    pos = raw.get("position")
    if isinstance(pos, dict):
        position = Position(x=float(pos.get("x", 0)), y=float(pos.get("y", 0)))
    else:
        position = Position(x=float(raw.get("x", 0)), y=float(raw.get("y", 0)))
    name = _pick(raw, "name", default=raw.get("id", ""))
    return Component(
        id=str(_pick(raw, "id", default=name)),
        name=name,
        type=_pick(raw, "type", default=""),
        properties=dict(_pick(raw, "properties", default={})),
        position=position,
        rotation=_pick(raw, "rotation", default=0),
    )


def _parse_net(raw: dict, index: int) -> Net:
    endpoints = _pick(raw, "endpoints", "connections", default=[])
    return Net(
        id=str(_pick(raw, "id", default=f"net_{index + 1}")),
        name=_pick(raw, "name", "net"),
        endpoints=[parse_endpoint(ep) for ep in endpoints],
    )


def _parse_interface_pin(raw: dict) -> InterfacePin:
    name = _pick(raw, "name", default=raw.get("id", ""))
    side = _pick(raw, "side", default=None)
    if side is None and isinstance(raw.get("position"), str):
        side = raw["position"]
    endpoint = raw.get("endpoint")
    return InterfacePin(
        id=str(_pick(raw, "id", default=name)),
        name=name,
        side=side or "left",
        internal_net_name=_pick(raw, "internal_net_name", "internalNetName", "net", default=""),
        kind=_pick(raw, "kind", "type", default="signal"),
        endpoint=parse_endpoint(endpoint) if endpoint else None,
    )


def parse_patch(data: dict) -> Patch:
    """Parse a raw dict (from a patch file or request body) into a Patch."""
    metadata = parse_metadata(data.get("metadata"), data.get("name"))
    return Patch(
        id=_pick(data, "id", default=normalize_patch_id(metadata.name)),
        metadata=metadata,
        components=[_parse_component(c) for c in data.get("components") or []],
        nets=[_parse_net(n, i) for i, n in enumerate(data.get("nets") or [])],
        interface_pins=[
            _parse_interface_pin(p)
            for p in _pick(data, "interface_pins", "interfacePins", default=[])
        ],
        schema_version=_pick(data, "schema_version", "schemaVersion", default=SCHEMA_VERSION),
        symbol_svg=_pick(data, "symbol_svg", "symbolSvg"),
    )
