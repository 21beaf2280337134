"""Patch serialization — convert a Patch to a JSON-safe dict."""

from __future__ import annotations

from typing import Any

from .models import Endpoint, Metadata, Patch, ValidationError


def endpoint_to_dict(ep: Endpoint) -> dict:
    return {"component_id": ep.component_id, "pin_name": ep.pin_name}


def metadata_to_dict(md: Metadata) -> dict:
    return {
        "name": md.name,
        "description": md.description,
        "version": md.version,
        "created_at": md.created_at,
        "modified_at": md.modified_at,
        "author": md.author,
        "tags": list(md.tags),
    }


def patch_to_dict(patch: Patch) -> dict:
    """Serialize a Patch to the on-disk / wire format.

    Every field is written, so ``parse_patch(patch_to_dict(p)) == p``.
    """
    d: dict[str, Any] = {
        "schema_version": patch.schema_version,
        "id": patch.id,
        "metadata": metadata_to_dict(patch.metadata),
        "components": [
            {
                "id": c.id,
                "name": c.name,
                "type": c.type,
                "properties": dict(c.properties),
                "position": {"x": c.position.x, "y": c.position.y},
                "rotation": c.rotation,
            }
            for c in patch.components
        ],
        "nets": [
            {
                "id": n.id,
                "name": n.name,
                "endpoints": [endpoint_to_dict(ep) for ep in n.endpoints],
            }
            for n in patch.nets
        ],
        "interface_pins": [
            {
                "id": p.id,
                "name": p.name,
                "side": p.side,
                "internal_net_name": p.internal_net_name,
                "kind": p.kind,
                "endpoint": endpoint_to_dict(p.endpoint) if p.endpoint else None,
            }
            for p in patch.interface_pins
        ],
    }
    if patch.symbol_svg is not None:
        d["symbol_svg"] = patch.symbol_svg
    return d


def validation_error_to_dict(e: ValidationError) -> dict:
    return {
        "kind": e.kind,
        "severity": e.severity,
        "message": e.message,
        **({"component_id": e.component_id} if e.component_id else {}),
        **({"net_id": e.net_id} if e.net_id else {}),
        **({"pin_id": e.pin_id} if e.pin_id else {}),
    }
