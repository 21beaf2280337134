"""Insertion — paste a Patch into a live diagram under fresh identifiers."""

from __future__ import annotations

import logging
import threading
import time

from patchkit.config import DEFAULT_INSERT_OFFSET
from patchkit.diagram.models import (
    Diagram, DiagramComponent, DiagramConnection, format_endpoint,
)
from patchkit.patch.models import Patch

from .models import InsertionError, InsertionResult


log = logging.getLogger(__name__)

_token_lock = threading.Lock()
_last_token = 0


def _next_token(taken: set[str], patch: Patch) -> str:
    """Millisecond timestamp, strictly greater than the previous one.

    Bumped further while any new component or connection id would
    clash with an id already present in the diagram.
    """
    global _last_token
    with _token_lock:
        token = max(int(time.time() * 1000), _last_token + 1)
        while any(f"{c.id}-{token}" in taken for c in patch.components) or \
                any(f"{n.id}-{token}" in taken for n in patch.nets):
            token += 1
        _last_token = token
    return str(token)


def insert_patch(
    patch: Patch,
    diagram: Diagram,
    offset: tuple[float, float] = DEFAULT_INSERT_OFFSET,
) -> InsertionResult:
    """Append a patch's components and nets to *diagram*.

    Each component gets the id ``"<id>-<token>"`` and is shifted by
    *offset*.  Net endpoints are rewritten from the patch's component
    reference to the new id.  A reference is looked up as a component
    id first and as a component name only when no id matches; one that
    matches neither is passed through unchanged.

    All-or-nothing: the new objects are built and checked first and the
    diagram is only extended once everything succeeded.
    """
    dx, dy = offset
    taken = diagram.component_ids() | diagram.connection_ids()
    token = _next_token(taken, patch)

    id_map: dict[str, str] = {}
    by_name: dict[str, str] = {}
    new_components: list[DiagramComponent] = []
    for comp in patch.components:
        new_id = f"{comp.id}-{token}"
        if comp.id in id_map:
            raise InsertionError(patch.id, f"duplicate component id '{comp.id}' in patch")
        id_map[comp.id] = new_id
        by_name.setdefault(comp.name, new_id)
        new_components.append(DiagramComponent(
            id=new_id,
            type=comp.type,
            name=comp.name,
            x=comp.position.x + dx,
            y=comp.position.y + dy,
            rotation=comp.rotation,
            properties=dict(comp.properties),
        ))
    # Endpoints carry component ids; names are the fallback
    by_ref = {**by_name, **id_map}

    new_connections: list[DiagramConnection] = []
    for net in patch.nets:
        new_connections.append(DiagramConnection(
            id=f"{net.id}-{token}",
            net=net.name,
            endpoints=[
                format_endpoint(by_ref.get(ep.component_id, ep.component_id), ep.pin_name)
                for ep in net.endpoints
            ],
        ))

    new_ids = [c.id for c in new_components] + [c.id for c in new_connections]
    if len(set(new_ids)) != len(new_ids) or taken.intersection(new_ids):
        raise InsertionError(patch.id, "generated identifiers collide with the diagram")

    diagram.components.extend(new_components)
    diagram.connections.extend(new_connections)

    log.info(
        "Inserted patch '%s' (%d components, %d connections) with token %s",
        patch.id, len(new_components), len(new_connections), token,
    )
    return InsertionResult(
        token=token,
        components=new_components,
        connections=new_connections,
        id_map=id_map,
    )
