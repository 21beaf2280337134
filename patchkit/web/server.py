"""
FastAPI web server — patch library endpoints for the schematic editor.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from patchkit.config import DEFAULT_INSERT_OFFSET, LibraryConfig
from patchkit.connectivity import (
    analyze_connectivity, connectivity_issues, format_connectivity_report, report_to_dict,
)
from patchkit.diagram import diagram_to_dict, parse_diagram
from patchkit.extraction import ExtractionError, check_extracted_patch, extract_patch
from patchkit.insertion import InsertionError, insert_patch
from patchkit.library import (
    LibraryError, PatchLibrary, PatchNotFoundError, PatchValidationFailed,
    entry_id_for, entry_to_dict,
)
from patchkit.patch import (
    Patch, parse_patch, patch_to_dict, validate_patch, warnings_only,
)

# ── .env loader ────────────────────────────────────────────────────

def _load_env():
    root = Path.cwd()
    for name in (".env", ".env.local"):
        p = root / name
        if p.exists():
            for line in p.read_text(encoding="utf-8").splitlines():
                line = line.strip()
                if line and "=" in line and not line.startswith("#"):
                    k, v = line.split("=", 1)
                    k = k.strip()
                    v = v.strip().strip('"').strip("'")
                    if k and k not in os.environ:
                        os.environ[k] = v


# ── Models ─────────────────────────────────────────────────────────

class ExtractRequest(BaseModel):
    diagram: dict[str, Any]
    selected_ids: list[str]
    name: str
    save: bool = False


class InsertRequest(BaseModel):
    diagram: dict[str, Any]
    offset: tuple[float, float] | None = None


class RestoreRequest(BaseModel):
    backup: str


# ── Helpers ────────────────────────────────────────────────────────

def _library(request: Request) -> PatchLibrary:
    """The app's library, created from the environment on first use."""
    lib = request.app.state.library
    if lib is None:
        _load_env()
        lib = request.app.state.library = PatchLibrary(LibraryConfig.from_env())
    return lib


def _parse_body(data: dict[str, Any]) -> Patch:
    try:
        return parse_patch(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise HTTPException(400, f"Invalid patch payload: {e}")


def _save_warnings(patch: Patch) -> list[str]:
    warnings = [w.message for w in warnings_only(validate_patch(patch))]
    warnings.extend(connectivity_issues(analyze_connectivity(patch)))
    return warnings


def _validation_failed(e: PatchValidationFailed) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "errors": e.messages,
            "warnings": [w.message for w in e.warnings],
        },
    )


# ── App ────────────────────────────────────────────────────────────

def create_app(library: PatchLibrary | None = None) -> FastAPI:
    """Build the API.  Without *library* one is created from ``PATCHKIT_*`` env vars."""
    app = FastAPI(title="patchkit")
    app.state.library = library

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/patches")
    def list_patches(request: Request, q: str | None = None):
        lib = _library(request)
        entries = lib.search(q) if q else lib.get_library()
        return [entry_to_dict(e) for e in entries]

    @app.get("/api/patches/{patch_id}")
    def get_patch(request: Request, patch_id: str):
        try:
            patch = _library(request).fetch(patch_id)
        except PatchNotFoundError:
            raise HTTPException(404, f"Patch {patch_id} not found.")
        except LibraryError as e:
            raise HTTPException(500, str(e))
        return patch_to_dict(patch)

    @app.post("/api/patches")
    def save_patch(request: Request, data: dict[str, Any] = Body(...)):
        """Save (create or overwrite) a patch.  422 lists every blocking error."""
        lib = _library(request)
        patch = _parse_body(data)
        try:
            lib.save(patch)
        except PatchValidationFailed as e:
            return _validation_failed(e)
        except LibraryError as e:
            raise HTTPException(400, str(e))
        entry = lib.get_entry(entry_id_for(patch.metadata.name))
        return {
            "patch": entry_to_dict(entry) if entry else None,
            "warnings": _save_warnings(patch),
        }

    @app.post("/api/patches/import")
    def import_patch(request: Request, data: dict[str, Any] = Body(...)):
        """Import a raw patch payload (either wire format) into the library."""
        patch = _parse_body(data)
        try:
            entry = _library(request).import_patch(patch)
        except PatchValidationFailed as e:
            return _validation_failed(e)
        except LibraryError as e:
            raise HTTPException(400, str(e))
        return {"patch": entry_to_dict(entry), "warnings": _save_warnings(patch)}

    @app.delete("/api/patches/{patch_id}")
    def delete_patch(request: Request, patch_id: str):
        try:
            deleted = _library(request).delete(patch_id)
        except LibraryError as e:
            raise HTTPException(500, str(e))
        return {"deleted": deleted}

    @app.get("/api/patches/{patch_id}/connectivity")
    def patch_connectivity(request: Request, patch_id: str):
        try:
            patch = _library(request).fetch(patch_id)
        except PatchNotFoundError:
            raise HTTPException(404, f"Patch {patch_id} not found.")
        report = analyze_connectivity(patch)
        return {**report_to_dict(report), "text": format_connectivity_report(report)}

    @app.get("/api/patches/{patch_id}/versions")
    def patch_versions(request: Request, patch_id: str):
        lib = _library(request)
        if lib.get_entry(patch_id) is None:
            raise HTTPException(404, f"Patch {patch_id} not found.")
        return {"versions": lib.versions(patch_id)}

    @app.post("/api/patches/{patch_id}/restore")
    def restore_version(request: Request, patch_id: str, req: RestoreRequest):
        """Swap a stored backup back in as the patch's current file."""
        try:
            restored = _library(request).restore(patch_id, req.backup)
        except LibraryError as e:
            raise HTTPException(400, str(e))
        if not restored:
            raise HTTPException(404, f"Backup {req.backup} of {patch_id} not found.")
        return {"restored": True}

    @app.post("/api/patches/{patch_id}/cleanup")
    def cleanup_versions(request: Request, patch_id: str, keep: int = 10):
        try:
            removed = _library(request).cleanup_backups(patch_id, keep)
        except ValueError as e:
            raise HTTPException(400, str(e))
        return {"removed": removed}

    @app.post("/api/extract")
    def extract(request: Request, req: ExtractRequest):
        """Cut the selected components out of a diagram, optionally saving the patch."""
        try:
            result = extract_patch(parse_diagram(req.diagram), req.selected_ids, req.name)
        except ExtractionError as e:
            raise HTTPException(400, str(e))
        except (KeyError, TypeError, ValueError) as e:
            raise HTTPException(400, f"Invalid diagram payload: {e}")

        check = check_extracted_patch(result.patch)
        body: dict[str, Any] = {
            "patch": patch_to_dict(result.patch),
            "warnings": result.warnings,
            "check": {"valid": check.valid, "errors": check.errors, "warnings": check.warnings},
        }
        if req.save:
            lib = _library(request)
            try:
                lib.save(result.patch)
            except PatchValidationFailed as e:
                return _validation_failed(e)
            entry = lib.get_entry(entry_id_for(result.patch.metadata.name))
            body["entry"] = entry_to_dict(entry) if entry else None
        return body

    @app.post("/api/patches/{patch_id}/insert")
    def insert(request: Request, patch_id: str, req: InsertRequest):
        """Paste a stored patch into the posted diagram and return the result."""
        try:
            patch = _library(request).fetch(patch_id)
        except PatchNotFoundError:
            raise HTTPException(404, f"Patch {patch_id} not found.")
        try:
            diagram = parse_diagram(req.diagram)
        except (KeyError, TypeError, ValueError) as e:
            raise HTTPException(400, f"Invalid diagram payload: {e}")
        try:
            result = insert_patch(patch, diagram, req.offset or DEFAULT_INSERT_OFFSET)
        except InsertionError as e:
            raise HTTPException(409, str(e))
        return {
            "diagram": diagram_to_dict(diagram),
            "token": result.token,
            "id_map": result.id_map,
            "added_components": [c.id for c in result.components],
            "added_connections": [c.id for c in result.connections],
        }

    return app


app = create_app()


# ── Entry point ────────────────────────────────────────────────────

def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("patchkit.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
