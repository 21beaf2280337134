import argparse
import json
import logging
from pathlib import Path

from patchkit.config import LibraryConfig
from patchkit.connectivity import analyze_connectivity, format_connectivity_report
from patchkit.library import LibraryError, PatchLibrary, PatchValidationFailed
from patchkit.patch import validate_patch


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="patchkit", description="Reusable circuit patches: store, check, serve")
    p.add_argument("--dir", default=None, help="Library root (default: $PATCHKIT_PATCH_DIR or ./patches)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level")
    sub = p.add_subparsers(dest="cmd", required=True)

    ls = sub.add_parser("list", help="List library entries, optionally filtered")
    ls.add_argument("query", nargs="?", default=None, help="Case-insensitive name/tag filter")

    sh = sub.add_parser("show", help="Print a stored patch as JSON")
    sh.add_argument("id", help="Library entry id")

    ck = sub.add_parser("check", help="Validate a patch file and print its connectivity report")
    ck.add_argument("file", help="Path to a patch JSON file")

    im = sub.add_parser("import", help="Copy a patch file into the library")
    im.add_argument("file", help="Path to a patch JSON file")

    rm = sub.add_parser("delete", help="Remove an entry (the file is kept as a backup)")
    rm.add_argument("id", help="Library entry id")

    sv = sub.add_parser("serve", help="Start the web API server")
    sv.add_argument("--host", default="127.0.0.1", help="Host to bind")
    sv.add_argument("--port", type=int, default=8000, help="Port to bind")

    return p


def _open_library(args) -> PatchLibrary:
    config = LibraryConfig.under(args.dir) if args.dir else LibraryConfig.from_env()
    return PatchLibrary(config)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "serve":
        from patchkit.web.server import main as serve_main
        serve_main(host=args.host, port=args.port)
        return 0

    lib = _open_library(args)

    try:
        if args.cmd == "list":
            entries = lib.search(args.query) if args.query else lib.get_library()
            for e in entries:
                tags = f"  [{', '.join(e.metadata.tags)}]" if e.metadata.tags else ""
                print(f"{e.id}\t{e.name}\tv{e.metadata.version}{tags}")
            return 0

        if args.cmd == "show":
            from patchkit.patch import patch_to_dict
            print(json.dumps(patch_to_dict(lib.fetch(args.id)), indent=2))
            return 0

        if args.cmd == "check":
            patch = lib.load(Path(args.file))
            findings = validate_patch(patch)
            for f in findings:
                print(f)
            print(format_connectivity_report(analyze_connectivity(patch)))
            return 1 if any(f.is_error for f in findings) else 0

        if args.cmd == "import":
            entry = lib.import_file(Path(args.file))
            print(f"Imported {entry.name} as {entry.id}")
            return 0

        if args.cmd == "delete":
            if lib.delete(args.id):
                print(f"Deleted {args.id} (backup kept)")
                return 0
            print(f"Unknown patch id: {args.id}")
            return 1

    except PatchValidationFailed as e:
        for msg in e.messages:
            print(f"error: {msg}")
        return 1
    except LibraryError as e:
        print(f"error: {e}")
        return 1

    return 2
