"""
patchkit — entry point.

Usage:
    python -m patchkit list [QUERY]
    python -m patchkit show ID
    python -m patchkit check FILE
    python -m patchkit import FILE
    python -m patchkit delete ID
    python -m patchkit serve [--host HOST] [--port PORT]
"""

import sys

from patchkit.cli import main


if __name__ == "__main__":
    sys.exit(main())
