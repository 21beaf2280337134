"""patchkit — carve reusable sub-circuits ("patches") out of a diagram,
store them, and paste them back into other diagrams.

Packages, in dependency order:

  patch         Patch dataclasses, parsing, validation, serialization
  diagram       The host diagram's components and connections
  connectivity  Pin graph, unconnected pins, floating nets, islands
  extraction    Diagram selection → Patch
  insertion     Patch → new diagram components and connections
  library       On-disk store with index, search, and backups
  web           FastAPI adapter over the above
"""

__version__ = "0.1.0"
