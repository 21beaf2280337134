"""Patch model — dataclasses, parsing, validation, and serialization."""

from .models import (
    Position, Component, Endpoint, Net, InterfacePin, Metadata, Patch,
    ValidationError,
    PIN_SLOT_PREFIX, PIN_SIDES, PIN_KINDS, SCHEMA_VERSION,
    create_empty_patch, normalize_patch_id,
)
from .parsing import parse_patch, parse_endpoint, parse_metadata
from .validation import validate_patch, blocking_errors, warnings_only
from .serialization import patch_to_dict, metadata_to_dict, validation_error_to_dict

__all__ = [
    # Models
    "Position", "Component", "Endpoint", "Net", "InterfacePin", "Metadata",
    "Patch", "ValidationError",
    "PIN_SLOT_PREFIX", "PIN_SIDES", "PIN_KINDS", "SCHEMA_VERSION",
    "create_empty_patch", "normalize_patch_id",
    # Parsing / Validation / Serialization
    "parse_patch", "parse_endpoint", "parse_metadata",
    "validate_patch", "blocking_errors", "warnings_only",
    "patch_to_dict", "metadata_to_dict", "validation_error_to_dict",
]
