"""Extraction — turn a diagram selection into a Patch."""

from .models import ExtractionResult, ExtractionCheck, ExtractionError
from .engine import (
    extract_patch, check_extracted_patch, infer_pin_kind,
    NO_CONNECTIONS_WARNING, SINGLE_COMPONENT_WARNING,
)

__all__ = [
    "ExtractionResult", "ExtractionCheck", "ExtractionError",
    "extract_patch", "check_extracted_patch", "infer_pin_kind",
    "NO_CONNECTIONS_WARNING", "SINGLE_COMPONENT_WARNING",
]
