"""Insertion — merge a Patch into a target diagram."""

from .models import InsertionResult, InsertionError
from .engine import insert_patch

__all__ = ["InsertionResult", "InsertionError", "insert_patch"]
