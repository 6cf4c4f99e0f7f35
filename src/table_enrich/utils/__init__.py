"""Utility functions for table enrichment."""

from .file_utils import write_json_atomic, write_provenance
from .progress import ProgressDisplay, format_duration

__all__ = [
    "write_json_atomic",
    "write_provenance",
    "ProgressDisplay",
    "format_duration",
]
