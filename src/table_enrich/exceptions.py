"""Exceptions raised by the enrichment engine."""

from typing import List, Optional


class TableEnrichError(Exception):
    """Base class for table enrichment errors."""


class ConfigError(TableEnrichError, ValueError):
    """A research configuration was rejected before a run started."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid configuration")


class RunInProgressError(TableEnrichError):
    """A run was requested while another one is processing or paused."""


class TableParseError(TableEnrichError):
    """An input file could not be parsed into a table."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
