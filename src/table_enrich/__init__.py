"""
Table Enrich - grounded AI research for tabular data.

Researches every row of a table with batched, rate-limited model calls and
writes the answers into new columns with per-cell source citations.
"""

from .exceptions import ConfigError, RunInProgressError, TableEnrichError, TableParseError
from .models import (
    ResearchConfig,
    ResearchResult,
    ResearchTask,
    Row,
    RunProgress,
    RunState,
    Source,
    Table,
)
from .orchestrator import ResearchSession, RunStats
from .provenance import ProvenanceMap
from .run_control import RunControl

__all__ = [
    "ConfigError",
    "RunInProgressError",
    "TableEnrichError",
    "TableParseError",
    "ResearchConfig",
    "ResearchResult",
    "ResearchTask",
    "Row",
    "RunProgress",
    "RunState",
    "Source",
    "Table",
    "ResearchSession",
    "RunStats",
    "ProvenanceMap",
    "RunControl",
]
