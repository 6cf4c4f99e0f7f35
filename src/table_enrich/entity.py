"""
Entity resolution for a single row.

The subject identifies what to research (built from the identity columns);
the context carries every other input column to help the model disambiguate.
"""

from typing import Iterable, Mapping, Optional, Tuple

from .models import ResearchConfig


def resolve_subject(row: Mapping, target_columns: Iterable[str]) -> str:
    """Join trimmed, non-empty identity values with a single space."""
    values = [str(row.get(col, "") or "").strip() for col in target_columns]
    return " ".join(v for v in values if v)


def resolve_context(
    row: Mapping,
    config: ResearchConfig,
    columns: Optional[Iterable[str]] = None,
) -> str:
    """Format every non-identity, non-output column as 'name: value'."""
    excluded = set(config.target_columns) | set(config.output_columns)
    columns = row.keys() if columns is None else columns
    return ", ".join(
        f"{col}: {row.get(col, '')}" for col in columns if col not in excluded
    )


def resolve_entity(
    row: Mapping,
    config: ResearchConfig,
    columns: Optional[Iterable[str]] = None,
) -> Tuple[str, str]:
    """
    Resolve the (subject, context) pair for a row.

    An empty subject means the row should be skipped for this run.
    """
    return resolve_subject(row, config.target_columns), resolve_context(row, config, columns)
