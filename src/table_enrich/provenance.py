"""Per-cell source citations collected during research runs."""

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .models import Source


CellKey = Tuple[int, str]


class ProvenanceMap:
    """
    Sources keyed by (row index, column name).

    Entries are added or overwritten by key, never removed, until the table
    is cleared.
    """

    def __init__(self):
        self._entries: Dict[CellKey, Tuple[Source, ...]] = {}

    def record(self, row_index: int, column: str, sources: Sequence[Source]) -> None:
        """Store sources for a cell, replacing any previous entry. Empty input is ignored."""
        if sources:
            self._entries[(row_index, column)] = tuple(sources)

    def update(self, entries: Dict[CellKey, Sequence[Source]]) -> None:
        for (row_index, column), sources in entries.items():
            self.record(row_index, column, sources)

    def get(self, row_index: int, column: str) -> Optional[Tuple[Source, ...]]:
        return self._entries.get((row_index, column))

    def items(self) -> Iterator[Tuple[CellKey, Tuple[Source, ...]]]:
        return iter(list(self._entries.items()))

    def clear(self) -> None:
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CellKey) -> bool:
        return key in self._entries

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        """Serialize as {"<row>-<column>": [{"title", "uri"}, ...]}."""
        return {
            f"{row_index}-{column}": [s.to_dict() for s in sources]
            for (row_index, column), sources in self._entries.items()
        }
