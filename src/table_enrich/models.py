"""
Data model for table research runs.

Rows and tables are immutable: every change produces a new object, so a
published table snapshot never changes underneath a reader.
"""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple


ERROR_TEXT = "Error"
NOT_FOUND_TEXT = "N/A"


def _as_cell(value: Any) -> str:
    """Normalize a raw cell value to a string (None becomes empty)."""
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class Row(Mapping):
    """
    Ordered mapping from column name to string value.

    Build rows with `Row.from_mapping` so the key set always matches the
    table's columns; absent values are padded with an empty string.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Optional[Mapping] = None):
        self._values: Dict[str, str] = {
            str(k): _as_cell(v) for k, v in (values or {}).items()
        }

    @classmethod
    def from_mapping(cls, columns: Iterable[str], values: Optional[Mapping] = None) -> "Row":
        values = values or {}
        return cls({col: values.get(col, "") for col in columns})

    def __getitem__(self, column: str) -> str:
        return self._values[column]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Row({self._values!r})"

    def with_values(self, updates: Mapping) -> "Row":
        """Return a copy with the given cells replaced (or appended)."""
        merged = dict(self._values)
        merged.update({k: _as_cell(v) for k, v in updates.items()})
        return Row(merged)

    def to_dict(self) -> Dict[str, str]:
        return dict(self._values)


@dataclass(frozen=True)
class Table:
    """Ordered rows sharing one ordered column set."""
    columns: Tuple[str, ...] = ()
    rows: Tuple[Row, ...] = ()

    def __post_init__(self):
        columns = tuple(self.columns)
        if len(set(columns)) != len(columns):
            raise ValueError(f"Duplicate column names: {list(columns)}")
        rows = tuple(
            row if isinstance(row, Row) and list(row) == list(columns)
            else Row.from_mapping(columns, row)
            for row in self.rows
        )
        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "rows", rows)

    @classmethod
    def from_records(cls, columns: Sequence[str], records: Iterable[Mapping]) -> "Table":
        return cls(tuple(columns), tuple(Row.from_mapping(columns, r) for r in records))

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def with_columns(self, names: Iterable[str]) -> "Table":
        """Append any names not already present, padding every row."""
        missing = [n for n in dict.fromkeys(names) if n not in self.columns]
        if not missing:
            return self
        columns = self.columns + tuple(missing)
        return Table(columns, tuple(Row.from_mapping(columns, r) for r in self.rows))

    def with_rows(self, rows: Iterable[Mapping]) -> "Table":
        return Table(self.columns, tuple(rows))

    def to_records(self) -> List[Dict[str, str]]:
        return [row.to_dict() for row in self.rows]


@dataclass(frozen=True)
class Source:
    """A citation backing a generated cell value."""
    title: str
    uri: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "uri": self.uri}


@dataclass(frozen=True)
class ResearchResult:
    """Answer for one (row, task) invocation."""
    text: str
    sources: Tuple[Source, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "sources", tuple(self.sources))

    @classmethod
    def error(cls) -> "ResearchResult":
        return cls(ERROR_TEXT)

    @classmethod
    def not_found(cls) -> "ResearchResult":
        return cls(NOT_FOUND_TEXT)


def _new_task_id() -> str:
    return uuid.uuid4().hex[:9]


@dataclass(frozen=True)
class ResearchTask:
    """One output column and the question that fills it."""
    new_column_name: str
    prompt: str
    id: str = field(default_factory=_new_task_id)


@dataclass
class ResearchConfig:
    """Declarative description of a research run."""
    target_columns: List[str]
    tasks: List[ResearchTask]
    use_thinking_model: bool = False
    row_limit: Optional[int] = None

    @property
    def output_columns(self) -> List[str]:
        return [t.new_column_name for t in self.tasks]

    def validate(self, columns: Sequence[str]) -> List[str]:
        """Validate against a table's columns. Returns list of errors (empty if valid)."""
        errors = []

        if not self.target_columns:
            errors.append("At least one identity column must be selected")
        missing = [c for c in self.target_columns if c not in columns]
        if missing:
            errors.append(f"Identity columns not found in table: {missing}")

        if not self.tasks:
            errors.append("At least one research task is required")

        seen = set()
        for i, task in enumerate(self.tasks, start=1):
            name = (task.new_column_name or "").strip()
            if not name:
                errors.append(f"Task {i}: column name is empty")
            elif name in seen:
                errors.append(f"Task {i}: duplicate column name '{name}'")
            seen.add(name)
            if not (task.prompt or "").strip():
                errors.append(f"Task {i}: prompt is empty")

        overlap = [c for c in self.target_columns if c in seen]
        if overlap:
            errors.append(f"Identity columns cannot also be task outputs: {overlap}")

        if self.row_limit is not None and self.row_limit < 0:
            errors.append(f"Row limit must be positive, got {self.row_limit}")

        return errors

    @classmethod
    def from_dict(cls, data: Mapping) -> "ResearchConfig":
        """Build a config from a JSON-style dict (camelCase or snake_case keys)."""
        tasks = []
        for raw in data.get("tasks") or []:
            kwargs = {
                "new_column_name": raw.get("newColumnName", raw.get("new_column_name", "")),
                "prompt": raw.get("prompt", ""),
            }
            if raw.get("id"):
                kwargs["id"] = str(raw["id"])
            tasks.append(ResearchTask(**kwargs))

        targets = data.get("targetColumns", data.get("target_columns")) or []
        row_limit = data.get("rowLimit", data.get("row_limit"))
        return cls(
            target_columns=list(targets),
            tasks=tasks,
            use_thinking_model=bool(data.get("useThinkingModel", data.get("use_thinking_model", False))),
            row_limit=int(row_limit) if row_limit is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targetColumns": list(self.target_columns),
            "tasks": [
                {"id": t.id, "newColumnName": t.new_column_name, "prompt": t.prompt}
                for t in self.tasks
            ],
            "useThinkingModel": self.use_thinking_model,
            "rowLimit": self.row_limit,
        }


class RunState(str, Enum):
    """Lifecycle of a research run."""
    IDLE = "IDLE"
    PROCESSING = "PROCESSING"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"


@dataclass(frozen=True)
class RunProgress:
    """Observable progress tuple published to listeners."""
    processed_count: int
    effective_total: int
    state: RunState

    @property
    def percent(self) -> float:
        if self.effective_total > 0:
            return (self.processed_count / self.effective_total) * 100
        return 0.0
