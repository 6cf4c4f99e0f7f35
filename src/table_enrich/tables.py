"""
Table import/export and row utilities (filtering, duplicate removal).

CSV and Excel files are read with pandas as plain strings: the header row
defines column order and only the first sheet of a workbook is used.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import pandas as pd

from .exceptions import TableParseError
from .models import Row, Table

logger = logging.getLogger(__name__)

CSV_EXTENSIONS = {".csv"}
EXCEL_EXTENSIONS = {".xlsx", ".xls"}

DUPLICATE_KEY_SEPARATOR = "|||"


def _frame_to_table(df: pd.DataFrame) -> Table:
    df = df.fillna("")
    columns = [str(c) for c in df.columns]
    df.columns = columns
    records = df.astype(str).to_dict("records")
    return Table.from_records(columns, records)


def load_table(path: Union[str, Path]) -> Table:
    """
    Parse a CSV or Excel file into a Table.

    Raises:
        TableParseError: For unsupported extensions or malformed files
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix not in CSV_EXTENSIONS | EXCEL_EXTENSIONS:
        raise TableParseError(
            "Unsupported file format. Please provide a CSV or Excel file.", str(path)
        )

    try:
        if suffix in CSV_EXTENSIONS:
            df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        else:
            df = pd.read_excel(path, sheet_name=0, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        logger.warning(f"{path} is empty")
        return Table()
    except (pd.errors.ParserError, ValueError, OSError) as e:
        raise TableParseError(f"Failed to parse {path.name}: {e}", str(path)) from e

    table = _frame_to_table(df)
    logger.info(f"Loaded {len(table)} rows, {len(table.columns)} columns from {path}")
    return table


def export_table(table: Table, path: Union[str, Path]) -> Path:
    """Write a table as CSV or XLSX depending on the file extension."""
    path = Path(path)
    suffix = path.suffix.lower()
    df = pd.DataFrame(table.to_records(), columns=list(table.columns))

    path.parent.mkdir(parents=True, exist_ok=True)
    if suffix == ".csv":
        df.to_csv(path, index=False)
    elif suffix == ".xlsx":
        df.to_excel(path, index=False, sheet_name="Data")
    else:
        raise ValueError(f"Unsupported export format: {suffix}")

    logger.info(f"Saved {len(table)} rows to {path}")
    return path


def _to_number(value: str) -> Optional[float]:
    try:
        return float(value.replace(",", "").strip())
    except ValueError:
        return None


def _numeric(compare: Callable[[float, float], bool]) -> Callable[[str, str], bool]:
    def match(cell: str, value: str) -> bool:
        left, right = _to_number(cell), _to_number(value)
        if left is None or right is None:
            return False
        return compare(left, right)
    return match


FILTER_OPERATORS: Dict[str, Callable[[str, str], bool]] = {
    "contains": lambda cell, value: value.lower() in cell.lower(),
    "equals": lambda cell, value: cell.strip().lower() == value.strip().lower(),
    "starts_with": lambda cell, value: cell.lower().startswith(value.lower()),
    "not_contains": lambda cell, value: value.lower() not in cell.lower(),
    "greater_than": _numeric(lambda a, b: a > b),
    "less_than": _numeric(lambda a, b: a < b),
    "greater_equal": _numeric(lambda a, b: a >= b),
    "less_equal": _numeric(lambda a, b: a <= b),
    "is_empty": lambda cell, value: not cell.strip(),
    "is_not_empty": lambda cell, value: bool(cell.strip()),
}


def filter_rows(table: Table, column: str, operator: str, value: str = "") -> Table:
    """
    Keep rows whose `column` matches `operator`/`value`.

    Text operators are case-insensitive; numeric operators never match a
    non-numeric cell.
    """
    if column not in table.columns:
        raise KeyError(f"Unknown column: {column}")
    if operator not in FILTER_OPERATORS:
        raise ValueError(f"Unknown filter operator: {operator}")

    match = FILTER_OPERATORS[operator]
    return table.with_rows(row for row in table.rows if match(row[column], value or ""))


def _duplicate_key(row: Row, columns: Sequence[str]) -> str:
    return DUPLICATE_KEY_SEPARATOR.join(row.get(col, "") for col in columns)


def count_duplicates(table: Table, columns: Sequence[str]) -> int:
    """Rows that repeat an earlier row's values on `columns`."""
    if not columns:
        return 0
    seen = set()
    duplicates = 0
    for row in table.rows:
        key = _duplicate_key(row, columns)
        if key in seen:
            duplicates += 1
        else:
            seen.add(key)
    return duplicates


def remove_duplicates(table: Table, columns: Sequence[str]) -> Table:
    """Keep the first occurrence of each key formed from `columns`."""
    if not columns:
        return table
    missing = [c for c in columns if c not in table.columns]
    if missing:
        raise KeyError(f"Unknown columns: {missing}")

    seen = set()
    unique: List[Row] = []
    for row in table.rows:
        key = _duplicate_key(row, columns)
        if key not in seen:
            seen.add(key)
            unique.append(row)

    removed = len(table) - len(unique)
    if removed:
        logger.info(f"Removed {removed} duplicate row{'s' if removed != 1 else ''}")
    return table.with_rows(unique)
