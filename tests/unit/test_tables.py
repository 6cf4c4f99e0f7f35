"""Tests for table import/export, filtering and duplicate removal."""
import pytest

from table_enrich.exceptions import TableParseError
from table_enrich.models import Table
from table_enrich.tables import (
    count_duplicates,
    export_table,
    filter_rows,
    load_table,
    remove_duplicates,
)


class TestLoadTable:
    """Test table import."""

    def test_csv_values_stay_strings(self, tmp_path):
        """Test CSV cells load as strings with leading zeros and blanks kept."""
        path = tmp_path / "companies.csv"
        path.write_text("Company,Zip,City\nAcme,00123,\nBeta,94105,Paris\n", encoding="utf-8")

        table = load_table(path)

        assert table.columns == ("Company", "Zip", "City")
        assert table.rows[0].to_dict() == {"Company": "Acme", "Zip": "00123", "City": ""}
        assert table.rows[1]["City"] == "Paris"

    def test_empty_csv_gives_empty_table(self, tmp_path):
        """Test an empty CSV file loads as an empty table."""
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")

        table = load_table(path)

        assert table.is_empty
        assert table.columns == ()

    def test_malformed_csv(self, tmp_path):
        """Test a ragged CSV raises TableParseError carrying the path."""
        path = tmp_path / "bad.csv"
        path.write_text("a,b\n1,2\n3,4,5,6\n", encoding="utf-8")

        with pytest.raises(TableParseError) as exc_info:
            load_table(path)
        assert exc_info.value.path == str(path)

    def test_unsupported_extension(self, tmp_path):
        """Test non CSV/Excel files are rejected."""
        path = tmp_path / "notes.txt"
        path.write_text("hello", encoding="utf-8")

        with pytest.raises(TableParseError, match="Unsupported file format"):
            load_table(path)

    def test_xlsx_export_and_reload(self, tmp_path, table_factory):
        """Test a table survives an XLSX export and reload."""
        path = tmp_path / "out" / "companies.xlsx"
        export_table(table_factory(3), path)

        table = load_table(path)

        assert table.columns == ("Company", "City", "Notes")
        assert [r["Company"] for r in table.rows] == ["Co0", "Co1", "Co2"]


class TestExportTable:
    """Test table export."""

    def test_csv_preserves_column_order(self, tmp_path):
        """Test CSV export follows the table column order."""
        table = Table.from_records(["Z", "A"], [{"A": "1", "Z": "2"}])
        path = export_table(table, tmp_path / "out.csv")

        assert path.read_text(encoding="utf-8").splitlines() == ["Z,A", "2,1"]

    def test_unknown_format(self, tmp_path, table_factory):
        """Test exporting to an unknown extension raises ValueError."""
        with pytest.raises(ValueError):
            export_table(table_factory(1), tmp_path / "out.json")


@pytest.fixture
def revenue_table():
    return Table.from_records(
        ["Company", "Revenue", "Notes"],
        [
            {"Company": "Acme Corp", "Revenue": "1,200", "Notes": "public"},
            {"Company": "Beta LLC", "Revenue": "300", "Notes": ""},
            {"Company": "acme labs", "Revenue": "n/a", "Notes": "spin-off"},
        ],
    )


class TestFilterRows:
    """Test row filtering."""

    @pytest.mark.parametrize("operator,value,expected", [
        ("contains", "ACME", ["Acme Corp", "acme labs"]),
        ("equals", "beta llc", ["Beta LLC"]),
        ("starts_with", "acme", ["Acme Corp", "acme labs"]),
        ("not_contains", "acme", ["Beta LLC"]),
    ])
    def test_text_operators(self, revenue_table, operator, value, expected):
        """Test case-insensitive text filter operators."""
        filtered = filter_rows(revenue_table, "Company", operator, value)
        assert [r["Company"] for r in filtered.rows] == expected

    def test_numeric_operators_skip_non_numbers(self, revenue_table):
        """Test numeric operators parse thousands separators and skip text."""
        filtered = filter_rows(revenue_table, "Revenue", "greater_than", "500")
        assert [r["Company"] for r in filtered.rows] == ["Acme Corp"]

        filtered = filter_rows(revenue_table, "Revenue", "less_equal", "300")
        assert [r["Company"] for r in filtered.rows] == ["Beta LLC"]

    def test_emptiness_operators(self, revenue_table):
        """Test is_empty and is_not_empty operators."""
        assert len(filter_rows(revenue_table, "Notes", "is_empty")) == 1
        assert len(filter_rows(revenue_table, "Notes", "is_not_empty")) == 2

    def test_unknown_column_and_operator(self, revenue_table):
        """Test unknown columns and operators are rejected."""
        with pytest.raises(KeyError):
            filter_rows(revenue_table, "Missing", "contains", "x")
        with pytest.raises(ValueError):
            filter_rows(revenue_table, "Company", "regex", "x")


class TestDuplicates:
    """Test duplicate detection and removal."""

    def test_composite_key(self):
        """Test duplicates are keyed on all selected columns."""
        table = Table.from_records(
            ["First", "Last", "Email"],
            [
                {"First": "Ada", "Last": "Lovelace", "Email": "a@x"},
                {"First": "Ada", "Last": "Byron", "Email": "b@x"},
                {"First": "Ada", "Last": "Lovelace", "Email": "c@x"},
            ],
        )

        assert count_duplicates(table, ["First"]) == 2
        assert count_duplicates(table, ["First", "Last"]) == 1

        deduped = remove_duplicates(table, ["First", "Last"])
        assert [r["Email"] for r in deduped.rows] == ["a@x", "b@x"]

    def test_no_columns_is_noop(self, table_factory):
        """Test deduplicating on no columns changes nothing."""
        table = table_factory(2)
        assert count_duplicates(table, []) == 0
        assert remove_duplicates(table, []) is table

    def test_unknown_column(self, table_factory):
        """Test deduplicating on a missing column raises KeyError."""
        with pytest.raises(KeyError):
            remove_duplicates(table_factory(2), ["Nope"])
