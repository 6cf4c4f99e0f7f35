"""Unit tests for the table data model and configuration validation."""
import pytest

from table_enrich.models import (
    ResearchConfig,
    ResearchResult,
    ResearchTask,
    Row,
    RunProgress,
    RunState,
    Table,
)


class TestRowAndTable:
    """Row invariant: keys always equal the table columns."""

    def test_from_mapping_pads_missing_columns(self):
        """Test rows are padded to the column set."""
        row = Row.from_mapping(["a", "b", "c"], {"a": "1", "c": None})
        assert list(row) == ["a", "b", "c"]
        assert row.to_dict() == {"a": "1", "b": "", "c": ""}

    def test_table_normalizes_rows(self):
        """Test raw mappings are normalized to the table columns."""
        table = Table(("a", "b"), ({"b": 2, "extra": "x"},))
        assert table.rows[0].to_dict() == {"a": "", "b": "2"}

    def test_with_columns_appends_and_pads(self):
        """Test new columns are appended and padded without mutating the original."""
        table = Table.from_records(["a"], [{"a": "1"}, {"a": "2"}])
        widened = table.with_columns(["b", "a", "c"])

        assert widened.columns == ("a", "b", "c")
        assert all(row.to_dict()["b"] == "" for row in widened.rows)
        assert table.columns == ("a",)

    def test_with_columns_noop_returns_same_table(self):
        """Test adding existing columns returns the same table."""
        table = Table.from_records(["a"], [{"a": "1"}])
        assert table.with_columns(["a"]) is table

    def test_row_with_values_is_copy(self):
        """Test with_values returns a new row."""
        row = Row({"a": "1"})
        updated = row.with_values({"a": "2"})
        assert row["a"] == "1"
        assert updated["a"] == "2"

    def test_duplicate_columns_rejected(self):
        """Test duplicate column names are rejected."""
        with pytest.raises(ValueError):
            Table(("a", "a"), ())


class TestResearchConfigValidate:
    """Configuration errors are collected, not raised."""

    def test_valid_config(self, one_task_config):
        """Test a valid config has no errors."""
        assert one_task_config.validate(["Company", "City"]) == []

    def test_missing_identity(self):
        """Test a config without identity columns is rejected."""
        config = ResearchConfig(target_columns=[], tasks=[ResearchTask("A", "p")])
        errors = config.validate(["Company"])
        assert any("identity column" in e for e in errors)

    def test_unknown_identity_column(self):
        """Test identity columns must exist in the table."""
        config = ResearchConfig(target_columns=["Nope"], tasks=[ResearchTask("A", "p")])
        assert any("not found" in e for e in config.validate(["Company"]))

    def test_task_problems(self):
        """Test duplicate names, empty names and empty prompts are reported."""
        config = ResearchConfig(
            target_columns=["Company"],
            tasks=[ResearchTask("A", "p"), ResearchTask("A", "q"), ResearchTask("", "r"), ResearchTask("B", " ")],
        )
        errors = config.validate(["Company"])
        assert any("duplicate column name 'A'" in e for e in errors)
        assert any("column name is empty" in e for e in errors)
        assert any("prompt is empty" in e for e in errors)

    def test_no_tasks(self):
        """Test a config needs at least one task."""
        config = ResearchConfig(target_columns=["Company"], tasks=[])
        assert any("task" in e for e in config.validate(["Company"]))

    def test_identity_cannot_be_output(self):
        """Test an identity column cannot be a task output."""
        config = ResearchConfig(target_columns=["Company"], tasks=[ResearchTask("Company", "p")])
        assert any("cannot also be task outputs" in e for e in config.validate(["Company"]))


class TestResearchConfigFromDict:
    """Test building configs from JSON documents."""

    def test_camel_case_document(self):
        """Test loading a camelCase config document."""
        config = ResearchConfig.from_dict({
            "targetColumns": ["Company"],
            "tasks": [{"id": "t1", "newColumnName": "CEO", "prompt": "Who?"}],
            "useThinkingModel": True,
            "rowLimit": 5,
        })
        assert config.target_columns == ["Company"]
        assert config.tasks == [ResearchTask("CEO", "Who?", id="t1")]
        assert config.use_thinking_model is True
        assert config.row_limit == 5

    def test_snake_case_document(self):
        """Test loading a snake_case config document."""
        config = ResearchConfig.from_dict({
            "target_columns": ["Name"],
            "tasks": [{"new_column_name": "Bio", "prompt": "Summarize"}],
        })
        assert config.output_columns == ["Bio"]
        assert config.row_limit is None


def test_result_sentinels():
    """Test the Error and N/A result sentinels."""
    assert ResearchResult.error() == ResearchResult("Error")
    assert ResearchResult.not_found().text == "N/A"
    assert ResearchResult.error().sources == ()


def test_progress_percent():
    """Test progress percent, including an empty total."""
    assert RunProgress(3, 12, RunState.PROCESSING).percent == 25.0
    assert RunProgress(0, 0, RunState.IDLE).percent == 0.0
