"""Tests for report tables and the CSV, JSON and terminal reporters."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from defectage.models.records import DefectRecord, TestAccumulator
from defectage.reporters.csv_reporter import CSVReporter
from defectage.reporters.json_reporter import JSONReporter
from defectage.reporters.table import (
    DEFECTS_HEADER,
    SUMMARY_HEADER,
    ReportVariant,
    defects_table,
    summary_table,
)
from defectage.reporters.terminal import CLIReporter

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def defect_records() -> list[DefectRecord]:
    return [
        DefectRecord("com.acme.CartTest", "testAdd", age=1, error_message="boom"),
        DefectRecord(
            "com.acme.LoginTest",
            "testLogin",
            age=4,
            error_message="expected 200, got 500",
            short_trace="AssertionError: expected 200",
        ),
        DefectRecord("com.acme.AuthTest", "testToken", age=4),
    ]


# ── Tables ───────────────────────────────────────────────────────


class TestTables:
    def test_defects_sorted_by_age_then_name(self, defect_records: list[DefectRecord]) -> None:
        table = defects_table(defect_records)
        assert table.variant is ReportVariant.DEFECTS
        assert table.header == DEFECTS_HEADER
        assert [row[1] for row in table.rows] == ["testToken", "testLogin", "testAdd"]
        assert [row[2] for row in table.rows] == [4, 4, 1]

    def test_summary_rows(self) -> None:
        table = summary_table(
            [
                TestAccumulator("B", "t2", total_runs=2, defect_count=1),
                TestAccumulator("A", "t1", total_runs=1, defect_count=0),
            ]
        )
        assert table.header == SUMMARY_HEADER
        assert table.rows == [["A", "t1", 0, 1, 0], ["B", "t2", 1, 2, 1]]

    def test_as_dicts(self) -> None:
        table = summary_table([TestAccumulator("A", "t", total_runs=3, defect_count=2)])
        assert table.as_dicts() == [
            {
                "Class Name": "A",
                "Test Name": "t",
                "Defect Count": 2,
                "Total Runs": 3,
                "Defect Age": 2,
            }
        ]


# ── CSV ──────────────────────────────────────────────────────────


class TestCSVReporter:
    def test_writes_header_and_rows(
        self, tmp_path: Path, defect_records: list[DefectRecord]
    ) -> None:
        output = tmp_path / "out" / "report.csv"
        path = CSVReporter().generate(defects_table(defect_records), output)

        assert path == output
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "Class_Name,Test_Name,Defect_Age_Builds,Error_Message,Short_Trace"
        assert lines[1] == "com.acme.AuthTest,testToken,4,,"
        assert lines[2] == (
            "com.acme.LoginTest,testLogin,4,expected 200; got 500,AssertionError: expected 200"
        )
        assert len(lines) == 4

    def test_empty_table_is_header_only(self, tmp_path: Path) -> None:
        output = tmp_path / "report.csv"
        CSVReporter().generate(summary_table([]), output)
        assert output.read_text(encoding="utf-8") == (
            "Class Name,Test Name,Defect Count,Total Runs,Defect Age\n"
        )

    def test_sanitized_message_keeps_column_count(self, tmp_path: Path) -> None:
        record = DefectRecord(
            "C",
            "t",
            age=2,
            error_message="a, b\r\nc,\nd",
            short_trace="x,y",
        )
        output = tmp_path / "report.csv"
        CSVReporter().generate(defects_table([record]), output)

        lines = output.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        cells = lines[1].split(",")
        assert len(cells) == len(DEFECTS_HEADER)
        assert cells[3] == "a; b c; d"
        assert cells[4] == "x;y"

    def test_custom_delimiter(self, defect_records: list[DefectRecord]) -> None:
        text = CSVReporter(delimiter=";").generate_string(defects_table(defect_records))
        for line in text.splitlines():
            assert len(line.split(";")) == len(DEFECTS_HEADER)
        assert "expected 200, got 500" in text

    def test_explicit_substitute(self) -> None:
        record = DefectRecord("C", "t", age=1, error_message="a|b")
        text = CSVReporter(delimiter="|", substitute="/").generate_string(
            defects_table([record])
        )
        assert text.splitlines()[1] == "C|t|1|a/b|"

    def test_unicode_line_separators_stay_in_one_row(self, tmp_path: Path) -> None:
        record = DefectRecord("C", "t", age=1, error_message="one\u2028two\x0cthree")
        output = tmp_path / "report.csv"
        CSVReporter().generate(defects_table([record]), output)

        data = output.read_text(encoding="utf-8")
        assert "\u2028" not in data
        assert "\x0c" not in data
        assert data.splitlines()[1] == "C,t,1,one two three,"

    @pytest.mark.parametrize(("delimiter", "substitute"), [(",,", None), ("", None), (",", ",")])
    def test_invalid_delimiters(self, delimiter: str, substitute: str | None) -> None:
        with pytest.raises(ValueError):
            CSVReporter(delimiter=delimiter, substitute=substitute)


# ── JSON ─────────────────────────────────────────────────────────


class TestJSONReporter:
    def test_generate_file(self, tmp_path: Path, defect_records: list[DefectRecord]) -> None:
        output = tmp_path / "report.json"
        JSONReporter().generate(defects_table(defect_records), output, extra={"tests": 5})

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["tool"] == "defectage"
        assert data["variant"] == "defects"
        assert data["columns"] == DEFECTS_HEADER
        assert data["rows"][0]["Defect_Age_Builds"] == 4
        assert data["summary"] == {"tests": 5}

    def test_generate_string_keeps_raw_text(self) -> None:
        record = DefectRecord("C", "t", age=1, error_message="a, b")
        data = json.loads(JSONReporter().generate_string(defects_table([record])))
        assert data["rows"][0]["Error_Message"] == "a, b"
        assert "summary" not in data

    def test_file_and_string_serialize_alike(self, tmp_path: Path) -> None:
        table = defects_table([DefectRecord("C", "t", age=2)])
        extra = {"output": tmp_path / "report.json"}
        reporter = JSONReporter()

        from_string = json.loads(reporter.generate_string(table, extra=extra))
        from_file = json.loads(
            reporter.generate(table, tmp_path / "report.json", extra=extra).read_text(
                encoding="utf-8"
            )
        )

        assert from_string["summary"] == {"output": str(tmp_path / "report.json")}
        from_string.pop("timestamp")
        from_file.pop("timestamp")
        assert from_string == from_file


# ── Terminal ─────────────────────────────────────────────────────


def _recording_reporter() -> CLIReporter:
    cli_reporter = CLIReporter()
    cli_reporter.console = Console(record=True, width=200)
    return cli_reporter


class TestTerminalReporter:
    def test_defects_table(self, defect_records: list[DefectRecord]) -> None:
        cli_reporter = _recording_reporter()
        cli_reporter.print_report_table(defects_table(defect_records))
        text = cli_reporter.console.export_text()
        assert "Failing Tests (3)" in text
        assert "testLogin" in text

    def test_limit_hides_rows(self, defect_records: list[DefectRecord]) -> None:
        cli_reporter = _recording_reporter()
        cli_reporter.print_report_table(defects_table(defect_records), limit=1)
        text = cli_reporter.console.export_text()
        assert "testToken" in text
        assert "testAdd" not in text
        assert "... and 2 more" in text

    def test_brackets_in_names_are_not_markup(self) -> None:
        cli_reporter = _recording_reporter()
        table = summary_table(
            [TestAccumulator("tests.test_math", "test_div[zero]", total_runs=1, defect_count=1)]
        )
        cli_reporter.print_report_table(table)
        assert "test_div[zero]" in cli_reporter.console.export_text()

    def test_empty_table(self) -> None:
        cli_reporter = _recording_reporter()
        cli_reporter.print_report_table(summary_table([]))
        assert "No rows to display" in cli_reporter.console.export_text()
