"""Tests for the defectage CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
import yaml
from click.testing import CliRunner

from defectage import __version__
from defectage.cli import cli

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "DEFECTAGE_RESULTS_DIR",
        "DEFECTAGE_HISTORY_PATH",
        "DEFECTAGE_OUTPUT",
        "DEFECTAGE_VARIANT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root with Allure results in the default location."""
    results = tmp_path / "target" / "allure-results"
    results.mkdir(parents=True)
    (results / "a-result.json").write_text(
        json.dumps(
            {
                "historyId": "A",
                "fullName": "com.acme.LoginTest.testLogin",
                "status": "failed",
                "statusDetails": {"message": "boom, again", "trace": "Err\n\tat x"},
            }
        ),
        encoding="utf-8",
    )
    (results / "b-result.json").write_text(
        json.dumps(
            {"historyId": "B", "fullName": "com.acme.CartTest.testAdd", "status": "passed"}
        ),
        encoding="utf-8",
    )
    history = results / "history"
    history.mkdir()
    (history / "history.json").write_text(
        json.dumps({"A": {"items": [{"status": "failed", "time": {"stop": 10}}]}}),
        encoding="utf-8",
    )
    return tmp_path


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_help_lists_commands() -> None:
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "report" in result.output
    assert "config" in result.output


class TestReportCommand:
    def test_default_locations(self, project: Path) -> None:
        result = CliRunner().invoke(cli, ["report", "--path", str(project)])

        assert result.exit_code == 0, result.output
        assert "Defect Age Report" in result.output
        assert "Defect age report written" in result.output
        lines = (project / "target" / "defect-age-report.csv").read_text().splitlines()
        assert lines[1] == "com.acme.LoginTest,testLogin,2,boom; again,Err"

    def test_no_history(self, project: Path) -> None:
        result = CliRunner().invoke(cli, ["report", "--path", str(project), "--no-history"])

        assert result.exit_code == 0, result.output
        lines = (project / "target" / "defect-age-report.csv").read_text().splitlines()
        assert lines[1].split(",")[2] == "1"

    def test_summary_variant_and_output(self, project: Path) -> None:
        output = project / "reports" / "summary.csv"
        result = CliRunner().invoke(
            cli,
            [
                "report",
                "--path",
                str(project),
                "--variant",
                "summary",
                "--output",
                str(output),
                "--no-show",
            ],
        )

        assert result.exit_code == 0, result.output
        lines = output.read_text().splitlines()
        assert lines[0] == "Class Name,Test Name,Defect Count,Total Runs,Defect Age"
        assert len(lines) == 3

    def test_results_dir_override_follows_history(self, project: Path, tmp_path: Path) -> None:
        other = tmp_path / "elsewhere"
        (project / "target" / "allure-results").rename(other)

        result = CliRunner().invoke(
            cli, ["report", "--path", str(project), "--results-dir", str(other), "--no-show"]
        )

        assert result.exit_code == 0, result.output
        lines = (project / "target" / "defect-age-report.csv").read_text().splitlines()
        assert lines[1].split(",")[2] == "2"

    def test_json_format(self, project: Path) -> None:
        output = project / "report.json"
        result = CliRunner().invoke(
            cli, ["report", "--path", str(project), "--format", "json", "-o", str(output)]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text())
        assert data["rows"][0]["Defect_Age_Builds"] == 2

    def test_custom_delimiter(self, project: Path) -> None:
        result = CliRunner().invoke(
            cli, ["report", "--path", str(project), "--delimiter", ";", "--no-show"]
        )

        assert result.exit_code == 0, result.output
        lines = (project / "target" / "defect-age-report.csv").read_text().splitlines()
        assert lines[1] == "com.acme.LoginTest;testLogin;2;boom, again;Err"

    def test_invalid_delimiter(self, project: Path) -> None:
        result = CliRunner().invoke(cli, ["report", "--path", str(project), "--delimiter", "::"])
        assert result.exit_code != 0

    def test_missing_results_dir(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "not found" in result.output
        report = tmp_path / "target" / "defect-age-report.csv"
        assert report.read_text().splitlines() == [
            "Class_Name,Test_Name,Defect_Age_Builds,Error_Message,Short_Trace"
        ]

    def test_results_path_is_file_aborts(self, tmp_path: Path) -> None:
        results = tmp_path / "target" / "allure-results"
        results.parent.mkdir(parents=True)
        results.write_text("", encoding="utf-8")

        result = CliRunner().invoke(cli, ["report", "--path", str(tmp_path)])

        assert result.exit_code != 0
        assert "Report generation failed" in result.output

    def test_invalid_config_aborts(self, project: Path) -> None:
        (project / ".defectage.yml").write_text(
            yaml.safe_dump({"report": {"variant": "trend"}}), encoding="utf-8"
        )
        result = CliRunner().invoke(cli, ["report", "--path", str(project)])
        assert result.exit_code != 0
        assert "report.variant" in result.output


class TestConfigCommands:
    def test_show_json(self, tmp_path: Path) -> None:
        (tmp_path / ".defectage.yml").write_text(
            yaml.safe_dump({"report": {"variant": "summary"}}), encoding="utf-8"
        )
        result = CliRunner().invoke(
            cli, ["config", "show", "--path", str(tmp_path), "--json-output"]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["report"]["variant"] == "summary"
        assert "raw" not in data

    def test_show_yaml(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["config", "show", "--path", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output)["results"]["pattern"] == "*-result.json"

    def test_validate_ok(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["config", "validate", "--path", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "Configuration is valid" in result.output

    def test_validate_errors(self, tmp_path: Path) -> None:
        (tmp_path / ".defectage.yml").write_text(
            yaml.safe_dump({"report": {"format": "xml"}, "naming": {"separators": []}}),
            encoding="utf-8",
        )
        result = CliRunner().invoke(cli, ["config", "validate", "--path", str(tmp_path)])
        assert result.exit_code != 0
        assert "2 configuration error(s)" in result.output
