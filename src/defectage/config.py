"""Configuration parsing from ``.defectage.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from defectage.analysis.naming import DEFAULT_SEPARATORS, UNKNOWN_CLASS
from defectage.reporters.csv_reporter import DEFAULT_DELIMITER, default_substitute
from defectage.reporters.table import ReportVariant
from defectage.sources.allure import DEFAULT_HISTORY_FILE, DEFAULT_RESULT_PATTERN

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".defectage.yml"

DEFAULT_RESULTS_DIR = "target/allure-results"
DEFAULT_OUTPUT = "target/defect-age-report.csv"

REPORT_FORMATS = ("csv", "json")

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")
_TRUE_VALUES = {True, "true", "1", "yes"}


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


@dataclass
class ResultsConfig:
    """Where the current batch of result files lives."""

    dir: str = DEFAULT_RESULTS_DIR
    """Results directory, relative to the project root unless absolute."""

    pattern: str = DEFAULT_RESULT_PATTERN
    """Glob matching result files inside the directory."""


@dataclass
class HistoryConfig:
    """Historical run store settings."""

    enabled: bool = True
    """Consult the history store when computing defect ages."""

    path: str = ""
    """History file; empty means ``<results dir>/history/history.json``."""


@dataclass
class ReportConfig:
    """Report output settings."""

    variant: str = ReportVariant.DEFECTS.value
    """``defects`` (consecutive-failure age) or ``summary`` (per-test counts)."""

    format: str = "csv"
    """Output format: ``csv`` or ``json``."""

    output: str = DEFAULT_OUTPUT
    """Output file, relative to the project root unless absolute."""

    delimiter: str = DEFAULT_DELIMITER
    """CSV field delimiter (single character)."""

    delimiter_substitute: str = ""
    """Replacement for the delimiter inside values; empty picks a default."""

    @property
    def resolved_substitute(self) -> str:
        return self.delimiter_substitute or default_substitute(self.delimiter)


@dataclass
class NamingConfig:
    """How class and test names are derived from qualified names."""

    separators: list[str] = field(default_factory=lambda: list(DEFAULT_SEPARATORS))
    """Separators tried in order; the name splits at the rightmost occurrence."""

    unknown_class: str = UNKNOWN_CLASS
    """Class name used when a qualified name has no separator."""


@dataclass
class DefectAgeConfig:
    """Top-level configuration object."""

    root: str
    """Project root directory; relative paths resolve against it."""

    results: ResultsConfig = field(default_factory=ResultsConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    naming: NamingConfig = field(default_factory=NamingConfig)
    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML data."""

    def resolve_path(self, value: str) -> Path:
        """Resolve *value* against the project root (absolute paths pass through)."""
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return Path(self.root) / path

    @property
    def results_dir(self) -> Path:
        return self.resolve_path(self.results.dir)

    @property
    def history_path(self) -> Path:
        if self.history.path:
            return self.resolve_path(self.history.path)
        return self.results_dir / DEFAULT_HISTORY_FILE

    @property
    def output_path(self) -> Path:
        return self.resolve_path(self.report.output)


def _parse_results_config(raw: dict[str, Any]) -> ResultsConfig:
    results_raw = _section(raw, "results")
    return ResultsConfig(
        dir=str(
            results_raw.get("dir", os.environ.get("DEFECTAGE_RESULTS_DIR", DEFAULT_RESULTS_DIR))
        ),
        pattern=str(results_raw.get("pattern", DEFAULT_RESULT_PATTERN)),
    )


def _parse_history_config(raw: dict[str, Any]) -> HistoryConfig:
    history_raw = _section(raw, "history")
    return HistoryConfig(
        enabled=history_raw.get("enabled", True) in _TRUE_VALUES,
        path=str(history_raw.get("path", os.environ.get("DEFECTAGE_HISTORY_PATH", ""))),
    )


def _parse_report_config(raw: dict[str, Any]) -> ReportConfig:
    report_raw = _section(raw, "report")
    return ReportConfig(
        variant=str(
            report_raw.get(
                "variant", os.environ.get("DEFECTAGE_VARIANT", ReportVariant.DEFECTS.value)
            )
        ).lower(),
        format=str(report_raw.get("format", "csv")).lower(),
        output=str(report_raw.get("output", os.environ.get("DEFECTAGE_OUTPUT", DEFAULT_OUTPUT))),
        delimiter=str(report_raw.get("delimiter", DEFAULT_DELIMITER)),
        delimiter_substitute=str(report_raw.get("delimiter_substitute", "")),
    )


def _parse_naming_config(raw: dict[str, Any]) -> NamingConfig:
    naming_raw = _section(raw, "naming")
    separators_raw = naming_raw.get("separators", list(DEFAULT_SEPARATORS))
    if isinstance(separators_raw, str):
        separators_raw = [separators_raw]
    if not isinstance(separators_raw, list):
        separators_raw = list(DEFAULT_SEPARATORS)
    return NamingConfig(
        separators=[str(sep) for sep in separators_raw if sep],
        unknown_class=str(naming_raw.get("unknown_class", UNKNOWN_CLASS)),
    )


def load_config(root: str | Path) -> DefectAgeConfig:
    """Load and parse the ``.defectage.yml`` configuration.

    Falls back to defaults and ``DEFECTAGE_*`` environment variables when
    the YAML file is missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        elif parsed is not None:
            logger.warning("Ignoring %s: top level is not a mapping", config_file)

    return DefectAgeConfig(
        root=str(root_path),
        results=_parse_results_config(raw),
        history=_parse_history_config(raw),
        report=_parse_report_config(raw),
        naming=_parse_naming_config(raw),
        raw=raw,
    )


def _validate_report_config(report: ReportConfig) -> list[str]:
    """Validate report output settings."""
    errors: list[str] = []

    variants = [variant.value for variant in ReportVariant]
    if report.variant not in variants:
        errors.append(
            f"report.variant must be one of: {', '.join(variants)} (got: {report.variant})"
        )

    if report.format not in REPORT_FORMATS:
        errors.append(
            f"report.format must be one of: {', '.join(REPORT_FORMATS)} (got: {report.format})"
        )

    if not report.output:
        errors.append("report.output is required")

    if len(report.delimiter) != 1 or report.delimiter in "\r\n":
        errors.append(
            f"report.delimiter must be a single non-newline character (got: {report.delimiter!r})"
        )
    elif report.resolved_substitute == report.delimiter:
        errors.append("report.delimiter_substitute must differ from report.delimiter")

    return errors


def _validate_naming_config(naming: NamingConfig) -> list[str]:
    """Validate name derivation settings."""
    errors: list[str] = []

    if not naming.separators:
        errors.append("naming.separators must contain at least one separator")

    if not naming.unknown_class:
        errors.append("naming.unknown_class must not be empty")

    return errors


def validate_config(config: DefectAgeConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.results.dir:
        errors.append("results.dir is required")

    if not config.results.pattern:
        errors.append("results.pattern is required")

    errors.extend(_validate_report_config(config.report))
    errors.extend(_validate_naming_config(config.naming))

    return errors
