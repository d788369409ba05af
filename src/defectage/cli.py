"""defectage CLI — top-level command group."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console

from defectage import __version__
from defectage.config import (
    CONFIG_FILENAME,
    REPORT_FORMATS,
    DefectAgeConfig,
    load_config,
    validate_config,
)
from defectage.pipeline import ReportSettings, generate_report
from defectage.reporters.table import ReportVariant
from defectage.reporters.terminal import DEFAULT_DISPLAY_LIMIT, reporter
from defectage.sources.allure import DEFAULT_HISTORY_FILE, RecordSourceError

logger = logging.getLogger(__name__)
console = Console()


def setup_logging(*, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(name)s: %(message)s",
    )


def _config_to_dict(config: DefectAgeConfig) -> dict[str, Any]:
    """Convert DefectAgeConfig to dictionary for display."""
    result = asdict(config)
    # Remove the raw field as it's redundant
    result.pop("raw", None)
    return result


def _load_or_abort(path: str) -> DefectAgeConfig:
    try:
        return load_config(path)
    except (OSError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e


def _apply_overrides(
    settings: ReportSettings,
    config: DefectAgeConfig,
    *,
    results_dir: str | None,
    history: str | None,
    no_history: bool,
    output: str | None,
    variant: str | None,
    output_format: str | None,
    delimiter: str | None,
) -> ReportSettings:
    """Return *settings* with command-line options applied on top of the config."""
    overrides: dict[str, Any] = {}
    if results_dir:
        overrides["results_dir"] = config.resolve_path(results_dir)
    if output:
        overrides["output_path"] = config.resolve_path(output)
    if variant:
        overrides["variant"] = ReportVariant(variant)
    if output_format:
        overrides["output_format"] = output_format
    if delimiter:
        overrides["delimiter"] = delimiter
        if not config.report.delimiter_substitute:
            overrides["delimiter_substitute"] = None

    # An explicit --history wins; otherwise the store follows the results dir.
    if no_history:
        overrides["history_path"] = None
    elif history:
        overrides["history_path"] = config.resolve_path(history)
    elif results_dir and config.history.enabled and not config.history.path:
        overrides["history_path"] = overrides["results_dir"] / DEFAULT_HISTORY_FILE

    return replace(settings, **overrides)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="defectage")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """defectage — how many consecutive builds has each test been failing?"""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose=verbose)


@cli.command()
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option("--results-dir", default=None, help="Directory with Allure *-result.json files.")
@click.option("--history", "history", default=None, help="Allure history.json to read.")
@click.option("--no-history", is_flag=True, help="Ignore the history store (every age is 1).")
@click.option("--output", "-o", default=None, help="Report file to write.")
@click.option(
    "--variant",
    type=click.Choice([v.value for v in ReportVariant]),
    default=None,
    help="defects: consecutive-failure age per failing test; summary: counts per test.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(list(REPORT_FORMATS)),
    default=None,
    help="Report file format.",
)
@click.option("--delimiter", default=None, help="CSV field delimiter (single character).")
@click.option("--show/--no-show", default=True, help="Print the report rows as a table.")
@click.option(
    "--limit",
    default=DEFAULT_DISPLAY_LIMIT,
    show_default=True,
    type=click.IntRange(min=1),
    help="Maximum rows to print.",
)
def report(
    path: str,
    results_dir: str | None,
    history: str | None,
    output: str | None,
    variant: str | None,
    output_format: str | None,
    delimiter: str | None,
    limit: int,
    *,
    no_history: bool,
    show: bool,
) -> None:
    """Generate a defect age report from Allure results.

    Example:
      defectage report --results-dir target/allure-results
      defectage report --variant summary -o build/defects.csv
    """
    config = _load_or_abort(path)
    errors = validate_config(config)
    if errors:
        for error in errors:
            reporter.print_error(error)
        raise click.Abort

    if delimiter is not None and (len(delimiter) != 1 or delimiter in "\r\n"):
        raise click.BadParameter("must be a single non-newline character", param_hint="--delimiter")

    reporter.print_header("Defect Age Report")

    settings = _apply_overrides(
        ReportSettings.from_config(config),
        config,
        results_dir=results_dir,
        history=history,
        no_history=no_history,
        output=output,
        variant=variant,
        output_format=output_format,
        delimiter=delimiter,
    )

    try:
        result = generate_report(settings)
    except (RecordSourceError, OSError, ValueError) as e:
        reporter.print_error(f"Report generation failed: {e}")
        raise click.Abort from e

    if not result.results_found:
        reporter.print_warning(f"Allure results directory not found: {settings.results_dir}")
    elif result.records_read == 0:
        reporter.print_info(f"No result files found in: {settings.results_dir}")

    if result.records_skipped:
        reporter.print_warning(f"Skipped {result.records_skipped} incomplete or malformed records")

    if settings.history_path is not None and result.tests and not result.history_loaded:
        reporter.print_info("No history store found; defect ages count the current run only")

    if show:
        console.print()
        reporter.print_report_table(result.table, limit=limit)
        console.print()

    reporter.print_success(
        f"Defect age report written to: {result.output_path} ({result.rows_written} rows)"
    )


@cli.group("config")
def config_group() -> None:
    """Inspect `.defectage.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved configuration.

    Example:
      defectage config show
      defectage config show --json-output
    """
    config_dict = _config_to_dict(_load_or_abort(path))

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_validate(path: str) -> None:
    """Validate `.defectage.yml` configuration.

    Example:
      defectage config validate
    """
    config = _load_or_abort(path)
    errors = validate_config(config)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()

    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")

    console.print()
    console.print(f"[dim]Fix these errors in {Path(path) / CONFIG_FILENAME} and try again.[/dim]")
    raise click.Abort


if __name__ == "__main__":
    cli()
