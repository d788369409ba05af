"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from defectage.reporters.table import ReportVariant

if TYPE_CHECKING:
    from defectage.reporters.table import ReportTable

console = Console()

_NEW_DEFECT_AGE = 1
_AGING_DEFECT_AGE = 3
_MAX_MESSAGE_LENGTH = 60
DEFAULT_DISPLAY_LIMIT = 20


def _age_color(age: int) -> str:
    """Return a Rich color name for a defect age (older is worse)."""
    if age <= _NEW_DEFECT_AGE:
        return "yellow"
    if age < _AGING_DEFECT_AGE:
        return "dark_orange"
    return "red"


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


class CLIReporter:
    """Rich terminal output for report runs."""

    def __init__(self) -> None:
        self.console = console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_report_table(self, table: ReportTable, limit: int = DEFAULT_DISPLAY_LIMIT) -> None:
        """Render the first *limit* rows of a report table."""
        if not table.rows:
            self.console.print("  [dim]No rows to display[/dim]")
            return

        if table.variant is ReportVariant.DEFECTS:
            self._print_defects(table, limit)
        else:
            self._print_summary(table, limit)

        hidden = len(table.rows) - limit
        if hidden > 0:
            self.console.print(f"  [dim]... and {hidden} more[/dim]")

    def _print_defects(self, table: ReportTable, limit: int) -> None:
        rich_table = Table(title=f"Failing Tests ({len(table.rows)})", title_style="bold red")
        rich_table.add_column("Class", style="bold")
        rich_table.add_column("Test")
        rich_table.add_column("Age (builds)", justify="right")
        rich_table.add_column("Error")

        for class_name, test_name, age, message, _trace in table.rows[:limit]:
            color = _age_color(int(age))
            rich_table.add_row(
                escape(str(class_name)),
                escape(str(test_name)),
                f"[{color}]{age}[/{color}]",
                escape(_truncate(str(message), _MAX_MESSAGE_LENGTH)),
            )

        self.console.print(rich_table)

    def _print_summary(self, table: ReportTable, limit: int) -> None:
        rich_table = Table(
            title=f"Test Defect Summary ({len(table.rows)})", title_style="bold cyan"
        )
        rich_table.add_column("Class", style="bold")
        rich_table.add_column("Test")
        rich_table.add_column("Defects", justify="right")
        rich_table.add_column("Runs", justify="right")

        for class_name, test_name, defects, runs, _age in table.rows[:limit]:
            color = "red" if int(defects) > 0 else "green"
            rich_table.add_row(
                escape(str(class_name)),
                escape(str(test_name)),
                f"[{color}]{defects}[/{color}]",
                str(runs),
            )

        self.console.print(rich_table)


# Singleton instance for easy import
reporter = CLIReporter()
