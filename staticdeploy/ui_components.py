"""
staticdeploy CLI - UI Components
Standardized headers and result tables
"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from staticdeploy.models.results import CheckCategory, IntegrationReport

BRAND_COLOR = "cyan"
PREFIX = " [bold color(214)]staticdeploy[/bold color(214)] [dim]›[/dim]"


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    target: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized command header.

    Args:
        title: Main title (e.g., "Deploy", "Integration Tests")
        subtitle: Optional subtitle line
        target: Container or domain being operated on
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Deploy",
            target="static-web-example.com",
            details={"Mode": "check"}
        )
    """
    if console is None:
        console = Console()

    console.print(f"{PREFIX} [bold white]{escape(title)}[/bold white]")

    if subtitle:
        console.print(f"{PREFIX} [dim]{escape(subtitle)}[/dim]")

    if target:
        console.print(f"{PREFIX} Target: [{BRAND_COLOR}]{escape(target)}[/{BRAND_COLOR}]")

    if details:
        for key, value in details.items():
            console.print(f"{PREFIX} {key}: [{BRAND_COLOR}]{escape(str(value))}[/{BRAND_COLOR}]")

    console.print()


def report_table(report: IntegrationReport) -> Table:
    """Integration report as a table, one row per check."""
    table = Table(title=f"Integration checks - {report.target}", padding=(0, 1))
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Check", no_wrap=True)
    table.add_column("Result", no_wrap=True)
    table.add_column("Message")

    for category in CheckCategory:
        for check in report.categories[category]:
            result = "[green]✓ pass[/green]" if check.passed else "[red]✗ fail[/red]"
            message = escape(check.message)
            if check.details:
                message += f"\n[dim]{escape(check.details)}[/dim]"
            table.add_row(category.value, check.name, result, message)
    return table
