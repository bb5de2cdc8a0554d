"""
Bastion Deploy - UI Components
Standardized headers and result tables
"""

from typing import List

from rich.console import Console
from rich.table import Table

from bastiondeploy.models.results import HostResult, ResultStatus

LOGO = "bastiondeploy"

# Color scheme
BRAND_COLOR = "cyan"

STATUS_STYLES = {
    ResultStatus.SUCCESS: "green",
    ResultStatus.UNCHANGED: "dim",
    ResultStatus.FAILURE: "red",
}


def show_header(
    title: str,
    project: str = None,
    details: dict = None,
    console: Console = None,
):
    """
    Display a standardized command header.

    Args:
        title: Main title (e.g., "Deploy Topology")
        project: Project name (if applicable)
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim]"

    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if project:
        console.print(f"{prefix} Project: [cyan]{project}[/cyan]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [cyan]{value}[/cyan]")

    console.print()


def show_results(results: List[HostResult], console: Console = None) -> None:
    """Print per-host results as a table."""
    if console is None:
        console = Console()

    table = Table(show_header=True, header_style=f"bold {BRAND_COLOR}", box=None)
    table.add_column("Host")
    table.add_column("Status")
    table.add_column("Details", style="dim")

    for result in results:
        style = STATUS_STYLES[result.status]
        table.add_row(
            result.host,
            f"[{style}]{result.status.value}[/{style}]",
            result.message,
        )

    console.print(table)
