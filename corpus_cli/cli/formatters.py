"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from corpus_cli.models.stats import PoolStats
from corpus_cli.utils.formatting import format_duration, format_rate


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the values in your configuration file.",
            "• Run `corpus-cli init-config --force` to write a fresh one.",
        ],
        "FetchError": [
            "• A network connection issue occurred.",
            "• The index or catalog site might be temporarily unavailable.",
            "• Please try again in a few minutes.",
        ],
        "SlotExhaustedError": [
            "• This is a bug in corpus-cli's download pool.",
            "• Please report it with the output of -vv.",
        ],
        "TaskStateError": [
            "• A download task reported progress out of order.",
            "• Please report it with the output of -vv.",
        ],
        "FileNotFoundError": [
            "• Download the corpus first (e.g. `corpus-cli pub`).",
            "• For dart/flutter, clone the SDK repos next to this one.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration."""
    console = Console()
    content = "\n".join(f"{key} = {value}" for key, value in config_data.items())

    console.print(
        Panel(
            Text(content or "(defaults)"),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_summary_panel(
    title: str, stats: PoolStats, duration_s: float, console: Console | None = None
):
    """Displays a final summary of one download batch."""
    console = console or Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=18)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "✓ Completed:",
        f"[bold green]{stats.completed_resources}[/bold green]"
        f" / {stats.total_resources}",
    )
    if stats.active_count > 0:
        stats_table.add_row(
            "⚠ Unfinished:", f"[yellow]{stats.active_count}[/yellow]"
        )

    stats_table.add_row("", "")
    stats_table.add_row(
        "Peak Concurrent:",
        f"[green]{stats.peak_concurrency}[/green] of {stats.max_concurrency}",
    )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")
    if stats.completed_resources > 0:
        stats_table.add_row(
            "Throughput:",
            f"[cyan]{format_rate(stats.completed_resources, duration_s)}[/cyan]",
        )

    console.print()
    console.print(
        Panel(
            stats_table,
            title=f"[bold]{title}[/bold]",
            border_style="green",
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
