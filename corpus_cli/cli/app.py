"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
import time
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from corpus_cli import __version__
from corpus_cli.api.client import HttpClient
from corpus_cli.core.pool import Downloader
from corpus_cli.exceptions import CorpusCliError
from corpus_cli.models.config import CORPUS_SOURCES, CorpusConfig
from corpus_cli.sources import clone_flutter_apps, clone_widgets, download_pub_packages
from corpus_cli.storage.config_manager import ConfigManager
from corpus_cli.storage.corpus_copy import copy_corpus, target_dir_name

from .formatters import print_config, print_summary_panel

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("corpus_cli")

app = typer.Typer(
    name="corpus-cli",
    help=(
        "Download and assemble corpora of Dart code: pub packages and open"
        " source Flutter apps. Use 'corpus-cli <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "corpus-cli"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _load_config(cli_options: dict[str, Any]) -> CorpusConfig:
    """Loads the config file with the non-None CLI options applied on top."""
    overrides = {key: value for key, value in cli_options.items() if value is not None}
    try:
        return ConfigManager(CONFIG_FILE).load_config(overrides)
    except CorpusCliError as e:
        console.print(f"[red]✗ Configuration is invalid: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _run_batch(
    title: str,
    config: CorpusConfig,
    concurrency: int,
    batch: Callable[[HttpClient], Awaitable[Downloader]],
) -> None:
    """Runs one download batch to completion and prints its summary."""

    async def _batch_async() -> tuple[Downloader, float]:
        async with HttpClient(
            max_connections=concurrency, max_attempts=config.http_attempts
        ) as http:
            start_time = time.monotonic()
            pool = await batch(http)
            return pool, time.monotonic() - start_time

    try:
        pool, duration = asyncio.run(_batch_async())
    except CorpusCliError as e:
        console.print(f"[bold red]Error: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=1) from e

    print_summary_panel(title, pool.snapshot(), duration, console=console)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """Dart corpus downloader"""
    if version:
        console.print(f"[bold]corpus-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("corpus_cli").setLevel(log_level)

    if show_config:
        try:
            config_data = ConfigManager(CONFIG_FILE).get_config_as_dict()
        except Exception as e:
            console.print(f"[red]✗ Could not read config file: {escape(str(e))}[/red]")
            raise typer.Exit(code=1) from e
        print_config(CONFIG_FILE, config_data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command(name="init-config")
def init_config(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing config without asking."
    ),
):
    """Write a configuration file with the default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        ConfigManager(CONFIG_FILE).save_config()
    except CorpusCliError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    console.print(f"[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]")


@app.command()
def pub(
    limit: int | None = typer.Option(
        None, "-n", "--limit", help="Number of packages to download (default 2000)."
    ),
    workers: int | None = typer.Option(
        None, "-w", "--workers", help="Number of simultaneous downloads (default 20)."
    ),
):
    """Download the most recent packages from the pub index."""
    config = _load_config({"pub_limit": limit, "concurrency": workers})
    console.print("[bold cyan]Downloading pub packages...[/bold cyan]")
    _run_batch(
        "Pub Packages",
        config,
        config.concurrency,
        lambda http: download_pub_packages(
            http,
            Path(config.download_root),
            limit=config.pub_limit,
            concurrency=config.concurrency,
            console=console,
        ),
    )


@app.command()
def widgets(
    workers: int | None = typer.Option(
        None, "-w", "--workers", help="Number of simultaneous clones (default 10)."
    ),
):
    """Clone the open source apps listed on itsallwidgets.com."""
    config = _load_config({"widgets_concurrency": workers})
    console.print("[bold cyan]Cloning itsallwidgets.com apps...[/bold cyan]")
    _run_batch(
        "Widgets Apps",
        config,
        config.widgets_concurrency,
        lambda http: clone_widgets(
            http,
            Path(config.download_root),
            concurrency=config.widgets_concurrency,
            console=console,
        ),
    )


@app.command()
def apps(
    workers: int | None = typer.Option(
        None, "-w", "--workers", help="Number of simultaneous clones (default 5)."
    ),
):
    """Clone the apps listed in tortuvshin/open-source-flutter-apps."""
    config = _load_config({"apps_concurrency": workers})
    console.print("[bold cyan]Cloning open source Flutter apps...[/bold cyan]")
    _run_batch(
        "Flutter Apps",
        config,
        config.apps_concurrency,
        lambda http: clone_flutter_apps(
            http,
            Path(config.download_root),
            concurrency=config.apps_concurrency,
            console=console,
        ),
    )


@app.command(name="copy")
def copy_command(
    names: list[str] = typer.Argument(  # noqa: B008
        ...,
        help=f"Corpora to copy: {', '.join(CORPUS_SOURCES)}.",
        metavar="CORPUS...",
    ),
    sample: int | None = typer.Option(
        None, "-s", "--sample", help="Percentage of files to copy (default 100)."
    ),
):
    """Copy the Dart files of downloaded corpora into the output directory."""
    unknown = [name for name in names if name not in CORPUS_SOURCES]
    if unknown:
        console.print(f"[red]✗ Unknown corpus: {', '.join(unknown)}[/red]")
        raise typer.Exit(code=1)

    config = _load_config({"sample_percent": sample})
    out_root = Path(config.out_root)

    for name in dict.fromkeys(names):
        source_dir = Path(config.corpus_source(name))
        target = out_root / target_dir_name(name, config.sample_percent)
        console.print(f"[cyan]Copying {source_dir} to {target}...[/cyan]")
        try:
            copied = copy_corpus(source_dir, name, out_root, config.sample_percent)
        except FileNotFoundError as e:
            console.print(f"[red]✗ {escape(str(e))}[/red]")
            raise typer.Exit(code=1) from e
        console.print(f"[green]✓ Copied {copied} files.[/green]")
