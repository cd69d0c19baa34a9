"""
Console-script entry for `corpus-cli` (also `python -m corpus_cli`).

Runs the typer app and maps whatever escapes it to an exit status: a
cancelled batch exits 0, a known corpus-cli failure or an unexpected crash
prints an error panel and exits 1.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from corpus_cli.cli.app import app
from corpus_cli.cli.formatters import format_error_with_suggestions
from corpus_cli.exceptions import CorpusCliError

log = logging.getLogger("corpus_cli")


def _use_utf8_streams() -> None:
    # Windows consoles default to a code page without the slot bar glyphs.
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.reconfigure(encoding="utf-8")
        except (TypeError, AttributeError):
            pass


def main() -> None:
    """Runs corpus-cli and exits with its status."""
    if os.name == "nt":
        _use_utf8_streams()

    console = Console()
    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]Download interrupted, stopping.[/yellow]")
        sys.exit(0)
    except CorpusCliError as e:
        console.print()
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print()
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Unhandled exception in corpus-cli:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
