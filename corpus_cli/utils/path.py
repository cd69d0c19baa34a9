"""
Utilities for preparing output directories and naming downloaded resources.
"""

import logging
import shutil
from pathlib import Path

from pathvalidate import sanitize_filename

log = logging.getLogger(__name__)


def clean(directory_path: Path) -> None:
    """
    Creates an empty directory at `directory_path`.

    If a directory is already there, removes it first.
    """
    if directory_path.exists():
        log.info(f"Deleting {directory_path}...")
        shutil.rmtree(directory_path)
    directory_path.mkdir(parents=True, exist_ok=True)


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def resource_dir_name(*parts: str) -> str:
    """Joins name parts with '-' into a single filesystem-safe name."""
    return sanitize_filename("-".join(parts), replacement_text="_")
