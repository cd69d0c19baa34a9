"""
Downloads and extracts the latest version of the most recently published
packages on the pub package index.
"""

import asyncio
import logging
import tarfile
from pathlib import Path
from typing import Any

import aiofiles
from rich.console import Console

from corpus_cli.api.client import HttpClient
from corpus_cli.core.pool import Downloader, TaskLogger
from corpus_cli.exceptions import FetchError
from corpus_cli.utils.path import clean, create_dir, resource_dir_name

log = logging.getLogger(__name__)

PUB_INDEX_URL = "https://pub.dev/api/packages"
DEFAULT_PACKAGE_LIMIT = 2000


def extract_archive(archive_path: Path, output_dir: Path) -> None:
    """Extracts a .tar.gz archive into `output_dir`, rejecting unsafe members."""
    create_dir(output_dir)
    with tarfile.open(archive_path, "r:gz") as archive:
        archive.extractall(output_dir, filter="data")


def submit_package(
    pool: Downloader, http: HttpClient, output_dir: Path, package: dict[str, Any]
) -> asyncio.Task:
    """Submits a pool task that downloads and extracts one index entry."""

    async def download(logger: TaskLogger) -> None:
        latest = package.get("latest") or {}
        archive_url = latest.get("archive_url", "<no archive_url>")
        logger.begin(f"Downloading {archive_url}...")
        try:
            name = resource_dir_name(package["name"], latest["version"])
            archive_bytes = await http.get_bytes(archive_url)
            tar_path = output_dir / f"{name}.tar.gz"
            async with aiofiles.open(tar_path, "wb") as f:
                await f.write(archive_bytes)

            logger.log(f"Extracting {tar_path}...")
            package_dir = output_dir / name
            try:
                await asyncio.to_thread(extract_archive, tar_path, package_dir)
            except (tarfile.TarError, OSError) as e:
                logger.end(f"Could not extract {tar_path}:\n{e}")
                return

            await asyncio.to_thread(tar_path.unlink)
            logger.end(f"Finished {package_dir}")
        except Exception as e:
            logger.end(f"Error downloading {archive_url}:\n{e}")

    return pool.submit(download)


async def download_pub_packages(
    http: HttpClient,
    download_root: Path,
    limit: int = DEFAULT_PACKAGE_LIMIT,
    concurrency: int = 20,
    console: Console | None = None,
    index_url: str = PUB_INDEX_URL,
) -> Downloader:
    """
    Downloads up to `limit` packages into `<root>/pub`.

    Index pages come most recent first, so walking them until `limit` packages
    are submitted yields the newest packages.
    """
    output_dir = download_root / "pub"
    clean(output_dir)

    pool = Downloader(total_resources=limit, concurrency=concurrency, console=console)
    page_url: str | None = index_url
    page = 1
    submitted = 0
    try:
        while page_url and submitted < limit:
            pool.log(f"Getting index page {page}...")
            index = await http.get_json(page_url)
            if not isinstance(index, dict):
                raise FetchError(
                    f"Index page {page} at '{page_url}' is not a JSON object."
                )

            for package in index.get("packages", []):
                if submitted >= limit:
                    break
                submit_package(pool, http, output_dir, package)
                submitted += 1

            next_url = index.get("next_url")
            page_url = next_url if isinstance(next_url, str) else None
            page += 1
    finally:
        await pool.join()

    if submitted < limit:
        log.info(f"Index exhausted after {submitted} packages.")
    return pool
