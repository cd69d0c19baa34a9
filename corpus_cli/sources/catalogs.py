"""
Clones the open source Flutter apps listed by two public catalogs:
itsallwidgets.com's feed and the tortuvshin/open-source-flutter-apps README.
"""

import logging
from pathlib import Path
from typing import Any

from rich.console import Console

from corpus_cli.api.client import HttpClient
from corpus_cli.core.pool import Downloader
from corpus_cli.utils.path import clean

from . import github

log = logging.getLogger(__name__)

WIDGETS_FEED_URL = "https://itsallwidgets.com/feed?open_source=true"
APPS_README_URL = (
    "https://raw.githubusercontent.com/tortuvshin/open-source-flutter-apps/"
    "refs/heads/master/README.md"
)
APPS_CATALOG_REPO = ("tortuvshin", "open-source-flutter-apps")


def repos_from_widgets_feed(feed: Any) -> list[tuple[str, str]]:
    """
    Picks the GitHub-hosted apps out of the itsallwidgets.com feed.

    Entries that are not apps, have no repo URL, or are hosted elsewhere
    (there are a few on BitBucket) are skipped.
    """
    repos: dict[tuple[str, str], None] = {}
    for entry in feed if isinstance(feed, list) else []:
        if not isinstance(entry, dict) or entry.get("type") != "app":
            continue
        repo_url = entry.get("repo_url")
        if not isinstance(repo_url, str):
            continue
        if match := github.GITHUB_REPO_PATTERN.search(repo_url):
            repos[match.group(1, 2)] = None
    return list(repos)


def repos_from_apps_readme(readme: str) -> list[tuple[str, str]]:
    """Finds the repos linked from the catalog README, minus the catalog itself."""
    repos = github.find_github_repos(readme, github.GITHUB_REPO_LINK_PATTERN)
    return [repo for repo in repos if repo != APPS_CATALOG_REPO]


async def _clone_all(
    repos: list[tuple[str, str]],
    destination: Path,
    concurrency: int,
    console: Console | None,
) -> Downloader:
    pool = Downloader(
        total_resources=len(repos), concurrency=concurrency, console=console
    )
    for user, repo in repos:
        github.submit_clone(pool, destination, user, repo)
    await pool.join()
    return pool


async def clone_widgets(
    http: HttpClient,
    download_root: Path,
    concurrency: int = 10,
    console: Console | None = None,
) -> Downloader:
    """Clones every open source app from itsallwidgets.com into `<root>/widgets`."""
    destination = download_root / "widgets"
    clean(destination)

    log.info("Getting page feed...")
    feed = await http.get_json(WIDGETS_FEED_URL)
    repos = repos_from_widgets_feed(feed)
    log.info(f"Found [cyan]{len(repos)}[/cyan] GitHub repos in the feed.")

    return await _clone_all(repos, destination, concurrency, console)


async def clone_flutter_apps(
    http: HttpClient,
    download_root: Path,
    concurrency: int = 5,
    console: Console | None = None,
) -> Downloader:
    """Clones the repos listed in the open-source-flutter-apps README into `<root>/apps`."""
    destination = download_root / "apps"
    clean(destination)

    log.info("Getting README.md...")
    readme = await http.get_text(APPS_README_URL)
    repos = repos_from_apps_readme(readme)
    log.info(f"Found [cyan]{len(repos)}[/cyan] GitHub repos in the README.")

    return await _clone_all(repos, destination, concurrency, console)
