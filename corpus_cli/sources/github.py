"""
Shallow-clones GitHub repositories and extracts repo references from text.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from corpus_cli.core.pool import Downloader, TaskLogger
from corpus_cli.utils.path import resource_dir_name

log = logging.getLogger(__name__)

# Any URI that points to a GitHub repo.
GITHUB_REPO_PATTERN = re.compile(
    r"https://github.com/([a-zA-Z0-9_-]+)/([a-zA-Z0-9_-]+)"
)

# Markdown link targets that are a repo itself (optionally with a trailing
# "/"), not a path inside one like an image in a README header.
GITHUB_REPO_LINK_PATTERN = re.compile(
    r"https://github.com/([a-zA-Z0-9_-]+)/([a-zA-Z0-9_-]+)/?\)"
)


@dataclass(frozen=True)
class CloneResult:
    """Outcome of one `git clone` invocation."""

    uri: str
    output_dir: Path
    returncode: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def find_github_repos(
    text: str, pattern: re.Pattern[str] = GITHUB_REPO_PATTERN
) -> list[tuple[str, str]]:
    """Returns the distinct (user, repo) pairs matched in `text`, in order."""
    repos = (match.group(1, 2) for match in pattern.finditer(text))
    return list(dict.fromkeys(repos))


async def clone_github_repo(destination: Path, user: str, repo: str) -> CloneResult:
    """
    Runs a depth-1 `git clone` of `user/repo` into `destination/<user>-<repo>`.

    Raises:
        OSError: If the git process could not be started.
    """
    uri = f"https://github.com/{user}/{repo}.git"
    output_dir = destination / resource_dir_name(user, repo)

    process = await asyncio.create_subprocess_exec(
        "git",
        "clone",
        "--depth",
        "1",
        uri,
        str(output_dir),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    _, stderr = await process.communicate()
    return CloneResult(
        uri=uri,
        output_dir=output_dir,
        returncode=process.returncode,
        stderr=stderr.decode("utf-8", errors="replace").strip(),
    )


def submit_clone(
    pool: Downloader, destination: Path, user: str, repo: str
) -> asyncio.Task:
    """Submits a pool task that clones `user/repo` and reports the outcome."""

    async def clone(logger: TaskLogger) -> None:
        logger.begin(f"Cloning {user}/{repo}...")
        try:
            result = await clone_github_repo(destination, user, repo)
        except Exception as e:
            logger.end(f"Error cloning {user}/{repo}:\n{e}")
            return

        if result.ok:
            logger.end(f"Cloned {result.output_dir}")
        else:
            logger.end(f"Could not clone {result.uri}:\n{result.stderr}")

    return pool.submit(clone)
