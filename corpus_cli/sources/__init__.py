"""
Corpus Sources Layer.

Each module here knows how to find the resources of one corpus and submit a
task per resource to a `Downloader` pool: shallow git clones of GitHub repos
and package archives from the pub index.
"""

from .catalogs import clone_flutter_apps, clone_widgets
from .github import CloneResult, clone_github_repo, find_github_repos, submit_clone
from .pub import download_pub_packages

__all__ = [
    "CloneResult",
    "clone_flutter_apps",
    "clone_github_repo",
    "clone_widgets",
    "download_pub_packages",
    "find_github_repos",
    "submit_clone",
]
