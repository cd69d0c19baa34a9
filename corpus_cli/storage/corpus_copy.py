"""
Copies the Dart sources of a downloaded corpus into the output tree,
optionally taking a random sample.
"""

import logging
import os
import random
import shutil
from pathlib import Path, PurePosixPath

from rich.markup import escape

log = logging.getLogger(__name__)

# Relative path prefixes that are generated, vendored, or otherwise redundant.
IGNORED_PREFIXES = (
    "pkg/dev_compiler/gen/",
    "tests/co19/",
    "third_party/observatory_pub_packages/",
    "tools/sdks/",
    "out/",
    "xcodebuild/",
    # Redundant stuff in Flutter.
    "bin/cache/",
    # Redundant packages that are in the SDK.
    "analyzer-",
    "compiler_unsupported-",
    "dev_compiler-",
)

SOURCE_SUFFIX = ".dart"
PROGRESS_INTERVAL = 100


def target_dir_name(name: str, sample_percent: int) -> str:
    """Sampled copies go to a separate '<name>-<percent>' directory."""
    return name if sample_percent == 100 else f"{name}-{sample_percent}"


def should_copy(relative: PurePosixPath) -> bool:
    """Whether a file at `relative` (to the corpus root) belongs in the corpus."""
    if relative.suffix != SOURCE_SUFFIX:
        return False
    path_str = relative.as_posix()
    if path_str.startswith(IGNORED_PREFIXES):
        return False
    return not any(part.startswith(".") for part in relative.parts)


def copy_corpus(
    source_dir: Path,
    name: str,
    out_root: Path,
    sample_percent: int = 100,
    rng: random.Random | None = None,
) -> int:
    """
    Copies the corpus at `source_dir` into `out_root/<name>`.

    Args:
        source_dir: Root of the downloaded or checked-out corpus.
        name: Corpus name, used for the output directory.
        out_root: Directory that holds all copied corpora.
        sample_percent: Chance (0-100) that any one file is copied.
        rng: Random source for sampling.

    Returns:
        The number of files copied.
    """
    if not 0 <= sample_percent <= 100:
        raise ValueError(f"sample_percent must be in [0, 100], got {sample_percent}")
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Corpus directory '{source_dir}' does not exist.")

    rng = rng or random.Random()
    target_dir = out_root / target_dir_name(name, sample_percent)
    copied = 0

    for dirpath, dirnames, filenames in os.walk(source_dir, followlinks=False):
        dirnames.sort()
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if path.is_symlink():
                continue

            relative = PurePosixPath(path.relative_to(source_dir).as_posix())
            if not should_copy(relative):
                continue
            if rng.randrange(100) >= sample_percent:
                continue

            out_path = target_dir / relative
            out_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(path, out_path)

            copied += 1
            if copied % PROGRESS_INTERVAL == 0:
                log.info(escape(str(relative)))

    log.debug(f"Copied {copied} files from '{source_dir}' to '{target_dir}'.")
    return copied
