import random

import pytest

from corpus_cli.storage.corpus_copy import copy_corpus


def _write(root, relative, content="// dart"):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


@pytest.fixture
def corpus(tmp_path):
    root = tmp_path / "src"
    _write(root, "lib/main.dart", "void main() {}")
    _write(root, "lib/src/util.dart")
    _write(root, "lib/README.md")
    _write(root, "lib/model.g.dart")
    _write(root, ".dart_tool/gen.dart")
    _write(root, "pkg/.hidden/x.dart")
    _write(root, "bin/cache/dart-sdk/core.dart")
    _write(root, "analyzer-6.0.0/lib/a.dart")
    _write(root, "out/ReleaseX64/gen.dart")
    return root


def test_copies_only_wanted_sources(corpus, tmp_path):
    out_root = tmp_path / "out"
    copied = copy_corpus(corpus, "pub", out_root)

    files = sorted(
        p.relative_to(out_root).as_posix() for p in out_root.rglob("*") if p.is_file()
    )
    assert files == ["pub/lib/main.dart", "pub/lib/model.g.dart", "pub/lib/src/util.dart"]
    assert copied == 3
    assert (out_root / "pub/lib/main.dart").read_text() == "void main() {}"


def test_sampling_uses_separate_directory(corpus, tmp_path):
    out_root = tmp_path / "out"
    assert copy_corpus(corpus, "pub", out_root, sample_percent=0) == 0
    assert not (out_root / "pub").exists()

    copied = copy_corpus(corpus, "pub", out_root, 50, rng=random.Random(1))
    assert 0 <= copied <= 3
    if copied:
        assert (out_root / "pub-50").is_dir()


def test_skips_symlinks(corpus, tmp_path):
    (corpus / "lib" / "link.dart").symlink_to(corpus / "lib" / "main.dart")
    out_root = tmp_path / "out"
    copy_corpus(corpus, "apps", out_root)
    assert not (out_root / "apps/lib/link.dart").exists()


def test_rejects_bad_input(tmp_path):
    with pytest.raises(ValueError):
        copy_corpus(tmp_path, "x", tmp_path / "out", sample_percent=150)
    with pytest.raises(FileNotFoundError):
        copy_corpus(tmp_path / "missing", "x", tmp_path / "out")
