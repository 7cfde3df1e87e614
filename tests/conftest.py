"""Shared pytest fixtures."""

import os

import pytest


@pytest.fixture
def kanji_dir(tmp_path):
    """KanjiVG directory with one valid file and one with a misnumbered stroke."""
    from tests.core.svg_test_helpers import edited, sample_svg, write_kanji

    directory = tmp_path / "kanji"
    write_kanji(directory, "053f3", sample_svg())
    write_kanji(
        directory,
        "053f4",
        edited('id="kvg:053f4-s3"', 'id="kvg:053f4-s9"', sample_svg("053f4")),
    )
    return directory


@pytest.fixture
def isolated_cwd(tmp_path, monkeypatch):
    """Run in an empty directory so no .kvglint.toml is picked up."""
    for name in list(os.environ):
        if name.startswith("KVGLINT_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path
