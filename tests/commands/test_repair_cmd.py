"""Tests for the repair-ids command."""

import argparse


def _args(directory, **overrides):
    values = {
        "config": None,
        "dir": directory,
        "verbose": False,
        "quiet": False,
        "include": None,
        "exclude": None,
        "output_dir": None,
        "dry_run": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestRepairRun:
    """Tests for repair_cmd.run."""

    def test_repairs_in_place(self, isolated_cwd, kanji_dir, capsys):
        from kvglint.commands import repair_cmd
        from tests.core.svg_test_helpers import sample_svg

        valid_before = (kanji_dir / "053f3.svg").stat().st_mtime_ns

        assert repair_cmd.run(_args(kanji_dir)) == 0

        assert (kanji_dir / "053f4.svg").read_bytes() == sample_svg("053f4").encode("utf-8")
        assert (kanji_dir / "053f3.svg").stat().st_mtime_ns == valid_before
        out = capsys.readouterr().out
        assert "Repaired 1 ids in 053f4.svg" in out
        assert "✓ 1/2 files repaired" in out

    def test_dry_run_writes_nothing(self, isolated_cwd, kanji_dir, capsys):
        from kvglint.commands import repair_cmd

        before = (kanji_dir / "053f4.svg").read_bytes()

        assert repair_cmd.run(_args(kanji_dir, dry_run=True)) == 0

        assert (kanji_dir / "053f4.svg").read_bytes() == before
        out = capsys.readouterr().out
        assert "Would repair 1 ids in 053f4.svg" in out
        assert "<path> id 'kvg:053f4-s9' -> 'kvg:053f4-s3'" in out

    def test_output_directory(self, isolated_cwd, kanji_dir):
        from kvglint.commands import repair_cmd
        from tests.core.svg_test_helpers import sample_svg

        before = (kanji_dir / "053f4.svg").read_bytes()
        output = isolated_cwd / "fixed"

        assert repair_cmd.run(_args(kanji_dir, output_dir=output)) == 0

        assert (kanji_dir / "053f4.svg").read_bytes() == before
        assert (output / "053f4.svg").read_bytes() == sample_svg("053f4").encode("utf-8")
        assert (output / "053f3.svg").read_bytes() == sample_svg().encode("utf-8")

    def test_output_directory_keeps_subdirectories(self, isolated_cwd, kanji_dir):
        from kvglint.commands import repair_cmd
        from tests.core.svg_test_helpers import edited, sample_svg, write_kanji

        write_kanji(
            kanji_dir / "variants",
            "053f3-Kaisho",
            edited('id="kvg:053f3-Kaisho-g1"', 'id="kvg:053f3-Kaisho-g9"', sample_svg("053f3-Kaisho")),
        )
        output = isolated_cwd / "fixed"

        assert repair_cmd.run(_args(kanji_dir, output_dir=output, include=["*-Kaisho"])) == 0

        repaired = output / "variants" / "053f3-Kaisho.svg"
        assert repaired.read_bytes() == sample_svg("053f3-Kaisho").encode("utf-8")

    def test_unparsable_file_is_skipped(self, isolated_cwd, kanji_dir, capsys):
        from kvglint.commands import repair_cmd
        from tests.core.svg_test_helpers import sample_svg

        (kanji_dir / "04e00.svg").write_text("<svg>", encoding="utf-8")

        assert repair_cmd.run(_args(kanji_dir)) == 1

        assert (kanji_dir / "04e00.svg").read_text(encoding="utf-8") == "<svg>"
        assert (kanji_dir / "053f4.svg").read_bytes() == sample_svg("053f4").encode("utf-8")
        captured = capsys.readouterr()
        assert "PARSING FAILED: 04e00.svg" in captured.err
        assert "1 files could not be parsed" in captured.out

    def test_configured_output_directory(self, isolated_cwd, kanji_dir):
        from kvglint.commands import repair_cmd

        output = isolated_cwd / "from-config"
        (isolated_cwd / ".kvglint.toml").write_text(
            f'[repair]\noutput_dir = "{output.as_posix()}"\n', encoding="utf-8"
        )

        assert repair_cmd.run(_args(kanji_dir, quiet=True)) == 0
        assert (output / "053f4.svg").exists()

    def test_crlf_file_keeps_line_endings(self, isolated_cwd, tmp_path):
        from kvglint.commands import repair_cmd
        from tests.core.svg_test_helpers import edited, sample_svg

        directory = tmp_path / "crlf"
        directory.mkdir()
        broken = edited('id="kvg:053f3-s2"', 'id="kvg:053f3-s5"').replace("\n", "\r\n")
        (directory / "053f3.svg").write_bytes(broken.encode("utf-8"))

        assert repair_cmd.run(_args(directory, quiet=True)) == 0

        expected = sample_svg().replace("\n", "\r\n").encode("utf-8")
        assert (directory / "053f3.svg").read_bytes() == expected
