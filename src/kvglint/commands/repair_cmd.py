"""
kvglint.commands.repair_cmd - Repair misnumbered ids in KanjiVG files.

Only the values of mismatched ``id`` attributes are rewritten; every
other byte of a file is preserved. Files that fail to parse are
reported and skipped.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from kvglint.core.files import FilesConfig, file_id
from kvglint.core.parser import ParseFailure, parse
from kvglint.core.repair import RepairResult, repair_ids


def run(args: argparse.Namespace) -> int:
    """Run the repair-ids command.

    - repair-ids:             rewrite files in place
    - repair-ids --output-dir: write repaired copies elsewhere
    - repair-ids --dry-run:    only report what would change
    """
    from kvglint.commands.validate import build_files_config, load_configuration

    config = load_configuration(args)
    if config is None:
        return 1

    repair_config = config.get("repair", {})
    files_config = build_files_config(args, config, repair_config.get("files", {}))
    try:
        files = files_config.get_files()
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    dry_run = getattr(args, "dry_run", False)
    quiet = getattr(args, "quiet", False)
    verbose = getattr(args, "verbose", False)
    output_dir = _output_directory(args, repair_config)

    repaired = 0
    failed = 0
    for path in files:
        try:
            result = repair_file(path)
        except (OSError, UnicodeDecodeError) as e:
            print(f"Error: cannot read {path}: {e}", file=sys.stderr)
            failed += 1
            continue
        if isinstance(result, ParseFailure):
            print(f"PARSING FAILED: {path.name} - {result.message}", file=sys.stderr)
            failed += 1
            continue

        target = _target_path(path, files_config, output_dir)
        if result.changed:
            repaired += 1
            if not quiet:
                prefix = "Would repair" if dry_run else "Repaired"
                print(f"{prefix} {len(result.replacements)} ids in {path.name}")
                if verbose or dry_run:
                    for replacement in result.replacements:
                        print(f"  {replacement}")
        if dry_run:
            continue
        if result.changed or target != path:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(result.text.encode("utf-8"))

    if not quiet:
        print("─" * 60)
        verb = "would be repaired" if dry_run else "repaired"
        print(f"✓ {repaired}/{len(files)} files {verb}")
        if failed:
            print(f"⚠️  {failed} files could not be parsed")

    return 1 if failed else 0


def repair_file(path: Path) -> RepairResult | ParseFailure:
    """Parse one file and compute its repaired contents.

    The source is decoded without newline translation so that an
    unchanged file round-trips byte for byte.
    """
    source = path.read_bytes().decode("utf-8")
    document = parse(source)
    if isinstance(document, ParseFailure):
        return document
    return repair_ids(file_id(path), document, source)


def _output_directory(args: argparse.Namespace, repair_config: dict) -> Optional[Path]:
    override = getattr(args, "output_dir", None)
    if override:
        return Path(override)
    configured = repair_config.get("output_dir", "")
    return Path(configured) if configured else None


def _target_path(path: Path, files_config: FilesConfig, output_dir: Optional[Path]) -> Path:
    """Where the repaired file goes, keeping its place below the input directory."""
    if output_dir is None:
        return path
    return output_dir / path.relative_to(files_config.directory)
