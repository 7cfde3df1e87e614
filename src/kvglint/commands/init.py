"""
kvglint.commands.init - Create a .kvglint.toml configuration file.
"""

import argparse
import sys
from pathlib import Path

import tomlkit
from tomlkit import TOMLDocument

from kvglint.config import CONFIG_FILE_NAME, DEFAULT_CONFIG


def run(args: argparse.Namespace) -> int:
    """Write the default configuration to the current directory."""
    config_path = Path.cwd() / CONFIG_FILE_NAME
    if config_path.exists() and not getattr(args, "force", False):
        print(f"Configuration file already exists: {config_path}", file=sys.stderr)
        print("Use --force to overwrite.", file=sys.stderr)
        return 1

    directory = getattr(args, "dir", None)
    config_path.write_text(
        tomlkit.dumps(build_default_document(str(directory) if directory else None)),
        encoding="utf-8",
    )
    if not getattr(args, "quiet", False):
        print(f"Created configuration file: {config_path}")
    return 0


def build_default_document(kanjivg_dir=None) -> TOMLDocument:
    """Default configuration as a commented tomlkit document."""
    doc = tomlkit.document()
    doc.add(tomlkit.comment("kvglint configuration"))
    doc.add(tomlkit.nl())

    kanjivg = tomlkit.table()
    kanjivg.add("dir", kanjivg_dir or DEFAULT_CONFIG["kanjivg"]["dir"])
    kanjivg["dir"].comment("Directory holding the KanjiVG .svg files")
    doc.add("kanjivg", kanjivg)

    validate_defaults = DEFAULT_CONFIG["validate"]
    validate = tomlkit.table()
    validate.add("files", _files_table(validate_defaults["files"]))

    rules_defaults = validate_defaults["rules"]
    rules = tomlkit.table()
    rules.add(tomlkit.comment('Rule names to run, or ["all"]; see `kvglint rules`'))
    rules.add("enabled", list(rules_defaults["enabled"]))
    rules.add("canvas_size", rules_defaults["canvas_size"])
    rules.add("max_number_distance", rules_defaults["max_number_distance"])
    rules.add("stroke_root_style", _inline(rules_defaults["stroke_root_style"]))
    rules.add("number_root_style", _inline(rules_defaults["number_root_style"]))
    validate.add("rules", rules)
    doc.add("validate", validate)

    repair_defaults = DEFAULT_CONFIG["repair"]
    repair = tomlkit.table()
    repair.add("output_dir", repair_defaults["output_dir"])
    repair["output_dir"].comment("Empty: overwrite files in place")
    repair.add("files", _files_table(repair_defaults["files"]))
    doc.add("repair", repair)
    return doc


def _files_table(defaults):
    table = tomlkit.table()
    table.add(tomlkit.comment("Filters on the file name without extension; * matches anything"))
    table.add("included", list(defaults["included"]))
    table.add("excluded", list(defaults["excluded"]))
    return table


def _inline(values):
    table = tomlkit.inline_table()
    table.update(values)
    return table
