"""
kvglint.commands.validate - Validate KanjiVG files command.

Parses every selected file and runs the enabled rules against it.
A parse failure is reported for its file only; the batch continues.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from kvglint.config import default_config, find_config_file, get_kanjivg_directory, load_config
from kvglint.core.files import FilesConfig, file_id
from kvglint.core.parser import ParseFailure, parse_file
from kvglint.core.rules import RULES_BY_NAME, Passed, RuleEngine, RulesConfig


def run(args: argparse.Namespace) -> int:
    """
    Run the validate command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 when every file parsed and passed, 1 otherwise)
    """
    config = load_configuration(args)
    if config is None:
        return 1

    validate_config = config.get("validate", {})
    try:
        engine = RuleEngine(build_rules_config(validate_config.get("rules", {}), args))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    files_config = build_files_config(args, config, validate_config.get("files", {}))
    try:
        files = files_config.get_files()
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    as_json = getattr(args, "json", False)
    quiet = getattr(args, "quiet", False) or as_json
    verbose = getattr(args, "verbose", False)

    if not quiet:
        print(f"Validating KanjiVG files in: {files_config.directory}")
        print(f"Found {len(files)} files")
        if verbose:
            print("Enabled rules:")
            for rule in engine.rules:
                print(f"  {rule.title}: {rule.description}")
        print()

    reports = [validate_file(path, engine) for path in files]

    if as_json:
        print(json.dumps(reports, indent=2, ensure_ascii=False))
    elif not quiet:
        for report in reports:
            print_report(report, verbose)

    errored = sum(1 for r in reports if r["parse_error"] is not None)
    failed = sum(
        1
        for r in reports
        if r["parse_error"] is None and any(o["status"] != "passed" for o in r["rules"])
    )
    valid = len(reports) - errored - failed

    if not quiet:
        print("─" * 60)
        print(f"✓ {valid}/{len(reports)} files valid")
        if failed:
            print(f"❌ {failed} files failed validation")
        if errored:
            print(f"⚠️  {errored} files could not be parsed")

    return 1 if failed or errored else 0


def validate_file(path: Path, engine: RuleEngine) -> Dict[str, Any]:
    """Parse and validate one file into a report dictionary."""
    report: Dict[str, Any] = {
        "file": str(path),
        "file_id": file_id(path),
        "parse_error": None,
        "rules": [],
    }
    try:
        result = parse_file(path)
    except OSError as e:
        report["parse_error"] = f"Cannot read file: {e}"
        return report

    if isinstance(result, ParseFailure):
        report["parse_error"] = result.message
        return report

    report["kanji"] = result.kanji
    for rule_name, outcome in engine.validate(file_id(path), result):
        report["rules"].append(
            {
                "rule": rule_name,
                "status": outcome.status,
                "reason": None if isinstance(outcome, Passed) else outcome.reason,
            }
        )
    return report


def print_report(report: Dict[str, Any], verbose: bool = False) -> None:
    """Print one file report in human-readable form."""
    name = Path(report["file"]).name
    if report["parse_error"] is not None:
        print(f"PARSING FAILED: {name} - {report['parse_error']}")
        print()
        return

    problems = [o for o in report["rules"] if o["status"] != "passed"]
    if not problems:
        if verbose:
            print(f"ALL VALIDATIONS PASSED: {report.get('kanji', 'NA')}/{name}")
        return

    print(f"SOME VALIDATIONS FAILED: {report.get('kanji', 'NA')}/{name}")
    for outcome in problems:
        title = RULES_BY_NAME[outcome["rule"]].title
        print(f"  - {title}: {outcome['status'].upper()}: {outcome['reason']}")
    print()


def build_rules_config(data: Dict[str, Any], args: argparse.Namespace) -> RulesConfig:
    """Rules configuration from [validate.rules], narrowed by --rule/--skip-rule."""
    rules_config = RulesConfig.from_dict(data)
    selected = getattr(args, "rule", None)
    if selected:
        rules_config.enabled = list(selected)
    skipped = getattr(args, "skip_rule", None)
    if skipped:
        unknown = [name for name in skipped if name not in RULES_BY_NAME]
        if unknown:
            raise ValueError(f"Unknown rules to skip: {unknown}")
        enabled = [rule.name for rule in rules_config.enabled_rules()]
        rules_config.enabled = [name for name in enabled if name not in skipped]
    return rules_config


def build_files_config(
    args: argparse.Namespace, config: Dict[str, Any], files_data: Dict[str, Any]
) -> FilesConfig:
    """File selection from the config section, overridden by --include/--exclude."""
    directory = get_kanjivg_directory(getattr(args, "dir", None), config)
    files_config = FilesConfig.from_dict(directory, files_data)
    include: Optional[List[str]] = getattr(args, "include", None)
    exclude: Optional[List[str]] = getattr(args, "exclude", None)
    if include:
        files_config.included = list(include)
    if exclude:
        files_config.excluded = files_config.excluded + list(exclude)
    return files_config


def load_configuration(args: argparse.Namespace) -> Optional[Dict]:
    """Load configuration from file or use defaults."""
    if getattr(args, "config", None):
        config_path = args.config
    else:
        config_path = find_config_file(Path.cwd())

    if config_path and config_path.exists():
        try:
            return load_config(config_path)
        except Exception as e:
            print(f"Error loading config: {e}", file=sys.stderr)
            return None
    else:
        # Use defaults
        return default_config()
