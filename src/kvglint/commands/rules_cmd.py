"""
kvglint.commands.rules_cmd - List the validation rules.
"""

import argparse
import sys
from typing import Any, Dict, Iterator, Tuple

from kvglint.core.rules import ALL_RULES, RULES_BY_NAME, RulesConfig


def run(args: argparse.Namespace) -> int:
    """List every rule, or show one rule with its configured parameters."""
    from kvglint.commands.validate import load_configuration

    name = getattr(args, "name", None)
    if name is None:
        width = max(len(rule.name) for rule in ALL_RULES)
        for rule in ALL_RULES:
            print(f"{rule.name:<{width}}  {rule.description}")
        return 0

    rule = RULES_BY_NAME.get(name)
    if rule is None:
        print(f"Unknown rule: {name}", file=sys.stderr)
        print(f"Available rules: {', '.join(RULES_BY_NAME)}", file=sys.stderr)
        return 1

    config = load_configuration(args)
    if config is None:
        return 1
    rules_config = RulesConfig.from_dict(config.get("validate", {}).get("rules", {}))
    enabled = rule in rules_config.enabled_rules()

    print(f"{rule.name} ({rule.title})")
    print(f"  {rule.description}")
    print(f"  enabled: {'yes' if enabled else 'no'}")
    for parameter, value in _parameters(rule.name, rules_config):
        print(f"  {parameter}: {value}")
    return 0


def _parameters(rule_name: str, config: RulesConfig) -> Iterator[Tuple[str, Any]]:
    if rule_name in ("width-and-height", "viewbox"):
        yield "canvas_size", config.canvas_size
    elif rule_name == "stroke-root-group-style":
        yield "stroke_root_style", _style_text(config.stroke_root_style)
    elif rule_name == "number-root-group-style":
        yield "number_root_style", _style_text(config.number_root_style)
    elif rule_name == "number-positions":
        yield "max_number_distance", config.max_number_distance


def _style_text(style: Dict[str, str]) -> str:
    return ";".join(f"{key}:{value}" for key, value in style.items())
