"""
kvglint.core - Event source, document model, parser, rules and repair
"""

from kvglint.core.models import Document, Stroke, StrokeGroup
from kvglint.core.parser import FailureKind, ParseFailure, parse, parse_file
from kvglint.core.rules import ALL_RULES, Outcome, RuleEngine, RulesConfig
from kvglint.core.repair import IdsToRepair, RepairResult, repair_ids

__all__ = [
    "Document",
    "Stroke",
    "StrokeGroup",
    "FailureKind",
    "ParseFailure",
    "parse",
    "parse_file",
    "ALL_RULES",
    "Outcome",
    "RuleEngine",
    "RulesConfig",
    "IdsToRepair",
    "RepairResult",
    "repair_ids",
]
