"""
kvglint - KanjiVG stroke-order SVG validation and repair tools

kvglint parses the strict SVG dialect used by KanjiVG files, validates
the structural and numbering conventions of each file, and repairs
misnumbered element ids in place without reformatting the source.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("kvglint")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from kvglint.core.models import Document
from kvglint.core.parser import FailureKind, ParseFailure, parse
from kvglint.core.repair import RepairResult, repair_ids
from kvglint.core.rules import Error, Failed, Passed, RuleEngine, RulesConfig, validate

__all__ = [
    "__version__",
    "Document",
    "Error",
    "FailureKind",
    "Failed",
    "ParseFailure",
    "Passed",
    "RepairResult",
    "RuleEngine",
    "RulesConfig",
    "parse",
    "repair_ids",
    "validate",
]
