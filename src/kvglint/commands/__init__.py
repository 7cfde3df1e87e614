"""
kvglint.commands - CLI command implementations
"""

__all__ = [
    "init",
    "repair_cmd",
    "rules_cmd",
    "validate",
]
