"""
kvglint.core.rules - Validation rule engine.

Provides the fixed set of KanjiVG rules (canvas, ids, styles, stroke
numbers) and an engine running the configured subset against one
parsed Document. Every rule always runs; each yields Passed, Failed or
Error.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from kvglint.core.models import Document, iter_groups, iter_strokes, stroke_count

DEFAULT_CANVAS_SIZE = 109
DEFAULT_MAX_NUMBER_DISTANCE = 12.0
DEFAULT_STROKE_ROOT_STYLE = {
    "fill": "none",
    "stroke": "#000000",
    "stroke-width": "3",
    "stroke-linecap": "round",
    "stroke-linejoin": "round",
}
DEFAULT_NUMBER_ROOT_STYLE = {
    "font-size": "8",
    "fill": "#808080",
}


@dataclass(frozen=True)
class Passed:
    """The rule holds."""

    status = "passed"

    def __str__(self) -> str:
        return "PASSED"


@dataclass(frozen=True)
class Failed:
    """The rule does not hold; reason lists every mismatch."""

    reason: str
    status = "failed"

    def __str__(self) -> str:
        return f"FAILED: {self.reason}"


@dataclass(frozen=True)
class Error:
    """The rule cannot be evaluated for this document."""

    reason: str
    status = "error"

    def __str__(self) -> str:
        return f"ERROR: {self.reason}"


Outcome = Union[Passed, Failed, Error]
PASSED = Passed()


@dataclass
class RulesConfig:
    """Configuration for validation rules.

    Attributes:
        enabled: Rule names to run, or ["all"]
        canvas_size: Required width, height and viewBox size
        stroke_root_style: Required style of the stroke paths group
        number_root_style: Required style of the stroke numbers group
        max_number_distance: Maximum distance between a stroke number
            and the starting point of its stroke
    """

    enabled: List[str] = field(default_factory=lambda: ["all"])
    canvas_size: int = DEFAULT_CANVAS_SIZE
    stroke_root_style: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_STROKE_ROOT_STYLE)
    )
    number_root_style: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_NUMBER_ROOT_STYLE)
    )
    max_number_distance: float = DEFAULT_MAX_NUMBER_DISTANCE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RulesConfig":
        """Create RulesConfig from the [validate.rules] config section."""
        enabled = data.get("enabled", ["all"])
        if isinstance(enabled, str):
            enabled = [name.strip() for name in enabled.split(",") if name.strip()]
        return cls(
            enabled=list(enabled),
            canvas_size=int(data.get("canvas_size", DEFAULT_CANVAS_SIZE)),
            stroke_root_style={
                str(k): str(v)
                for k, v in data.get("stroke_root_style", DEFAULT_STROKE_ROOT_STYLE).items()
            },
            number_root_style={
                str(k): str(v)
                for k, v in data.get("number_root_style", DEFAULT_NUMBER_ROOT_STYLE).items()
            },
            max_number_distance=float(
                data.get("max_number_distance", DEFAULT_MAX_NUMBER_DISTANCE)
            ),
        )

    def enabled_rules(self) -> List["Rule"]:
        """Resolve ``enabled`` into rules, in canonical order.

        Raises:
            ValueError: If a name does not identify a rule
        """
        if any(name.lower() == "all" for name in self.enabled):
            return list(ALL_RULES)
        allowed = [rule.name for rule in ALL_RULES]
        unknown = [name for name in self.enabled if name not in allowed]
        if unknown:
            raise ValueError(
                f"List of enabled rules contains invalid values: {unknown}; allowed values: {allowed}"
            )
        return [rule for rule in ALL_RULES if rule.name in self.enabled]


@dataclass(frozen=True)
class Rule:
    """
    A named validation rule.

    Attributes:
        name: Stable identifier used in configuration (e.g., "stroke-ids")
        title: Human-readable name used in reports
        description: What the rule requires
        check: Evaluates the rule for (file id, document, config)
    """

    name: str
    title: str
    description: str
    check: Callable[[str, Document, RulesConfig], Outcome] = field(repr=False, compare=False)

    def __call__(self, file_id: str, document: Document, config: RulesConfig) -> Outcome:
        return self.check(file_id, document, config)


# EXPECTED IDS


def expected_stroke_root_id(file_id: str) -> str:
    return f"kvg:StrokePaths_{file_id}"


def expected_number_root_id(file_id: str) -> str:
    return f"kvg:StrokeNumbers_{file_id}"


def expected_group_id(file_id: str, index: int) -> str:
    """Expected id of the ``index``-th stroke group in pre-order (0 = root)."""
    return f"kvg:{file_id}" if index == 0 else f"kvg:{file_id}-g{index}"


def expected_stroke_id(file_id: str, index: int) -> str:
    """Expected id of the ``index``-th stroke in pre-order (0-based)."""
    return f"kvg:{file_id}-s{index + 1}"


# PATH DATA

_NUMBER_PATTERN = r"[-+]?(?:[0-9]*\.)?[0-9]+(?:[eE][-+]?[0-9]+)?"
_PATH_START = re.compile(rf"^\s*[Mm]\s*(?P<x>{_NUMBER_PATTERN})[\s,]*(?P<y>{_NUMBER_PATTERN})")


def path_start(path: str) -> Optional[Tuple[float, float]]:
    """Starting point of path data, or None without a leading move-to."""
    match = _PATH_START.match(path)
    if not match:
        return None
    return float(match.group("x")), float(match.group("y"))


def _truncated(distance: float) -> float:
    """Distance cut to two decimals; inf and nan pass through."""
    if not math.isfinite(distance):
        return distance
    return math.floor(distance * 100) / 100


# RULES


def _check_width_and_height(file_id: str, document: Document, config: RulesConfig) -> Outcome:
    size = config.canvas_size
    problems = [
        f"{name}={value} (expected {size})"
        for name, value in (("width", document.width), ("height", document.height))
        if value != size
    ]
    if problems:
        return Failed(", ".join(problems))
    return PASSED


def _check_view_box(file_id: str, document: Document, config: RulesConfig) -> Outcome:
    size = config.canvas_size
    vb = document.view_box
    if (vb.x, vb.y, vb.width, vb.height) == (0, 0, size, size):
        return PASSED
    return Failed(f"viewBox='{vb}', expected '0 0 {size} {size}'")


def _check_stroke_root_group_id(file_id: str, document: Document, config: RulesConfig) -> Outcome:
    actual = document.stroke_paths.id
    expected = expected_stroke_root_id(file_id)
    if actual == expected:
        return PASSED
    return Failed(f"id={actual}, expected '{expected}'")


def _check_number_root_group_id(file_id: str, document: Document, config: RulesConfig) -> Outcome:
    actual = document.stroke_numbers.id
    expected = expected_number_root_id(file_id)
    if actual == expected:
        return PASSED
    return Failed(f"id={actual}, expected '{expected}'")


def _check_style(
    style: Dict[str, str], required: Dict[str, str], element_path: str
) -> Outcome:
    """Compare a style against the exact required property set."""
    missing = [key for key in required if key not in style]
    wrong = [key for key in required if key in style and style[key] != required[key]]
    extra = [key for key in style if key not in required]

    errors = []
    if missing:
        errors.append(f"missing keys: {missing}")
    if wrong:
        values = [f"{key}='{style[key]}' (expected '{required[key]}')" for key in wrong]
        errors.append(f"wrong values: [{', '.join(values)}]")
    if extra:
        errors.append(f"extra keys: {extra}")

    if errors:
        return Failed(f"invalid style on element [{element_path}]: {', '.join(errors)}")
    return PASSED


def _check_stroke_root_group_style(
    file_id: str, document: Document, config: RulesConfig
) -> Outcome:
    return _check_style(
        document.stroke_paths.style, config.stroke_root_style, "svg > g:first-child"
    )


def _check_number_root_group_style(
    file_id: str, document: Document, config: RulesConfig
) -> Outcome:
    return _check_style(
        document.stroke_numbers.style, config.number_root_style, "svg > g:last-child"
    )


def _check_ids(actual: Sequence[str], expected: Sequence[str]) -> Outcome:
    mismatches = [f"{a} != {e}" for a, e in zip(actual, expected) if a != e]
    if mismatches:
        return Failed(f"mismatched ids (actual != expected): [{', '.join(mismatches)}]")
    return PASSED


def _check_stroke_groups_ids(file_id: str, document: Document, config: RulesConfig) -> Outcome:
    ids = [group.id for group in iter_groups(document.stroke_paths.root)]
    return _check_ids(ids, [expected_group_id(file_id, i) for i in range(len(ids))])


def _check_stroke_ids(file_id: str, document: Document, config: RulesConfig) -> Outcome:
    ids = [stroke.id for stroke in iter_strokes(document.stroke_paths.root)]
    return _check_ids(ids, [expected_stroke_id(file_id, i) for i in range(len(ids))])


def _check_stroke_numbers_count(
    file_id: str, document: Document, config: RulesConfig
) -> Outcome:
    n_strokes = stroke_count(document.stroke_paths.root)
    n_numbers = len(document.stroke_numbers.labels)
    if n_strokes == n_numbers:
        return PASSED
    return Failed(f"#strokes = {n_strokes}, #numbers = {n_numbers}")


def _check_number_order(file_id: str, document: Document, config: RulesConfig) -> Outcome:
    numbers = [label.value for label in document.stroke_numbers.labels]
    proper_order = list(range(1, len(numbers) + 1))
    if numbers == proper_order:
        return PASSED
    return Failed(f"number order is {numbers}, expected {proper_order}")


def _check_number_positions(file_id: str, document: Document, config: RulesConfig) -> Outcome:
    starts = []
    for stroke in iter_strokes(document.stroke_paths.root):
        start = path_start(stroke.path)
        if start is None:
            return Error(
                f"Path '{stroke.path}' has invalid starting segment: "
                "must start with a 'move-to' instruction"
            )
        starts.append(start)

    max_distance = config.max_number_distance
    too_far = []
    # Count mismatches are reported by the count rule; compare the common prefix
    for index, (label, start) in enumerate(zip(document.stroke_numbers.labels, starts)):
        x, y = label.transform.translation
        distance = math.hypot(x - start[0], y - start[1])
        # inf - inf gives nan, which never compares greater
        if not math.isfinite(distance) or distance > max_distance:
            too_far.append(f"{index + 1} has distance {_truncated(distance)}")

    if too_far:
        return Failed(
            "These numbers are too far from starting points of their strokes: "
            f"{'; '.join(too_far)}. Maximum allowed distance is {max_distance}"
        )
    return PASSED


ALL_RULES: Tuple[Rule, ...] = (
    Rule(
        "width-and-height",
        "width and height",
        "<svg> element must have width and height equal to the canvas size",
        _check_width_and_height,
    ),
    Rule(
        "viewbox",
        "viewbox",
        "<svg> element must have viewBox='0 0 <size> <size>'",
        _check_view_box,
    ),
    Rule(
        "stroke-root-group-id",
        "stroke root group id",
        "root group for strokes must have an id of format 'kvg:StrokePaths_XXXXX', "
        "where 'XXXXX' is a file name w/o extension",
        _check_stroke_root_group_id,
    ),
    Rule(
        "stroke-root-group-style",
        "stroke root group style",
        "root group for strokes must have a style with default properties set",
        _check_stroke_root_group_style,
    ),
    Rule(
        "stroke-groups-ids",
        "stroke groups ids",
        "stroke groups must have properly set ids, numbered by depth-first traversal order",
        _check_stroke_groups_ids,
    ),
    Rule(
        "stroke-ids",
        "stroke ids",
        "strokes must have properly set ids, numbered by depth-first traversal order",
        _check_stroke_ids,
    ),
    Rule(
        "number-root-group-id",
        "number root group id",
        "root group for numbers must have an id of format 'kvg:StrokeNumbers_XXXXX', "
        "where 'XXXXX' is a file name w/o extension",
        _check_number_root_group_id,
    ),
    Rule(
        "number-root-group-style",
        "number root group style",
        "root group for numbers must have a style with default properties set",
        _check_number_root_group_style,
    ),
    Rule(
        "stroke-numbers-count",
        "stroke numbers count",
        "amount of strokes and amount of stroke numbers must be equal",
        _check_stroke_numbers_count,
    ),
    Rule(
        "number-order",
        "number order",
        "numbers must be ordered in ascending order, starting from 1",
        _check_number_order,
    ),
    Rule(
        "number-positions",
        "number positions",
        "numbers must be placed near starting points of their corresponding strokes",
        _check_number_positions,
    ),
)

RULES_BY_NAME: Dict[str, Rule] = {rule.name: rule for rule in ALL_RULES}


class RuleEngine:
    """
    Validates KanjiVG documents against configured rules.
    """

    def __init__(self, config: Optional[RulesConfig] = None):
        """
        Initialize rule engine.

        Args:
            config: Rules configuration (defaults when omitted)

        Raises:
            ValueError: If the configuration enables unknown rules
        """
        self.config = config or RulesConfig()
        self.rules = self.config.enabled_rules()

    def validate(self, file_id: str, document: Document) -> List[Tuple[str, Outcome]]:
        """
        Run every enabled rule against a document.

        Args:
            file_id: File name without extension (e.g., "04e00")
            document: Parsed document

        Returns:
            (rule name, outcome) pairs in rule order
        """
        return [(rule.name, rule(file_id, document, self.config)) for rule in self.rules]


def validate(
    file_id: str, document: Document, config: Optional[RulesConfig] = None
) -> List[Tuple[str, Outcome]]:
    """Validate a document with the given (or default) configuration."""
    return RuleEngine(config).validate(file_id, document)
