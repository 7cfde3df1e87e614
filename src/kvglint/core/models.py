"""
kvglint.core.models - Typed document model for KanjiVG files.

Provides frozen dataclasses for the parsed document tree: the root
<svg> element, the stroke paths group with its tree of stroke groups and
strokes, and the stroke numbers group with its labels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, Optional, Tuple, Union


class Position(Enum):
    """Position of a component inside its parent (kvg:position)."""

    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"
    NYO = "nyo"
    TARE = "tare"
    KAMAE = "kamae"
    KAMAE1 = "kamae1"
    KAMAE2 = "kamae2"


class Radical(Enum):
    """Radical classification of a component (kvg:radical)."""

    GENERAL = "general"
    NELSON = "nelson"
    TRADITIONAL = "tradit"


@dataclass(frozen=True)
class ViewBox:
    """The four integers of the viewBox attribute."""

    x: int
    y: int
    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.x} {self.y} {self.width} {self.height}"


@dataclass(frozen=True)
class Transform:
    """A ``matrix(a, b, c, d, e, f)`` transform of a stroke number."""

    a: float
    b: float
    c: float
    d: float
    e: float
    f: float

    @property
    def translation(self) -> Tuple[float, float]:
        """Translation components (e, f), the label's placement."""
        return (self.e, self.f)


@dataclass(frozen=True)
class Stroke:
    """A single stroke, a <path> element.

    Attributes:
        id: Element id (e.g., "kvg:00061-s1")
        path: Path data string ("d" attribute)
        type: Optional stroke type label (kvg:type)
    """

    id: str
    path: str
    type: Optional[str] = None


@dataclass(frozen=True)
class StrokeGroup:
    """A group of strokes and nested groups, a <g> element.

    Children order is the source order, which defines depth-first
    numbering of groups and strokes.
    """

    id: str
    element: Optional[str] = None
    original: Optional[str] = None
    position: Optional[Position] = None
    variant: Optional[bool] = None
    partial: Optional[bool] = None
    part: Optional[int] = None
    number: Optional[int] = None
    radical: Optional[Radical] = None
    phon: Optional[str] = None
    trad_form: Optional[str] = None
    radical_form: Optional[str] = None
    children: Tuple[Union["StrokeGroup", Stroke], ...] = ()


@dataclass(frozen=True)
class StrokePathsGroup:
    """First child of <svg>: styled container of exactly one stroke group."""

    id: str
    style: Dict[str, str]
    root: StrokeGroup


@dataclass(frozen=True)
class StrokeNumber:
    """A stroke number label, a <text> element."""

    value: int
    transform: Transform


@dataclass(frozen=True)
class StrokeNumbersGroup:
    """Second child of <svg>: styled, non-empty list of stroke numbers."""

    id: str
    style: Dict[str, str]
    labels: Tuple[StrokeNumber, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Document:
    """A parsed KanjiVG file, the root <svg> element."""

    width: int
    height: int
    view_box: ViewBox
    stroke_paths: StrokePathsGroup
    stroke_numbers: StrokeNumbersGroup

    @property
    def kanji(self) -> str:
        """The character this file draws, for reporting."""
        return self.stroke_paths.root.element or "NA"


def iter_groups(group: StrokeGroup) -> Iterator[StrokeGroup]:
    """Yield ``group`` and all nested groups in pre-order."""
    yield group
    for child in group.children:
        if isinstance(child, StrokeGroup):
            yield from iter_groups(child)


def iter_strokes(group: StrokeGroup) -> Iterator[Stroke]:
    """Yield all strokes under ``group`` in pre-order."""
    for child in group.children:
        if isinstance(child, StrokeGroup):
            yield from iter_strokes(child)
        else:
            yield child


def stroke_count(group: StrokeGroup) -> int:
    """Count strokes under ``group``."""
    return sum(1 for _ in iter_strokes(group))
