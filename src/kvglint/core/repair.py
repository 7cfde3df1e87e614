"""
kvglint.core.repair - In-place repair of misnumbered ids.

Rewrites only the values of mismatched ``id`` attributes in the original
source, leaving every other byte untouched. The parsed Document no longer
knows source offsets, so the repair re-scans the raw event stream,
mirroring just enough structure (a shadow tree) to classify each tag and
to count groups and strokes the same way the id rules do.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from xml.sax.saxutils import escape

from kvglint.core.events import Event, EventKind, local_name, read_events
from kvglint.core.models import Document
from kvglint.core.rules import (
    RULES_BY_NAME,
    Failed,
    RulesConfig,
    expected_group_id,
    expected_number_root_id,
    expected_stroke_id,
    expected_stroke_root_id,
)

# Index of the virtual parent of the outermost tag
ROOT = -1

_ATTRIBUTE = re.compile(rb"(?P<name>[^\s=<>/\"']+)\s*=\s*(?P<quoted>\"[^\"]*\"|'[^']*')")
_QUOTE_ENTITIES = {'"': "&quot;", "'": "&apos;"}


@dataclass(frozen=True)
class IdsToRepair:
    """Which categories of ids need repair."""

    stroke_root_group_id: bool = False
    number_root_group_id: bool = False
    stroke_groups_ids: bool = False
    stroke_ids: bool = False

    @property
    def needs_repair(self) -> bool:
        return (
            self.stroke_root_group_id
            or self.number_root_group_id
            or self.stroke_groups_ids
            or self.stroke_ids
        )


def find_ids_to_repair(file_id: str, document: Document) -> IdsToRepair:
    """Evaluate the four id rules and turn failures into repair flags."""
    config = RulesConfig()

    def failed(rule_name: str) -> bool:
        return isinstance(RULES_BY_NAME[rule_name](file_id, document, config), Failed)

    return IdsToRepair(
        stroke_root_group_id=failed("stroke-root-group-id"),
        number_root_group_id=failed("number-root-group-id"),
        stroke_groups_ids=failed("stroke-groups-ids"),
        stroke_ids=failed("stroke-ids"),
    )


class TagRole(Enum):
    """How a tag takes part in id numbering."""

    STROKE_ROOT = "stroke root group"
    NUMBER_ROOT = "number root group"
    STROKE_GROUP = "stroke group"
    STROKE = "stroke"
    OTHER = "other"


@dataclass
class ShadowTag:
    """Minimal mirror of an opened tag."""

    name: str
    parent: int
    ordinal: int
    n_children: int = 0


class ShadowTree:
    """Flat arena of shadow tags; parents are referenced by index."""

    def __init__(self) -> None:
        self.tags: List[ShadowTag] = []
        self._root_children = 0

    def add(self, name: str, parent: int) -> int:
        """Append a tag as the next child of ``parent`` and return its index."""
        if parent == ROOT:
            ordinal = self._root_children
            self._root_children += 1
        else:
            ordinal = self.tags[parent].n_children
            self.tags[parent].n_children += 1
        self.tags.append(ShadowTag(name, parent, ordinal))
        return len(self.tags) - 1

    def name(self, index: int) -> Optional[str]:
        return None if index == ROOT else self.tags[index].name

    def parent(self, index: int) -> int:
        return self.tags[index].parent

    def classify(self, index: int) -> TagRole:
        """Classify a tag by its name, its parent's name and its ordinal."""
        tag = self.tags[index]
        parent_name = self.name(tag.parent)
        if tag.name == "g" and parent_name == "svg":
            if tag.ordinal == 0:
                return TagRole.STROKE_ROOT
            if tag.ordinal == 1:
                return TagRole.NUMBER_ROOT
        elif tag.name == "g" and parent_name == "g":
            return TagRole.STROKE_GROUP
        elif tag.name == "path":
            return TagRole.STROKE
        return TagRole.OTHER


@dataclass(frozen=True)
class Replacement:
    """One rewritten id.

    Attributes:
        tag: Local name of the tag
        actual: Id found in the source
        expected: Id written instead
        line: Source line of the tag
    """

    tag: str
    actual: str
    expected: str
    line: int

    def __str__(self) -> str:
        return f"line {self.line}: <{self.tag}> id '{self.actual}' -> '{self.expected}'"


@dataclass
class RepairResult:
    """Outcome of a repair: the (possibly) rewritten text and what changed."""

    text: str
    replacements: List[Replacement] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.replacements)


class IdRepairer:
    """
    Walks the event stream of one file and rewrites mismatched ids.

    Offsets reported by the event source refer to the original bytes;
    ``drift`` tracks how far every later tag has moved because of the
    edits applied so far.
    """

    def __init__(self, file_id: str, things_to_repair: IdsToRepair):
        self.file_id = file_id
        self.things_to_repair = things_to_repair

    def _expected_id(self, role: TagRole, group_index: int, stroke_index: int) -> Optional[str]:
        repair = self.things_to_repair
        if role is TagRole.STROKE_ROOT and repair.stroke_root_group_id:
            return expected_stroke_root_id(self.file_id)
        if role is TagRole.NUMBER_ROOT and repair.number_root_group_id:
            return expected_number_root_id(self.file_id)
        if role is TagRole.STROKE_GROUP and repair.stroke_groups_ids:
            return expected_group_id(self.file_id, group_index)
        if role is TagRole.STROKE and repair.stroke_ids:
            return expected_stroke_id(self.file_id, stroke_index)
        return None

    def repair(self, source: bytes) -> tuple[bytes, List[Replacement]]:
        buffer = bytearray(source)
        replacements: List[Replacement] = []
        tree = ShadowTree()
        current = ROOT
        drift = 0
        group_index = 0
        stroke_index = 0

        for event in read_events(source):
            if event.kind is EventKind.END:
                current = tree.parent(current)
                continue
            if event.kind is not EventKind.START:
                continue

            current = tree.add(local_name(event.name), current)
            role = tree.classify(current)
            expected = self._expected_id(role, group_index, stroke_index)
            if expected is not None:
                delta = self._replace_id(buffer, event, drift, expected, replacements)
                drift += delta
            if role is TagRole.STROKE_GROUP:
                group_index += 1
            elif role is TagRole.STROKE:
                stroke_index += 1

        return bytes(buffer), replacements

    @staticmethod
    def _replace_id(
        buffer: bytearray,
        event: Event,
        drift: int,
        expected: str,
        replacements: List[Replacement],
    ) -> int:
        """Rewrite the id inside one tag span; return the length change."""
        actual = event.attributes.get("id")
        if actual is None or actual == expected:
            return 0
        start = event.start + drift
        end = event.end + drift
        match = next(
            (m for m in _ATTRIBUTE.finditer(buffer, start, end) if m.group("name") == b"id"),
            None,
        )
        if match is None:
            return 0
        old = match.group("quoted")
        quote = old[:1].decode("ascii")
        new = (quote + escape(expected, _QUOTE_ENTITIES) + quote).encode("utf-8")
        buffer[match.start("quoted") : match.end("quoted")] = new
        replacements.append(Replacement(local_name(event.name), actual, expected, event.line))
        return len(new) - len(old)


def repair_ids(file_id: str, document: Document, source: str) -> RepairResult:
    """
    Repair mismatched ids in the original file contents.

    Args:
        file_id: File name without extension
        document: Document parsed from ``source``
        source: Original file contents

    Returns:
        RepairResult; its text is ``source`` itself when nothing needs repair
    """
    things_to_repair = find_ids_to_repair(file_id, document)
    if not things_to_repair.needs_repair:
        return RepairResult(source)
    repaired, replacements = IdRepairer(file_id, things_to_repair).repair(source.encode("utf-8"))
    if not replacements:
        return RepairResult(source)
    return RepairResult(repaired.decode("utf-8"), replacements)
