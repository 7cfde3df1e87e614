"""
kvglint.core.parser - KanjiVG file parsing.

Strict recursive-descent parser turning the lexical event stream of a
KanjiVG file into a typed Document. Tags and attributes are matched by
local name only, since the ``kvg:`` prefix is not bound to a namespace
in practice. Any deviation from the grammar is reported as a
ParseFailure value; nothing is raised past ``parse``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Type, TypeVar, Union

from kvglint.core.events import (
    EndOfEvents,
    Event,
    EventKind,
    EventReader,
    MarkupError,
    local_name,
    read_events,
)
from kvglint.core.models import (
    Document,
    Position,
    Radical,
    Stroke,
    StrokeGroup,
    StrokeNumber,
    StrokeNumbersGroup,
    StrokePathsGroup,
    Transform,
    ViewBox,
)

E = TypeVar("E", bound=Enum)

TAG_SVG = "svg"
TAG_GROUP = "g"
TAG_PATH = "path"
TAG_TEXT = "text"

SVG_ALLOWED_ATTRIBUTES = ("xmlns", "xmlns:kvg", "width", "height", "viewBox")

# Events allowed before the root tag
PROLOG_EVENTS = (EventKind.DECLARATION, EventKind.COMMENT, EventKind.DOCTYPE)

# Real files nest a handful of levels
MAX_GROUP_DEPTH = 64


class FailureKind(Enum):
    """Kinds of parse failures."""

    UNEXPECTED_END = "unexpected-end"
    UNEXPECTED_EVENT = "unexpected-event"
    UNEXPECTED_OPENING_TAG = "unexpected-opening-tag"
    UNEXPECTED_CLOSING_TAG = "unexpected-closing-tag"
    MISSING_ATTRIBUTE = "missing-attribute"
    INVALID_ATTRIBUTE = "invalid-attribute"
    PROHIBITED_ATTRIBUTES = "prohibited-attributes"
    EMPTY_CHILDREN = "empty-children"
    MISSING_CHARACTERS = "missing-characters"
    INVALID_CHARACTERS = "invalid-characters"
    MALFORMED_MARKUP = "malformed-markup"


@dataclass(frozen=True)
class ParseFailure:
    """A structural deviation from the KanjiVG grammar.

    Attributes:
        kind: What went wrong
        message: Human-readable description
        tag: The offending (or enclosing) tag, as shown in messages
        attribute: Attribute name, for attribute failures
        value: Raw attribute value or text that failed conversion
        expected: What the grammar expected at this point
        line: Source line, when known
    """

    kind: FailureKind
    message: str
    tag: Optional[str] = None
    attribute: Optional[str] = None
    value: Optional[str] = None
    expected: Optional[str] = None
    line: Optional[int] = None

    def __str__(self) -> str:
        return self.message


ParseResult = Union[Document, ParseFailure]


class ParsingError(Exception):
    """Carries a ParseFailure out of nested parsing steps.

    Caught at the parser boundary and turned back into a value.
    """

    def __init__(self, failure: ParseFailure):
        super().__init__(failure.message)
        self.failure = failure


# ATTRIBUTE ACCESS


def attribute(tag: Event, name: str) -> Optional[str]:
    """Get an attribute value by local name."""
    for qualified, value in tag.attributes.items():
        if local_name(qualified) == name:
            return value
    return None


def required_attribute(tag: Event, name: str) -> str:
    """Get an attribute value by local name, failing when absent."""
    value = attribute(tag, name)
    if value is None:
        raise ParsingError(
            ParseFailure(
                FailureKind.MISSING_ATTRIBUTE,
                f"Missing required attribute [{name}] in tag {tag}",
                tag=str(tag),
                attribute=name,
                line=tag.line,
            )
        )
    return value


def invalid_attribute(tag: Event, name: str, value: str, details: str) -> ParsingError:
    """Build the error for an attribute whose value cannot be converted."""
    return ParsingError(
        ParseFailure(
            FailureKind.INVALID_ATTRIBUTE,
            f'Invalid format of an attribute [{name}="{value}"] in tag {tag}: {details}',
            tag=str(tag),
            attribute=name,
            value=value,
            expected=details,
            line=tag.line,
        )
    )


_INTEGER = re.compile(r"^[-+]?\d+$")


def to_int(text: str) -> Optional[int]:
    """Convert a plain decimal integer literal, or return None."""
    if _INTEGER.match(text):
        return int(text)
    return None


def attribute_int(tag: Event, name: str, required: bool = False) -> Optional[int]:
    """Get an attribute value converted to int."""
    value = required_attribute(tag, name) if required else attribute(tag, name)
    if value is None:
        return None
    number = to_int(value)
    if number is None:
        raise invalid_attribute(tag, name, value, "expected integer")
    return number


def attribute_bool(tag: Event, name: str) -> Optional[bool]:
    """Get an attribute value converted to bool ("true"/"false")."""
    value = attribute(tag, name)
    if value is None:
        return None
    lowered = value.lower()
    if lowered not in ("true", "false"):
        raise invalid_attribute(tag, name, value, "expected boolean")
    return lowered == "true"


def attribute_enum(tag: Event, name: str, enum_class: Type[E]) -> Optional[E]:
    """Get an attribute value converted to a member of ``enum_class``."""
    value = attribute(tag, name)
    if value is None:
        return None
    try:
        return enum_class(value)
    except ValueError:
        allowed = [member.value for member in enum_class]
        raise invalid_attribute(
            tag, name, value, f"expected one of these enum values: {allowed}"
        ) from None


def check_allowed_attributes(tag: Event, allowed: Sequence[str]) -> None:
    """Fail when ``tag`` carries attributes outside ``allowed``.

    Attributes from the allowed set are all optional here.
    """
    prohibited = [name for name in tag.attributes if name not in allowed]
    if prohibited:
        raise ParsingError(
            ParseFailure(
                FailureKind.PROHIBITED_ATTRIBUTES,
                f"Prohibited attributes {prohibited} in tag {tag}, "
                f"allowed attributes are {list(allowed)}",
                tag=str(tag),
                attribute=", ".join(prohibited),
                expected=", ".join(allowed),
                line=tag.line,
            )
        )


class KanjiSVGParser:
    """
    Parses one KanjiVG document from an EventReader.
    """

    SEPARATORS = re.compile(r"[,\s]+")
    STYLE_PAIR = re.compile(r"^\s*(?P<key>[^:\s]+)\s*:\s*(?P<value>[^:\s]+)\s*$")
    MATRIX = re.compile(r"^matrix\((?P<values>[^()]*)\)$")
    NUMBER = re.compile(r"^[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?$")

    def __init__(self, reader: EventReader):
        """
        Initialize parser.

        Args:
            reader: Event source positioned at the start of a document
        """
        self.reader = reader
        self._depth = 0
        # Stroke groups hold a mix of nested groups and strokes
        self._group_children: Dict[str, Callable[[], Union[StrokeGroup, Stroke]]] = {
            TAG_GROUP: self._stroke_group,
            TAG_PATH: self._stroke,
        }

    def parse(self) -> ParseResult:
        """Parse the whole document.

        Returns:
            Document, or ParseFailure describing the first deviation
        """
        try:
            self.reader.skip(PROLOG_EVENTS)
            return self._svg()
        except ParsingError as e:
            return e.failure

    # EVENT HANDLING

    def _peek(self, description: str) -> Event:
        try:
            return self.reader.peek()
        except EndOfEvents:
            raise self._unexpected_end(description) from None

    def _next(self, kind: EventKind, description: str) -> Event:
        try:
            event = self.reader.next()
        except EndOfEvents:
            raise self._unexpected_end(description) from None
        if event.kind is not kind:
            raise self._unexpected_event(event, description)
        return event

    @staticmethod
    def _unexpected_end(description: str) -> ParsingError:
        return ParsingError(
            ParseFailure(
                FailureKind.UNEXPECTED_END,
                f"Unexpected end of document, expected {description}",
                expected=description,
            )
        )

    @staticmethod
    def _unexpected_event(event: Event, description: str) -> ParsingError:
        return ParsingError(
            ParseFailure(
                FailureKind.UNEXPECTED_EVENT,
                f"Expected {description}, got {event}",
                tag=str(event),
                expected=description,
                line=event.line,
            )
        )

    def _open_tag(self, name: str, description: str) -> Event:
        self.reader.skip_space()
        event = self._next(EventKind.START, f"opening tag <{name}> ({description})")
        if local_name(event.name) != name:
            raise ParsingError(
                ParseFailure(
                    FailureKind.UNEXPECTED_OPENING_TAG,
                    f"Expected opening tag <{name}> ({description}), got {event}",
                    tag=str(event),
                    expected=name,
                    line=event.line,
                )
            )
        return event

    def _close_tag(self, name: str, description: str) -> None:
        self.reader.skip_space()
        event = self._next(EventKind.END, f"closing tag </{name}> ({description})")
        if local_name(event.name) != name:
            raise ParsingError(
                ParseFailure(
                    FailureKind.UNEXPECTED_CLOSING_TAG,
                    f"Expected closing tag </{name}> ({description}), got {event}",
                    tag=str(event),
                    expected=name,
                    line=event.line,
                )
            )

    # TAGS

    def _svg(self) -> Document:
        tag = self._open_tag(TAG_SVG, "root tag")
        check_allowed_attributes(tag, SVG_ALLOWED_ATTRIBUTES)
        width = attribute_int(tag, "width", required=True)
        height = attribute_int(tag, "height", required=True)
        view_box = self._view_box(tag)
        stroke_paths = self._stroke_paths_group()
        stroke_numbers = self._stroke_numbers_group()
        self._close_tag(TAG_SVG, "root tag")
        return Document(width, height, view_box, stroke_paths, stroke_numbers)

    def _stroke_paths_group(self) -> StrokePathsGroup:
        tag = self._open_tag(TAG_GROUP, "stroke paths group")
        group_id = required_attribute(tag, "id")
        style = self._style(tag)
        root = self._stroke_group()
        self._close_tag(TAG_GROUP, "stroke paths group")
        return StrokePathsGroup(group_id, style, root)

    def _stroke_group(self) -> StrokeGroup:
        tag = self._open_tag(TAG_GROUP, "stroke group")
        self._depth += 1
        if self._depth > MAX_GROUP_DEPTH:
            raise ParsingError(
                ParseFailure(
                    FailureKind.UNEXPECTED_OPENING_TAG,
                    f"Stroke groups nested deeper than {MAX_GROUP_DEPTH} levels at {tag}",
                    tag=str(tag),
                    expected="closing tag </g>",
                    line=tag.line,
                )
            )
        group = StrokeGroup(
            id=required_attribute(tag, "id"),
            element=attribute(tag, "element"),
            original=attribute(tag, "original"),
            position=attribute_enum(tag, "position", Position),
            variant=attribute_bool(tag, "variant"),
            partial=attribute_bool(tag, "partial"),
            part=attribute_int(tag, "part"),
            number=attribute_int(tag, "number"),
            radical=attribute_enum(tag, "radical", Radical),
            phon=attribute(tag, "phon"),
            trad_form=attribute(tag, "tradForm"),
            radical_form=attribute(tag, "radicalForm"),
            children=tuple(self._stroke_group_children()),
        )
        self._close_tag(TAG_GROUP, "stroke group")
        self._depth -= 1
        return group

    def _stroke_group_children(self) -> List[Union[StrokeGroup, Stroke]]:
        children: List[Union[StrokeGroup, Stroke]] = []
        description = "closing tag </g> or child tag <g> or <path>"
        while True:
            self.reader.skip_space()
            event = self._peek(description)
            if event.kind is EventKind.END:
                return children
            if event.kind is not EventKind.START:
                raise self._unexpected_event(event, description)
            parse_child = self._group_children.get(local_name(event.name))
            if parse_child is None:
                raise ParsingError(
                    ParseFailure(
                        FailureKind.UNEXPECTED_OPENING_TAG,
                        f"Expected opening tag {['<g>', '<path>']} (stroke group child), got {event}",
                        tag=str(event),
                        expected="g, path",
                        line=event.line,
                    )
                )
            children.append(parse_child())

    def _stroke(self) -> Stroke:
        tag = self._open_tag(TAG_PATH, "stroke")
        stroke = Stroke(
            id=required_attribute(tag, "id"),
            path=required_attribute(tag, "d"),
            type=attribute(tag, "type"),
        )
        self._close_tag(TAG_PATH, "stroke")
        return stroke

    def _stroke_numbers_group(self) -> StrokeNumbersGroup:
        tag = self._open_tag(TAG_GROUP, "stroke numbers group")
        group_id = required_attribute(tag, "id")
        style = self._style(tag)
        labels: List[StrokeNumber] = []
        description = f"closing tag </{TAG_GROUP}> or child tag <{TAG_TEXT}>"
        while True:
            self.reader.skip_space()
            if self._peek(description).kind is not EventKind.START:
                break
            labels.append(self._stroke_number())
        if not labels:
            raise ParsingError(
                ParseFailure(
                    FailureKind.EMPTY_CHILDREN,
                    f"Expected at least one child tag <{TAG_TEXT}> in tag {tag}",
                    tag=str(tag),
                    expected=TAG_TEXT,
                    line=tag.line,
                )
            )
        self._close_tag(TAG_GROUP, "stroke numbers group")
        return StrokeNumbersGroup(group_id, style, tuple(labels))

    def _stroke_number(self) -> StrokeNumber:
        tag = self._open_tag(TAG_TEXT, "stroke number")
        transform = self._transform(tag)
        value = self._stroke_number_value(tag)
        self._close_tag(TAG_TEXT, "stroke number")
        return StrokeNumber(value, transform)

    def _stroke_number_value(self, tag: Event) -> int:
        description = f"characters inside {tag}"
        try:
            event = self.reader.next()
        except EndOfEvents:
            raise self._unexpected_end(description) from None
        if event.kind is not EventKind.CHARACTERS or event.cdata or event.is_blank:
            raise ParsingError(
                ParseFailure(
                    FailureKind.MISSING_CHARACTERS,
                    f"Expected characters inside {tag}, got {event}",
                    tag=str(tag),
                    expected="integer text",
                    line=event.line,
                )
            )
        value = to_int(event.data.strip())
        if value is None:
            raise ParsingError(
                ParseFailure(
                    FailureKind.INVALID_CHARACTERS,
                    f"Invalid format of a text '{event.data}' in tag {tag}: expected an integer",
                    tag=str(tag),
                    value=event.data,
                    expected="integer",
                    line=event.line,
                )
            )
        return value

    # ATTRIBUTES

    def _view_box(self, tag: Event) -> ViewBox:
        raw = required_attribute(tag, "viewBox")
        parts = self.SEPARATORS.split(raw.strip())
        if len(parts) != 4:
            raise invalid_attribute(
                tag,
                "viewBox",
                raw,
                "there must be 4 integer parts in this element, separated by commas and/or whitespace",
            )
        numbers = [to_int(part) for part in parts]
        if any(number is None for number in numbers):
            raise invalid_attribute(tag, "viewBox", raw, "expected only integer parts")
        x, y, width, height = numbers
        if width < 0:
            raise invalid_attribute(tag, "viewBox", raw, "width (3rd element) cannot be less than 0")
        if height < 0:
            raise invalid_attribute(tag, "viewBox", raw, "height (4th element) cannot be less than 0")
        return ViewBox(x, y, width, height)

    def _style(self, tag: Event) -> Dict[str, str]:
        raw = required_attribute(tag, "style")
        style: Dict[str, str] = {}
        for part in raw.split(";"):
            if not part.strip():
                continue
            match = self.STYLE_PAIR.match(part)
            if not match:
                raise invalid_attribute(
                    tag, "style", raw, f"the '{part.strip()}' part must have a format of 'key: value'"
                )
            style[match.group("key")] = match.group("value")
        return style

    def _transform(self, tag: Event) -> Transform:
        raw = required_attribute(tag, "transform")
        match = self.MATRIX.match(raw.strip())
        if not match:
            raise invalid_attribute(tag, "transform", raw, "expected 'matrix(...)'")
        parts = self.SEPARATORS.split(match.group("values").strip())
        if len(parts) != 6:
            raise invalid_attribute(
                tag, "transform", raw, "expected exactly 6 elements inside 'matrix(...)'"
            )
        if not all(self.NUMBER.match(part) for part in parts):
            raise invalid_attribute(
                tag, "transform", raw, "expected only numeric values inside 'matrix(...)'"
            )
        return Transform(*(float(part) for part in parts))


def parse_events(reader: EventReader) -> ParseResult:
    """Parse a document from an already tokenized event stream."""
    return KanjiSVGParser(reader).parse()


def parse(source: Union[str, bytes]) -> ParseResult:
    """
    Parse KanjiVG markup.

    Args:
        source: File contents, as text or UTF-8 bytes

    Returns:
        Document, or ParseFailure (malformed markup included)
    """
    try:
        events = read_events(source)
    except MarkupError as e:
        return ParseFailure(
            FailureKind.MALFORMED_MARKUP,
            f"Malformed markup: {e}",
            line=e.line,
        )
    return parse_events(EventReader(events))


def parse_file(path: Path) -> ParseResult:
    """Parse a KanjiVG file from disk."""
    return parse(path.read_bytes())
