"""
kvglint.core.events - Lexical event source for KanjiVG markup.

Tokenizes raw markup into an ordered sequence of typed events with
source positions, and exposes them through a pull-based reader.

Tokenization is done by expat with namespace processing disabled, so
``kvg:element`` arrives as a plain attribute name. Offsets are byte
offsets into the UTF-8 encoding of the source. A START event spans
from its ``<`` up to and including its closing ``>`` (or ``/>``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union
from xml.parsers import expat


class EventKind(Enum):
    """Kinds of lexical events."""

    DECLARATION = "declaration"
    COMMENT = "comment"
    DOCTYPE = "doctype"
    START = "start"
    END = "end"
    CHARACTERS = "characters"
    OTHER = "other"


@dataclass(frozen=True)
class Event:
    """A single lexical event.

    Attributes:
        kind: Event kind
        name: Qualified tag name as written (START/END only)
        attributes: Attributes physically present on the tag (START only)
        data: Character payload (CHARACTERS, COMMENT)
        cdata: True when the characters come from a CDATA section
        start: Byte offset of the first byte of the event
        end: Byte offset one past the last byte of the event (START only)
        line: 1-based source line
    """

    kind: EventKind
    name: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    data: str = ""
    cdata: bool = False
    start: int = 0
    end: int = 0
    line: int = 0

    @property
    def is_blank(self) -> bool:
        """True for whitespace-only, non-CDATA character data."""
        return self.kind is EventKind.CHARACTERS and not self.cdata and not self.data.strip()

    def __str__(self) -> str:
        if self.kind is EventKind.START:
            attrs = "".join(f' {name}="{value}"' for name, value in self.attributes.items())
            return f"<{self.name}{attrs}> (line {self.line})"
        if self.kind is EventKind.END:
            return f"</{self.name}> (line {self.line})"
        if self.kind is EventKind.CHARACTERS:
            if self.is_blank:
                return "[whitespace]"
            data = self.data.replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
            return f"[characters:'{data}']"
        return f"[{self.kind.value}] (line {self.line})"


class MarkupError(Exception):
    """Raised when the source is not well-formed markup."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        super().__init__(message)
        self.line = line
        self.column = column


class EndOfEvents(Exception):
    """Raised when pulling from a drained EventReader."""


def local_name(qualified: str) -> str:
    """Strip a ``prefix:`` from a qualified name.

    >>> local_name("kvg:element")
    'element'
    """
    return qualified.rpartition(":")[2]


def tag_end(buffer: bytes, start: int) -> int:
    """Return the offset one past the ``>`` closing the tag at ``start``.

    Quoted attribute values are skipped, so a ``>`` inside a value does
    not end the tag.
    """
    quote = 0
    for index in range(start + 1, len(buffer)):
        byte = buffer[index]
        if quote:
            if byte == quote:
                quote = 0
        elif byte in (0x22, 0x27):  # " '
            quote = byte
        elif byte == 0x3E:  # >
            return index + 1
    return len(buffer)


class _Collector:
    """Expat handlers accumulating events for one document."""

    def __init__(self, parser: expat.XMLParserType, buffer: bytes):
        self.parser = parser
        self.buffer = buffer
        self.events: list[Event] = []
        self._in_cdata = False
        # Pending character chunks: (start offset, line, cdata flag, parts)
        self._pending: Optional[tuple[int, int, bool, list[str]]] = None

    def _position(self) -> tuple[int, int]:
        return self.parser.CurrentByteIndex, self.parser.CurrentLineNumber

    def _emit(self, event: Event) -> None:
        self.flush()
        self.events.append(event)

    def flush(self) -> None:
        if self._pending is not None:
            start, line, cdata, parts = self._pending
            self.events.append(
                Event(EventKind.CHARACTERS, data="".join(parts), cdata=cdata, start=start, line=line)
            )
            self._pending = None

    def xml_decl(self, version, encoding, standalone) -> None:
        start, line = self._position()
        self._emit(Event(EventKind.DECLARATION, start=start, line=line))

    def comment(self, data: str) -> None:
        start, line = self._position()
        self._emit(Event(EventKind.COMMENT, data=data, start=start, line=line))

    def doctype(self, name, system_id, public_id, has_internal_subset) -> None:
        start, line = self._position()
        self._emit(Event(EventKind.DOCTYPE, name=name or "", start=start, line=line))

    def processing_instruction(self, target: str, data: str) -> None:
        start, line = self._position()
        self._emit(Event(EventKind.OTHER, name=target, data=data, start=start, line=line))

    def start_element(self, name: str, attributes: dict[str, str]) -> None:
        start, line = self._position()
        self._emit(
            Event(
                EventKind.START,
                name=name,
                attributes=dict(attributes),
                start=start,
                end=tag_end(self.buffer, start),
                line=line,
            )
        )

    def end_element(self, name: str) -> None:
        start, line = self._position()
        self._emit(Event(EventKind.END, name=name, start=start, line=line))

    def characters(self, data: str) -> None:
        if self._pending is not None and self._pending[2] == self._in_cdata:
            self._pending[3].append(data)
            return
        self.flush()
        start, line = self._position()
        self._pending = (start, line, self._in_cdata, [data])

    def start_cdata(self) -> None:
        self.flush()
        self._in_cdata = True

    def end_cdata(self) -> None:
        self.flush()
        self._in_cdata = False


def read_events(source: Union[str, bytes]) -> list[Event]:
    """Tokenize a whole document into lexical events.

    Args:
        source: Markup text, or its UTF-8 encoded bytes

    Returns:
        Events in document order

    Raises:
        MarkupError: If the source is not well-formed
    """
    buffer = source.encode("utf-8") if isinstance(source, str) else bytes(source)
    parser = expat.ParserCreate(encoding="UTF-8")
    parser.buffer_text = False
    parser.ordered_attributes = False
    # DTD attribute defaults (e.g. a #FIXED xmlns:kvg) must not show up on every tag
    parser.specified_attributes = True

    collector = _Collector(parser, buffer)
    parser.XmlDeclHandler = collector.xml_decl
    parser.CommentHandler = collector.comment
    parser.StartDoctypeDeclHandler = collector.doctype
    parser.ProcessingInstructionHandler = collector.processing_instruction
    parser.StartElementHandler = collector.start_element
    parser.EndElementHandler = collector.end_element
    parser.CharacterDataHandler = collector.characters
    parser.StartCdataSectionHandler = collector.start_cdata
    parser.EndCdataSectionHandler = collector.end_cdata

    try:
        parser.Parse(buffer, True)
    except expat.ExpatError as e:
        raise MarkupError(
            f"{expat.ErrorString(e.code)} at line {e.lineno}, column {e.offset}",
            line=e.lineno,
            column=e.offset,
        ) from e
    collector.flush()
    return collector.events


class EventReader:
    """Pull-based reader over a sequence of lexical events."""

    def __init__(self, events: Iterable[Event]):
        self._events = list(events)
        self._index = 0

    @classmethod
    def from_source(cls, source: Union[str, bytes]) -> "EventReader":
        """Tokenize ``source`` and wrap the events in a reader."""
        return cls(read_events(source))

    def has_next(self) -> bool:
        return self._index < len(self._events)

    def peek(self) -> Event:
        if not self.has_next():
            raise EndOfEvents()
        return self._events[self._index]

    def next(self) -> Event:
        event = self.peek()
        self._index += 1
        return event

    def skip(self, kinds: Iterable[EventKind], blank: bool = True) -> None:
        """Skip events of the given kinds (and blank character data)."""
        kinds = frozenset(kinds)
        while self.has_next():
            event = self.peek()
            if event.kind in kinds or (blank and event.is_blank):
                self._index += 1
            else:
                return

    def skip_space(self) -> None:
        """Skip whitespace-only character data."""
        self.skip(())
