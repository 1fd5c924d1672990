"""One-shot HTML/XML parsing into flat element records with source offsets."""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from xml.parsers import expat

from .positions import OffsetIndex, SourceDocument

log = logging.getLogger(__name__)

SCRIPT_ELEMENTS = ("script",)

CDATA_RE = re.compile(r"<!\[CDATA\[|\]\]>")


class DocumentMode(enum.Enum):
    HTML = "html"
    XML = "xml"


class ParseError(Exception):
    """Document text is not well-formed in the selected mode."""

    def __init__(self, message: str, offset: int, line: int, column: int):
        super().__init__(f"{message} (line {line}, column {column})")
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column


@dataclass(frozen=True)
class Element:
    tag: str
    attrs: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    # text_start is the offset right after the opening tag's closing bracket.
    text_start: int = 0
    text_end: int = 0


def mode_for_path(
    path: Path | str | None,
    xml_mode: bool | None = None,
    html_extensions: Sequence[str] = (),
    xml_extensions: Sequence[str] = (),
) -> DocumentMode:
    if xml_mode is not None:
        return DocumentMode.XML if xml_mode else DocumentMode.HTML
    if path is None:
        return DocumentMode.HTML
    suffix = Path(path).suffix.lower()
    if suffix in {ext.lower() for ext in xml_extensions}:
        return DocumentMode.XML
    if suffix not in {ext.lower() for ext in html_extensions}:
        log.debug("Unknown extension %r; parsing %s as HTML", suffix, path)
    return DocumentMode.HTML


def parse_document(
    document: SourceDocument,
    mode: DocumentMode,
    containers: Iterable[str] = SCRIPT_ELEMENTS,
) -> List[Element]:
    if mode is DocumentMode.XML:
        return parse_xml(document.text, containers, index=document.index)
    return parse_html(document.text, containers, index=document.index)


class _RawTextCollector(HTMLParser):
    def __init__(self, text: str, containers: Iterable[str], index: OffsetIndex):
        super().__init__(convert_charrefs=False)
        self._text = text
        self._index = index
        self._containers = {name.lower() for name in containers}
        self._open: Optional[Tuple[str, Dict[str, str], int]] = None
        self.elements: List[Element] = []

    def _offset(self) -> int:
        line, col = self.getpos()
        return self._index.line_start(line) + col

    def handle_starttag(self, tag, attrs):
        if tag not in self._containers or self._open is not None:
            return
        start_text = self.get_starttag_text() or ""
        self._open = (tag, _attr_dict(attrs), self._offset() + len(start_text))

    def handle_startendtag(self, tag, attrs):
        if tag not in self._containers or self._open is not None:
            return
        end = self._offset() + len(self.get_starttag_text() or "")
        self.elements.append(Element(tag=tag, attrs=_attr_dict(attrs), text="", text_start=end, text_end=end))

    def handle_endtag(self, tag):
        if self._open is None or tag != self._open[0]:
            return
        self._finish(self._offset())

    def finish(self) -> None:
        if self._open is not None:
            log.debug("Unclosed <%s> runs to the end of the document", self._open[0])
            self._finish(len(self._text))

    def _finish(self, text_end: int) -> None:
        tag, attrs, text_start = self._open
        self._open = None
        text_end = max(text_end, text_start)
        self.elements.append(
            Element(
                tag=tag,
                attrs=attrs,
                text=self._text[text_start:text_end],
                text_start=text_start,
                text_end=text_end,
            )
        )


def parse_html(
    text: str,
    containers: Iterable[str] = SCRIPT_ELEMENTS,
    *,
    index: OffsetIndex | None = None,
) -> List[Element]:
    collector = _RawTextCollector(text, containers, index or OffsetIndex(text))
    collector.feed(text)
    collector.close()
    collector.finish()
    return collector.elements


def parse_xml(
    text: str,
    containers: Iterable[str] = SCRIPT_ELEMENTS,
    *,
    index: OffsetIndex | None = None,
) -> List[Element]:
    index = index or OffsetIndex(text)
    wanted = set(containers)
    encoded = text.encode("utf-8")
    to_char = _char_offset_converter(text, encoded)

    parser = expat.ParserCreate(encoding="utf-8", namespace_separator=" ")
    elements: List[Element] = []
    # [tag, attrs, text_start, depth]
    current: list = []

    def on_start(name: str, attrs: Dict[str, str]) -> None:
        if current:
            current[3] += 1
            return
        local = _local_name(name)
        if local not in wanted:
            return
        tag_start = to_char(parser.CurrentByteIndex)
        tag_end = _start_tag_end(text, tag_start)
        local_attrs = {_local_name(key): value for key, value in attrs.items()}
        if text[tag_end - 2 : tag_end] == "/>":
            elements.append(Element(tag=local, attrs=local_attrs, text="", text_start=tag_end, text_end=tag_end))
            # The matching end event still fires for empty elements.
            current.extend([local, local_attrs, None, 0])
            return
        current.extend([local, local_attrs, tag_end, 0])

    def on_end(name: str) -> None:
        if not current:
            return
        if current[3] > 0:
            current[3] -= 1
            return
        tag, attrs, text_start, _ = current
        current.clear()
        if text_start is None:
            return
        text_end = to_char(parser.CurrentByteIndex)
        body = _blank_cdata_markers(text[text_start:text_end])
        elements.append(Element(tag=tag, attrs=attrs, text=body, text_start=text_start, text_end=text_end))

    parser.StartElementHandler = on_start
    parser.EndElementHandler = on_end
    try:
        parser.Parse(encoded, True)
    except expat.ExpatError as exc:
        offset = min(max(to_char(parser.ErrorByteIndex), 0), len(text))
        # Invalid markup is reported just past its '<'; point at the bracket itself.
        if offset > 0 and text[offset - 1] == "<":
            offset -= 1
        line, column = index.line_column(offset)
        raise ParseError(expat.ErrorString(exc.code), offset, line, column) from exc
    return elements


def _attr_dict(attrs: Iterable[Tuple[str, Optional[str]]]) -> Dict[str, str]:
    result: dict[str, str] = {}
    for key, value in attrs:
        # Browsers keep the first occurrence of a duplicated attribute.
        result.setdefault(key, value if value is not None else "")
    return result


def _local_name(name: str) -> str:
    return name.rsplit(" ", 1)[-1]


def _start_tag_end(text: str, start: int) -> int:
    quote = None
    for pos in range(start + 1, len(text)):
        ch = text[pos]
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == ">":
            return pos + 1
    return len(text)


def _blank_cdata_markers(body: str) -> str:
    return CDATA_RE.sub(lambda match: " " * len(match.group(0)), body)


def _char_offset_converter(text: str, encoded: bytes) -> Callable[[int], int]:
    if len(encoded) == len(text):
        return lambda byte_index: byte_index

    def convert(byte_index: int) -> int:
        if byte_index <= 0:
            return byte_index
        return len(encoded[:byte_index].decode("utf-8", errors="ignore"))

    return convert
