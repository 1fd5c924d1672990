from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

from .config import DiagnosticSettings
from .indent import IndentPolicy, InvalidIndentPolicy, parse_indent_policy
from .markup import SCRIPT_ELEMENTS, DocumentMode, Element, parse_document
from .positions import SourceDocument

log = logging.getLogger(__name__)

JAVASCRIPT_MIME_RE = re.compile(r"^(application|text)/(x-)?(javascript|babel|ecmascript-6)$", re.IGNORECASE)
JAVASCRIPT_LANGUAGE_RE = re.compile(r"^(javascript|jscript|ecmascript)[\d.]*$", re.IGNORECASE)
INDENT_ATTRIBUTE = "data-indent"


@dataclass(frozen=True)
class ScriptBlock:
    code: str
    start_offset: int
    start_line: int
    start_column: int
    declared_indent: IndentPolicy | None = None
    is_module: bool = False
    attrs: Dict[str, str] = field(default_factory=dict)

    @property
    def line_count(self) -> int:
        return self.code.count("\n") + 1

    @property
    def end_offset(self) -> int:
        return self.start_offset + len(self.code)


def find_script_blocks(
    document: SourceDocument,
    mode: DocumentMode = DocumentMode.HTML,
    settings: DiagnosticSettings | None = None,
) -> List[ScriptBlock]:
    """Extract inline scripts in document order. Raises ParseError in XML mode."""
    settings = settings or DiagnosticSettings()
    elements = parse_document(document, mode, containers=SCRIPT_ELEMENTS)
    return blocks_from_elements(document, elements, settings)


def blocks_from_elements(
    document: SourceDocument,
    elements: Iterable[Element],
    settings: DiagnosticSettings,
) -> List[ScriptBlock]:
    blocks: list[ScriptBlock] = []
    for element in elements:
        if element.tag.lower() != "script":
            continue
        if not is_javascript(element.attrs, settings.javascript_mime_types):
            log.debug("Skipping <script type=%r> at offset %d", element.attrs.get("type"), element.text_start)
            continue
        if "src" in element.attrs and not element.text.strip():
            log.debug("Skipping external <script src=%r>", element.attrs["src"])
            continue
        if not element.text and not settings.include_empty_blocks:
            continue
        line, column = document.line_column(element.text_start)
        blocks.append(
            ScriptBlock(
                code=element.text,
                start_offset=element.text_start,
                start_line=line,
                start_column=column,
                declared_indent=_declared_indent(element),
                is_module=element.attrs.get("type", "").strip().lower() == "module",
                attrs=dict(element.attrs),
            )
        )
    return blocks


def is_javascript(attrs: Dict[str, str], extra_mime_types: Sequence[str] = ()) -> bool:
    script_type = attrs.get("type")
    if script_type is None or not script_type.strip():
        language = attrs.get("language")
        if language is None or not language.strip():
            return True
        return bool(JAVASCRIPT_LANGUAGE_RE.match(language.strip()))
    script_type = script_type.strip().lower()
    if script_type == "module" or JAVASCRIPT_MIME_RE.match(script_type):
        return True
    return script_type in {mime.strip().lower() for mime in extra_mime_types}


def _declared_indent(element: Element) -> IndentPolicy | None:
    value = element.attrs.get(INDENT_ATTRIBUTE)
    if value is None:
        return None
    try:
        return parse_indent_policy(value)
    except InvalidIndentPolicy as exc:
        log.warning("Ignoring %s on <script> at offset %d: %s", INDENT_ATTRIBUTE, element.text_start, exc)
        return None
