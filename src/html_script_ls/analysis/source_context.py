from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from html_script_ls.config import DiagnosticSettings
from html_script_ls.indent import normalize_indentation
from html_script_ls.mapping import DocumentMapper, PreparedBlock
from html_script_ls.markup import DocumentMode, mode_for_path
from html_script_ls.parser import ScriptBlock, find_script_blocks
from html_script_ls.positions import SourceDocument


@dataclass(frozen=True)
class SourceContext:
    document: SourceDocument
    mode: DocumentMode
    blocks: List[PreparedBlock]
    mapper: DocumentMapper


def build_source_context(
    source: str,
    settings: DiagnosticSettings,
    path: Path | str | None = None,
) -> SourceContext:
    """Parse, extract and normalize every script block of a document.

    Raises ``ParseError`` when the document is malformed in the selected mode.
    """
    document = SourceDocument(source, Path(path) if path is not None else None)
    mode = mode_for_path(path, settings.xml_mode, settings.html_extensions, settings.xml_extensions)
    blocks = prepare_blocks(find_script_blocks(document, mode, settings), settings)
    return SourceContext(document=document, mode=mode, blocks=blocks, mapper=DocumentMapper(document, blocks))


def prepare_blocks(blocks: Sequence[ScriptBlock], settings: DiagnosticSettings) -> List[PreparedBlock]:
    prepared: list[PreparedBlock] = []
    for block in blocks:
        policy = block.declared_indent or settings.indent
        prepared.append(PreparedBlock(block, normalize_indentation(block.code, policy, settings.tab_width)))
    return prepared
