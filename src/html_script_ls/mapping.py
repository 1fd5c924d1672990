from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List

from .indent import NormalizedCode
from .messages import Diagnostic
from .parser import ScriptBlock
from .positions import OffsetIndex, OutOfRange, SourceDocument
from .transform import MappedOffset

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedBlock:
    block: ScriptBlock
    normalized: NormalizedCode

    @property
    def text(self) -> str:
        return self.normalized.text


@dataclass(frozen=True)
class SourcePosition:
    line: int
    column: int
    offset: int
    # False when the position sat inside inserted indentation.
    exact: bool = True


class BlockMapping:
    """Maps positions in one block's normalized text to the source document."""

    def __init__(self, document: SourceDocument, prepared: PreparedBlock):
        self._document = document
        self._prepared = prepared
        self._index = OffsetIndex(prepared.normalized.text)

    @property
    def index(self) -> OffsetIndex:
        return self._index

    def to_source_offset(self, line: int, column: int) -> MappedOffset:
        normalized_offset = self._index.offset_of(line, column)
        raw = self._prepared.normalized.log.original_offset(normalized_offset)
        return MappedOffset(self._prepared.block.start_offset + raw.offset, raw.exact)

    def to_source_position(self, line: int, column: int) -> SourcePosition:
        mapped = self.to_source_offset(line, column)
        source_line, source_column = self._document.line_column(mapped.offset)
        return SourcePosition(source_line, source_column, mapped.offset, mapped.exact)


class DocumentMapper:
    def __init__(self, document: SourceDocument, prepared_blocks: Iterable[PreparedBlock]):
        self._document = document
        self._blocks: List[PreparedBlock] = list(prepared_blocks)
        self._mappings: Dict[int, BlockMapping] = {}

    @property
    def blocks(self) -> List[PreparedBlock]:
        return self._blocks

    def mapping(self, block_index: int) -> BlockMapping:
        if block_index < 0 or block_index >= len(self._blocks):
            raise OutOfRange(f"block {block_index} outside 0..{len(self._blocks) - 1}")
        cached = self._mappings.get(block_index)
        if cached is None:
            cached = BlockMapping(self._document, self._blocks[block_index])
            self._mappings[block_index] = cached
        return cached

    def to_source_position(self, block_index: int, line: int, column: int) -> SourcePosition:
        return self.mapping(block_index).to_source_position(line, column)

    def remap(self, block_index: int, diagnostic: Diagnostic) -> Diagnostic:
        mapping = self.mapping(block_index)
        start = mapping.to_source_position(diagnostic.line, diagnostic.column)
        end_line = end_column = None
        if diagnostic.end_line is not None and diagnostic.end_column is not None:
            try:
                end = mapping.to_source_position(diagnostic.end_line, diagnostic.end_column)
            except OutOfRange as exc:
                log.debug("Dropping end position of %r: %s", diagnostic.message, exc)
            else:
                end_line, end_column = end.line, end.column
        return replace(diagnostic, line=start.line, column=start.column, end_line=end_line, end_column=end_column)
