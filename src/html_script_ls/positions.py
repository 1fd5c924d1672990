from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple


class OutOfRange(IndexError):
    """Raised when an offset or a line/column pair lies outside the text."""


class OffsetIndex:
    """Line-start table for one text buffer.

    Lines and columns are 1-based. Only ``\\n`` starts a new line, so the
    ``\\r`` of a CRLF pair sits at the end of its line and both newline
    styles yield the same coordinates for every visible character.
    """

    def __init__(self, text: str):
        self._length = len(text)
        starts = [0]
        pos = text.find("\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = text.find("\n", pos + 1)
        self._starts: List[int] = starts
        self._content_ends: List[int] = [self._content_end(text, idx) for idx in range(len(starts))]

    def _content_end(self, text: str, idx: int) -> int:
        if idx + 1 < len(self._starts):
            end = self._starts[idx + 1] - 1
            if end > self._starts[idx] and text[end - 1] == "\r":
                end -= 1
            return end
        return self._length

    @property
    def line_count(self) -> int:
        return len(self._starts)

    @property
    def length(self) -> int:
        return self._length

    def line_start(self, line: int) -> int:
        self._check_line(line)
        return self._starts[line - 1]

    def line_length(self, line: int) -> int:
        """Number of characters on ``line`` excluding its terminator."""
        self._check_line(line)
        return self._content_ends[line - 1] - self._starts[line - 1]

    def line_column(self, offset: int) -> Tuple[int, int]:
        if offset < 0 or offset > self._length:
            raise OutOfRange(f"offset {offset} outside 0..{self._length}")
        idx = bisect_right(self._starts, offset) - 1
        return idx + 1, offset - self._starts[idx] + 1

    def offset_of(self, line: int, column: int) -> int:
        self._check_line(line)
        max_column = self.line_length(line) + 1
        if column < 1 or column > max_column:
            raise OutOfRange(f"column {column} outside 1..{max_column} on line {line}")
        return self._starts[line - 1] + column - 1

    def _check_line(self, line: int) -> None:
        if line < 1 or line > len(self._starts):
            raise OutOfRange(f"line {line} outside 1..{len(self._starts)}")


@dataclass(frozen=True)
class SourceDocument:
    text: str
    path: Path | None = None
    index: OffsetIndex = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "index", OffsetIndex(self.text))

    def line_column(self, offset: int) -> Tuple[int, int]:
        return self.index.line_column(offset)

    def offset_of(self, line: int, column: int) -> int:
        return self.index.offset_of(line, column)
