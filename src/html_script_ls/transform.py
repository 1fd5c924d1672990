from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Sequence


@dataclass(frozen=True)
class Edit:
    """Replace ``original[start:end]`` with ``replacement``."""

    start: int
    end: int
    replacement: str = ""

    @property
    def delta(self) -> int:
        return len(self.replacement) - (self.end - self.start)

    @property
    def is_insertion(self) -> bool:
        return self.start == self.end


@dataclass(frozen=True)
class MappedOffset:
    offset: int
    # False when the offset fell inside replacement text and was snapped to the edit start.
    exact: bool = True


class TransformLog:
    """Sorted, non-overlapping edits turning an original buffer into a transformed one."""

    def __init__(self, edits: Iterable[Edit] = ()):
        ordered = tuple(edits)
        previous_end = 0
        for edit in ordered:
            if edit.start < 0 or edit.end < edit.start:
                raise ValueError(f"invalid edit range {edit.start}..{edit.end}")
            if edit.start < previous_end:
                raise ValueError(f"edit at {edit.start} overlaps or precedes the previous edit")
            previous_end = edit.end
        self._edits = ordered

        # Start of each edit's replacement in transformed coordinates, plus the
        # cumulative delta applied before that edit.
        new_starts: List[int] = []
        deltas_before: List[int] = []
        delta = 0
        for edit in ordered:
            deltas_before.append(delta)
            new_starts.append(edit.start + delta)
            delta += edit.delta
        self._new_starts = new_starts
        self._deltas_before = deltas_before
        self._net_delta = delta

    @property
    def edits(self) -> Sequence[Edit]:
        return self._edits

    @property
    def net_delta(self) -> int:
        return self._net_delta

    def __len__(self) -> int:
        return len(self._edits)

    def __iter__(self) -> Iterator[Edit]:
        return iter(self._edits)

    def __bool__(self) -> bool:
        return bool(self._edits)

    def __repr__(self) -> str:
        return f"TransformLog({list(self._edits)!r})"

    def apply(self, original: str) -> str:
        parts: list[str] = []
        cursor = 0
        for edit in self._edits:
            if edit.end > len(original):
                raise ValueError(f"edit {edit.start}..{edit.end} exceeds text length {len(original)}")
            parts.append(original[cursor : edit.start])
            parts.append(edit.replacement)
            cursor = edit.end
        parts.append(original[cursor:])
        return "".join(parts)

    def original_offset(self, offset: int) -> MappedOffset:
        """Map an offset in the transformed text back to the original text."""
        if offset < 0:
            raise ValueError(f"negative offset {offset}")
        idx = bisect_right(self._new_starts, offset) - 1
        if idx < 0:
            return MappedOffset(offset)
        edit = self._edits[idx]
        if offset < self._new_starts[idx] + len(edit.replacement):
            return MappedOffset(edit.start, exact=False)
        return MappedOffset(offset - (self._deltas_before[idx] + edit.delta))

    def transformed_offset(self, offset: int) -> int:
        """Map an offset in the original text forward into the transformed text."""
        delta = 0
        for edit in self._edits:
            if offset < edit.start:
                break
            if offset < edit.end:
                return edit.start + delta
            delta += edit.delta
        return offset + delta
