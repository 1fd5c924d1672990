from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple, Union

from .transform import Edit, TransformLog

RELATIVE_RE = re.compile(r"^([+-])([0-9]+)$")
ABSOLUTE_RE = re.compile(r"^[0-9]+$")


class InvalidIndentPolicy(ValueError):
    """Raised for indentation settings that are neither auto, a width, nor a signed delta."""


@dataclass(frozen=True)
class AutoIndent:
    def __str__(self) -> str:
        return "auto"


@dataclass(frozen=True)
class AbsoluteIndent:
    width: int

    def __str__(self) -> str:
        return str(self.width)


@dataclass(frozen=True)
class RelativeIndent:
    delta: int

    def __str__(self) -> str:
        return f"{self.delta:+d}"


IndentPolicy = Union[AutoIndent, AbsoluteIndent, RelativeIndent]

AUTO = AutoIndent()


def parse_indent_policy(value: object) -> IndentPolicy:
    if value is None:
        return AUTO
    if isinstance(value, (AutoIndent, AbsoluteIndent, RelativeIndent)):
        return value
    if isinstance(value, bool):
        raise InvalidIndentPolicy(f"invalid indent setting: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise InvalidIndentPolicy(f"absolute indent must be >= 0, got {value}")
        return AbsoluteIndent(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lower() == "auto":
            return AUTO
        if ABSOLUTE_RE.match(text):
            return AbsoluteIndent(int(text))
        match = RELATIVE_RE.match(text)
        if match:
            sign, amount = match.groups()
            return RelativeIndent(int(amount) if sign == "+" else -int(amount))
    raise InvalidIndentPolicy(f"invalid indent setting: {value!r}")


@dataclass(frozen=True)
class NormalizedCode:
    text: str
    log: TransformLog
    # 0-based indices of lines whose target indentation had to be clamped at zero.
    bad_lines: Tuple[int, ...] = field(default_factory=tuple)


def leading_width(line: str, tab_width: int = 1) -> Tuple[int, int]:
    """Return (column width, character count) of the leading whitespace run."""
    width = 0
    count = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += tab_width
        else:
            break
        count += 1
    return width, count


def is_blank(line: str) -> bool:
    return not line.strip()


def normalize_indentation(code: str, policy: IndentPolicy = AUTO, tab_width: int = 1) -> NormalizedCode:
    if tab_width < 1:
        raise ValueError(f"tab width must be >= 1, got {tab_width}")

    lines = code.split("\n")
    starts: List[int] = []
    widths: List[int | None] = []
    pos = 0
    for line in lines:
        starts.append(pos)
        widths.append(None if is_blank(line) else leading_width(line, tab_width)[0])
        pos += len(line) + 1

    measured = [w for w in widths if w is not None]
    if not measured:
        return NormalizedCode(text=code, log=TransformLog())
    minimum = min(measured)

    edits: list[Edit] = []
    bad_lines: list[int] = []
    for idx, (line, width) in enumerate(zip(lines, widths)):
        if width is None:
            continue
        target = _target_width(width, minimum, measured[0], policy)
        if target < 0:
            bad_lines.append(idx)
            target = 0
        edit = _line_edit(line, starts[idx], width, target, tab_width)
        if edit is not None:
            edits.append(edit)

    log = TransformLog(edits)
    return NormalizedCode(text=log.apply(code), log=log, bad_lines=tuple(bad_lines))


def _target_width(width: int, minimum: int, baseline: int, policy: IndentPolicy) -> int:
    if isinstance(policy, AbsoluteIndent):
        return policy.width + (width - baseline)
    if isinstance(policy, RelativeIndent):
        return width - minimum + policy.delta
    return width - minimum


def _line_edit(line: str, line_start: int, width: int, target: int, tab_width: int) -> Edit | None:
    if target == width:
        return None
    if target > width:
        return Edit(line_start, line_start, " " * (target - width))

    remove = width - target
    consumed_width = 0
    consumed_chars = 0
    for ch in line:
        if consumed_width >= remove:
            break
        consumed_width += tab_width if ch == "\t" else 1
        consumed_chars += 1
    overshoot = consumed_width - remove
    return Edit(line_start, line_start + consumed_chars, " " * overshoot)
