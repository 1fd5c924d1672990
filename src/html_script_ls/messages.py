from __future__ import annotations

from dataclasses import dataclass

SOURCE = "html-script-ls"

PARSE_ERROR_CODE = "parse-error"
BAD_INDENT_CODE = "bad-indent"

BAD_INDENT_MESSAGE = "Bad line indentation."

SEVERITIES = ("error", "warning", "info")


@dataclass(frozen=True)
class Diagnostic:
    """Analyzer finding. Lines and columns are 1-based."""

    message: str
    line: int
    column: int
    end_line: int | None = None
    end_column: int | None = None
    severity: str = "error"
    fatal: bool = False
    source: str = SOURCE
    code: str | None = None

    @property
    def sort_key(self) -> tuple[int, int]:
        return self.line, self.column
