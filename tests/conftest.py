from __future__ import annotations

import re
from typing import List

import pytest

from html_script_ls.messages import Diagnostic
from html_script_ls.parser import ScriptBlock
from html_script_ls.positions import OffsetIndex

CONSOLE_RE = re.compile(r"\bconsole\.")


class ConsoleAnalyzer:
    """Stand-in analyzer flagging every ``console.`` access, like a no-console rule."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, code: str, block: ScriptBlock) -> List[Diagnostic]:
        self.calls.append(code)
        index = OffsetIndex(code)
        diagnostics = []
        for match in CONSOLE_RE.finditer(code):
            line, column = index.line_column(match.start())
            end_line, end_column = index.line_column(match.end() - 1)
            diagnostics.append(
                Diagnostic(
                    message="Unexpected console statement.",
                    line=line,
                    column=column,
                    end_line=end_line,
                    end_column=end_column,
                    severity="warning",
                    source="fake-lint",
                    code="no-console",
                )
            )
        return diagnostics


@pytest.fixture
def console_analyzer() -> ConsoleAnalyzer:
    return ConsoleAnalyzer()
