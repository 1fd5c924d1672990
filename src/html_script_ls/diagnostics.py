from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Protocol

from .analysis.source_context import SourceContext, build_source_context
from .config import DiagnosticSettings
from .mapping import PreparedBlock
from .markup import ParseError
from .messages import BAD_INDENT_CODE, BAD_INDENT_MESSAGE, PARSE_ERROR_CODE, Diagnostic
from .parser import ScriptBlock
from .positions import OffsetIndex

log = logging.getLogger(__name__)


class Analyzer(Protocol):
    def __call__(self, code: str, block: ScriptBlock) -> List[Diagnostic]:
        """Return diagnostics positioned in ``code`` (the normalized block text)."""


class DiagnosticProvider:
    def __init__(self, analyzer: Analyzer, settings: DiagnosticSettings):
        self._analyzer = analyzer
        self._settings = settings

    @property
    def settings(self) -> DiagnosticSettings:
        return self._settings

    def analyze(self, source: str, path: Path | str | None = None) -> List[Diagnostic]:
        try:
            ctx = build_source_context(source, self._settings, path)
        except ParseError as exc:
            log.info("Parse error in %s: %s", path or "<document>", exc)
            return [_parse_error_diagnostic(exc)]

        log.debug("Found %d script block(s) in %s (%s mode)", len(ctx.blocks), path or "<document>", ctx.mode.value)
        diagnostics: list[Diagnostic] = []
        for idx, prepared in enumerate(ctx.blocks):
            block_diags = self._analyzer(prepared.text, prepared.block)
            diagnostics.extend(ctx.mapper.remap(idx, diag) for diag in block_diags)
            if self._settings.report_bad_indent:
                diagnostics.extend(_bad_indent_diagnostics(ctx, prepared))
        return sorted(diagnostics, key=lambda diag: diag.sort_key)


def _parse_error_diagnostic(exc: ParseError) -> Diagnostic:
    return Diagnostic(
        message=f"Parsing error: {exc.message}",
        line=exc.line,
        column=exc.column,
        severity="error",
        fatal=True,
        code=PARSE_ERROR_CODE,
    )


def _bad_indent_diagnostics(ctx: SourceContext, prepared: PreparedBlock) -> List[Diagnostic]:
    if not prepared.normalized.bad_lines:
        return []
    block_index = OffsetIndex(prepared.block.code)
    diagnostics: list[Diagnostic] = []
    for line_idx in prepared.normalized.bad_lines:
        offset = prepared.block.start_offset + block_index.line_start(line_idx + 1)
        line, column = ctx.document.line_column(offset)
        diagnostics.append(
            Diagnostic(
                message=BAD_INDENT_MESSAGE,
                line=line,
                column=column,
                severity="error",
                code=BAD_INDENT_CODE,
            )
        )
    return diagnostics
