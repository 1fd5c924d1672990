from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from html_script_ls import __version__
from html_script_ls.analyzers import SyntaxAnalyzer
from html_script_ls.config import HtmlScriptLSConfig, load_config
from html_script_ls.diagnostics import Analyzer, DiagnosticProvider
from html_script_ls.messages import Diagnostic

log = logging.getLogger(__name__)

SEVERITY = {
    "error": types.DiagnosticSeverity.Error,
    "warning": types.DiagnosticSeverity.Warning,
    "info": types.DiagnosticSeverity.Information,
}


class HtmlScriptLanguageServer(LanguageServer):
    def __init__(self, analyzer: Analyzer | None = None):
        super().__init__(name="html-script-ls", version=__version__)
        self._analyzer = analyzer or SyntaxAnalyzer()
        self._config: HtmlScriptLSConfig | None = None
        self._provider: DiagnosticProvider | None = None

    @property
    def config(self) -> HtmlScriptLSConfig:
        if self._config is None:
            self.load_workspace(self._workspace_root())
        return self._config

    @property
    def provider(self) -> DiagnosticProvider:
        if self._provider is None:
            self._provider = DiagnosticProvider(self._analyzer, self.config.diagnostics)
        return self._provider

    def load_workspace(self, root: Path) -> List[str]:
        config, warnings = load_config(root)
        for warning in warnings:
            log.warning(warning)
        self._config = config
        self._provider = None
        return warnings

    def _workspace_root(self) -> Path:
        try:
            root = self.workspace.root_path
        except RuntimeError:
            # Workspace is only available after initialize.
            root = None
        return Path(root) if root else Path.cwd()


def create_server() -> HtmlScriptLanguageServer:
    server = HtmlScriptLanguageServer()
    server.feature(types.TEXT_DOCUMENT_DID_OPEN)(on_did_open)
    server.feature(types.TEXT_DOCUMENT_DID_CHANGE)(on_did_change)
    server.feature(types.TEXT_DOCUMENT_DID_SAVE)(on_did_save)
    server.feature(types.TEXT_DOCUMENT_DID_CLOSE)(on_did_close)
    return server


def on_did_open(server: HtmlScriptLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
    _publish(server, params.text_document.uri)


def on_did_change(server: HtmlScriptLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
    _publish(server, params.text_document.uri)


def on_did_save(server: HtmlScriptLanguageServer, params: types.DidSaveTextDocumentParams) -> None:
    _publish(server, params.text_document.uri)


def on_did_close(server: HtmlScriptLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
    _send(server, params.text_document.uri, [])


def diagnostics_for_document(server: HtmlScriptLanguageServer, uri: str) -> List[types.Diagnostic]:
    document = server.workspace.get_text_document(uri)
    results = server.provider.analyze(document.source, document.path)
    lines = document.lines
    diagnostics: list[types.Diagnostic] = []
    for diag in results:
        converted = to_lsp_diagnostic(diag)
        # Columns are code points; the client may count UTF-16 units.
        converted.range = document.position_codec.range_to_client_units(lines, converted.range)
        diagnostics.append(converted)
    return diagnostics


def to_lsp_diagnostic(diag: Diagnostic) -> types.Diagnostic:
    start = types.Position(line=max(diag.line - 1, 0), character=max(diag.column - 1, 0))
    if diag.end_line is not None and diag.end_column is not None:
        end = types.Position(line=max(diag.end_line - 1, 0), character=max(diag.end_column - 1, 0))
    else:
        end = start
    return types.Diagnostic(
        message=diag.message,
        range=types.Range(start=start, end=end),
        severity=SEVERITY.get(diag.severity, types.DiagnosticSeverity.Warning),
        source=diag.source,
        code=diag.code,
    )


def _publish(server: HtmlScriptLanguageServer, uri: str) -> None:
    diagnostics = diagnostics_for_document(server, uri)
    log.debug("Publishing %d diagnostic(s) for %s", len(diagnostics), uri)
    _send(server, uri, diagnostics)


def _send(server: HtmlScriptLanguageServer, uri: str, diagnostics: List[types.Diagnostic]) -> None:
    server.text_document_publish_diagnostics(types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics))
