from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterable, List

from .analyzers import SyntaxAnalyzer
from .config import CONFIG_FILENAME, load_config
from .diagnostics import DiagnosticProvider
from .lsp.server import create_server
from .messages import SOURCE, Diagnostic


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Language server for scripts embedded in HTML/XML documents")
    parser.add_argument("--tcp", action="store_true", help="Run in TCP mode instead of stdio")
    parser.add_argument("--host", default="127.0.0.1", help="TCP host (when --tcp is set)")
    parser.add_argument("--port", type=int, default=2087, help="TCP port (when --tcp is set)")
    parser.add_argument("--stdio", action="store_true", help="Accept stdio flag for VS Code clients (ignored)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument(
        "--analyze",
        metavar="FILE",
        nargs="+",
        help="Run diagnostics for one or more files and print them to stdout",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    if args.analyze:
        if args.tcp:
            parser.error("--analyze cannot be combined with --tcp")
        sys.exit(_run_analysis([Path(item) for item in args.analyze]))

    server = create_server()
    if args.tcp:
        server.start_tcp(args.host, args.port)
    else:
        server.start_io()


def _configure_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.WARNING)
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    logging.basicConfig(
        level=numeric,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _run_analysis(paths: List[Path]) -> int:
    log = logging.getLogger(__name__)
    status = 0
    analyzer = SyntaxAnalyzer()
    for path in paths:
        if not path.exists():
            print(f"File not found: {path}", file=sys.stderr)
            status = 2
            continue

        workspace_root = _discover_workspace_root(path)
        log.info("Analyzing %s (workspace root: %s)", path, workspace_root)

        config, warnings = load_config(workspace_root)
        for warning in warnings:
            log.warning(warning)

        provider = DiagnosticProvider(analyzer, config.diagnostics)
        source = path.read_text(encoding="utf-8")
        results = provider.analyze(source, path)
        _print_diagnostics(path, results)
        if results and status == 0:
            status = 1
    return status


def _discover_workspace_root(target: Path) -> Path:
    current = target if target.is_dir() else target.parent
    for folder in [current, *current.parents]:
        if (folder / CONFIG_FILENAME).exists():
            return folder
    return current


def _print_diagnostics(path: Path, diagnostics: Iterable[Diagnostic]) -> None:
    diags = list(diagnostics)
    if not diags:
        print(f"{path}: no issues found")
        return

    for diag in diags:
        source = diag.source or SOURCE
        fatal = " (fatal)" if diag.fatal else ""
        print(f"{path}:{diag.line}:{diag.column}: {diag.severity}{fatal} [{source}] {diag.message}")


if __name__ == "__main__":
    main()
