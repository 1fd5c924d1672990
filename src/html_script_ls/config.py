from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .indent import AUTO, IndentPolicy, InvalidIndentPolicy, parse_indent_policy

log = logging.getLogger(__name__)

CONFIG_FILENAME = ".html-script-ls.json"

DEFAULT_HTML_EXTENSIONS: Tuple[str, ...] = (
    ".erb",
    ".handlebars",
    ".hbs",
    ".htm",
    ".html",
    ".mustache",
    ".nunjucks",
    ".php",
    ".tag",
    ".twig",
    ".vue",
    ".we",
)
DEFAULT_XML_EXTENSIONS: Tuple[str, ...] = (".xhtml", ".xml")

# eslint-plugin-html style "html/..." keys map onto the camelCase names.
_KEY_ALIASES = {
    "html/indent": "indent",
    "html/report-bad-indent": "reportBadIndent",
    "html/xml-mode": "xmlMode",
    "html/html-extensions": "htmlExtensions",
    "html/xml-extensions": "xmlExtensions",
    "html/javascript-mime-types": "javascriptMimeTypes",
}

_VAR_RE = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


class _Unresolved(Exception):
    pass


@dataclass(frozen=True)
class DiagnosticSettings:
    indent: IndentPolicy = AUTO
    report_bad_indent: bool = False
    xml_mode: bool | None = None
    html_extensions: Tuple[str, ...] = DEFAULT_HTML_EXTENSIONS
    xml_extensions: Tuple[str, ...] = DEFAULT_XML_EXTENSIONS
    javascript_mime_types: Tuple[str, ...] = ()
    tab_width: int = 1
    include_empty_blocks: bool = False


@dataclass
class HtmlScriptLSConfig:
    workspace_root: Path
    diagnostics: DiagnosticSettings = field(default_factory=DiagnosticSettings)

    @classmethod
    def default(cls, workspace_root: Path) -> "HtmlScriptLSConfig":
        return cls(workspace_root=workspace_root)


def load_config(workspace_root: Path) -> Tuple[HtmlScriptLSConfig, List[str]]:
    """Read the workspace config file; problems become warnings and defaults are kept."""
    config = HtmlScriptLSConfig.default(workspace_root)
    warnings: list[str] = []
    path = workspace_root / CONFIG_FILENAME
    try:
        raw_text = path.read_text()
    except FileNotFoundError:
        log.debug("No %s in %s; using defaults", CONFIG_FILENAME, workspace_root)
        return config, warnings
    except OSError as exc:
        warnings.append(f"Failed to read {path}: {exc}")
        return config, warnings

    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        warnings.append(f"Failed to parse {path}: {exc}")
        return config, warnings
    if not isinstance(data, dict):
        warnings.append(f"{path} must contain a JSON object")
        return config, warnings

    data = {_KEY_ALIASES.get(key, key): value for key, value in data.items()}
    data = _substitute_vars(data, workspace_root, warnings)
    config.diagnostics = _settings_from_data(data, warnings)
    return config, warnings


def _settings_from_data(data: Dict[str, Any], warnings: List[str]) -> DiagnosticSettings:
    settings = DiagnosticSettings()
    updates: dict[str, Any] = {}

    if data.get("indent") is not None:
        try:
            updates["indent"] = parse_indent_policy(data["indent"])
        except InvalidIndentPolicy as exc:
            warnings.append(f"indent: {exc}")

    for key, attr in (("reportBadIndent", "report_bad_indent"), ("includeEmptyBlocks", "include_empty_blocks")):
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool):
            updates[attr] = value
        else:
            warnings.append(f"{key} must be a boolean, got {value!r}")

    xml_mode = data.get("xmlMode")
    if xml_mode is not None:
        if isinstance(xml_mode, bool):
            updates["xml_mode"] = xml_mode
        else:
            warnings.append(f"xmlMode must be a boolean, got {xml_mode!r}")

    for key, attr in (
        ("htmlExtensions", "html_extensions"),
        ("xmlExtensions", "xml_extensions"),
        ("javascriptMimeTypes", "javascript_mime_types"),
    ):
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            items = [item.strip() for item in value if item.strip()]
            if attr.endswith("extensions"):
                items = [item if item.startswith(".") else f".{item}" for item in items]
            updates[attr] = tuple(items)
        else:
            warnings.append(f"{key} must be a list of strings")

    tab_width = data.get("tabWidth")
    if tab_width is not None:
        if isinstance(tab_width, int) and not isinstance(tab_width, bool) and tab_width >= 1:
            updates["tab_width"] = tab_width
        else:
            warnings.append(f"tabWidth must be a positive integer, got {tab_width!r}")

    return replace(settings, **updates)


def _substitute_vars(value: Any, workspace_root: Path, warnings: List[str]) -> Any:
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            substituted = _substitute_vars(item, workspace_root, warnings)
            if substituted is not None or item is None:
                result[key] = substituted
        return result
    if isinstance(value, list):
        return [_substitute_vars(item, workspace_root, warnings) for item in value]
    if not isinstance(value, str) or "$" not in value:
        return value

    def _lookup(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        if name == "workspaceRoot":
            return str(workspace_root)
        env_value = os.environ.get(name)
        if env_value is None:
            warnings.append(f"Environment variable '{name}' is not set")
            raise _Unresolved(name)
        return env_value

    try:
        return _VAR_RE.sub(_lookup, value)
    except _Unresolved:
        return None
