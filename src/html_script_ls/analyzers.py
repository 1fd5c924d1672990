from __future__ import annotations

import logging
from functools import lru_cache
from typing import List

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_parser

from .messages import PARSE_ERROR_CODE, Diagnostic
from .parser import ScriptBlock
from .positions import OffsetIndex

log = logging.getLogger(__name__)

TREE_SITTER_SOURCE = "tree-sitter"


@lru_cache(maxsize=1)
def _javascript_parser() -> Parser:
    log.debug("Loading tree-sitter javascript grammar")
    return get_parser("javascript")


class SyntaxAnalyzer:
    """Reports the first JavaScript syntax error of a block as a fatal diagnostic."""

    def __call__(self, code: str, block: ScriptBlock) -> List[Diagnostic]:
        data = code.encode("utf-8")
        tree = _javascript_parser().parse(data)
        node = _first_error(tree.root_node)
        if node is None:
            return []

        index = OffsetIndex(code)
        line, column = index.line_column(_char_offset(data, node.start_byte))
        end_line, end_column = index.line_column(_char_offset(data, node.end_byte))
        if node.is_missing:
            message = f"Parsing error: Missing {node.type}"
        else:
            token = _first_token(data, node)
            message = f"Parsing error: Unexpected token {token}" if token else "Parsing error: Unexpected end of input"
        return [
            Diagnostic(
                message=message,
                line=line,
                column=column,
                end_line=end_line,
                end_column=end_column,
                severity="error",
                fatal=True,
                source=TREE_SITTER_SOURCE,
                code=PARSE_ERROR_CODE,
            )
        ]


def _first_error(root: Node) -> Node | None:
    if not root.has_error:
        return None
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "ERROR" or node.is_missing:
            return node
        # Reverse so the leftmost child is visited first.
        stack.extend(child for child in reversed(node.children) if child.has_error or child.is_missing)
    return None


def _first_token(data: bytes, node: Node) -> str:
    leaf = node
    while leaf.children:
        leaf = leaf.children[0]
    text = data[leaf.start_byte : leaf.end_byte].decode("utf-8", errors="replace").strip()
    if not text:
        return ""
    return text.split()[0]


def _char_offset(data: bytes, byte_offset: int) -> int:
    return len(data[:byte_offset].decode("utf-8", errors="ignore"))
