"""Syntax diagnostics from a parsed tree.

Every ERROR node and every node the parser synthesised as missing becomes
one Error-severity diagnostic. The full list is recomputed per change and
replaces whatever was published before.
"""

from __future__ import annotations

from lsprotocol import types as lsp

from ..core.language_spec import ERROR_NODE_TYPE
from ..core.types import SourceRange
from .navigation import to_lsp_range


def scan_diagnostics(root, source: str = "metta-lsp", columns=None) -> list[lsp.Diagnostic]:
    """Walk ``root`` in pre-order and report error and missing nodes.

    ``columns`` maps byte columns to UTF-16 characters (see
    ``syntax.positions.LineColumns``); byte columns are reported without it.
    """
    diagnostics: list[lsp.Diagnostic] = []
    # Explicit stack keeps pre-order without recursion limits on deep nesting
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == ERROR_NODE_TYPE or node.is_missing:
            message = "Syntax error" if node.type == ERROR_NODE_TYPE else f"Missing node: {node.type}"
            diagnostics.append(
                lsp.Diagnostic(
                    range=to_lsp_range(SourceRange.of_node(node, columns)),
                    message=message,
                    severity=lsp.DiagnosticSeverity.Error,
                    source=source,
                )
            )
        stack.extend(reversed(node.children))
    return diagnostics
