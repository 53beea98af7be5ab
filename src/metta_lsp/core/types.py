"""Core type definitions for metta-lsp.

This module defines the symbol-site records stored in the workspace index
and the source ranges they carry.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .language_spec import DEFINITION_OPERATOR, TYPE_OPERATOR


class SiteKind(str, Enum):
    """Kind of a symbol site, fixed by its operator head."""

    DEFINITION = "definition"
    TYPE_DECLARATION = "type_declaration"

    @classmethod
    def for_operator(cls, operator: str) -> SiteKind | None:
        """Map an operator head to its site kind, or None if it is not one."""
        return _KIND_BY_OPERATOR.get(operator)


_KIND_BY_OPERATOR: dict[str, SiteKind] = {
    DEFINITION_OPERATOR: SiteKind.DEFINITION,
    TYPE_OPERATOR: SiteKind.TYPE_DECLARATION,
}


@dataclass(frozen=True)
class SourceRange:
    """Zero-based, end-exclusive line/column span."""

    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def of_node(cls, node, columns=None) -> SourceRange:
        """Build the range covered by a syntax node.

        Args:
            node: Syntax node with byte-column ``start_point``/``end_point``
            columns: Optional mapper with ``character(row, column)`` turning
                byte columns into UTF-16 characters; byte columns are kept
                when omitted
        """
        start_row, start_col = node.start_point[0], node.start_point[1]
        end_row, end_col = node.end_point[0], node.end_point[1]
        if columns is not None:
            start_col = columns.character(start_row, start_col)
            end_col = columns.character(end_row, end_col)
        return cls(start_row, start_col, end_row, end_col)


@dataclass(frozen=True)
class SymbolSite:
    """One location where a name is defined or type-declared.

    Attributes:
        uri: Document the site belongs to
        name: Defined or declared name
        kind: DEFINITION for "=", TYPE_DECLARATION for ":"
        operator: Literal operator head that produced the site
        signature: Verbatim text of the nearest enclosing list form
        range: Span of the name token
    """

    uri: str
    name: str
    kind: SiteKind
    operator: str
    signature: str
    range: SourceRange

    @property
    def is_type_declaration(self) -> bool:
        return self.kind is SiteKind.TYPE_DECLARATION
