"""Symbol extraction from query matches.

Turns matches of the fixed symbol pattern into SymbolSite records. Each
match is interpreted into a MatchResult so that "nothing captured" and
"captured but unusable" stay distinguishable; only MATCHED results become
sites.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..core.language_spec import LIST_NODE_TYPE
from ..core.types import SiteKind, SourceRange, SymbolSite
from ..syntax.grammar import QueryMatch, node_text
from ..syntax.positions import LineColumns

logger = logging.getLogger(__name__)


class MatchStatus(str, Enum):
    """Outcome of interpreting one query match."""

    MATCHED = "matched"
    NO_MATCH = "no_match"
    MALFORMED = "malformed"


@dataclass
class MatchResult:
    status: MatchStatus
    site: SymbolSite | None = None
    reason: str | None = None


def signature_for(name_node) -> str:
    """Text of the nearest enclosing list, or the name itself at the root."""
    ancestor = name_node.parent
    while ancestor is not None:
        if ancestor.type == LIST_NODE_TYPE:
            return node_text(ancestor)
        ancestor = ancestor.parent
    return node_text(name_node)


def interpret_match(uri: str, match: QueryMatch, columns: LineColumns | None = None) -> MatchResult:
    """Interpret one symbol-query match for the document ``uri``."""
    name_node = match.first("name")
    op_node = match.first("op")

    if name_node is None and op_node is None:
        return MatchResult(MatchStatus.NO_MATCH)
    if name_node is None:
        return MatchResult(MatchStatus.MALFORMED, reason="missing name capture")
    if op_node is None:
        return MatchResult(MatchStatus.MALFORMED, reason="missing operator capture")

    operator = node_text(op_node)
    kind = SiteKind.for_operator(operator)
    if kind is None:
        return MatchResult(MatchStatus.MALFORMED, reason=f"unknown operator {operator!r}")

    site = SymbolSite(
        uri=uri,
        name=node_text(name_node),
        kind=kind,
        operator=operator,
        signature=signature_for(name_node),
        range=SourceRange.of_node(name_node, columns),
    )
    return MatchResult(MatchStatus.MATCHED, site=site)


class SymbolExtractor:
    """Extract definition and type-declaration sites from a syntax tree.

    Args:
        query: Compiled symbol pattern exposing ``matches(node)``
    """

    def __init__(self, query) -> None:
        self.query = query

    def extract(self, uri: str, tree, text: str | None = None) -> list[SymbolSite]:
        """Return the sites of ``tree`` in query match order.

        When ``text`` (the source ``tree`` was parsed from) is given, site
        ranges are reported in UTF-16 characters instead of byte columns.
        """
        columns = LineColumns(text) if text is not None else None
        return self.extract_from_matches(uri, self.query.matches(tree.root_node), columns)

    def extract_from_matches(self, uri: str, matches, columns: LineColumns | None = None) -> list[SymbolSite]:
        sites: list[SymbolSite] = []
        for match in matches:
            result = interpret_match(uri, match, columns)
            if result.status is MatchStatus.MATCHED:
                sites.append(result.site)
            elif result.status is MatchStatus.MALFORMED:
                logger.debug(f"Dropped symbol match in {uri}: {result.reason}")
        return sites
