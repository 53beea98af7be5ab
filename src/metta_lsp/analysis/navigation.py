"""Hover, definition, outline and completion.

All functions are read-only over the index and a freshly parsed tree.
"No result" is always an empty answer (None or []), never an error.

Hover tie-break, first hit wins:
1. type declaration in the cursor's own file
2. any type declaration
3. any site in the cursor's own file
4. first site in insertion order
"""

from __future__ import annotations

from typing import Iterable, Sequence

from lsprotocol import types as lsp

from ..core.language_spec import NAME_NODE_TYPES
from ..core.types import SiteKind, SourceRange, SymbolSite
from ..syntax.grammar import node_text

_OUTLINE_KINDS = {
    SiteKind.DEFINITION: lsp.SymbolKind.Function,
    SiteKind.TYPE_DECLARATION: lsp.SymbolKind.Interface,
}


def to_lsp_range(source_range: SourceRange) -> lsp.Range:
    return lsp.Range(
        start=lsp.Position(line=source_range.start_line, character=source_range.start_column),
        end=lsp.Position(line=source_range.end_line, character=source_range.end_column),
    )


def to_location(site: SymbolSite) -> lsp.Location:
    return lsp.Location(uri=site.uri, range=to_lsp_range(site.range))


def name_at(root, point: tuple[int, int]) -> str | None:
    """Text of the symbol or variable node at ``point``, if any."""
    node = root.descendant_for_point_range(point, point)
    if node is None or node.type not in NAME_NODE_TYPES:
        return None
    return node_text(node)


def choose_hover_site(sites: Sequence[SymbolSite], uri: str) -> SymbolSite | None:
    """Pick the one site a hover in ``uri`` should render."""
    if not sites:
        return None
    preferences = (
        lambda s: s.is_type_declaration and s.uri == uri,
        lambda s: s.is_type_declaration,
        lambda s: s.uri == uri,
    )
    for matches in preferences:
        for site in sites:
            if matches(site):
                return site
    return sites[0]


def render_hover(site: SymbolSite) -> lsp.Hover:
    return lsp.Hover(
        contents=lsp.MarkupContent(
            kind=lsp.MarkupKind.Markdown,
            value=f"```metta\n{site.signature}\n```",
        )
    )


def definition_locations(sites: Iterable[SymbolSite]) -> list[lsp.Location]:
    """Every site of an ambiguous name, in index order."""
    return [to_location(site) for site in sites]


def outline_entries(sites: Iterable[SymbolSite]) -> list[lsp.SymbolInformation]:
    """Flat document outline in extraction order."""
    return [
        lsp.SymbolInformation(
            name=site.name,
            kind=_OUTLINE_KINDS[site.kind],
            location=to_location(site),
        )
        for site in sites
    ]


def completion_items(keywords: Iterable[str], names: Iterable[str]) -> list[lsp.CompletionItem]:
    """Keywords followed by indexed names, first label wins."""
    candidates = [(label, lsp.CompletionItemKind.Keyword) for label in keywords]
    candidates.extend((label, lsp.CompletionItemKind.Function) for label in names)

    seen: set[str] = set()
    items: list[lsp.CompletionItem] = []
    for label, kind in candidates:
        if label in seen:
            continue
        seen.add(label)
        items.append(lsp.CompletionItem(label=label, kind=kind))
    return items
