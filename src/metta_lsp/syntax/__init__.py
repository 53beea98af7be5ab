"""Syntax layer: grammar loading, pattern queries and parse caching."""

from metta_lsp.syntax.grammar import (
    Capture,
    MettaGrammar,
    PatternQuery,
    QueryMatch,
    load_language,
    node_text,
    read_highlights_source,
)
from metta_lsp.syntax.parse_cache import ParseCache
from metta_lsp.syntax.positions import LineColumns, byte_column, point_for_position, utf16_length

__all__ = [
    "Capture",
    "MettaGrammar",
    "PatternQuery",
    "QueryMatch",
    "load_language",
    "node_text",
    "read_highlights_source",
    "ParseCache",
    "byte_column",
    "point_for_position",
    "LineColumns",
    "utf16_length",
]
