"""Diagnostics, semantic tokens and navigation over parsed MeTTa."""

from metta_lsp.analysis.diagnostics import scan_diagnostics
from metta_lsp.analysis.navigation import (
    choose_hover_site,
    completion_items,
    definition_locations,
    name_at,
    outline_entries,
    render_hover,
    to_location,
    to_lsp_range,
)
from metta_lsp.analysis.semantic_tokens import encode_semantic_tokens

__all__ = [
    "scan_diagnostics",
    "choose_hover_site",
    "completion_items",
    "definition_locations",
    "name_at",
    "outline_entries",
    "render_hover",
    "to_location",
    "to_lsp_range",
    "encode_semantic_tokens",
]
