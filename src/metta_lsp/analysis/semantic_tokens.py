"""Semantic token encoding.

Highlight captures arrive in arbitrary order and may overlap or be empty.
The encoder sorts them and emits only tokens that keep the relative
(delta line, delta column) stream non-negative.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from ..core.language_spec import CAPTURE_TOKEN_TYPES

logger = logging.getLogger(__name__)


def encode_semantic_tokens(
    captures: Iterable,
    token_types: Mapping[str, int] = CAPTURE_TOKEN_TYPES,
    columns=None,
) -> list[int]:
    """Encode captures into the flat LSP semantic token array.

    Args:
        captures: Objects with ``name``, ``node`` and ``index``
        token_types: Capture name -> legend index; unknown names are dropped
        columns: Optional ``character(row, column)`` mapper from byte columns
            to UTF-16 characters, applied to starts and lengths

    Returns:
        Flat list of (delta_line, delta_column, length, type, 0) groups
    """
    typed = [(capture, token_types[capture.name]) for capture in captures if capture.name in token_types]
    typed.sort(key=lambda item: (item[0].node.start_point[0], item[0].node.start_point[1], item[0].index))

    data: list[int] = []
    prev_line = 0
    prev_column = 0
    skipped = 0
    for capture, token_type in typed:
        line, column = capture.node.start_point[0], capture.node.start_point[1]
        end_column = capture.node.end_point[1]
        if columns is not None:
            end_column = columns.character(capture.node.end_point[0], end_column)
            column = columns.character(line, column)
        length = end_column - column
        if length <= 0:
            skipped += 1
            continue

        delta_line = line - prev_line
        delta_column = column - prev_column if delta_line == 0 else column
        # Overlapping captures would move backwards; drop them
        if delta_line < 0 or (delta_line == 0 and delta_column < 0):
            skipped += 1
            continue

        data.extend((delta_line, delta_column, length, token_type, 0))
        prev_line, prev_column = line, column

    if skipped:
        logger.debug(f"Skipped {skipped} unencodable highlight captures")
    return data
