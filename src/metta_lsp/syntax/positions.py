"""Conversion between LSP positions and tree-sitter points.

LSP characters count UTF-16 code units; tree-sitter columns count UTF-8
bytes. The two agree on ASCII lines.
"""

from __future__ import annotations


def byte_column(line_text: str, character: int) -> int:
    """Convert a UTF-16 character offset within a line to a UTF-8 byte column."""
    units = 0
    column = 0
    for ch in line_text:
        if units >= character:
            break
        units += 2 if ord(ch) > 0xFFFF else 1
        column += len(ch.encode("utf-8"))
    return column


def point_for_position(text: str, line: int, character: int) -> tuple[int, int]:
    """Map an LSP (line, character) into a tree-sitter (row, column) point."""
    lines = text.split("\n")
    if line >= len(lines):
        return line, character
    return line, byte_column(lines[line].rstrip("\r"), character)


def utf16_length(text: str) -> int:
    """Number of UTF-16 code units in ``text``."""
    return len(text.encode("utf-16-le")) // 2


class LineColumns:
    """Maps tree-sitter byte columns of one document back to LSP characters.

    Args:
        text: Document text the tree was parsed from
    """

    def __init__(self, text: str) -> None:
        self._lines = text.encode("utf-8").split(b"\n")

    def character(self, row: int, column: int) -> int:
        """UTF-16 character offset of byte ``column`` on line ``row``."""
        if row >= len(self._lines):
            return column
        line = self._lines[row]
        if line.isascii():
            return column
        return utf16_length(line[:column].decode("utf-8", errors="replace"))
