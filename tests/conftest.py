"""Shared fixtures: a fake MeTTa syntax tree and fake pattern queries.

The builder turns s-expression text into nodes shaped like the tree-sitter
MeTTa grammar (source_file / list / atom / symbol / variable, with
``head`` and ``argument`` roles). Unclosed lists get a missing ")" node
and stray ")" become ERROR nodes, so diagnostics can be exercised without
the compiled grammar.
"""

from __future__ import annotations

import pytest

from metta_lsp.syntax.grammar import Capture, QueryMatch


class FakeNode:
    def __init__(self, node_type, start_point, end_point, text, children=None, is_missing=False):
        self.type = node_type
        self.start_point = start_point
        self.end_point = end_point
        self.text = text.encode("utf-8")
        self.children = list(children or [])
        self.is_missing = is_missing
        self.parent = None
        self.head = None
        self.arguments = []
        for child in self.children:
            child.parent = self

    @property
    def child_count(self):
        return len(self.children)

    def descendant_for_point_range(self, start, end):
        for child in self.children:
            if child.start_point <= start and end < child.end_point:
                return child.descendant_for_point_range(start, end)
        return self

    def __repr__(self):
        return f"FakeNode({self.type!r}, {self.text!r})"


class FakeTree:
    def __init__(self, root_node):
        self.root_node = root_node


def _width(ch):
    return len(ch.encode("utf-8"))


def _tokenize(text):
    """Split ``text`` into tokens with (row, byte column) spans, as tree-sitter reports them."""
    tokens = []
    row = col = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\n":
            row, col, i = row + 1, 0, i + 1
        elif ch.isspace():
            col, i = col + _width(ch), i + 1
        elif ch == ";":
            while i < len(text) and text[i] != "\n":
                i, col = i + 1, col + _width(text[i])
        elif ch in "()":
            tokens.append((ch, (row, col), (row, col + 1)))
            col, i = col + 1, i + 1
        else:
            start = (row, col)
            begin = i
            while i < len(text) and not text[i].isspace() and text[i] not in "();":
                i, col = i + 1, col + _width(text[i])
            tokens.append((text[begin:i], start, (row, col)))
    return tokens, (row, col)


def build_tree(text):
    """Parse s-expression ``text`` into a FakeTree."""
    tokens, eof = _tokenize(text)
    pos = 0

    def slice_text(start, end):
        lines = text.encode("utf-8").split(b"\n")
        if start[0] == end[0]:
            return lines[start[0]][start[1]:end[1]].decode("utf-8")
        parts = [lines[start[0]][start[1]:]]
        parts.extend(lines[start[0] + 1:end[0]])
        parts.append(lines[end[0]][:end[1]])
        return b"\n".join(parts).decode("utf-8")

    def parse_item():
        nonlocal pos
        token, start, end = tokens[pos]
        if token == "(":
            return parse_list()
        pos += 1
        leaf_type = "variable" if token.startswith("$") else "symbol"
        leaf = FakeNode(leaf_type, start, end, token)
        return FakeNode("atom", start, end, token, [leaf])

    def parse_list():
        nonlocal pos
        _, start, open_end = tokens[pos]
        pos += 1
        children = [FakeNode("(", start, open_end, "(")]
        items = []
        while pos < len(tokens) and tokens[pos][0] != ")":
            item = parse_item()
            items.append(item)
            children.append(item)
        if pos < len(tokens):
            _, close_start, close_end = tokens[pos]
            pos += 1
            children.append(FakeNode(")", close_start, close_end, ")"))
            end = close_end
        else:
            children.append(FakeNode(")", eof, eof, "", is_missing=True))
            end = eof
        node = FakeNode("list", start, end, slice_text(start, end), children)
        if items:
            node.head = items[0]
            node.arguments = items[1:]
        return node

    top = []
    while pos < len(tokens):
        token, start, end = tokens[pos]
        if token == ")":
            pos += 1
            stray = FakeNode(")", start, end, ")")
            top.append(FakeNode("ERROR", start, end, ")", [stray]))
        else:
            top.append(parse_item())
    return FakeTree(FakeNode("source_file", (0, 0), eof, text, top))


def _preorder(node):
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def _head_symbol(node):
    head = node.head
    if head is not None and head.type == "atom" and head.children[0].type == "symbol":
        return head.children[0]
    return None


class FakeSymbolQuery:
    """Mimics the two-shape "=" / ":" symbol pattern."""

    def matches(self, root):
        found = []
        for node in _preorder(root):
            if node.type != "list":
                continue
            op = _head_symbol(node)
            if op is None or op.text.decode() not in ("=", ":"):
                continue
            for argument in node.arguments:
                if argument.type == "list":
                    name = _head_symbol(argument)
                    if name is not None:
                        found.append(QueryMatch(0, {"op": [op], "name": [name]}))
                elif argument.children[0].type == "symbol":
                    found.append(QueryMatch(1, {"op": [op], "name": [argument.children[0]]}))
        return found


class FakeHighlightQuery:
    """Captures list heads, variables and brackets, brackets last."""

    def captures(self, root):
        captures = []
        brackets = []
        for node in _preorder(root):
            if node.type == "list" and _head_symbol(node) is not None:
                captures.append(("function.call", _head_symbol(node)))
            elif node.type == "variable":
                captures.append(("variable", node))
            elif node.type in ("(", ")"):
                brackets.append(("punctuation.bracket", node))
        return [Capture(name, node, i) for i, (name, node) in enumerate(captures + brackets)]


class FakeGrammar:
    def __init__(self, highlights=True):
        self.symbol_query = FakeSymbolQuery()
        self.highlight_query = FakeHighlightQuery() if highlights else None
        self.parse_count = 0

    def parse(self, text):
        self.parse_count += 1
        return build_tree(text)


@pytest.fixture
def grammar():
    return FakeGrammar()


@pytest.fixture
def tree_builder():
    return build_tree
