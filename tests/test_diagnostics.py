"""Tests for analysis/diagnostics.py."""

from conftest import FakeNode
from lsprotocol import types as lsp

from metta_lsp.analysis.diagnostics import scan_diagnostics
from metta_lsp.syntax.positions import LineColumns


class TestScanDiagnostics:
    """Tests for the pre-order error/missing node walk."""

    def test_error_and_missing_nodes(self):
        """One ERROR node and one missing "argument" node give two diagnostics."""
        stray = FakeNode(")", (0, 10), (0, 11), ")")
        error = FakeNode("ERROR", (0, 10), (0, 11), ")", [stray])
        missing = FakeNode("argument", (1, 4), (1, 4), "", is_missing=True)
        form = FakeNode("list", (1, 0), (1, 5), "(foo)", [missing])
        root = FakeNode("source_file", (0, 0), (1, 5), "", [error, form])

        diagnostics = scan_diagnostics(root)

        assert [d.message for d in diagnostics] == ["Syntax error", "Missing node: argument"]
        assert all(d.severity == lsp.DiagnosticSeverity.Error for d in diagnostics)
        assert all(d.source == "metta-lsp" for d in diagnostics)
        assert diagnostics[0].range == lsp.Range(
            start=lsp.Position(line=0, character=10),
            end=lsp.Position(line=0, character=11),
        )

    def test_clean_tree_has_no_diagnostics(self, tree_builder):
        assert scan_diagnostics(tree_builder("(= (f $x) $x)").root_node) == []

    def test_unclosed_list_reports_missing_paren(self, tree_builder):
        diagnostics = scan_diagnostics(tree_builder("(= (f $x) $x").root_node)
        assert [d.message for d in diagnostics] == ["Missing node: )"]

    def test_preorder_order(self, tree_builder):
        """Diagnostics follow document order."""
        tree = tree_builder(")\n(a b)\n)\n(c")
        lines = [d.range.start.line for d in scan_diagnostics(tree.root_node)]
        assert lines == [0, 2, 3]

    def test_custom_source_tag(self, tree_builder):
        diagnostics = scan_diagnostics(tree_builder(")").root_node, source="custom")
        assert diagnostics[0].source == "custom"

    def test_deep_nesting_does_not_recurse(self):
        node = FakeNode("ERROR", (0, 0), (0, 1), ")")
        for _ in range(3000):
            node = FakeNode("list", (0, 0), (0, 1), "", [node])
        assert [d.message for d in scan_diagnostics(node)] == ["Syntax error"]

    def test_range_after_non_ascii_text(self, tree_builder):
        text = "(: → Type) )"
        diagnostics = scan_diagnostics(tree_builder(text).root_node, columns=LineColumns(text))

        assert diagnostics[0].range == lsp.Range(
            start=lsp.Position(line=0, character=11),
            end=lsp.Position(line=0, character=12),
        )
