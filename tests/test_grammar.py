"""Tests for syntax/grammar.py.

Unit tests patch the tree-sitter bindings. The integration class runs
against the real MeTTa grammar and is skipped when it is not installed.
"""

import sys
import types
from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeNode

from metta_lsp.core.config import MettaLspConfig
from metta_lsp.core.exceptions import GrammarError
from metta_lsp.syntax import grammar as grammar_module
from metta_lsp.syntax.grammar import (
    MettaGrammar,
    PatternQuery,
    QueryMatch,
    load_language,
    node_text,
    read_highlights_source,
)


class TestNodeText:
    def test_decodes_bytes(self):
        assert node_text(FakeNode("symbol", (0, 0), (0, 2), "λx")) == "λx"

    def test_none_text(self):
        node = MagicMock(text=None)
        assert node_text(node) == ""


class TestPatternQuery:
    """Tests for PatternQuery over a mocked QueryCursor."""

    def test_matches_wrap_cursor_results(self):
        op, name = object(), object()
        with patch.object(grammar_module, "Query"), patch.object(grammar_module, "QueryCursor") as cursor_cls:
            cursor_cls.return_value.matches.return_value = [(1, {"op": [op], "name": [name]})]
            query = PatternQuery(MagicMock(), "(list) @x")
            matches = query.matches(MagicMock())

        assert matches == [QueryMatch(1, {"op": [op], "name": [name]})]
        assert matches[0].first("name") is name
        assert matches[0].first("missing") is None

    def test_captures_are_numbered_in_arrival_order(self):
        a, b, c = object(), object(), object()
        with patch.object(grammar_module, "Query"), patch.object(grammar_module, "QueryCursor") as cursor_cls:
            cursor_cls.return_value.matches.return_value = [
                (0, {"variable": [a, b]}),
                (2, {"keyword": [c]}),
            ]
            captures = PatternQuery(MagicMock(), "q").captures(MagicMock())

        assert [(cap.name, cap.node, cap.index) for cap in captures] == [
            ("variable", a, 0),
            ("variable", b, 1),
            ("keyword", c, 2),
        ]

    def test_compile_error_becomes_grammar_error(self):
        with patch.object(grammar_module, "Query", side_effect=grammar_module.QueryError("bad node")):
            with pytest.raises(GrammarError) as exc_info:
                PatternQuery(MagicMock(), "(nope)", label="highlight query")
        assert "highlight query" in str(exc_info.value)


class TestLoadLanguage:
    """Tests for load_language."""

    def test_missing_module(self):
        with pytest.raises(GrammarError) as exc_info:
            load_language("tree_sitter_metta_does_not_exist")
        assert "not installed" in exc_info.value.message

    def test_module_without_language(self, monkeypatch):
        monkeypatch.setitem(sys.modules, "fake_grammar", types.ModuleType("fake_grammar"))
        with pytest.raises(GrammarError):
            load_language("fake_grammar")

    def test_builds_language(self, monkeypatch):
        module = types.ModuleType("fake_grammar")
        module.language = lambda: 1234
        monkeypatch.setitem(sys.modules, "fake_grammar", module)

        with patch.object(grammar_module, "Language") as language_cls:
            language, loaded = load_language("fake_grammar")

        language_cls.assert_called_once_with(1234)
        assert language is language_cls.return_value
        assert loaded is module


class TestReadHighlightsSource:
    """Tests for highlight query lookup order."""

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "hl.scm"
        path.write_text("(symbol) @symbol", encoding="utf-8")
        assert read_highlights_source(path) == "(symbol) @symbol"

    def test_unreadable_explicit_path(self, tmp_path):
        assert read_highlights_source(tmp_path / "missing.scm") is None

    def test_grammar_module_query(self):
        module = types.SimpleNamespace(HIGHLIGHTS_QUERY="(comment) @comment")
        assert read_highlights_source(None, module) == "(comment) @comment"

    def test_bundled_fallback(self):
        source = read_highlights_source(None, types.SimpleNamespace())
        assert "@variable" in source
        assert "@punctuation.bracket" in source


class TestMettaGrammar:
    """Tests for MettaGrammar assembly with mocked bindings."""

    def test_bad_highlight_query_disables_highlighting(self, caplog):
        def compile_query(language, source):
            if "@symbol" in source:
                raise grammar_module.QueryError("invalid node type")
            return MagicMock()

        with patch.object(grammar_module, "Parser"), patch.object(grammar_module, "Query", side_effect=compile_query):
            grammar = MettaGrammar(MagicMock(), "(symbol) @symbol")

        assert grammar.highlight_query is None
        assert grammar.symbol_query is not None
        assert "Semantic highlighting disabled" in caplog.text

    def test_parse_encodes_utf8(self):
        with patch.object(grammar_module, "Parser") as parser_cls, patch.object(grammar_module, "Query"):
            grammar = MettaGrammar(MagicMock())
            grammar.parse("(λ)")

        parser_cls.return_value.parse.assert_called_once_with("(λ)".encode("utf-8"))


class TestRealGrammar:
    """Integration tests against the installed MeTTa grammar."""

    @pytest.fixture
    def real_grammar(self):
        pytest.importorskip("tree_sitter_metta")
        return MettaGrammar.from_config(MettaLspConfig())

    def test_extracts_definitions(self, real_grammar):
        from metta_lsp.index.extractor import SymbolExtractor

        tree = real_grammar.parse("(: double (-> Number Number))\n(= (double $x) (* 2 $x))\n")
        sites = SymbolExtractor(real_grammar.symbol_query).extract("file:///t.metta", tree)

        assert {site.name for site in sites} >= {"double"}

    def test_reports_syntax_errors(self, real_grammar):
        from metta_lsp.analysis.diagnostics import scan_diagnostics

        tree = real_grammar.parse("(= (broken $x)\n")
        assert scan_diagnostics(tree.root_node)
