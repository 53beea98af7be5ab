"""Tree-sitter grammar loading and structural pattern queries.

The MeTTa grammar itself is an external collaborator: it is imported from
an installed grammar module (``tree_sitter_metta`` by default) and wrapped
so the rest of the package only sees ``parse``, ``matches`` and
``captures``.

Terms:
- QueryMatch: one match of a pattern, with its captures grouped by name
- Capture: one named node from a match, tagged with its arrival index
"""

from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

from tree_sitter import Language, Parser, Query, QueryCursor, QueryError

from ..core.config import MettaLspConfig
from ..core.exceptions import GrammarError
from ..core.language_spec import SYMBOL_QUERY

logger = logging.getLogger(__name__)

BUNDLED_HIGHLIGHTS = "highlights.scm"


def node_text(node) -> str:
    """Decode the source text covered by a node."""
    text = node.text
    if text is None:
        return ""
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return text


@dataclass
class QueryMatch:
    """One pattern match and its captures grouped by capture name."""

    pattern_index: int
    captures: dict[str, list[Any]] = field(default_factory=dict)

    def first(self, name: str):
        """Return the first node captured under ``name``, or None."""
        nodes = self.captures.get(name)
        return nodes[0] if nodes else None


@dataclass
class Capture:
    """A single named capture in query order."""

    name: str
    node: Any
    index: int


class PatternQuery:
    """A compiled structural pattern bound to one language."""

    def __init__(self, language: Language, source: str, label: str = "query") -> None:
        self.label = label
        try:
            self._query = Query(language, source)
        except QueryError as e:
            raise GrammarError(f"Failed to compile {label}", {"error": str(e)}) from e

    def matches(self, node) -> list[QueryMatch]:
        """Run the query under ``node`` and return matches in cursor order."""
        cursor = QueryCursor(self._query)
        return [
            QueryMatch(pattern_index=pattern_index, captures=captures)
            for pattern_index, captures in cursor.matches(node)
        ]

    def captures(self, node) -> list[Capture]:
        """Flatten all matches into captures numbered by arrival order."""
        flat: list[Capture] = []
        for match in self.matches(node):
            for name, nodes in match.captures.items():
                for captured in nodes:
                    flat.append(Capture(name=name, node=captured, index=len(flat)))
        return flat


def load_language(module_name: str) -> tuple[Language, Any]:
    """Import a grammar module and build its Language.

    Returns:
        ``(language, module)``

    Raises:
        GrammarError: If the module is missing or exposes no language
    """
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise GrammarError(
            f"Grammar module not installed: {module_name}",
            {"hint": "pip install metta-lsp[grammar]"},
        ) from e

    language_fn = getattr(module, "language", None)
    if language_fn is None:
        raise GrammarError(f"Grammar module has no language() entry point: {module_name}")

    try:
        return Language(language_fn()), module
    except (TypeError, ValueError) as e:
        raise GrammarError(f"Incompatible grammar module: {module_name}", {"error": str(e)}) from e


def read_highlights_source(highlights_path: Path | None, module: Any = None) -> str | None:
    """Locate highlight query text.

    Order: explicit path, the grammar module's HIGHLIGHTS_QUERY, the query
    bundled with this package. Returns None only when an explicit path
    cannot be read.
    """
    if highlights_path is not None:
        try:
            return Path(highlights_path).read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to load highlights from {highlights_path}: {e}")
            return None

    if module is not None:
        try:
            bundled_by_grammar = getattr(module, "HIGHLIGHTS_QUERY", None)
        except (AttributeError, OSError):
            bundled_by_grammar = None
        if bundled_by_grammar:
            return bundled_by_grammar

    return resources.files(__package__).joinpath("queries").joinpath(BUNDLED_HIGHLIGHTS).read_text(encoding="utf-8")


class MettaGrammar:
    """Parser plus the symbol and highlight queries for MeTTa.

    The symbol query is required; a highlight query that fails to compile is
    logged and leaves ``highlight_query`` as None so semantic tokens degrade
    to an empty stream.
    """

    def __init__(self, language: Language, highlights_source: str | None = None) -> None:
        self.language = language
        self._parser = Parser(language)
        self.symbol_query = PatternQuery(language, SYMBOL_QUERY, label="symbol query")
        self.highlight_query: PatternQuery | None = None
        if highlights_source is not None:
            try:
                self.highlight_query = PatternQuery(language, highlights_source, label="highlight query")
            except GrammarError as e:
                logger.error(f"Semantic highlighting disabled: {e}")

    def parse(self, text: str):
        """Parse source text into a tree."""
        return self._parser.parse(text.encode("utf-8"))

    @classmethod
    def from_config(cls, config: MettaLspConfig) -> MettaGrammar:
        """Load the grammar module and highlight query named by ``config``."""
        language, module = load_language(config.grammar_module)
        logger.info(f"Loaded grammar from {config.grammar_module}")
        return cls(language, read_highlights_source(config.highlights_path, module))
