"""Transport-independent language service.

LanguageService owns the workspace index, the parse cache and the grammar
for the lifetime of the process. The pygls layer forwards every request
and notification here; each call runs to completion before the next one
starts.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable

from lsprotocol import types as lsp

from ..analysis.diagnostics import scan_diagnostics
from ..analysis.navigation import (
    choose_hover_site,
    completion_items,
    definition_locations,
    name_at,
    outline_entries,
    render_hover,
)
from ..analysis.semantic_tokens import encode_semantic_tokens
from ..core.config import MettaLspConfig
from ..core.exceptions import InvalidUriError
from ..core.language_spec import CAPTURE_TOKEN_TYPES
from ..core.types import SymbolSite
from ..index.extractor import SymbolExtractor
from ..index.symbol_index import SymbolIndex
from ..index.workspace import CrawlReport, WorkspaceCrawler, uri_to_path
from ..syntax.parse_cache import ParseCache
from ..syntax.positions import LineColumns, point_for_position

logger = logging.getLogger(__name__)

RESTART_ONLY_SETTINGS = ("grammar_module", "highlights_path", "log_file")


class LanguageService:
    """Index maintenance and request handling for MeTTa documents.

    Args:
        grammar: Object with ``parse(text)``, ``symbol_query`` and
            ``highlight_query`` (may be None)
        config: Server configuration
        index: Index to maintain; a fresh SymbolIndex by default
    """

    def __init__(
        self,
        grammar,
        config: MettaLspConfig | None = None,
        index: SymbolIndex | None = None,
    ) -> None:
        self.grammar = grammar
        self.config = config or MettaLspConfig()
        self.index = index if index is not None else SymbolIndex()
        self.extractor = SymbolExtractor(grammar.symbol_query)
        self.trees = ParseCache(grammar.parse, max_entries=self.config.parse_cache_size)
        self.crawler = WorkspaceCrawler(self.config.file_extensions, self.config.excluded_dirs)
        self._open_documents: set[str] = set()

    def reconfigure(self, config: MettaLspConfig) -> None:
        """Switch to ``config`` at runtime.

        Crawl filters, the parse cache size, keywords, the diagnostic source
        and the log level take effect immediately. The grammar and the log
        destination are fixed once the server is running; changes to them
        are logged and ignored.
        """
        previous = self.config
        fixed = [
            key
            for key in RESTART_ONLY_SETTINGS
            if getattr(config, key) != getattr(previous, key)
        ]
        if fixed:
            logger.warning(f"Settings only applied on restart, ignoring: {', '.join(fixed)}")
            config = replace(config, **{key: getattr(previous, key) for key in fixed})

        self.config = config
        self.crawler = WorkspaceCrawler(config.file_extensions, config.excluded_dirs)
        if config.parse_cache_size != previous.parse_cache_size:
            self.trees = ParseCache(self.grammar.parse, max_entries=config.parse_cache_size)
        if config.log_level != previous.log_level:
            logging.getLogger().setLevel(config.log_level.upper())

    # ------------------------------------------------------------------
    # Index maintenance
    # ------------------------------------------------------------------

    def index_text(self, uri: str, text: str, version: int | None = None) -> list[SymbolSite]:
        """Extract ``text`` and replace every index entry of ``uri``."""
        tree = self.trees.tree_for(uri, text, version)
        sites = self.extractor.extract(uri, tree, text)
        self.index.replace_file(uri, sites)
        return sites

    def document_opened(self, uri: str, text: str, version: int | None = None) -> list[lsp.Diagnostic]:
        self._open_documents.add(uri)
        return self.document_changed(uri, text, version)

    def document_changed(self, uri: str, text: str, version: int | None = None) -> list[lsp.Diagnostic]:
        """Re-extract, re-index and re-diagnose one document."""
        self._open_documents.add(uri)
        self.trees.invalidate(uri)
        tree = self.trees.tree_for(uri, text, version)
        self.index.replace_file(uri, self.extractor.extract(uri, tree, text))
        return scan_diagnostics(tree.root_node, self.config.diagnostic_source, LineColumns(text))

    def document_closed(self, uri: str) -> None:
        """Fall back to the on-disk text of ``uri``, or drop it if gone."""
        self._open_documents.discard(uri)
        self.trees.invalidate(uri)
        try:
            path = Path(uri_to_path(uri))
        except InvalidUriError as e:
            logger.warning(f"Dropping index entries for {uri}: {e}")
            self.index.remove_file(uri)
            return

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.info(f"Removing closed document from index: {uri} ({e})")
            self.index.remove_file(uri)
            return
        self.index_text(uri, text)

    def is_open(self, uri: str) -> bool:
        return uri in self._open_documents

    def crawl(self, folder_uris: Iterable[str]) -> CrawlReport:
        """Index every source file under the given workspace folders."""
        report = CrawlReport()
        for folder_uri in folder_uris:
            try:
                root = uri_to_path(folder_uri)
            except InvalidUriError as e:
                logger.warning(f"Skipping workspace folder: {e}")
                report.folders_skipped += 1
                continue

            logger.info(f"Scanning workspace folder: {root}")
            for source_file in self.crawler.walk(Path(root), report):
                if self.is_open(source_file.uri):
                    report.files_skipped += 1
                    continue
                self.index_text(source_file.uri, source_file.content)
                report.files_indexed += 1

        logger.info(
            f"Workspace scan finished: {report.files_indexed} indexed, "
            f"{report.files_skipped} skipped, {len(report.errors)} errors"
        )
        return report

    def forget_folder(self, folder_uri: str) -> int:
        """Drop index entries of files under a removed workspace folder."""
        prefix = folder_uri.rstrip("/") + "/"
        removed = [uri for uri in self.index.uris() if uri.startswith(prefix) and not self.is_open(uri)]
        for uri in removed:
            self.index.remove_file(uri)
        return len(removed)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _name_at(self, uri: str, text: str, version: int | None, position: lsp.Position) -> str | None:
        tree = self.trees.tree_for(uri, text, version)
        point = point_for_position(text, position.line, position.character)
        return name_at(tree.root_node, point)

    def hover(self, uri: str, text: str, position: lsp.Position, version: int | None = None) -> lsp.Hover | None:
        name = self._name_at(uri, text, version, position)
        if name is None:
            return None
        site = choose_hover_site(self.index.lookup(name), uri)
        if site is None:
            return None
        return render_hover(site)

    def definition(
        self, uri: str, text: str, position: lsp.Position, version: int | None = None
    ) -> list[lsp.Location] | None:
        name = self._name_at(uri, text, version, position)
        if name is None:
            return None
        sites = self.index.lookup(name)
        if not sites:
            return None
        return definition_locations(sites)

    def document_symbols(self, uri: str, text: str, version: int | None = None) -> list[lsp.SymbolInformation]:
        # Straight from the tree so the outline follows unsaved edits
        tree = self.trees.tree_for(uri, text, version)
        return outline_entries(self.extractor.extract(uri, tree, text))

    def completion(self) -> list[lsp.CompletionItem]:
        return completion_items(self.config.keywords, self.index.all_names())

    def semantic_tokens(self, uri: str, text: str, version: int | None = None) -> lsp.SemanticTokens:
        query = self.grammar.highlight_query
        if query is None:
            return lsp.SemanticTokens(data=[])
        tree = self.trees.tree_for(uri, text, version)
        captures = query.captures(tree.root_node)
        return lsp.SemanticTokens(data=encode_semantic_tokens(captures, CAPTURE_TOKEN_TYPES, LineColumns(text)))

    def diagnostics(self, uri: str, text: str, version: int | None = None) -> list[lsp.Diagnostic]:
        tree = self.trees.tree_for(uri, text, version)
        return scan_diagnostics(tree.root_node, self.config.diagnostic_source, LineColumns(text))
