"""Symbol extraction, the workspace index and workspace crawling."""

from metta_lsp.index.extractor import (
    MatchResult,
    MatchStatus,
    SymbolExtractor,
    interpret_match,
    signature_for,
)
from metta_lsp.index.symbol_index import ScanningSymbolIndex, SymbolIndex
from metta_lsp.index.workspace import (
    CrawlReport,
    SourceFile,
    WorkspaceCrawler,
    path_to_uri,
    uri_to_path,
)

__all__ = [
    "MatchResult",
    "MatchStatus",
    "SymbolExtractor",
    "interpret_match",
    "signature_for",
    "ScanningSymbolIndex",
    "SymbolIndex",
    "CrawlReport",
    "SourceFile",
    "WorkspaceCrawler",
    "path_to_uri",
    "uri_to_path",
]
