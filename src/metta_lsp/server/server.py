"""pygls wiring for the MeTTa language server.

Registers LSP capabilities and forwards each notification and request to
the LanguageService owned by the server instance.
"""

from __future__ import annotations

import logging
from urllib.parse import unquote

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from .. import __version__
from ..core.config import MettaLspConfig
from ..core.exceptions import ConfigurationError
from ..core.language_spec import TOKEN_TYPES
from ..syntax.grammar import MettaGrammar
from .service import LanguageService

logger = logging.getLogger(__name__)

SEMANTIC_TOKENS_LEGEND = lsp.SemanticTokensLegend(token_types=list(TOKEN_TYPES), token_modifiers=[])


class MettaLanguageServer(LanguageServer):
    """Language server holding one LanguageService for its whole lifetime."""

    def __init__(self, service: LanguageService, *args, **kwargs) -> None:
        super().__init__(
            "metta-lsp",
            __version__,
            *args,
            text_document_sync_kind=lsp.TextDocumentSyncKind.Incremental,
            **kwargs,
        )
        self.service = service

    def open_document(self, uri: str):
        """The synced document for ``uri``, or None when it is not open."""
        return self.workspace.text_documents.get(unquote(uri))

    def workspace_folder_uris(self) -> list[str]:
        folders = [folder.uri for folder in self.workspace.folders.values()]
        if not folders and self.workspace.root_uri:
            folders = [self.workspace.root_uri]
        return folders

    def publish(self, uri: str, diagnostics: list[lsp.Diagnostic]) -> None:
        logger.debug(f"Publishing {len(diagnostics)} diagnostics for {uri}")
        self.text_document_publish_diagnostics(
            lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )


def create_server(config: MettaLspConfig | None = None, grammar=None) -> MettaLanguageServer:
    """Build a server with every MeTTa feature registered.

    Args:
        config: Server configuration (defaults when omitted)
        grammar: Pre-built grammar; loaded from ``config.grammar_module`` otherwise

    Raises:
        GrammarError: If the grammar module cannot be loaded
    """
    config = config or MettaLspConfig()
    grammar = grammar or MettaGrammar.from_config(config)
    server = MettaLanguageServer(LanguageService(grammar, config))

    @server.feature(lsp.INITIALIZE)
    def on_initialize(params: lsp.InitializeParams) -> None:
        options = params.initialization_options
        if isinstance(options, dict) and options:
            service = server.service
            try:
                service.reconfigure(service.config.with_overrides(options))
            except ConfigurationError as e:
                logger.error(f"Ignoring initializationOptions: {e}")
        logger.info("MeTTa language server initialized")

    @server.feature(lsp.INITIALIZED)
    def on_initialized(params: lsp.InitializedParams) -> None:
        # Runs after the initialize response went out, so the client is not
        # blocked while a large workspace is indexed.
        server.service.crawl(server.workspace_folder_uris())

    @server.feature(lsp.WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)
    def on_workspace_folders(params: lsp.DidChangeWorkspaceFoldersParams) -> None:
        for removed in params.event.removed:
            count = server.service.forget_folder(removed.uri)
            logger.info(f"Dropped {count} files of removed folder {removed.uri}")
        server.service.crawl(folder.uri for folder in params.event.added)

    @server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
    def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
        doc = params.text_document
        server.publish(doc.uri, server.service.document_opened(doc.uri, doc.text, doc.version))

    @server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
    def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
        document = server.open_document(params.text_document.uri)
        if document is None:
            return
        diagnostics = server.service.document_changed(document.uri, document.source, document.version)
        server.publish(document.uri, diagnostics)

    @server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
    def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
        uri = params.text_document.uri
        server.service.document_closed(uri)
        server.publish(uri, [])

    @server.feature(lsp.TEXT_DOCUMENT_HOVER)
    def hover(params: lsp.HoverParams) -> lsp.Hover | None:
        document = server.open_document(params.text_document.uri)
        if document is None:
            return None
        return server.service.hover(document.uri, document.source, params.position, document.version)

    @server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
    def definition(params: lsp.DefinitionParams) -> list[lsp.Location] | None:
        document = server.open_document(params.text_document.uri)
        if document is None:
            return None
        return server.service.definition(document.uri, document.source, params.position, document.version)

    @server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
    def document_symbol(params: lsp.DocumentSymbolParams) -> list[lsp.SymbolInformation]:
        document = server.open_document(params.text_document.uri)
        if document is None:
            return []
        return server.service.document_symbols(document.uri, document.source, document.version)

    @server.feature(lsp.TEXT_DOCUMENT_COMPLETION, lsp.CompletionOptions(resolve_provider=True))
    def completion(params: lsp.CompletionParams) -> list[lsp.CompletionItem]:
        return server.service.completion()

    @server.feature(lsp.COMPLETION_ITEM_RESOLVE)
    def completion_resolve(item: lsp.CompletionItem) -> lsp.CompletionItem:
        return item

    @server.feature(lsp.TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, SEMANTIC_TOKENS_LEGEND)
    def semantic_tokens(params: lsp.SemanticTokensParams) -> lsp.SemanticTokens:
        document = server.open_document(params.text_document.uri)
        if document is None:
            return lsp.SemanticTokens(data=[])
        return server.service.semantic_tokens(document.uri, document.source, document.version)

    return server
