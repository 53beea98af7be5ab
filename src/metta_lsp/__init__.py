"""metta-lsp - language intelligence for MeTTa source files.

metta-lsp keeps a workspace-wide index of definition and type-declaration
sites and answers hover, go-to-definition, outline, completion,
diagnostics and semantic-token requests over the Language Server Protocol.

Quick Start:
    from metta_lsp.core import load_config
    from metta_lsp.server import create_server

    server = create_server(load_config())
    server.start_io()
"""

__version__ = "0.3.0"


# Lazy imports to avoid loading the grammar at module import
def get_language_service():
    """Get LanguageService class."""
    from metta_lsp.server.service import LanguageService
    return LanguageService


def get_server_factory():
    """Get the create_server factory."""
    from metta_lsp.server.server import create_server
    return create_server
