"""Language service and its pygls server."""

from metta_lsp.server.server import MettaLanguageServer, create_server
from metta_lsp.server.service import LanguageService

__all__ = ["LanguageService", "MettaLanguageServer", "create_server"]
