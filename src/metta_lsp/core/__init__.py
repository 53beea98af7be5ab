"""Core types and configuration for metta-lsp."""

from .types import SiteKind, SourceRange, SymbolSite
from .config import MettaLspConfig, get_default_config, load_config
from .exceptions import (
    MettaLspError,
    ConfigurationError,
    GrammarError,
    WorkspaceError,
    InvalidUriError,
)
from .language_spec import (
    CAPTURE_TOKEN_TYPES,
    DEFINITION_OPERATOR,
    KEYWORDS,
    SYMBOL_QUERY,
    TOKEN_TYPES,
    TYPE_OPERATOR,
)

__all__ = [
    # Types
    "SiteKind",
    "SourceRange",
    "SymbolSite",
    # Config
    "MettaLspConfig",
    "get_default_config",
    "load_config",
    # Exceptions
    "MettaLspError",
    "ConfigurationError",
    "GrammarError",
    "WorkspaceError",
    "InvalidUriError",
    # Language constants
    "CAPTURE_TOKEN_TYPES",
    "DEFINITION_OPERATOR",
    "KEYWORDS",
    "SYMBOL_QUERY",
    "TOKEN_TYPES",
    "TYPE_OPERATOR",
]
