"""Custom exceptions for metta-lsp."""

from __future__ import annotations

from typing import Any


class MettaLspError(Exception):
    """Base exception for all metta-lsp errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigurationError(MettaLspError):
    """Error in configuration."""

    pass


class GrammarError(MettaLspError):
    """Grammar module could not be loaded or a query failed to compile."""

    pass


class WorkspaceError(MettaLspError):
    """Error while locating or reading workspace files."""

    pass


class InvalidUriError(WorkspaceError):
    """URI is unparsable or does not use the file scheme."""

    def __init__(self, uri: str, reason: str = "not a file URI") -> None:
        super().__init__(f"Invalid document URI: {uri}", {"reason": reason})
        self.uri = uri
        self.reason = reason
