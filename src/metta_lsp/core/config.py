"""Configuration management for metta-lsp."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigurationError
from .language_spec import DEFAULT_EXCLUDED_DIRS, DEFAULT_FILE_EXTENSIONS, KEYWORDS

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "METTA_LSP_CONFIG"

LIST_FIELDS = ("file_extensions", "excluded_dirs", "keywords")


def _check_string_list(name: str, value: Any) -> None:
    # A bare string would otherwise be iterated character by character
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(
            f"{name} must be a list of strings",
            {name: repr(value)},
        )


@dataclass
class MettaLspConfig:
    """Main configuration for metta-lsp.

    This configuration can be loaded from:
    - metta-lsp.yaml in the working directory
    - The METTA_LSP_CONFIG environment variable
    - Client initializationOptions (see with_overrides)
    - Programmatic configuration
    """

    # Workspace crawl
    file_extensions: list[str] = field(default_factory=lambda: list(DEFAULT_FILE_EXTENSIONS))
    excluded_dirs: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_DIRS))

    # Grammar
    grammar_module: str = "tree_sitter_metta"
    highlights_path: Path | None = None

    # Handlers
    keywords: list[str] = field(default_factory=lambda: list(KEYWORDS))
    diagnostic_source: str = "metta-lsp"
    parse_cache_size: int = 64

    # Logging
    log_level: str = "INFO"
    log_file: Path | None = None

    def __post_init__(self) -> None:
        if isinstance(self.highlights_path, str):
            self.highlights_path = Path(self.highlights_path)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)
        if self.parse_cache_size < 1:
            raise ConfigurationError(
                "parse_cache_size must be at least 1",
                {"parse_cache_size": self.parse_cache_size},
            )
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigurationError("Unknown log_level", {"log_level": self.log_level})
        for name in LIST_FIELDS:
            _check_string_list(name, getattr(self, name))
        self.file_extensions = [ext.lower() for ext in self.file_extensions]
        self.excluded_dirs = list(self.excluded_dirs)
        self.keywords = list(self.keywords)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "file_extensions": list(self.file_extensions),
            "excluded_dirs": list(self.excluded_dirs),
            "grammar_module": self.grammar_module,
            "highlights_path": str(self.highlights_path) if self.highlights_path else None,
            "keywords": list(self.keywords),
            "diagnostic_source": self.diagnostic_source,
            "parse_cache_size": self.parse_cache_size,
            "log_level": self.log_level,
            "log_file": str(self.log_file) if self.log_file else None,
        }

    def save(self, path: Path | str) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MettaLspConfig:
        """Create configuration from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")
        try:
            return cls(**{key: value for key, value in data.items() if key in known and value is not None})
        except TypeError as e:
            raise ConfigurationError("Invalid configuration values", {"error": str(e)}) from e

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> MettaLspConfig:
        """Return a copy with client-supplied settings applied on top."""
        if not overrides:
            return self
        merged = self.to_dict()
        merged.update(overrides)
        return MettaLspConfig.from_dict(merged)


def load_config(
    config_path: Path | str | None = None,
    search_paths: list[Path | str] | None = None,
) -> MettaLspConfig:
    """Load metta-lsp configuration.

    Search order:
    1. Explicit config_path if provided
    2. METTA_LSP_CONFIG environment variable
    3. search_paths if provided
    4. Default locations: ./metta-lsp.yaml, ./metta-lsp.yml, ~/.metta-lsp/config.yaml

    Args:
        config_path: Explicit path to configuration file
        search_paths: Additional paths to search for configuration

    Returns:
        MettaLspConfig instance

    Raises:
        ConfigurationError: If configuration file has errors
    """
    paths_to_check: list[Path] = []

    if config_path:
        explicit = Path(config_path)
        if not explicit.exists():
            raise ConfigurationError("Configuration file not found", {"path": str(explicit)})
        paths_to_check.append(explicit)

    if env_config := os.environ.get(CONFIG_ENV_VAR):
        paths_to_check.append(Path(env_config))

    if search_paths:
        paths_to_check.extend(Path(p) for p in search_paths)

    paths_to_check.extend([
        Path.cwd() / "metta-lsp.yaml",
        Path.cwd() / "metta-lsp.yml",
        Path.home() / ".metta-lsp" / "config.yaml",
    ])

    for path in paths_to_check:
        if path.exists():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    if path.suffix in (".yaml", ".yml"):
                        data = yaml.safe_load(f)
                    else:
                        data = json.load(f)
            except (yaml.YAMLError, json.JSONDecodeError) as e:
                raise ConfigurationError(
                    f"Failed to parse configuration file: {path}",
                    {"path": str(path), "error": str(e)},
                ) from e
            if data is not None and not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file must contain a mapping: {path}",
                    {"path": str(path)},
                )
            logger.debug(f"Loaded configuration from {path}")
            return MettaLspConfig.from_dict(data or {})

    return MettaLspConfig()


def get_default_config() -> MettaLspConfig:
    """Get default metta-lsp configuration."""
    return MettaLspConfig()
