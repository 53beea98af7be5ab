"""CLI entry point for metta-lsp.

Provides commands for:
- serve: Run the language server over stdio or TCP
- index: Crawl a directory and print the symbol index
- check: Print syntax diagnostics for one file
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from .core.config import MettaLspConfig, load_config
from .core.exceptions import ConfigurationError, GrammarError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str, log_file: Path | None = None) -> None:
    """Send logs to stderr (stdout carries the protocol) or to a file."""
    handler: logging.Handler
    if log_file is not None:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, handlers=[handler], force=True)


def _load(config_path: Path | None) -> MettaLspConfig:
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e


def _build_service(config: MettaLspConfig):
    from .server.service import LanguageService
    from .syntax.grammar import MettaGrammar

    try:
        grammar = MettaGrammar.from_config(config)
    except GrammarError as e:
        raise click.ClickException(str(e)) from e
    return LanguageService(grammar, config)


@click.group()
@click.version_option(package_name="metta-lsp")
@click.option(
    "--config", "-c", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: metta-lsp.yaml search)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write logs to this file instead of stderr",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, log_level: str | None, log_file: Path | None) -> None:
    """metta-lsp - language server for MeTTa.

    Examples:

      # Serve over stdio (editor integration)
      metta-lsp serve

      # Serve over TCP for debugging
      metta-lsp serve --tcp --port 2087

      # Inspect the workspace index
      metta-lsp index ./examples
    """
    config = _load(config_path)
    configure_logging(log_level or config.log_level, log_file or config.log_file)
    ctx.obj = config


@main.command()
@click.option("--tcp", is_flag=True, help="Listen on TCP instead of stdio")
@click.option("--host", default="127.0.0.1", help="TCP host")
@click.option("--port", type=int, default=2087, help="TCP port")
@click.pass_obj
def serve(config: MettaLspConfig, tcp: bool, host: str, port: int) -> None:
    """Start the language server."""
    from .server.server import create_server

    try:
        server = create_server(config)
    except GrammarError as e:
        raise click.ClickException(str(e)) from e

    if tcp:
        logger.info(f"Listening on {host}:{port}")
        server.start_tcp(host, port)
    else:
        server.start_io()


@main.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path))
@click.pass_obj
def index(config: MettaLspConfig, root: Path) -> None:
    """Crawl ROOT and print every indexed name with its sites."""
    from .index.workspace import path_to_uri

    service = _build_service(config)
    report = service.crawl([path_to_uri(root.resolve())])

    for name in sorted(service.index.all_names()):
        click.echo(name)
        for site in service.index.lookup(name):
            click.echo(
                f"  {site.kind.value:17} {site.uri}:{site.range.start_line + 1}:{site.range.start_column + 1}"
            )

    click.echo(
        f"{report.files_indexed} files indexed, {len(service.index)} names, {len(report.errors)} errors",
        err=True,
    )


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def check(config: MettaLspConfig, file: Path) -> None:
    """Print syntax diagnostics for FILE; exit 1 if there are any."""
    from .index.workspace import path_to_uri

    service = _build_service(config)
    try:
        text = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Failed to read {file}: {e}") from e

    diagnostics = service.diagnostics(path_to_uri(file.resolve()), text)
    for diagnostic in diagnostics:
        start = diagnostic.range.start
        click.echo(f"{file}:{start.line + 1}:{start.character + 1}: {diagnostic.message}")

    if diagnostics:
        sys.exit(1)
    click.echo(f"{file}: no syntax errors")


if __name__ == "__main__":
    main()
