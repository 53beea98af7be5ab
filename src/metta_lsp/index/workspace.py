"""Workspace crawl and file URI handling.

Walks workspace folders, reads every MeTTa source file and hands it to the
indexer. Failures are contained per entry: an unreadable directory or file
is logged and skipped, and the walk carries on with its siblings.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator
from urllib.parse import unquote, urlparse

from pygls import uris

from ..core.exceptions import InvalidUriError

logger = logging.getLogger(__name__)


def uri_to_path(uri: str, windows: bool | None = None) -> str:
    """Convert a file:// URI to a local path.

    The path is percent-decoded; on Windows the leading separator in front
    of the drive letter is stripped.

    Raises:
        InvalidUriError: If the URI cannot be parsed or is not file-scheme
    """
    try:
        parsed = urlparse(uri)
    except ValueError as e:
        raise InvalidUriError(uri, reason=str(e)) from e
    if parsed.scheme != "file":
        raise InvalidUriError(uri)

    path = unquote(parsed.path)
    if parsed.netloc:
        path = f"//{parsed.netloc}{path}"
    if windows is None:
        windows = os.name == "nt"
    if windows and path.startswith("/") and not parsed.netloc:
        path = path[1:]
    return path


def path_to_uri(path: str | Path) -> str:
    """Build the file:// URI editors use for ``path``."""
    uri = uris.from_fs_path(str(path))
    if uri is None:
        raise InvalidUriError(str(path), reason="cannot be expressed as a file URI")
    return uri


@dataclass
class SourceFile:
    """A MeTTa source file read during a crawl."""

    path: Path
    uri: str
    content: str


@dataclass
class CrawlReport:
    """Counters for one crawl."""

    files_indexed: int = 0
    files_skipped: int = 0
    folders_skipped: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)

    def record_error(self, location: str | Path, error: BaseException) -> None:
        self.errors.append((str(location), str(error)))


class WorkspaceCrawler:
    """Recursive finder of source files under workspace folders.

    Args:
        extensions: File suffixes to index (".metta")
        excluded_dirs: Directory names never descended into
    """

    def __init__(self, extensions: Iterable[str], excluded_dirs: Iterable[str]) -> None:
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.excluded_dirs = frozenset(excluded_dirs)

    def is_source_file(self, path: Path) -> bool:
        return path.name.lower().endswith(self.extensions)

    def walk(self, root: Path, report: CrawlReport | None = None) -> Iterator[SourceFile]:
        """Yield source files under ``root`` depth-first in name order."""
        report = report if report is not None else CrawlReport()
        try:
            entries = sorted(Path(root).iterdir())
        except OSError as e:
            logger.error(f"Error crawling directory {root}: {e}")
            report.record_error(root, e)
            return

        for entry in entries:
            try:
                is_link = stat.S_ISLNK(entry.lstat().st_mode)
                mode = entry.stat().st_mode
            except OSError as e:
                logger.error(f"Cannot stat {entry}: {e}")
                report.record_error(entry, e)
                continue

            if stat.S_ISDIR(mode):
                # Linked directories may loop back into the tree
                if is_link:
                    logger.debug(f"Not following directory symlink {entry}")
                elif entry.name not in self.excluded_dirs:
                    yield from self.walk(entry, report)
                continue

            if not stat.S_ISREG(mode) or not self.is_source_file(entry):
                continue

            try:
                content = entry.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Failed to read {entry}: {e}")
                report.record_error(entry, e)
                report.files_skipped += 1
                continue

            yield SourceFile(path=entry, uri=path_to_uri(entry), content=content)
