"""Per-document cache of the last parsed tree.

Coherence policy: an entry is reused only for the exact document version
it was parsed from. Unversioned text (crawled files, CLI input) is always
parsed fresh and never stored. Entries are dropped on change and close.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Callable

logger = logging.getLogger(__name__)


class ParseCache:
    """LRU map of uri -> (version, tree)."""

    def __init__(self, parse: Callable[[str], Any], max_entries: int = 64) -> None:
        self._parse = parse
        self._max_entries = max_entries
        self._entries: OrderedDict[str, tuple[int, Any]] = OrderedDict()

    def tree_for(self, uri: str, text: str, version: int | None = None):
        """Return the tree for ``text``, reusing the cached one for the same version."""
        if version is None:
            return self._parse(text)

        cached = self._entries.get(uri)
        if cached is not None and cached[0] == version:
            self._entries.move_to_end(uri)
            return cached[1]

        tree = self._parse(text)
        self._entries[uri] = (version, tree)
        self._entries.move_to_end(uri)
        while len(self._entries) > self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted parse tree for {evicted}")
        return tree

    def invalidate(self, uri: str) -> None:
        self._entries.pop(uri, None)

    def __contains__(self, uri: str) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)
