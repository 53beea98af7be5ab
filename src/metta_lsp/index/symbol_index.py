"""Workspace-wide symbol index.

Maps each name to the ordered list of its SymbolSites. A file's entries are
only ever replaced wholesale: every re-index removes all of that file's
sites and appends the freshly extracted ones.

Terms:
- Bucket: the list of sites for one name, in insertion order
- Reverse map: uri -> names that file contributed, used to touch only the
  buckets a replacement can affect

Laws:
- For every uri, the sites carrying that uri are exactly the last list
  passed to replace_file for it
- Replacing one file never removes another file's sites
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator

from ..core.types import SymbolSite

logger = logging.getLogger(__name__)


class SymbolIndex:
    """Name -> sites multi-map with per-file replacement.

    Owned by the language service for the whole process lifetime. Not
    thread-safe: callers run on a single worker.
    """

    def __init__(self) -> None:
        self._buckets: dict[str, list[SymbolSite]] = {}
        self._names_by_uri: dict[str, set[str]] = {}

    def replace_file(self, uri: str, sites: Iterable[SymbolSite]) -> None:
        """Drop every site of ``uri`` and insert ``sites`` in order."""
        new_sites = list(sites)
        for site in new_sites:
            if site.uri != uri:
                raise ValueError(f"Site for {site.uri} passed while replacing {uri}")

        self._remove_file(uri)

        names: set[str] = set()
        for site in new_sites:
            self._buckets.setdefault(site.name, []).append(site)
            names.add(site.name)
        if names:
            self._names_by_uri[uri] = names

    def remove_file(self, uri: str) -> None:
        self.replace_file(uri, [])

    def _remove_file(self, uri: str) -> None:
        for name in self._names_by_uri.pop(uri, ()):
            self._filter_bucket(name, uri)

    def _filter_bucket(self, name: str, uri: str) -> None:
        bucket = self._buckets.get(name)
        if bucket is None:
            return
        kept = [site for site in bucket if site.uri != uri]
        if kept:
            self._buckets[name] = kept
        else:
            del self._buckets[name]

    def lookup(self, name: str) -> list[SymbolSite]:
        """Sites for ``name`` in insertion order; empty when unknown."""
        return list(self._buckets.get(name, ()))

    def all_names(self) -> list[str]:
        return list(self._buckets)

    def uris(self) -> list[str]:
        """Documents that currently contribute at least one site."""
        return list(self._names_by_uri)

    def sites_for(self, uri: str) -> list[SymbolSite]:
        return [site for site in self if site.uri == uri]

    def __iter__(self) -> Iterator[SymbolSite]:
        for bucket in self._buckets.values():
            yield from bucket

    def __contains__(self, name: str) -> bool:
        return name in self._buckets

    def __len__(self) -> int:
        return len(self._buckets)


class ScanningSymbolIndex(SymbolIndex):
    """SymbolIndex that clears a file by filtering every bucket.

    Cost per replacement grows with the number of indexed names. Kept as
    the reference behaviour the reverse-map strategy is checked against.
    """

    def _remove_file(self, uri: str) -> None:
        self._names_by_uri.pop(uri, None)
        for name in list(self._buckets):
            self._filter_bucket(name, uri)
