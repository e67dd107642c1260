# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Blocklist lookup boundary.

The matching algorithm behind a blocklist is not ours: the core only
needs ``await checker.classify(url) -> Category | None``. "No match" and
"lookup failed" look the same from here, both resolve to None, and
``classify_safely`` is the one place that enforces it.

``StaticBlocklistChecker`` is a host table (exact host or any parent
domain) used by the CLI and as an injectable default.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit, urlunsplit

from .categories import Category, parse_category
from .domains import host_of, to_ascii
from .errors import BlocklistError

logger = logging.getLogger(__name__)

_LOOKUP_SCHEME = "http"


@runtime_checkable
class BlocklistChecker(Protocol):
    async def classify(self, url: str) -> Category | None: ...


def lookup_url(url: str | None) -> str | None:
    """Normalize *url* for a blocklist lookup: scheme forced to http.

    Returns None for URLs without a host.
    """
    if not host_of(url):
        return None
    raw = url.strip()  # type: ignore[union-attr]
    if "://" not in raw:
        raw = "//" + raw
    try:
        parts = urlsplit(raw)
    except ValueError:
        return None
    return urlunsplit((_LOOKUP_SCHEME, parts.netloc, parts.path, parts.query, ""))


async def classify_safely(checker: BlocklistChecker, url: str) -> Category | None:
    """Classify *url*, mapping every failure to None."""
    try:
        result = await checker.classify(url)
    except Exception as exc:
        logger.debug("Blocklist lookup failed for %s: %s", url, exc)
        return None
    category = parse_category(result) if result is not None else None
    if result is not None and category is None:
        logger.debug("Blocklist returned non-canonical category %r for %s", result, url)
    return category


class StaticBlocklistChecker:
    """In-memory host → Category table.

    A request matches an entry when its host equals the entry or is a
    subdomain of it; the most specific entry wins.
    """

    def __init__(self, entries: Mapping[str, Category | str] | None = None) -> None:
        self._table: dict[str, Category] = {}
        for domain, value in (entries or {}).items():
            self.add(domain, value)

    def add(self, domain: str, category: Category | str) -> None:
        resolved = parse_category(category)
        if resolved is None:
            raise BlocklistError(f"unknown category {category!r} for {domain!r}")
        host = to_ascii(domain.strip().lstrip(".").lower())
        if not host:
            raise BlocklistError("empty blocklist domain")
        self._table[host] = resolved

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, domain: object) -> bool:
        return isinstance(domain, str) and to_ascii(domain.lower()) in self._table

    def lookup(self, url: str) -> Category | None:
        host = host_of(url)
        while host:
            category = self._table.get(host)
            if category is not None:
                return category
            _, _, host = host.partition(".")
        return None

    async def classify(self, url: str) -> Category | None:
        return self.lookup(url)

    @classmethod
    def from_file(cls, path: str | Path) -> StaticBlocklistChecker:
        """Load a JSON object ``{"domain": "category", ...}``."""
        p = Path(path)
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise BlocklistError(f"cannot read blocklist {p}: {exc}", source=str(p)) from exc
        if not isinstance(data, dict):
            raise BlocklistError(f"blocklist {p} must be a JSON object", source=str(p))
        try:
            checker = cls(data)
        except BlocklistError as exc:
            raise BlocklistError(f"{p}: {exc}", source=str(p)) from exc
        logger.info("Loaded %d blocklist entries from %s", len(checker), p)
        return checker
