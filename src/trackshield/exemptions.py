# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Per-site content-blocker exemptions.

Users can switch ad blocking and tracking protection off for a site.
A page exempt from both gets no classification at all: its stats stay
empty so the indicator can show the site as trusted.

Entries are base domains; lookups accept any URL on the site.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from enum import StrEnum

from .domains import base_domain


class BlockingKind(StrEnum):
    ADS = "ads"
    TRACKING = "tracking"


class SiteExemptions:
    """Thread-safe per-kind sets of exempted base domains."""

    def __init__(self, *, ads: Iterable[str] = (), tracking: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._domains: dict[BlockingKind, set[str]] = {kind: set() for kind in BlockingKind}
        for url in ads:
            self.exempt(url, BlockingKind.ADS)
        for url in tracking:
            self.exempt(url, BlockingKind.TRACKING)

    def exempt(self, url: str, *kinds: BlockingKind) -> bool:
        """Exempt *url*'s site from *kinds* (all kinds when none given)."""
        domain = base_domain(url)
        if domain is None:
            return False
        with self._lock:
            for kind in kinds or tuple(BlockingKind):
                self._domains[kind].add(domain)
        return True

    def revoke(self, url: str, *kinds: BlockingKind) -> None:
        domain = base_domain(url)
        if domain is None:
            return
        with self._lock:
            for kind in kinds or tuple(BlockingKind):
                self._domains[kind].discard(domain)

    def is_exempt(self, url: str | None, kind: BlockingKind) -> bool:
        domain = base_domain(url)
        if domain is None:
            return False
        with self._lock:
            return domain in self._domains[kind]

    def is_fully_exempt(self, url: str | None) -> bool:
        """True when the site is exempt from every blocking kind."""
        return all(self.is_exempt(url, kind) for kind in BlockingKind)
