# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Per-tab request classification with navigation epochs.

Every main-frame navigation opens a new epoch and clears the tab's
PageStats. Each resource request spawns a classification task that
remembers the epoch it was issued in; when the lookup completes after
the tab has moved on, the result is dropped instead of leaking into the
new page's counters.

Design choices:

- **Injected checker**: the BlocklistChecker is passed in, never looked
  up globally, so tabs can share one service or tests can swap it.
- **Fire-and-forget**: ``on_resource`` returns the task immediately;
  callers never wait on a lookup.
- **Bounded**: an ``asyncio.Semaphore`` caps in-flight lookups per tab.
  Lookups that are already stale when they get a slot are skipped.
- **Single loop**: epoch checks and ``PageStats.record`` run on the
  event loop with no await in between, so the check-then-apply is atomic.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from dataclasses import dataclass
from types import TracebackType

from .blocklist import BlocklistChecker, classify_safely, lookup_url
from .categories import Category
from .config import ShieldConfig
from .exemptions import SiteExemptions
from .logging_config import bound_tab
from .page_stats import PageStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BlockerHealth:
    """Immutable snapshot of a tab's classification counters."""

    tab_id: str
    epoch: int
    pending: int
    applied: int
    misses: int
    dropped_stale: int


class TabContentBlocker:
    """Owns one tab's PageStats and correlates lookups with navigations.

    Usage::

        async with TabContentBlocker(checker) as blocker:
            blocker.begin_navigation("https://news.example/")
            blocker.on_resource("https://tracker.example/pixel.gif")
            await blocker.drain()
            blocker.stats.as_dict()
    """

    def __init__(
        self,
        checker: BlocklistChecker,
        *,
        config: ShieldConfig | None = None,
        exemptions: SiteExemptions | None = None,
        tab_id: str = "",
    ) -> None:
        self._checker = checker
        self._config = config or ShieldConfig()
        self._exemptions = exemptions if exemptions is not None else SiteExemptions()
        self.tab_id = tab_id or uuid.uuid4().hex[:8]
        self._stats = PageStats()
        self._epoch = 0
        self._main_document_url: str | None = None
        self._pending: set[asyncio.Task] = set()
        self._semaphore = asyncio.Semaphore(self._config.classification_concurrency)
        self._applied = 0
        self._misses = 0
        self._dropped_stale = 0

    # -- Async context manager --

    async def __aenter__(self) -> TabContentBlocker:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # -- State --

    @property
    def stats(self) -> PageStats:
        return self._stats

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def main_document_url(self) -> str | None:
        return self._main_document_url

    @property
    def exemptions(self) -> SiteExemptions:
        return self._exemptions

    @property
    def is_exempt(self) -> bool:
        """True when the current page is exempt from all blocking."""
        return self._exemptions.is_fully_exempt(self._main_document_url)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def health(self) -> BlockerHealth:
        return BlockerHealth(
            tab_id=self.tab_id,
            epoch=self._epoch,
            pending=len(self._pending),
            applied=self._applied,
            misses=self._misses,
            dropped_stale=self._dropped_stale,
        )

    # -- Navigation --

    def begin_navigation(self, url: str | None) -> int:
        """Start a new page load: bump the epoch and clear the counters."""
        self._epoch += 1
        self._main_document_url = url
        self._stats.clear()
        logger.debug("Tab %s navigation epoch=%d url=%s", self.tab_id, self._epoch, url)
        return self._epoch

    def commit_navigation(self, url: str | None) -> None:
        """Record the URL the main frame actually committed.

        Differs from the ``begin_navigation`` URL after a server redirect.
        Epoch and counters are left alone: it is still the same page load.
        """
        if not url or url == self._main_document_url:
            return
        logger.debug("Tab %s committed %s (requested %s)", self.tab_id, url, self._main_document_url)
        self._main_document_url = url

    # -- Classification --

    def on_resource(self, url: str | None) -> asyncio.Task[Category | None] | None:
        """Schedule classification of a resource request on the current page.

        Returns the task, or None when nothing was scheduled (dashboard
        disabled, no page yet, page exempt, URL without a host).
        Must be called from the event loop.
        """
        if not self._config.privacy_dashboard_enabled or self._main_document_url is None:
            return None

        if self.is_exempt:
            # Exempt pages report nothing, so the indicator can show them as trusted.
            if self._stats.total:
                self._stats.clear()
            return None

        target = lookup_url(url)
        if target is None:
            return None

        epoch = self._epoch
        task = asyncio.get_running_loop().create_task(
            self._classify(epoch, target),
            name=f"trackshield-classify-{self.tab_id}-{epoch}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def apply_result(self, epoch: int, category: Category | None) -> bool:
        """Apply a lookup result issued during *epoch*.

        Results for an epoch other than the current one are dropped.
        Returns True when a counter was incremented.
        """
        if epoch != self._epoch:
            self._dropped_stale += 1
            logger.debug(
                "Tab %s dropped stale result %s (issued epoch=%d, current=%d)",
                self.tab_id,
                category,
                epoch,
                self._epoch,
            )
            return False
        if category is None:
            self._misses += 1
            return False
        if not self._stats.record(category):
            return False
        self._applied += 1
        return True

    async def _classify(self, epoch: int, url: str) -> Category | None:
        with bound_tab(self.tab_id):
            async with self._semaphore:
                if epoch != self._epoch:
                    self._dropped_stale += 1
                    return None
                category = await classify_safely(self._checker, url)
            if self.apply_result(epoch, category):
                return category
            return None

    # -- Lifecycle --

    async def drain(self) -> None:
        """Wait until every scheduled classification has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Cancel outstanding classifications."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()
