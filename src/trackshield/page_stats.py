# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Per-page privacy counters.

One PageStats lives for one page load: it is cleared when a navigation
starts, incremented by classification results, and read by the privacy
indicator. Counters never decrease while the page is alive.

NOTE: PageStats is owned by the event loop of its TabContentBlocker.
It is NOT thread-safe; all mutation happens on that loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType

from .categories import Category, all_categories, parse_category

logger = logging.getLogger(__name__)

StatsObserver = Callable[["PageStats"], None]


class PageStats:
    """Mutable Category → count aggregate with change notification."""

    __slots__ = ("_counts", "_observers")

    def __init__(self) -> None:
        self._counts: dict[Category, int] = dict.fromkeys(all_categories(), 0)
        self._observers: list[StatsObserver] = []

    # -- Mutation --

    def clear(self) -> None:
        """Reset every counter to zero and notify observers."""
        for category in self._counts:
            self._counts[category] = 0
        self._notify()

    def record(self, category: Category | str | None) -> bool:
        """Increment the counter for *category*.

        Values outside the canonical set are ignored. Returns True when a
        counter changed.
        """
        resolved = parse_category(category)
        if resolved is None:
            logger.debug("Ignoring non-canonical category: %r", category)
            return False
        self._counts[resolved] += 1
        self._notify()
        return True

    # -- Read --

    def as_dict(self) -> Mapping[Category, int]:
        """Read-only snapshot in canonical order."""
        return MappingProxyType({c: self._counts[c] for c in all_categories()})

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def __getitem__(self, category: Category) -> int:
        return self._counts[category]

    def __iter__(self) -> Iterator[Category]:
        return iter(all_categories())

    def __len__(self) -> int:
        return len(self._counts)

    def __repr__(self) -> str:
        nonzero = ", ".join(f"{c.value}={n}" for c, n in self.as_dict().items() if n)
        return f"PageStats({nonzero})"

    # -- Observers --

    def subscribe(self, observer: StatsObserver) -> Callable[[], None]:
        """Register *observer*; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _notify(self) -> None:
        for observer in list(self._observers):
            try:
                observer(self)
            except Exception:
                logger.exception("PageStats observer failed")
