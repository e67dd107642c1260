# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Privacy-indicator view model.

Turns a tab's PageStats into rows the indicator can draw without knowing
the taxonomy: canonical order, label, colour asset and count per
category. Rendering itself belongs to the UI.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .categories import Category, all_categories, info
from .content_blocker import TabContentBlocker
from .page_stats import PageStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IndicatorRow:
    category: Category
    label: str
    color: str
    count: int


@dataclass(frozen=True, slots=True)
class IndicatorSnapshot:
    """What the indicator shows for one page at one moment."""

    rows: tuple[IndicatorRow, ...]
    total: int
    exempt: bool = False

    @classmethod
    def from_stats(cls, stats: PageStats, *, exempt: bool = False) -> IndicatorSnapshot:
        counts = stats.as_dict()
        rows = tuple(
            IndicatorRow(category=c, label=info(c).label, color=info(c).color, count=counts[c])
            for c in all_categories()
        )
        return cls(rows=rows, total=sum(r.count for r in rows), exempt=exempt)

    def nonzero(self) -> tuple[IndicatorRow, ...]:
        """Rows with a positive count, still in canonical order."""
        return tuple(r for r in self.rows if r.count)

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "exempt": self.exempt,
            "categories": {r.category.value: r.count for r in self.rows},
        }


class PrivacyIndicator:
    """Pushes a fresh snapshot to *render* whenever the tab's counters change."""

    def __init__(self, blocker: TabContentBlocker, render: Callable[[IndicatorSnapshot], None]) -> None:
        self._blocker = blocker
        self._render = render
        self._unsubscribe: Callable[[], None] | None = blocker.stats.subscribe(self._on_change)

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def snapshot(self) -> IndicatorSnapshot:
        return IndicatorSnapshot.from_stats(self._blocker.stats, exempt=self._blocker.is_exempt)

    def refresh(self) -> None:
        """Render the current state (e.g. after exemptions changed)."""
        self._render(self.snapshot())

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, stats: PageStats) -> None:
        self._render(IndicatorSnapshot.from_stats(stats, exempt=self._blocker.is_exempt))
