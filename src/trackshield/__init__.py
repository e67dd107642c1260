# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""trackshield: tracking-protection interception and classification.

- policy: ordered navigation policy chain (automatic forget mode)
- content_blocker: per-tab async request classification keyed by navigation epoch
- page_stats / categories: per-page privacy counters in canonical category order
"""

from __future__ import annotations

from .blocklist import BlocklistChecker, StaticBlocklistChecker
from .categories import Category, all_categories
from .content_blocker import TabContentBlocker
from .page_stats import PageStats
from .policy import AutomaticForgetModePolicy, InterceptorType, PolicyDecision, PolicyEngine

__all__ = [
    "AutomaticForgetModePolicy",
    "BlocklistChecker",
    "Category",
    "InterceptorType",
    "PageStats",
    "PolicyDecision",
    "PolicyEngine",
    "StaticBlocklistChecker",
    "TabContentBlocker",
    "all_categories",
]
