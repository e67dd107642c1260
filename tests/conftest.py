# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import trackshield  # noqa: F401
except ImportError:
    raise ImportError("trackshield is not installed. Run: pip install -e '.[dev]'") from None

import os

import pytest

from trackshield.blocklist import StaticBlocklistChecker
from trackshield.categories import Category


@pytest.fixture
def scenario_checker() -> StaticBlocklistChecker:
    return StaticBlocklistChecker(
        {
            "tracker.example": Category.ADVERTISING,
            "cdn.example": Category.CDN,
            "stats.example.com": Category.ANALYTICS,
            "social.example.net": "social",
        }
    )


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    """Keep TRACKSHIELD_* settings from the developer shell out of tests."""
    for key in list(os.environ):
        if key.startswith("TRACKSHIELD_"):
            monkeypatch.delenv(key, raising=False)
