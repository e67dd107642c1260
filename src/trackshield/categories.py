# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Privacy category taxonomy.

The category set is fixed and its declaration order is canonical: every
consumer that displays or serializes per-category counts iterates in this
order so the privacy indicator stays stable between renders.

Pure Python module: no browser dependencies.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from types import MappingProxyType

logger = logging.getLogger(__name__)


class Category(StrEnum):
    """Why a request was flagged. Declaration order is the display order."""

    ADVERTISING = "advertising"
    ANALYTICS = "analytics"
    CONTENT = "content"
    SOCIAL = "social"
    ESSENTIAL = "essential"
    MISC = "misc"
    HOSTING = "hosting"
    PORNVERTISING = "pornvertising"
    AUDIO_VIDEO_PLAYER = "audioVideoPlayer"
    EXTENSIONS = "extensions"
    CUSTOMER_INTERACTION = "customerInteraction"
    COMMENTS = "comments"
    CDN = "cdn"
    UNKNOWN = "unknown"


_ALL: tuple[Category, ...] = tuple(Category)


def all_categories() -> tuple[Category, ...]:
    """Return every category in canonical order."""
    return _ALL


# ---------------------------------------------------------------------------
# Indicator metadata
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryInfo:
    """Display metadata consumed by the privacy indicator."""

    label: str
    color: str  # colour asset name, resolved by the UI layer


CATEGORY_INFO: Mapping[Category, CategoryInfo] = MappingProxyType(
    {
        Category.ADVERTISING: CategoryInfo("Advertising", "Advertising"),
        Category.ANALYTICS: CategoryInfo("Site Analytics", "SiteAnalytics"),
        # Content shares the advertising colour in the indicator palette.
        Category.CONTENT: CategoryInfo("Content", "Advertising"),
        Category.SOCIAL: CategoryInfo("Social Media", "SocialMedia"),
        Category.ESSENTIAL: CategoryInfo("Essential", "Essential"),
        Category.MISC: CategoryInfo("Miscellaneous", "Misc"),
        Category.HOSTING: CategoryInfo("Hosting", "Hosting"),
        Category.PORNVERTISING: CategoryInfo("Adult Advertising", "Pornvertising"),
        Category.AUDIO_VIDEO_PLAYER: CategoryInfo("Audio/Video Player", "AudioVideoPlayer"),
        Category.EXTENSIONS: CategoryInfo("Extensions", "Extensions"),
        Category.CUSTOMER_INTERACTION: CategoryInfo("Customer Interaction", "CustomerInteraction"),
        Category.COMMENTS: CategoryInfo("Comments", "Comments"),
        Category.CDN: CategoryInfo("CDN", "Cdn"),
        Category.UNKNOWN: CategoryInfo("Unknown", "Unknown"),
    }
)


def info(category: Category) -> CategoryInfo:
    return CATEGORY_INFO[category]


# ---------------------------------------------------------------------------
# Parsing and raw payload translation
# ---------------------------------------------------------------------------

_BY_VALUE: dict[str, Category] = {c.value.lower(): c for c in Category}
_BY_VALUE.update({c.name.lower(): c for c in Category})


def parse_category(value: object) -> Category | None:
    """Resolve *value* to a Category, or None when it names none.

    Accepts Category members, canonical values (``"audioVideoPlayer"``),
    and enum names in any case (``"audio_video_player"``).
    """
    if isinstance(value, Category):
        return value
    if not isinstance(value, str):
        return None
    return _BY_VALUE.get(value.strip().lower())


# Counter names used by the blocklist stats provider. ``comments`` has no
# provider counter and is always reported as zero from raw payloads.
PROVIDER_COUNTERS: Mapping[str, Category] = MappingProxyType(
    {
        "adCount": Category.ADVERTISING,
        "analyticCount": Category.ANALYTICS,
        "contentCount": Category.CONTENT,
        "socialCount": Category.SOCIAL,
        "essentialCount": Category.ESSENTIAL,
        "miscCount": Category.MISC,
        "hostingCount": Category.HOSTING,
        "pornvertisingCount": Category.PORNVERTISING,
        "audioVideoPlayerCount": Category.AUDIO_VIDEO_PLAYER,
        "extensionsCount": Category.EXTENSIONS,
        "customerInteractionCount": Category.CUSTOMER_INTERACTION,
        "cdnCount": Category.CDN,
        "unknownCount": Category.UNKNOWN,
    }
)

_PROVIDER_COUNTERS_LOWER = {k.lower(): v for k, v in PROVIDER_COUNTERS.items()}


def _counter_category(name: str) -> Category | None:
    key = name.strip()
    category = _PROVIDER_COUNTERS_LOWER.get(key.lower())
    if category is not None:
        return category
    # snake_case provider fields: ad_count, analytic_count, ...
    snake = key.lower().replace("_", "")
    category = _PROVIDER_COUNTERS_LOWER.get(snake)
    if category is not None:
        return category
    return parse_category(key)


def stats_dict(payload: Mapping[str, object]) -> dict[Category, int]:
    """Translate a raw provider payload into a full Category → count mapping.

    Every category is present, in canonical order. Unrecognised names,
    non-integer and negative values are ignored (logged at debug level).
    """
    counts: dict[Category, int] = dict.fromkeys(_ALL, 0)
    for name, raw in payload.items():
        category = _counter_category(str(name))
        if category is None:
            logger.debug("Ignoring unknown stats counter: %s", name)
            continue
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            logger.debug("Ignoring invalid count for %s: %r", name, raw)
            continue
        counts[category] = raw
    return counts
