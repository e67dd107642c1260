# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Automatic-forget URL detection.

The detector is a pure predicate: does this URL look like a privacy
sensitive page that should open in forget (private) mode? Policies
consume it as a capability; any object with ``is_automatic_forget_url``
works.

``PatternForgetDetector`` is the stock implementation: a host/path regex
list with an optional set of always-forget base domains.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Protocol, runtime_checkable
from urllib.parse import urlsplit

from .domains import base_domain

logger = logging.getLogger(__name__)


@runtime_checkable
class AutomaticForgetModeDetector(Protocol):
    def is_automatic_forget_url(self, url: str) -> bool: ...


# Matched against "host/path?query", lowercased.
DEFAULT_FORGET_PATTERNS: tuple[str, ...] = (
    r"(^|[./])(log-?out|sign-?out|logoff)([/?.#]|$)",
    r"/(session|account)/(end|reset|clear)([/?#]|$)",
    r"[?&](logout|signout)=(1|true)(&|$)",
)


class PatternForgetDetector:
    """Regex-based detector.

    A URL is an automatic-forget URL when its base domain is listed in
    *domains* or any pattern matches its ``host/path?query`` string.
    Malformed URLs never match.
    """

    def __init__(
        self,
        patterns: Iterable[str] = DEFAULT_FORGET_PATTERNS,
        *,
        domains: Iterable[str] = (),
    ) -> None:
        self._patterns = tuple(re.compile(p, re.IGNORECASE) for p in patterns)
        self._domains = frozenset(filter(None, (base_domain(d) for d in domains)))

    @property
    def patterns(self) -> tuple[re.Pattern[str], ...]:
        return self._patterns

    def is_automatic_forget_url(self, url: str) -> bool:
        domain = base_domain(url)
        if domain is None:
            return False
        if domain in self._domains:
            return True
        try:
            parts = urlsplit(url.strip())
        except ValueError:
            return False
        target = (parts.hostname or "") + parts.path
        if parts.query:
            target += "?" + parts.query
        for pattern in self._patterns:
            if pattern.search(target):
                logger.debug("Forget pattern %s matched %s", pattern.pattern, url)
                return True
        return False
