# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Base (registrable) domain extraction.

Uses the bundled Public Suffix List snapshot from tldextract; no network
fetch happens at runtime. Hosts without a public suffix (IP addresses,
``localhost``) are their own base domain.
"""

from __future__ import annotations

import functools
import logging
import re
from urllib.parse import urlsplit

import tldextract

logger = logging.getLogger(__name__)

_TLDX = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())

_HIERARCHICAL = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
# about:blank, data:, mailto: ... carry no host
_OPAQUE = re.compile(r"^[a-z][a-z0-9+.\-]*:(?!\d)", re.IGNORECASE)
_HOST_CHARS = re.compile(r"^[a-z0-9_.:\-]+$")


def to_ascii(host: str) -> str:
    """IDNA (punycode) form of *host*; "" when it cannot be encoded."""
    if host.isascii():
        return host
    try:
        return host.encode("idna").decode("ascii")
    except UnicodeError:
        return ""


def host_of(url: str | None) -> str:
    """Lowercased ASCII host of *url*, or "" when none can be extracted.

    Internationalized hosts come back in their punycode form, so
    ``bücher.de`` and ``xn--bcher-kva.de`` name the same host.
    """
    if not url or not isinstance(url, str):
        return ""
    raw = url.strip()
    if not _HIERARCHICAL.match(raw):
        if _OPAQUE.match(raw):
            return ""
        # bare host or host/path
        raw = "//" + raw
    try:
        host = urlsplit(raw).hostname or ""
    except ValueError:
        return ""
    host = to_ascii(host.rstrip(".")).lower()
    if not _HOST_CHARS.match(host):
        return ""
    return host


@functools.lru_cache(maxsize=4096)
def _registrable(host: str) -> str:
    ext = _TLDX(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host


def base_domain(url: str | None) -> str | None:
    """Registrable domain of *url* (``example.co.uk`` for ``a.b.example.co.uk``).

    Returns None when *url* has no extractable host; callers treat that
    as a non-match.
    """
    host = host_of(url)
    if not host:
        return None
    return _registrable(host)


def same_site(a: str | None, b: str | None) -> bool:
    """True when both URLs have the same, non-empty base domain."""
    da = base_domain(a)
    return da is not None and da == base_domain(b)
