# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tracking-protection settings.

Environment variables (all optional):

- ``TRACKSHIELD_PRIVACY_DASHBOARD``: "0"/"false"/"no"/"off" disables classification
- ``TRACKSHIELD_FORGET_MODE``: "0"/"false"/"no"/"off" disables automatic forget mode
- ``TRACKSHIELD_CLASSIFY_CONCURRENCY``: max in-flight lookups per tab (default 8)
- ``TRACKSHIELD_FORGET_PATTERNS``: extra detector regexes, separated by ``||``
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import ConfigError

_FALSE = frozenset({"0", "false", "no", "off"})
_TRUE = frozenset({"1", "true", "yes", "on"})
_PATTERN_SEPARATOR = "||"


@dataclass(frozen=True, slots=True)
class ShieldConfig:
    """Immutable tracking-protection configuration."""

    privacy_dashboard_enabled: bool = True
    automatic_forget_mode: bool = True
    classification_concurrency: int = 8
    forget_patterns: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.classification_concurrency <= 0:
            raise ConfigError(f"classification_concurrency must be > 0, got {self.classification_concurrency}")
        for pattern in self.forget_patterns:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ConfigError(f"invalid forget pattern {pattern!r}: {exc}") from exc

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ShieldConfig:
        env = os.environ if environ is None else environ

        dashboard = _flag(env, "TRACKSHIELD_PRIVACY_DASHBOARD", default=True)
        forget = _flag(env, "TRACKSHIELD_FORGET_MODE", default=True)

        concurrency = 8
        env_conc = env.get("TRACKSHIELD_CLASSIFY_CONCURRENCY", "").strip()
        if env_conc:
            try:
                concurrency = int(env_conc)
            except ValueError as exc:
                raise ConfigError(f"TRACKSHIELD_CLASSIFY_CONCURRENCY must be an integer, got {env_conc!r}") from exc

        patterns: tuple[str, ...] = ()
        env_patterns = env.get("TRACKSHIELD_FORGET_PATTERNS", "").strip()
        if env_patterns:
            patterns = tuple(p.strip() for p in env_patterns.split(_PATTERN_SEPARATOR) if p.strip())

        return cls(
            privacy_dashboard_enabled=dashboard,
            automatic_forget_mode=forget,
            classification_concurrency=concurrency,
            forget_patterns=patterns,
        )


def _flag(env: Mapping[str, str], name: str, *, default: bool) -> bool:
    raw = env.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in _FALSE:
        return False
    if raw in _TRUE:
        return True
    raise ConfigError(f"{name} must be a boolean flag, got {raw!r}")
