# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""trackshield exception hierarchy.

Decision and classification paths never raise to their callers: policies
fail open and classification failures degrade to "no category". These
errors are raised only by loaders and configuration.
"""

from __future__ import annotations


class TrackShieldError(Exception):
    """Base exception for all trackshield errors."""


class ConfigError(TrackShieldError, ValueError):
    """Invalid tracking-protection configuration value."""


class BlocklistError(TrackShieldError):
    """Blocklist source could not be read or parsed."""

    def __init__(self, message: str, *, source: str = "") -> None:
        super().__init__(message)
        self.source = source
