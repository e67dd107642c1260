# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge for trackshield.

Console runs get ConsoleRenderer, embedding hosts that ship logs elsewhere
get JSONRenderer. Leaf module: no trackshield imports.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TextIO

import structlog

_SHIELD_LOGGER = "trackshield"


def configure(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
    shield_level: str | None = None,
) -> None:
    """Configure structlog with the stdlib bridge.

    Args:
        json_output: True for JSON lines, False for human-readable output.
        level: Root logger level (default INFO).
        stream: Output stream (default ``sys.stderr``).
        shield_level: Optional separate level for the ``trackshield`` logger
            tree, e.g. DEBUG to trace classifications without raising the
            host application's verbosity.
    """
    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level(level))

    shield = logging.getLogger(_SHIELD_LOGGER)
    shield.setLevel(_level(shield_level) if shield_level else logging.NOTSET)


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


@contextmanager
def bound_tab(tab_id: str) -> Iterator[None]:
    """Bind ``tab_id`` into every log line emitted inside the block."""
    tokens = structlog.contextvars.bind_contextvars(tab_id=tab_id)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
