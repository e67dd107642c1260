# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Playwright wiring for tracking protection.

Installs a page-level route handler that:

- checks main-frame document requests against the PolicyEngine; a deny
  aborts the request with ``blockedbyclient``, an allow opens a new
  navigation epoch on the tab's TabContentBlocker;
- hands every other request to ``TabContentBlocker.on_resource`` for
  background classification and lets it through untouched.

The handler never raises into Playwright: decision errors fail open and
route errors (page already closed, request already handled) are logged.

Playwright routes only the first request of a redirect chain. A main-frame
redirect into a logout or reset URL is therefore never seen by the
PolicyEngine and cannot be blocked here. A ``framenavigated`` listener keeps
the blocker's main document URL on the committed (post-redirect) URL, so
exemptions follow the page the user actually landed on.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Page, Request, Route

from .content_blocker import TabContentBlocker
from .policy import PolicyEngine, PostFactumHandler

logger = logging.getLogger(__name__)

ROUTE_PATTERN = "**/*"
_ABORT_REASON = "blockedbyclient"


def is_main_frame_navigation(request: Request) -> bool:
    """True for top-level document loads."""
    if request.resource_type != "document":
        return False
    try:
        frame = request.frame
    except PlaywrightError:
        # service worker requests have no frame
        return False
    return frame.parent_frame is None


def make_route_handler(
    engine: PolicyEngine,
    blocker: TabContentBlocker,
    *,
    on_post_factum: PostFactumHandler | None = None,
) -> Callable[[Route], Awaitable[None]]:
    """Build the route handler; separated from installation for testing."""

    async def _handler(route: Route) -> None:
        request = route.request
        url = request.url
        try:
            if is_main_frame_navigation(request):
                decision = engine.evaluate(url, on_post_factum=on_post_factum)
                if not decision.allow:
                    logger.info("Navigation blocked: url=%s policy=%s", url, getattr(decision.policy, "kind", None))
                    await route.abort(_ABORT_REASON)
                    return
                blocker.begin_navigation(url)
            else:
                blocker.on_resource(url)
            await route.continue_()
        except PlaywrightError as exc:
            logger.debug("Route for %s not handled: %s", url, exc)

    return _handler


def make_frame_listener(blocker: TabContentBlocker) -> Callable[[Frame], None]:
    """Build the ``framenavigated`` listener that tracks the committed main-frame URL."""

    def _on_frame_navigated(frame: Frame) -> None:
        if frame.parent_frame is None:
            blocker.commit_navigation(frame.url)

    return _on_frame_navigated


async def install_tracking_protection(
    page: Page,
    engine: PolicyEngine,
    blocker: TabContentBlocker,
    *,
    on_post_factum: PostFactumHandler | None = None,
) -> Callable[[Route], Awaitable[None]]:
    """Route every request of *page* through tracking protection.

    Returns the installed handler so callers can ``page.unroute`` it.
    """
    handler = make_route_handler(engine, blocker, on_post_factum=on_post_factum)
    await page.route(ROUTE_PATTERN, handler)
    page.on("framenavigated", make_frame_listener(blocker))
    logger.info("Tracking protection installed on tab %s", blocker.tab_id)
    return handler
