# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for trackshield.interceptor — Playwright route wiring. No browser required."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, PropertyMock

import pytest
from _helpers import FakeDetector, make_route
from playwright.async_api import Error as PlaywrightError

from trackshield.categories import Category
from trackshield.content_blocker import TabContentBlocker
from trackshield.exemptions import SiteExemptions
from trackshield.interceptor import (
    ROUTE_PATTERN,
    install_tracking_protection,
    is_main_frame_navigation,
    make_frame_listener,
    make_route_handler,
)
from trackshield.policy import AutomaticForgetModePolicy, PolicyEngine

FORGET_URL = "https://bank.example.com/logout"


@pytest.fixture
def engine():
    return PolicyEngine([AutomaticForgetModePolicy(FakeDetector(FORGET_URL))])


@pytest.fixture
def blocker(scenario_checker):
    return TabContentBlocker(scenario_checker, tab_id="tab-1")


# ── Main frame detection ───────────────────────────────────────


class TestIsMainFrameNavigation:
    def test_main_frame_document(self):
        assert is_main_frame_navigation(make_route("https://a.example", "document").request) is True

    def test_child_frame_document(self):
        route = make_route("https://a.example", "document", main_frame=False)
        assert is_main_frame_navigation(route.request) is False

    def test_subresource(self):
        assert is_main_frame_navigation(make_route("https://a.example/x.js", "script").request) is False

    def test_frameless_request(self):
        request = MagicMock()
        request.resource_type = "document"
        type(request).frame = PropertyMock(side_effect=PlaywrightError("no frame"))
        assert is_main_frame_navigation(request) is False


# ── Route handler ──────────────────────────────────────────────


class TestRouteHandler:
    @pytest.mark.asyncio
    async def test_allowed_navigation_starts_epoch(self, engine, blocker):
        handler = make_route_handler(engine, blocker)
        route = make_route("https://news.example.com/", "document")
        await handler(route)
        route.continue_.assert_called_once()
        route.abort.assert_not_called()
        assert blocker.epoch == 1
        assert blocker.main_document_url == "https://news.example.com/"

    @pytest.mark.asyncio
    async def test_denied_navigation_aborts_and_notifies(self, engine, blocker):
        notice = MagicMock()
        handler = make_route_handler(engine, blocker, on_post_factum=notice)
        route = make_route(FORGET_URL, "document")
        await handler(route)
        route.abort.assert_called_once_with("blockedbyclient")
        route.continue_.assert_not_called()
        assert blocker.epoch == 0
        notice.assert_called_once()
        assert notice.call_args[0][0] == FORGET_URL

    @pytest.mark.asyncio
    async def test_every_main_frame_navigation_is_evaluated(self, engine, blocker):
        handler = make_route_handler(engine, blocker)
        await handler(make_route("https://news.example.com/", "document"))
        route = make_route(FORGET_URL, "document")
        await handler(route)
        route.abort.assert_called_once_with("blockedbyclient")
        route.continue_.assert_not_called()
        assert blocker.epoch == 1
        assert blocker.main_document_url == "https://news.example.com/"

    @pytest.mark.asyncio
    async def test_subresources_are_classified_and_continued(self, engine, blocker):
        handler = make_route_handler(engine, blocker)
        await handler(make_route("https://news.example.com/", "document"))
        r1 = make_route("https://tracker.example/pixel.gif", "image")
        r2 = make_route("https://cdn.example/app.js", "script")
        await handler(r1)
        await handler(r2)
        r1.continue_.assert_called_once()
        r2.continue_.assert_called_once()
        await blocker.drain()
        assert blocker.stats[Category.ADVERTISING] == 1
        assert blocker.stats[Category.CDN] == 1

    @pytest.mark.asyncio
    async def test_iframe_document_counts_as_resource(self, engine, blocker):
        handler = make_route_handler(engine, blocker)
        await handler(make_route("https://news.example.com/", "document"))
        frame = make_route("https://tracker.example/ad.html", "document", main_frame=False)
        await handler(frame)
        await blocker.drain()
        assert blocker.epoch == 1
        assert blocker.stats[Category.ADVERTISING] == 1

    @pytest.mark.asyncio
    async def test_route_errors_are_swallowed(self, engine, blocker):
        handler = make_route_handler(engine, blocker)
        route = make_route("https://news.example.com/", "document")
        route.continue_.side_effect = PlaywrightError("Route is already handled!")
        await handler(route)
        assert blocker.epoch == 1


# ── Installation ───────────────────────────────────────────────


class TestInstall:
    @pytest.mark.asyncio
    async def test_installs_page_route(self, engine, blocker):
        page = AsyncMock()
        page.route = AsyncMock()
        page.on = MagicMock()
        handler = await install_tracking_protection(page, engine, blocker)
        page.route.assert_called_once_with(ROUTE_PATTERN, handler)

        route = make_route("https://news.example.com/", "document")
        await page.route.call_args[0][1](route)
        assert blocker.epoch == 1

    @pytest.mark.asyncio
    async def test_redirect_target_becomes_main_document(self, engine, blocker):
        page = AsyncMock()
        page.route = AsyncMock()
        page.on = MagicMock()
        await install_tracking_protection(page, engine, blocker)
        event, listener = page.on.call_args[0]
        assert event == "framenavigated"

        await page.route.call_args[0][1](make_route("http://news.example.com/", "document"))
        main_frame = MagicMock(parent_frame=None, url="https://www.news.example.org/")
        listener(main_frame)
        assert blocker.main_document_url == "https://www.news.example.org/"
        assert blocker.epoch == 1


# ── Frame listener ─────────────────────────────────────────────


class TestFrameListener:
    def test_child_frame_ignored(self, blocker):
        blocker.begin_navigation("https://news.example.com/")
        child = MagicMock(url="https://ads.example.net/frame")
        make_frame_listener(blocker)(child)
        assert blocker.main_document_url == "https://news.example.com/"

    def test_redirect_into_exempt_site_applies_exemption(self, scenario_checker):
        exemptions = SiteExemptions()
        exemptions.exempt("https://trusted.example.org/")
        blocker = TabContentBlocker(scenario_checker, exemptions=exemptions)
        blocker.begin_navigation("https://short.example/r/1")
        assert blocker.is_exempt is False
        make_frame_listener(blocker)(MagicMock(parent_frame=None, url="https://trusted.example.org/home"))
        assert blocker.is_exempt is True
        assert blocker.on_resource("https://cdn.example/app.js") is None
