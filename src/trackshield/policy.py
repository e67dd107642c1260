# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Navigation policy chain.

A navigation is checked against an ordered chain of policies. The first
policy that denies wins; its decision may carry a post-factum handler
that is notified once the block is final. Handlers only observe; they
never reverse a decision.

The chain fails open: a missing URL, a malformed one, or a policy that
raises yields "allow".

Thread model: ``PolicyEngine.evaluate`` runs on the navigation path while
``whitelist_url`` is driven by user actions on the UI side. The only
state shared between the two, the automatic-forget whitelist slot, sits
behind a lock and is consumed with a single compare-and-clear.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable

from .detector import AutomaticForgetModeDetector, PatternForgetDetector
from .domains import base_domain

logger = logging.getLogger(__name__)


class InterceptorType(StrEnum):
    """Kind tag of a navigation policy."""

    AUTOMATIC_FORGET_MODE = "automatic_forget_mode"


PostFactumHandler = Callable[[str, "Policy"], None]


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------


@dataclass(slots=True, eq=False)
class PolicyDecision:
    """Outcome of one policy check.

    ``handler`` is only ever attached to deny decisions and fires at most
    once, through :meth:`notify`.
    """

    allow: bool
    url: str | None = None
    policy: Policy | None = None
    handler: PostFactumHandler | None = None
    _notified: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        if self.allow and self.handler is not None:
            raise ValueError("post-factum handler requires a deny decision")

    def __bool__(self) -> bool:
        return self.allow

    @property
    def notified(self) -> bool:
        return self._notified

    def notify(self) -> bool:
        """Fire the post-factum handler once. Returns True if it ran."""
        if self._notified or self.handler is None or self.url is None or self.policy is None:
            return False
        self._notified = True
        try:
            self.handler(self.url, self.policy)
        except Exception:
            logger.exception("Post-factum handler failed for %s", self.url)
        return True

    @classmethod
    def allowed(cls, url: str | None = None, policy: Policy | None = None) -> PolicyDecision:
        return cls(allow=True, url=url, policy=policy)

    @classmethod
    def denied(
        cls,
        url: str,
        policy: Policy,
        handler: PostFactumHandler | None = None,
    ) -> PolicyDecision:
        return cls(allow=False, url=url, policy=policy, handler=handler)


@runtime_checkable
class Policy(Protocol):
    """A navigation policy. ``can_load`` must not raise for any input."""

    @property
    def kind(self) -> InterceptorType: ...

    def can_load(
        self,
        url: str,
        *,
        on_post_factum: PostFactumHandler | None = None,
    ) -> PolicyDecision: ...

    def whitelist_url(self, url: str) -> None: ...


# ---------------------------------------------------------------------------
# Whitelist slot
# ---------------------------------------------------------------------------


class WhitelistSlot:
    """Lock-guarded single-entry cell holding one pending base domain."""

    __slots__ = ("_domain", "_lock")

    def __init__(self) -> None:
        self._domain: str | None = None
        self._lock = threading.Lock()

    def set(self, domain: str | None) -> None:
        with self._lock:
            self._domain = domain

    def clear(self) -> None:
        self.set(None)

    def peek(self) -> str | None:
        with self._lock:
            return self._domain

    def consume_if_matches(self, domain: str | None) -> bool:
        """Atomically clear the slot if it holds *domain*.

        A None *domain* (no extractable base domain) never matches.
        """
        if domain is None:
            return False
        with self._lock:
            if self._domain is not None and self._domain == domain:
                self._domain = None
                return True
            return False


# ---------------------------------------------------------------------------
# Automatic forget mode
# ---------------------------------------------------------------------------


class AutomaticForgetModePolicy:
    """Blocks navigations to automatic-forget URLs, with a one-shot domain override.

    Detection alone never whitelists. An exception exists only after
    :meth:`whitelist_url`, and it is consumed by the next navigation to the
    same base domain, however much later that happens.
    """

    kind = InterceptorType.AUTOMATIC_FORGET_MODE

    def __init__(
        self,
        detector: AutomaticForgetModeDetector | None = None,
        *,
        on_post_factum: PostFactumHandler | None = None,
        enabled: bool = True,
    ) -> None:
        self._detector = detector if detector is not None else PatternForgetDetector()
        self._default_handler = on_post_factum
        self._whitelist = WhitelistSlot()
        self.enabled = enabled

    @property
    def whitelisted_domain(self) -> str | None:
        return self._whitelist.peek()

    def whitelist_url(self, url: str) -> None:
        """Allow the next navigation to *url*'s base domain, once."""
        domain = base_domain(url)
        if domain is None:
            logger.debug("Cannot whitelist URL without a base domain: %r", url)
        self._whitelist.set(domain)

    def can_load(
        self,
        url: str,
        *,
        on_post_factum: PostFactumHandler | None = None,
    ) -> PolicyDecision:
        if self._whitelist.consume_if_matches(base_domain(url)):
            logger.info("Whitelisted domain consumed: %s", url)
            return PolicyDecision.allowed(url, self)

        if not self.enabled:
            return PolicyDecision.allowed(url, self)

        if self._detector.is_automatic_forget_url(url):
            decision = PolicyDecision.denied(url, self, on_post_factum or self._default_handler)
            logger.info("Automatic forget mode blocked %s", url)
            decision.notify()
            return decision

        return PolicyDecision.allowed(url, self)

    def __repr__(self) -> str:
        return f"AutomaticForgetModePolicy(enabled={self.enabled}, whitelisted={self.whitelisted_domain!r})"


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class PolicyEngine:
    """Ordered, short-circuiting chain of navigation policies."""

    def __init__(self, policies: Iterable[Policy] = ()) -> None:
        self._policies: tuple[Policy, ...] = tuple(policies)
        kinds = [p.kind for p in self._policies]
        if len(set(kinds)) != len(kinds):
            raise ValueError(f"duplicate policy kinds: {kinds}")

    @property
    def policies(self) -> tuple[Policy, ...]:
        return self._policies

    def policy(self, kind: InterceptorType) -> Policy | None:
        for p in self._policies:
            if p.kind == kind:
                return p
        return None

    def whitelist_url(self, kind: InterceptorType, url: str) -> bool:
        """Forward a one-shot exception to the policy of *kind*. False if absent."""
        p = self.policy(kind)
        if p is None:
            return False
        p.whitelist_url(url)
        return True

    def evaluate(
        self,
        url: str | None,
        *,
        on_post_factum: PostFactumHandler | None = None,
    ) -> PolicyDecision:
        """Return the first deny decision, or allow when every policy allows."""
        if not url or not isinstance(url, str):
            return PolicyDecision.allowed(None)

        for p in self._policies:
            try:
                decision = p.can_load(url, on_post_factum=on_post_factum)
            except Exception:
                logger.exception("Policy %s failed on %s; allowing", p.kind, url)
                continue
            if not decision.allow:
                return decision

        return PolicyDecision.allowed(url)
