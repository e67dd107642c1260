# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""trackshield CLI: classify and check commands.

Usage:
    trackshield classify --blocklist FILE [--page URL] [--json] URL...
    trackshield check [--whitelist URL] [--pattern REGEX]... [--json] URL...
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys

from .blocklist import StaticBlocklistChecker
from .config import ShieldConfig
from .content_blocker import TabContentBlocker
from .detector import DEFAULT_FORGET_PATTERNS, PatternForgetDetector
from .errors import TrackShieldError
from .indicator import IndicatorSnapshot
from .logging_config import configure
from .policy import AutomaticForgetModePolicy, InterceptorType, Policy, PolicyEngine


def _require_cli_deps() -> None:
    """Check that CLI optional dependencies are installed."""
    try:
        from tabulate import tabulate  # noqa: F401
    except ImportError as e:
        print(
            f"Missing CLI dependency: {e.name}\nInstall with: pip install retio-trackshield[cli]",
            file=sys.stderr,
        )
        sys.exit(1)


def build_engine(config: ShieldConfig) -> PolicyEngine:
    """Default policy chain for the given configuration."""
    patterns = (*DEFAULT_FORGET_PATTERNS, *config.forget_patterns)
    policy = AutomaticForgetModePolicy(
        PatternForgetDetector(patterns),
        enabled=config.automatic_forget_mode,
    )
    return PolicyEngine([policy])


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


async def _classify_urls(
    checker: StaticBlocklistChecker,
    config: ShieldConfig,
    page_url: str,
    urls: list[str],
) -> IndicatorSnapshot:
    async with TabContentBlocker(checker, config=config, tab_id="cli") as blocker:
        blocker.begin_navigation(page_url)
        for url in urls:
            blocker.on_resource(url)
        await blocker.drain()
        return IndicatorSnapshot.from_stats(blocker.stats, exempt=blocker.is_exempt)


def cmd_classify(args: argparse.Namespace) -> None:
    config = ShieldConfig.from_env()
    checker = StaticBlocklistChecker.from_file(args.blocklist)
    if args.page:
        page_url, resources = args.page, args.urls
    else:
        page_url, resources = args.urls[0], args.urls[1:]
    snapshot = asyncio.run(_classify_urls(checker, config, page_url, resources))

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2))
        return

    _require_cli_deps()
    from tabulate import tabulate

    rows = [[r.label, r.category.value, r.count] for r in snapshot.rows]
    print(tabulate(rows, headers=["Category", "Key", "Count"], tablefmt="simple"))
    print(f"\nTotal: {snapshot.total}")


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


def cmd_check(args: argparse.Namespace) -> None:
    config = ShieldConfig.from_env()
    if args.pattern:
        config = dataclasses.replace(config, forget_patterns=(*config.forget_patterns, *args.pattern))
    engine = build_engine(config)
    if args.whitelist:
        engine.whitelist_url(InterceptorType.AUTOMATIC_FORGET_MODE, args.whitelist)

    def _notice(url: str, policy: Policy) -> None:
        print(f"notice: {policy.kind} blocked {url}", file=sys.stderr)

    results = []
    for url in args.urls:
        decision = engine.evaluate(url, on_post_factum=_notice)
        kind = decision.policy.kind.value if not decision.allow and decision.policy is not None else ""
        results.append({"url": url, "allow": decision.allow, "policy": kind})

    if args.json:
        print(json.dumps(results, indent=2))
        return

    for r in results:
        verdict = "allow" if r["allow"] else f"deny ({r['policy']})"
        print(f"{verdict:<32} {r['url']}")


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Tracking protection CLI",
        prog="trackshield",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_classify = subparsers.add_parser("classify", help="Classify resource URLs against a blocklist file")
    p_classify.add_argument("--blocklist", required=True, metavar="FILE", help='JSON object {"domain": "category"}')
    p_classify.add_argument(
        "--page", metavar="URL", help="Main document URL (default: the first URL, which is then not classified)"
    )
    p_classify.add_argument("--json", action="store_true", help="Output JSON")
    p_classify.add_argument("urls", nargs="+", metavar="URL")

    p_check = subparsers.add_parser("check", help="Evaluate navigation policies for URLs")
    p_check.add_argument("--whitelist", metavar="URL", help="One-shot exception for this URL's site")
    p_check.add_argument("--pattern", action="append", metavar="REGEX", help="Extra automatic-forget pattern")
    p_check.add_argument("--json", action="store_true", help="Output JSON")
    p_check.add_argument("urls", nargs="+", metavar="URL")

    commands = {"classify": cmd_classify, "check": cmd_check}

    args = parser.parse_args(argv)

    configure(level="DEBUG" if args.verbose else "WARNING")

    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except TrackShieldError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
