"""
================================================================================
Locator Healing CLI
================================================================================

Command line access to the locator stores and the DOM comparison engine.

Commands:
    reconcile URL --page-name NAME   Snapshot a page and reconcile its locators
    alternatives URL SELECTOR        Suggest selectors for a matched element
    healed list                      Show the healed-locator registry
    healed forget SELECTOR           Drop one healed entry
    healed clear                     Drop every healed entry

Usage:
    locator-healing reconcile http://localhost:3000/login --page-name login-page
    locator-healing --log-level DEBUG healed list

Author: Automation Team
License: MIT
================================================================================
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError

from healing_suites.ui_testing.framework.browser_manager import (
    SUPPORTED_BROWSERS,
    BrowserManager,
)
from healing_suites.ui_testing.framework.config_loader import (
    ConfigLoader,
    ConfigurationError,
)
from healing_suites.ui_testing.framework.dom_comparison import DomComparison
from healing_suites.ui_testing.framework.locator_store import (
    HealedLocatorRegistry,
    LocatorHealingError,
    StoragePaths,
)
from healing_tools.common import init_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="locator-healing",
        description="Self-healing locator maintenance",
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--browser", choices=SUPPORTED_BROWSERS, help="Browser to launch")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")

    commands = parser.add_subparsers(dest="command", required=True)

    reconcile = commands.add_parser("reconcile", help="Reconcile page locators with the live DOM")
    reconcile.add_argument("url", help="Page URL")
    reconcile.add_argument("--page-name", required=True, help="Logical page name")

    alternatives = commands.add_parser("alternatives", help="Suggest alternative selectors")
    alternatives.add_argument("url", help="Page URL")
    alternatives.add_argument("selector", help="Selector matching the element")

    healed = commands.add_parser("healed", help="Inspect or maintain healed locators")
    healed_commands = healed.add_subparsers(dest="healed_command", required=True)
    healed_commands.add_parser("list", help="Show all healed locators")
    forget = healed_commands.add_parser("forget", help="Drop one healed locator")
    forget.add_argument("selector", help="Original selector")
    healed_commands.add_parser("clear", help="Drop all healed locators")

    return parser


# ============================================================
# Commands
# ============================================================

async def _open_page(args: argparse.Namespace, manager: BrowserManager):
    page = await manager.new_page()
    logger.info(f"Opening {args.url}")
    await page.goto(args.url, wait_until="load")
    return page


async def run_reconcile(args: argparse.Namespace, paths: StoragePaths) -> int:
    async with BrowserManager(headless=False if args.headed else None, browser_type=args.browser) as manager:
        page = await _open_page(args, manager)
        result = await DomComparison(page, paths).reconcile_with_report(args.page_name)

    print(json.dumps(
        {
            "page_name": result.page_name,
            "state": result.state.value,
            "summary": result.diff.summary(),
            "diff": result.diff.to_dict(),
        },
        indent=2,
        ensure_ascii=False,
    ))
    return 0


async def run_alternatives(args: argparse.Namespace, paths: StoragePaths) -> int:
    async with BrowserManager(headless=False if args.headed else None, browser_type=args.browser) as manager:
        page = await _open_page(args, manager)
        candidates = await DomComparison(page, paths).find_alternatives(args.selector)

    if not candidates:
        logger.error(f"No element matches: {args.selector}")
        return 1
    for candidate in candidates:
        print(candidate)
    return 0


def run_healed(args: argparse.Namespace, paths: StoragePaths) -> int:
    registry = HealedLocatorRegistry.from_paths(paths)

    if args.healed_command == "list":
        healed = registry.load()
        if not healed:
            print("No healed locators recorded.")
        for original, replacement in sorted(healed.items()):
            print(f"{original} -> {replacement}")
        return 0

    if args.healed_command == "forget":
        if not registry.forget(args.selector):
            logger.error(f"No healed locator recorded for: {args.selector}")
            return 1
        return 0

    count = registry.clear()
    print(f"Removed {count} healed locators.")
    return 0


# ============================================================
# Entry Point
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        if args.config:
            ConfigLoader.reset()
            ConfigLoader(args.config)
        init_logger(level=args.log_level, force=True)

        paths = StoragePaths.from_config(ConfigLoader())

        if args.command == "reconcile":
            return asyncio.run(run_reconcile(args, paths))
        if args.command == "alternatives":
            return asyncio.run(run_alternatives(args, paths))
        return run_healed(args, paths)
    except (LocatorHealingError, ConfigurationError, PlaywrightError, OSError, ValueError) as e:
        logger.error(f"❌ {args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
