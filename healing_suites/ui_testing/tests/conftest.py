"""
================================================================================
UI Testing Pytest Configuration
================================================================================

This module configures pytest for UI tests, providing fixtures for browser
management, page objects, isolated locator storage and failure capture.

Key Features:
- Browser and page lifecycle management (one browser per test)
- Locator storage redirected to a temporary directory
- Screenshot capture on failure

Pages are rendered with `page.set_content(...)`, so no application server
is required.

================================================================================
"""

from typing import AsyncGenerator

import allure
import pytest
from loguru import logger
from playwright.async_api import Page

from healing_suites.ui_testing.framework.browser_manager import BrowserManager
from healing_suites.ui_testing.framework.dom_comparison import DomComparison
from healing_suites.ui_testing.framework.locator_store import (
    HealedLocatorRegistry,
    StoragePaths,
)
from healing_suites.ui_testing.framework.self_healing_locator import SelfHealingLocator
from healing_suites.ui_testing.pages.login_page import LoginPage


# ================================================================================
# Storage Fixtures
# ================================================================================

@pytest.fixture
def storage_paths(tmp_path) -> StoragePaths:
    """Locator maps, registry and snapshots under a per-test directory."""
    return StoragePaths.under(tmp_path)


@pytest.fixture
def registry(storage_paths: StoragePaths) -> HealedLocatorRegistry:
    return HealedLocatorRegistry.from_paths(storage_paths)


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture
async def browser_manager() -> AsyncGenerator[BrowserManager, None]:
    """
    Function-scoped browser manager fixture.

    Browser type and headless mode come from configuration
    (BROWSER_TYPE / BROWSER_HEADLESS override them).
    """
    async with BrowserManager() as manager:
        yield manager


@pytest.fixture
async def page(request, browser_manager: BrowserManager) -> AsyncGenerator[Page, None]:
    """
    Function-scoped page fixture.

    Attaches a screenshot to the Allure report when the test body failed.
    """
    page = await browser_manager.new_page()
    yield page

    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed:
        allure.attach(
            await page.screenshot(full_page=True),
            name="failure_screenshot",
            attachment_type=allure.attachment_type.PNG,
        )
        logger.warning(f"Attached failure screenshot for {request.node.name}")


# ================================================================================
# Framework Fixtures
# ================================================================================

@pytest.fixture
def healer(page: Page, registry: HealedLocatorRegistry) -> SelfHealingLocator:
    return SelfHealingLocator(page, registry=registry, healing_enabled=True)


@pytest.fixture
def dom(page: Page, storage_paths: StoragePaths) -> DomComparison:
    return DomComparison(page, storage_paths)


@pytest.fixture
def login_page(page: Page, healer: SelfHealingLocator, storage_paths: StoragePaths) -> LoginPage:
    """
    Provides LoginPage instance.

    Use this fixture for tests that interact with the login page.
    """
    return LoginPage(page, healer=healer, paths=storage_paths)


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Expose each phase's report to fixtures (``request.node.rep_call``)."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)
