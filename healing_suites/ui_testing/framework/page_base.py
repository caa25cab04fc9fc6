"""
================================================================================
Base Page Object
================================================================================

Foundation class for Page Object Model implementation.

Provides:
    - A named element catalog resolved through the self-healing locator
    - Common page interactions by element name
    - Locator snapshots / drift reconciliation for the page
    - Screenshot and debugging utilities

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import allure
from loguru import logger
from playwright.async_api import Locator, Page

from .config_loader import ConfigLoader
from .dom_comparison import DomComparison
from .locator_store import HealedLocatorRegistry, LocatorHealingError, StoragePaths
from .self_healing_locator import LocatorResolution, SelfHealingLocator


class LocatorNotRegisteredError(LocatorHealingError):
    """Raised when a page object is asked for an element it does not define."""
    pass


class BasePage:
    """
    Base class for all page objects.

    Subclasses declare their elements once; every interaction goes through
    the page's SelfHealingLocator so that drifting selectors are repaired
    and recorded instead of failing the test.

    Usage:
        class LoginPage(BasePage):
            URL_PATH = "/login"
            ELEMENTS = {
                "username_input": {
                    "primary": "#username",
                    "fallbacks": ["input[name='username']"],
                },
            }

            async def login(self, username: str):
                await self.fill("username_input", username)
    """

    # Override in subclasses
    URL_PATH: str = "/"
    PAGE_NAME: str = ""
    ELEMENTS: Dict[str, Dict[str, Any]] = {}

    def __init__(
        self,
        page: Page,
        healer: Optional[SelfHealingLocator] = None,
        base_url: str = "",
        paths: Optional[StoragePaths] = None,
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object
            healer: Resolver to use. A new one sharing ``paths`` is built if omitted.
            base_url: Base URL for the application (``app.base_url`` if empty)
            paths: Storage directories. Read from configuration if omitted.
        """
        self.page = page
        config = ConfigLoader()
        if not base_url:
            base_url = config.get("app.base_url", "http://localhost:3000")
        self.base_url = base_url.rstrip("/")
        self.paths = paths or StoragePaths.from_config(config)
        self.healer = healer or SelfHealingLocator(
            page, registry=HealedLocatorRegistry.from_paths(self.paths)
        )
        self._elements: Dict[str, Dict[str, Any]] = dict(self.ELEMENTS)

    @property
    def url(self) -> str:
        """Get full page URL."""
        return f"{self.base_url}{self.URL_PATH}"

    @property
    def page_name(self) -> str:
        """Logical page name used for snapshots and identifier maps."""
        if self.PAGE_NAME:
            return self.PAGE_NAME
        return type(self).__name__.lower()

    async def navigate(self, wait_for: str = "load") -> None:
        """
        Navigate to this page.

        Args:
            wait_for: Wait condition - 'load', 'domcontentloaded', 'networkidle'
        """
        with allure.step(f"Navigate to {self.URL_PATH}"):
            await self.page.goto(self.url, wait_until=wait_for)
            logger.debug(f"Navigated to: {self.url}")

    async def wait_for_page_load(
        self,
        state: str = "load",
        timeout: int = 15000,
    ) -> None:
        """
        Wait for the page to reach a stable load state.

        Args:
            state: Playwright load state ('load', 'domcontentloaded', 'networkidle')
            timeout: Timeout in milliseconds
        """
        await self.page.wait_for_load_state(state, timeout=timeout)

    # =========================================================================
    # Element Catalog
    # =========================================================================

    def register_element(
        self,
        name: str,
        primary: str,
        fallbacks: Optional[List[str]] = None,
    ) -> None:
        """
        Register an element at runtime (this page object only).

        Args:
            name: Unique element name
            primary: Preferred selector
            fallbacks: Selectors to try when primary fails
        """
        self._elements[name] = {"primary": primary, "fallbacks": list(fallbacks or [])}
        logger.debug(f"Registered element: {name}")

    async def resolve(self, name: str) -> LocatorResolution:
        """
        Resolve a catalog element with healing.

        Raises:
            LocatorNotRegisteredError: ``name`` is not in the catalog
        """
        definition = self._elements.get(name)
        if definition is None:
            raise LocatorNotRegisteredError(
                f"Element '{name}' is not registered on {type(self).__name__}"
            )
        return await self.healer.resolve(
            definition["primary"], definition.get("fallbacks") or []
        )

    async def element(self, name: str) -> Locator:
        """Locator for a catalog element."""
        resolution = await self.resolve(name)
        return resolution.locator

    # =========================================================================
    # Element Interactions
    # =========================================================================

    async def click(self, element_name: str, **kwargs: Any) -> None:
        """
        Click element by catalog name.

        Args:
            element_name: Name of element from ELEMENTS
            **kwargs: Additional click options
        """
        with allure.step(f"Click: {element_name}"):
            locator = await self.element(element_name)
            await locator.click(**kwargs)

    async def fill(self, element_name: str, value: str, **kwargs: Any) -> None:
        """
        Fill input element.

        Args:
            element_name: Name of input element
            value: Value to fill
            **kwargs: Additional fill options
        """
        shown = "*" * len(value) if "password" in element_name.lower() else value
        with allure.step(f"Fill {element_name}: {shown}"):
            locator = await self.element(element_name)
            await locator.fill(value, **kwargs)

    async def get_text(self, element_name: str) -> str:
        """
        Get text content of element.

        Returns:
            Text content, empty if the element is not on the page
        """
        locator = await self.element(element_name)
        if await locator.count() == 0:
            return ""
        return await locator.first.text_content() or ""

    async def is_visible(self, element_name: str) -> bool:
        """
        Check if element is visible.

        Returns:
            True if visible
        """
        locator = await self.element(element_name)
        if await locator.count() == 0:
            return False
        return await locator.first.is_visible()

    # =========================================================================
    # Locator Snapshots
    # =========================================================================

    async def snapshot_locators(self, page_name: Optional[str] = None) -> Dict[str, str]:
        """
        Reconcile the page's identifier map against the rendered DOM.

        Args:
            page_name: Logical page name (``page_name`` property if omitted)

        Returns:
            Updated identifier map
        """
        name = page_name or self.page_name
        with allure.step(f"Snapshot locators: {name}"):
            return await DomComparison(self.page, self.paths).reconcile(name)

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    async def screenshot(
        self,
        name: str,
        full_page: bool = False,
        attach_to_allure: bool = True,
    ) -> Path:
        """
        Take screenshot and optionally attach to Allure.

        Args:
            name: Screenshot name (without extension)
            full_page: Capture full scrollable page
            attach_to_allure: Whether to attach to Allure report

        Returns:
            Path to saved screenshot
        """
        screenshot_dir = self.paths.snapshot_dir / "screenshots"
        screenshot_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = screenshot_dir / f"{name}_{timestamp}.png"

        await self.page.screenshot(path=str(filepath), full_page=full_page)

        if attach_to_allure:
            allure.attach.file(
                str(filepath),
                name=name,
                attachment_type=allure.attachment_type.PNG,
            )

        logger.debug(f"Screenshot saved: {filepath}")
        return filepath

    async def capture_failure(self, test_name: str) -> None:
        """
        Capture debugging information on test failure.

        Attaches:
            - Screenshot
            - Current URL
            - Locator resolutions made by this page's healer
        """
        with allure.step("Capture failure details"):
            await self.screenshot(f"failure_{test_name}", attach_to_allure=True)

            allure.attach(
                self.page.url,
                name="Current URL",
                attachment_type=allure.attachment_type.TEXT,
            )

            history = self.healer.history
            if history:
                allure.attach(
                    json.dumps([r.to_dict() for r in history[-10:]], indent=2),
                    name="Recent Locator Resolutions",
                    attachment_type=allure.attachment_type.JSON,
                )

    def get_locator_health_report(self) -> str:
        """Get self-healing locator health report."""
        return self.healer.get_health_report()


__all__ = [
    "BasePage",
    "LocatorNotRegisteredError",
]
