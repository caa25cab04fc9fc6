"""
================================================================================
Unit Test Fixtures
================================================================================

Browser-free stand-ins for the small part of the Playwright Page API the
framework touches: ``page.locator(selector)``, ``Locator.count()``,
``Locator.first``, ``Locator.get_attribute()``, ``Locator.evaluate()`` and
``page.content()``.

================================================================================
"""

from typing import Dict, Optional

import pytest

from healing_suites.ui_testing.framework.locator_store import (
    HealedLocatorRegistry,
    StoragePaths,
)


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def count(self) -> int:
        self.page.queries.append(self.selector)
        if self.selector in self.page.errors:
            raise self.page.errors[self.selector]
        return self.page.matches.get(self.selector, 0)

    async def get_attribute(self, name: str) -> Optional[str]:
        return self.page.attributes.get(self.selector, {}).get(name)

    async def evaluate(self, expression: str) -> str:
        return self.page.outer_html[self.selector]


class FakePage:
    """
    Page whose selectors match by exact string.

    Args:
        matches: selector -> number of matching elements
        html: Value returned by ``content()``
        errors: selector -> exception raised by ``count()``
        attributes: selector -> attributes of its first element
        outer_html: selector -> outerHTML of its first element
    """

    def __init__(
        self,
        matches: Optional[Dict[str, int]] = None,
        html: str = "",
        errors: Optional[Dict[str, Exception]] = None,
        attributes: Optional[Dict[str, Dict[str, str]]] = None,
        outer_html: Optional[Dict[str, str]] = None,
    ):
        self.matches = matches or {}
        self.html = html
        self.errors = errors or {}
        self.attributes = attributes or {}
        self.outer_html = outer_html or {}
        self.queries = []

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def content(self) -> str:
        return self.html


@pytest.fixture
def fake_page():
    """Factory for FakePage instances."""
    return FakePage


@pytest.fixture
def storage_paths(tmp_path) -> StoragePaths:
    return StoragePaths.under(tmp_path)


@pytest.fixture
def registry(storage_paths) -> HealedLocatorRegistry:
    return HealedLocatorRegistry.from_paths(storage_paths)
