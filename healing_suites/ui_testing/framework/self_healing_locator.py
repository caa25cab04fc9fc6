"""
================================================================================
Self-Healing Locator
================================================================================

Element resolution that survives selector drift:
    - Previously healed selectors are substituted from a persisted registry
    - Caller-supplied fallback selectors are tried in order
    - Heuristic strategies guess a replacement from the live page
    - Every successful healing is recorded for future runs
    - Usage analytics flag primaries that keep needing repair

A selector that cannot be healed is NOT an error: the caller gets the
original (empty) Playwright Locator back and decides what to do with it.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import allure
from loguru import logger
from playwright.async_api import Locator, Page

from .config_loader import ConfigLoader
from .healing_strategies import DEFAULT_STRATEGIES, HealingStrategy
from .locator_store import HealedLocatorRegistry, StoragePaths


class ResolutionStrategy:
    """How a selector was resolved."""
    PRIMARY = "primary"
    REGISTRY = "registry"
    FALLBACK = "fallback"
    HEURISTIC = "heuristic"
    UNRESOLVED = "unresolved"


@dataclass
class LocatorResolution:
    """
    Outcome of one resolve call.

    Attributes:
        primary: Selector the caller asked for
        fallbacks: Fallback selectors the caller supplied
        selector: Selector behind the returned locator
        strategy: primary / registry / fallback / heuristic:<name> / unresolved
        healed: True when this call recorded a new healing
        locator: Playwright Locator for ``selector``
    """
    primary: str
    fallbacks: List[str] = field(default_factory=list)
    selector: str = ""
    strategy: str = ResolutionStrategy.PRIMARY
    healed: bool = False
    locator: Optional[Locator] = None

    @property
    def resolved(self) -> bool:
        return self.strategy != ResolutionStrategy.UNRESOLVED

    @property
    def repaired(self) -> bool:
        """The primary selector itself did not match."""
        return self.strategy != ResolutionStrategy.PRIMARY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary,
            "fallbacks": list(self.fallbacks),
            "selector": self.selector,
            "strategy": self.strategy,
            "healed": self.healed,
        }


class SelfHealingLocator:
    """
    Resolves selectors against a Playwright page with automatic repair.

    Resolution order:
        1. Registry substitution (a healing recorded by an earlier run)
        2. The (possibly substituted) selector itself
        3. Caller-supplied fallbacks, in order
        4. Heuristic strategies, in order (``DEFAULT_STRATEGIES``)

    Usage:
        >>> healer = SelfHealingLocator(page)
        >>> button = await healer.get_locator("#login-btn", ["button[type=submit]"])
        >>> await button.click()

        >>> await healer.fill("#username", "test_user")
        >>> print(healer.get_health_report())
    """

    def __init__(
        self,
        page: Page,
        registry: Optional[HealedLocatorRegistry] = None,
        healing_enabled: Optional[bool] = None,
        strategies: Sequence[HealingStrategy] = DEFAULT_STRATEGIES,
    ):
        """
        Initialize the resolver.

        Args:
            page: Playwright Page object
            registry: Healed-locator registry. Built from configuration if omitted.
            healing_enabled: Default for ``resolve``. Read from
                ``healing.enabled`` if omitted.
            strategies: Heuristic strategies, tried in order
        """
        self.page = page
        if registry is None or healing_enabled is None:
            config = ConfigLoader()
            if registry is None:
                registry = HealedLocatorRegistry.from_paths(StoragePaths.from_config(config))
            if healing_enabled is None:
                healing_enabled = bool(config.get("healing.enabled", True))
        self.registry = registry
        self.healing_enabled = healing_enabled
        self.strategies = tuple(strategies)
        self._history: List[LocatorResolution] = []

    @property
    def history(self) -> List[LocatorResolution]:
        """Every resolution made by this instance, oldest first."""
        return list(self._history)

    async def resolve(
        self,
        primary: str,
        fallbacks: Optional[Sequence[str]] = None,
        healing_enabled: Optional[bool] = None,
    ) -> LocatorResolution:
        """
        Resolve ``primary`` to a Locator, healing it when it matches nothing.

        Args:
            primary: Preferred selector
            fallbacks: Selectors to try, in order, before the heuristics
            healing_enabled: Override the instance default for this call

        Returns:
            LocatorResolution. Its locator may match nothing when the
            strategy is ``unresolved``.

        Raises:
            playwright.async_api.Error: Malformed primary, registry or
                fallback selector
        """
        fallbacks = list(fallbacks or [])
        if healing_enabled is None:
            healing_enabled = self.healing_enabled

        resolution = await self._resolve(primary, fallbacks, healing_enabled)
        self._history.append(resolution)
        return resolution

    async def get_locator(
        self,
        primary: str,
        fallbacks: Optional[Sequence[str]] = None,
        healing_enabled: Optional[bool] = None,
    ) -> Locator:
        """Same as ``resolve`` but returns only the Locator."""
        resolution = await self.resolve(primary, fallbacks, healing_enabled)
        return resolution.locator

    async def _resolve(
        self,
        primary: str,
        fallbacks: List[str],
        healing_enabled: bool,
    ) -> LocatorResolution:
        selector = primary
        strategy = ResolutionStrategy.PRIMARY

        replacement = self.registry.lookup(primary)
        if replacement:
            logger.debug(f"Using healed locator for {primary}: {replacement}")
            selector = replacement
            strategy = ResolutionStrategy.REGISTRY

        locator = self.page.locator(selector)
        if await locator.count() > 0:
            logger.debug(f"✅ Locator resolved ({strategy}): {selector}")
            return LocatorResolution(primary, fallbacks, selector, strategy, False, locator)

        if not healing_enabled:
            return self._unresolved(primary, fallbacks)

        logger.warning(f"⚠️ Locator failed: {selector}. Attempting to heal...")

        for fallback in fallbacks:
            candidate = self.page.locator(fallback)
            if await candidate.count() > 0:
                self._record(primary, fallback, ResolutionStrategy.FALLBACK)
                return LocatorResolution(
                    primary, fallbacks, fallback, ResolutionStrategy.FALLBACK, True, candidate
                )

        for heuristic in self.strategies:
            name = heuristic.__name__
            try:
                healed = await heuristic(primary, self.page)
                if not healed:
                    continue
                candidate = self.page.locator(healed)
                if await candidate.count() == 0:
                    continue
            except Exception as e:
                logger.debug(f"Healing strategy {name} failed: {e}")
                continue

            strategy = f"{ResolutionStrategy.HEURISTIC}:{name}"
            self._record(primary, healed, strategy)
            return LocatorResolution(primary, fallbacks, healed, strategy, True, candidate)

        logger.warning(f"❌ Could not heal locator: {primary}")
        return self._unresolved(primary, fallbacks)

    def _unresolved(self, primary: str, fallbacks: List[str]) -> LocatorResolution:
        """The original selector's (non-matching) handle, even after a stale registry entry."""
        return LocatorResolution(
            primary,
            fallbacks,
            primary,
            ResolutionStrategy.UNRESOLVED,
            False,
            self.page.locator(primary),
        )

    def _record(self, primary: str, replacement: str, strategy: str) -> None:
        self.registry.record(primary, replacement)
        logger.warning(f"🩹 Healed locator ({strategy}): {primary} -> {replacement}")
        allure.attach(
            json.dumps(
                {"original": primary, "healed": replacement, "strategy": strategy},
                indent=2,
            ),
            name=f"Healed locator: {primary}",
            attachment_type=allure.attachment_type.JSON,
        )

    # =========================================================================
    # Interactions
    # =========================================================================

    async def click(
        self,
        primary: str,
        fallbacks: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> None:
        """
        Resolve then click.

        Args:
            primary: Preferred selector
            fallbacks: Fallback selectors
            **kwargs: Additional arguments passed to click()
        """
        locator = await self.get_locator(primary, fallbacks)
        await locator.click(**kwargs)

    async def fill(
        self,
        primary: str,
        value: str,
        fallbacks: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> None:
        """Resolve then fill."""
        locator = await self.get_locator(primary, fallbacks)
        await locator.fill(value, **kwargs)

    async def get_text(
        self,
        primary: str,
        fallbacks: Optional[Sequence[str]] = None,
    ) -> str:
        """
        Text content of the resolved element.

        Returns:
            Text content, or an empty string when nothing matches
        """
        locator = await self.get_locator(primary, fallbacks)
        if await locator.count() == 0:
            return ""
        return await locator.first.text_content() or ""

    async def is_visible(
        self,
        primary: str,
        fallbacks: Optional[Sequence[str]] = None,
    ) -> bool:
        """True if the resolved element exists and is visible."""
        locator = await self.get_locator(primary, fallbacks)
        if await locator.count() == 0:
            return False
        return await locator.first.is_visible()

    # =========================================================================
    # Health Analytics
    # =========================================================================

    def flaky_locators(self, threshold: int = 3) -> List[str]:
        """
        Primaries that needed repair (or stayed unresolved) at least
        ``threshold`` times in this session.
        """
        counts = Counter(r.primary for r in self._history if r.repaired)
        return [primary for primary, count in counts.items() if count >= threshold]

    def get_health_report(self) -> str:
        """
        Generate locator health report.

        Lists primaries that were healed or could not be resolved. These
        are maintenance candidates.

        Returns:
            Formatted health report string
        """
        repaired: Dict[str, LocatorResolution] = {}
        for resolution in self._history:
            if resolution.repaired:
                repaired[resolution.primary] = resolution

        if not repaired:
            return "✅ All elements used primary locators. No maintenance needed."

        report_lines = [
            "⚠️ Locator Health Report - Healing Used:",
            "",
            "The following selectors did not match the page.",
            "Consider updating them:",
            "",
        ]

        for primary, resolution in repaired.items():
            report_lines.append(f"  [{primary}]")
            if resolution.resolved:
                report_lines.append(
                    f"    Used: {resolution.strategy} -> {resolution.selector}"
                )
            else:
                report_lines.append("    Unresolved")
            report_lines.append("")

        flaky = self.flaky_locators()
        if flaky:
            report_lines.append("Flaky locators (repaired 3+ times):")
            report_lines.extend(f"  - {primary}" for primary in flaky)

        return "\n".join(report_lines)


__all__ = [
    "LocatorResolution",
    "ResolutionStrategy",
    "SelfHealingLocator",
]
