"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework with self-healing locators.

Components:
    - self_healing_locator: Element resolution with registry, fallbacks and heuristics
    - healing_strategies: Heuristic replacement-selector strategies
    - dom_comparison: DOM snapshots and identifier drift reconciliation
    - identifier_extractor: Named identifiers derived from HTML
    - locator_store: Identifier maps, healed-locator registry, snapshots
    - page_base: Base page object over the self-healing locator
    - browser_manager: Browser lifecycle management
    - config_loader: YAML + environment configuration

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import BrowserManager
from .config_loader import ConfigLoader, ConfigurationError
from .dom_comparison import DomComparison, LocatorDiff, ReconcileResult, SnapshotState
from .healing_strategies import DEFAULT_STRATEGIES, parse_intent
from .locator_store import (
    HealedLocatorRegistry,
    IdentifierMapStore,
    LocatorHealingError,
    LocatorStoreError,
    SnapshotStore,
    StoragePaths,
)
from .page_base import BasePage, LocatorNotRegisteredError
from .self_healing_locator import LocatorResolution, ResolutionStrategy, SelfHealingLocator

__all__ = [
    "BasePage",
    "BrowserManager",
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_STRATEGIES",
    "DomComparison",
    "HealedLocatorRegistry",
    "IdentifierMapStore",
    "LocatorDiff",
    "LocatorHealingError",
    "LocatorNotRegisteredError",
    "LocatorResolution",
    "LocatorStoreError",
    "ReconcileResult",
    "ResolutionStrategy",
    "SelfHealingLocator",
    "SnapshotState",
    "SnapshotStore",
    "StoragePaths",
    "parse_intent",
]
