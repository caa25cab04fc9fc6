"""
================================================================================
DOM Comparison and Locator Update
================================================================================

Captures rendered page markup, derives named element identifiers from it
and reconciles identifier drift between two captures of the same logical
page.

Lifecycle per logical page name:

    NO_SNAPSHOT --reconcile--> BASELINE --reconcile--> RECONCILED (steady)

Reconciliation is keyed by identifier *name*. A renamed id therefore shows
up as one removed and one added identifier, not as a changed one.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import allure
from loguru import logger
from playwright.async_api import Page

from .config_loader import ConfigLoader
from .identifier_extractor import candidate_selectors, extract_identifiers
from .locator_store import IdentifierMapStore, SnapshotStore, StoragePaths


class SnapshotState(str, Enum):
    """Where a logical page is in its snapshot lifecycle."""
    NO_SNAPSHOT = "no_snapshot"
    BASELINE = "baseline"
    RECONCILED = "reconciled"


@dataclass
class LocatorDiff:
    """
    Classification of every identifier across two identifier maps.

    Attributes:
        unchanged: Same name, same selector
        changed: Same name, different selector -> (previous, current)
        removed: Only in the previous map
        added: Only in the current map
    """
    unchanged: Dict[str, str] = field(default_factory=dict)
    changed: Dict[str, Tuple[str, str]] = field(default_factory=dict)
    removed: Dict[str, str] = field(default_factory=dict)
    added: Dict[str, str] = field(default_factory=dict)

    @property
    def updated(self) -> Dict[str, str]:
        """The map to persist: unchanged + changed (new value) + added."""
        result = dict(self.unchanged)
        result.update({key: current for key, (_, current) in self.changed.items()})
        result.update(self.added)
        return result

    @property
    def has_changes(self) -> bool:
        return bool(self.changed or self.removed or self.added)

    def summary(self) -> Dict[str, int]:
        return {
            "unchanged": len(self.unchanged),
            "changed": len(self.changed),
            "removed": len(self.removed),
            "added": len(self.added),
        }

    def to_dict(self) -> Dict[str, object]:
        return {
            "unchanged": dict(self.unchanged),
            "changed": {
                key: {"previous": previous, "current": current}
                for key, (previous, current) in self.changed.items()
            },
            "removed": dict(self.removed),
            "added": dict(self.added),
        }


@dataclass
class ReconcileResult:
    """Outcome of one reconcile call."""
    page_name: str
    state: SnapshotState
    identifiers: Dict[str, str]
    diff: LocatorDiff
    snapshot_path: Path


def diff_identifier_maps(
    previous: Dict[str, str],
    current: Dict[str, str],
) -> LocatorDiff:
    """
    Classify every key of ``previous`` and ``current``.

    Each key in the union lands in exactly one bucket.
    """
    diff = LocatorDiff()

    for key, value in previous.items():
        if key not in current:
            diff.removed[key] = value
        elif current[key] != value:
            diff.changed[key] = (value, current[key])
        else:
            diff.unchanged[key] = value

    for key, value in current.items():
        if key not in previous:
            diff.added[key] = value

    return diff


class DomComparison:
    """
    Snapshot and locator-diff engine for one Playwright page.

    Usage:
        >>> dom = DomComparison(page)
        >>> locators = await dom.reconcile("login-page")
        >>> await page.locator(locators["h1-page-title"]).text_content()

    Files (directories come from ``StoragePaths``):
        - ``<snapshot_dir>/<page>-current.html``
        - ``<snapshot_dir>/<page>-previous.html``
        - ``<locators_dir>/<page>.json``
    """

    def __init__(
        self,
        page: Page,
        paths: Optional[StoragePaths] = None,
    ):
        """
        Initialize the comparison engine.

        Args:
            page: Playwright Page object
            paths: Storage directories. Read from configuration if omitted.
        """
        self.page = page
        self.paths = paths or StoragePaths.from_config(ConfigLoader())
        self.identifier_store = IdentifierMapStore(self.paths.locators_dir)
        self.snapshot_store = SnapshotStore(self.paths.snapshot_dir)
        self._states: Dict[str, SnapshotState] = {}

    def state(self, page_name: str) -> SnapshotState:
        """
        Lifecycle state of ``page_name``.

        Pages reconciled through this instance report their tracked state.
        Otherwise a stored previous snapshot (e.g. from an earlier session)
        counts as a baseline.
        """
        if page_name in self._states:
            return self._states[page_name]
        if self.snapshot_store.has_previous(page_name):
            return SnapshotState.BASELINE
        return SnapshotState.NO_SNAPSHOT

    async def capture_snapshot(self, page_name: str) -> Path:
        """
        Serialize the rendered markup as the current snapshot.

        Returns:
            Path of the written snapshot
        """
        logger.info(f"Capturing DOM for page: {page_name}")
        html = await self.page.content()
        return self.snapshot_store.write_current(page_name, html)

    async def derive_identifiers(self) -> Dict[str, str]:
        """Identifier map for the live document."""
        html = await self.page.content()
        identifiers = extract_identifiers(html)
        logger.debug(f"Derived {len(identifiers)} identifiers from DOM")
        return identifiers

    async def reconcile(self, page_name: str) -> Dict[str, str]:
        """
        Capture, compare with the persisted map and persist the update.

        Returns:
            Updated identifier map
        """
        result = await self.reconcile_with_report(page_name)
        return result.identifiers

    async def reconcile_with_report(self, page_name: str) -> ReconcileResult:
        """Same as ``reconcile`` but also returns the diff and the new state."""
        logger.info(f"Comparing DOM snapshots for page: {page_name}")

        snapshot_path = await self.capture_snapshot(page_name)
        current = await self.derive_identifiers()

        if not self.snapshot_store.has_previous(page_name):
            # First run: current becomes the baseline on both sides
            self.identifier_store.save(page_name, current)
            self.snapshot_store.promote(page_name)
            self._states[page_name] = SnapshotState.BASELINE
            logger.info(
                f"Baseline captured for '{page_name}' with {len(current)} locators"
            )
            return ReconcileResult(
                page_name=page_name,
                state=SnapshotState.BASELINE,
                identifiers=current,
                diff=diff_identifier_maps({}, current),
                snapshot_path=snapshot_path,
            )

        previous = self.identifier_store.load(page_name)
        diff = diff_identifier_maps(previous, current)
        self._log_diff(page_name, diff)

        updated = diff.updated
        self.identifier_store.save(page_name, updated)
        self.snapshot_store.promote(page_name)
        self._states[page_name] = SnapshotState.RECONCILED

        return ReconcileResult(
            page_name=page_name,
            state=SnapshotState.RECONCILED,
            identifiers=updated,
            diff=diff,
            snapshot_path=snapshot_path,
        )

    def load_locators(self, page_name: str) -> Dict[str, str]:
        """Persisted identifier map for ``page_name``."""
        return self.identifier_store.load(page_name)

    def save_locators(self, page_name: str, locators: Dict[str, str]) -> Path:
        """Persist an identifier map for ``page_name``."""
        return self.identifier_store.save(page_name, locators)

    async def find_alternatives(self, selector: str) -> List[str]:
        """
        Candidate selectors for the first element ``selector`` matches.

        Intended for manual locator repair, not automatic healing.

        Returns:
            Ordered candidates, or an empty list if nothing matches
        """
        logger.info(f"Finding alternative locators for: {selector}")
        locator = self.page.locator(selector)
        if await locator.count() == 0:
            logger.warning(f"Element not found with selector: {selector}")
            return []

        element_html = await locator.first.evaluate("element => element.outerHTML")
        return candidate_selectors(element_html)

    def _log_diff(self, page_name: str, diff: LocatorDiff) -> None:
        if diff.changed:
            logger.info(f"Found {len(diff.changed)} changed locators")
            logger.debug(f"Changed locators: {diff.changed}")
        if diff.removed:
            logger.info(f"Found {len(diff.removed)} removed locators")
            logger.debug(f"Removed locators: {diff.removed}")
        if diff.added:
            logger.info(f"Found {len(diff.added)} new locators")
            logger.debug(f"Added locators: {diff.added}")

        if diff.has_changes:
            allure.attach(
                json.dumps(diff.to_dict(), indent=2),
                name=f"Locator diff: {page_name}",
                attachment_type=allure.attachment_type.JSON,
            )


__all__ = [
    "DomComparison",
    "LocatorDiff",
    "ReconcileResult",
    "SnapshotState",
    "diff_identifier_maps",
]
