"""
================================================================================
Locator Storage
================================================================================

File-backed persistence shared by the self-healing locator and the DOM
comparison engine.

Stores:
    - IdentifierMapStore: one JSON identifier map per logical page
    - HealedLocatorRegistry: global JSON map of original -> healed selector
    - SnapshotStore: current/previous HTML snapshots per logical page

Every JSON write replaces the whole file. Registry updates are a single
read-modify-write transaction guarded by a cross-process file lock.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from filelock import FileLock
from loguru import logger


REGISTRY_FILENAME = "healed-locators.json"


class LocatorHealingError(Exception):
    """Base class for locator healing framework errors."""
    pass


class LocatorStoreError(LocatorHealingError):
    """Raised when a persisted locator file cannot be read or parsed."""
    pass


@dataclass(frozen=True)
class StoragePaths:
    """
    Directories used by the locator stores.

    Attributes:
        data_dir: Holds the healed-locator registry
        locators_dir: Holds one identifier map per logical page
        snapshot_dir: Holds current/previous HTML snapshots
    """
    data_dir: Path
    locators_dir: Path
    snapshot_dir: Path

    @property
    def registry_file(self) -> Path:
        return self.data_dir / REGISTRY_FILENAME

    @classmethod
    def from_config(cls, config: Any) -> "StoragePaths":
        """
        Build storage paths from a ConfigLoader-like object.

        Relative paths are resolved against the current working directory.
        """
        return cls(
            data_dir=Path(config.get("storage.data_dir", "data")).resolve(),
            locators_dir=Path(
                config.get("storage.locators_dir", "data/locators")
            ).resolve(),
            snapshot_dir=Path(config.get("storage.snapshot_dir", "snapshots")).resolve(),
        )

    @classmethod
    def under(cls, root: Path) -> "StoragePaths":
        """All stores below a single root directory."""
        root = Path(root)
        return cls(
            data_dir=root / "data",
            locators_dir=root / "data" / "locators",
            snapshot_dir=root / "snapshots",
        )


def _check_page_name(page_name: str) -> str:
    if not page_name or "/" in page_name or "\\" in page_name or page_name in (".", ".."):
        raise ValueError(f"Invalid logical page name: {page_name!r}")
    return page_name


def read_selector_map(path: Path) -> Dict[str, str]:
    """
    Read a flat JSON object of string -> string.

    A missing file is an empty map. Anything else that cannot be parsed
    into that shape raises LocatorStoreError.
    """
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise LocatorStoreError(f"Corrupt locator file {path}: {e}") from e
    except OSError as e:
        raise LocatorStoreError(f"Unreadable locator file {path}: {e}") from e

    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        raise LocatorStoreError(
            f"Locator file {path} must contain a flat object of string values"
        )
    return data


def write_selector_map(path: Path, data: Dict[str, str]) -> None:
    """Replace the file content with ``data`` (temp file + rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    os.replace(tmp, path)


class IdentifierMapStore:
    """
    Per-page identifier maps stored as ``<locators_dir>/<page_name>.json``.

    Usage:
        >>> store = IdentifierMapStore(Path("data/locators"))
        >>> store.save("login-page", {"h1-title": "#title"})
        >>> store.load("login-page")
        {'h1-title': '#title'}
    """

    def __init__(self, locators_dir: Path):
        self.locators_dir = Path(locators_dir)

    def path_for(self, page_name: str) -> Path:
        return self.locators_dir / f"{_check_page_name(page_name)}.json"

    def exists(self, page_name: str) -> bool:
        return self.path_for(page_name).exists()

    def load(self, page_name: str) -> Dict[str, str]:
        path = self.path_for(page_name)
        if not path.exists():
            logger.warning(f"No locators file found for page: {page_name}")
            return {}
        locators = read_selector_map(path)
        logger.debug(f"Loaded {len(locators)} locators for page: {page_name}")
        return locators

    def save(self, page_name: str, locators: Dict[str, str]) -> Path:
        path = self.path_for(page_name)
        write_selector_map(path, dict(locators))
        logger.info(f"Saved {len(locators)} locators for page '{page_name}' to: {path}")
        return path


class HealedLocatorRegistry:
    """
    Global registry of healed selectors (original -> replacement).

    The file is re-read on every lookup so that healings made by other
    processes are visible. ``record``/``forget``/``clear`` hold a file lock
    for the whole read-modify-write so concurrent healers never drop each
    other's entries.

    Usage:
        >>> registry = HealedLocatorRegistry(Path("data/healed-locators.json"))
        >>> registry.record("#login-btn", '[data-testid="login-button"]')
        >>> registry.lookup("#login-btn")
        '[data-testid="login-button"]'
    """

    def __init__(self, path: Path, lock_timeout: float = 10.0):
        self.path = Path(path)
        self._lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)

    @classmethod
    def from_paths(cls, paths: StoragePaths) -> "HealedLocatorRegistry":
        return cls(paths.registry_file)

    def load(self) -> Dict[str, str]:
        """Return the full registry (empty if the file does not exist)."""
        return read_selector_map(self.path)

    def lookup(self, original: str) -> Optional[str]:
        """Return the recorded replacement for ``original``, if any."""
        return self.load().get(original)

    def record(self, original: str, replacement: str) -> None:
        """Record (or overwrite) a healing and flush it to disk."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock:
            healed = self.load()
            healed[original] = replacement
            write_selector_map(self.path, healed)
        logger.info(f"Stored healed locator: {original} -> {replacement}")

    def forget(self, original: str) -> bool:
        """
        Drop one healed entry.

        Returns:
            True if an entry was removed
        """
        if not self.path.exists():
            return False
        with self._lock:
            healed = self.load()
            if original not in healed:
                return False
            del healed[original]
            write_selector_map(self.path, healed)
        logger.info(f"Forgot healed locator: {original}")
        return True

    def clear(self) -> int:
        """
        Remove every healed entry.

        Returns:
            Number of entries removed
        """
        if not self.path.exists():
            return 0
        with self._lock:
            count = len(self.load())
            write_selector_map(self.path, {})
        logger.info(f"Cleared {count} healed locators")
        return count


class SnapshotStore:
    """
    HTML snapshots kept as ``<page>-current.html`` / ``<page>-previous.html``.
    """

    def __init__(self, snapshot_dir: Path):
        self.snapshot_dir = Path(snapshot_dir)

    def current_path(self, page_name: str) -> Path:
        return self.snapshot_dir / f"{_check_page_name(page_name)}-current.html"

    def previous_path(self, page_name: str) -> Path:
        return self.snapshot_dir / f"{_check_page_name(page_name)}-previous.html"

    def has_current(self, page_name: str) -> bool:
        return self.current_path(page_name).exists()

    def has_previous(self, page_name: str) -> bool:
        return self.previous_path(page_name).exists()

    def write_current(self, page_name: str, html: str) -> Path:
        path = self.current_path(page_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        logger.info(f"DOM snapshot saved to: {path}")
        return path

    def read_current(self, page_name: str) -> str:
        return self.current_path(page_name).read_text(encoding="utf-8")

    def read_previous(self, page_name: str) -> str:
        return self.previous_path(page_name).read_text(encoding="utf-8")

    def promote(self, page_name: str) -> Path:
        """Copy the current snapshot over the previous one."""
        target = self.previous_path(page_name)
        shutil.copyfile(self.current_path(page_name), target)
        logger.debug(f"Promoted current snapshot to: {target}")
        return target


__all__ = [
    "LocatorHealingError",
    "LocatorStoreError",
    "StoragePaths",
    "IdentifierMapStore",
    "HealedLocatorRegistry",
    "SnapshotStore",
    "read_selector_map",
    "write_selector_map",
    "REGISTRY_FILENAME",
]
