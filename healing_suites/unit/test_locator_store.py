import json
from concurrent.futures import ThreadPoolExecutor

import pytest

from healing_suites.ui_testing.framework.locator_store import (
    HealedLocatorRegistry,
    IdentifierMapStore,
    LocatorHealingError,
    LocatorStoreError,
    SnapshotStore,
    StoragePaths,
)


@pytest.fixture
def paths(tmp_path):
    return StoragePaths.under(tmp_path)


def test_identifier_map_round_trip(paths):
    store = IdentifierMapStore(paths.locators_dir)
    locators = {"h1-page-title": "#page-title", "button-class-primary": ".primary"}

    path = store.save("login-page", locators)

    assert path == paths.locators_dir / "login-page.json"
    assert store.exists("login-page")
    assert store.load("login-page") == locators


def test_identifier_map_save_overwrites(paths):
    store = IdentifierMapStore(paths.locators_dir)
    store.save("home", {"a": "#a", "b": "#b"})
    store.save("home", {"c": "#c"})
    assert store.load("home") == {"c": "#c"}


def test_identifier_map_missing_is_empty(paths):
    store = IdentifierMapStore(paths.locators_dir)
    assert store.load("never-saved") == {}
    assert not store.exists("never-saved")


@pytest.mark.parametrize("bad_name", ["", "../escape", "a/b", "..", "."])
def test_identifier_map_rejects_unsafe_page_names(paths, bad_name):
    store = IdentifierMapStore(paths.locators_dir)
    with pytest.raises(ValueError):
        store.path_for(bad_name)


def test_corrupt_identifier_map_raises(paths):
    store = IdentifierMapStore(paths.locators_dir)
    paths.locators_dir.mkdir(parents=True)
    store.path_for("broken").write_text("{not json", encoding="utf-8")

    with pytest.raises(LocatorStoreError) as excinfo:
        store.load("broken")
    assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)


@pytest.mark.parametrize("payload", ['["#a"]', '{"a": 1}', '{"a": {"b": "c"}}'])
def test_non_flat_identifier_map_raises(paths, payload):
    store = IdentifierMapStore(paths.locators_dir)
    paths.locators_dir.mkdir(parents=True)
    store.path_for("odd").write_text(payload, encoding="utf-8")

    with pytest.raises(LocatorStoreError):
        store.load("odd")


def test_store_error_is_healing_error():
    assert issubclass(LocatorStoreError, LocatorHealingError)


def test_registry_record_and_lookup(paths):
    registry = HealedLocatorRegistry.from_paths(paths)

    assert registry.lookup("#login-btn") is None
    registry.record("#login-btn", '[data-testid="login-button"]')

    assert registry.lookup("#login-btn") == '[data-testid="login-button"]'
    assert json.loads(paths.registry_file.read_text(encoding="utf-8")) == {
        "#login-btn": '[data-testid="login-button"]'
    }


def test_registry_sees_writes_from_other_instances(paths):
    writer = HealedLocatorRegistry.from_paths(paths)
    reader = HealedLocatorRegistry.from_paths(paths)

    writer.record("#a", "#b")
    assert reader.lookup("#a") == "#b"

    HealedLocatorRegistry.from_paths(paths).record("#c", "#d")
    assert writer.load() == {"#a": "#b", "#c": "#d"}


def test_registry_overwrites_existing_entry(paths):
    registry = HealedLocatorRegistry.from_paths(paths)
    registry.record("#a", "#b")
    registry.record("#a", "#c")
    assert registry.load() == {"#a": "#c"}


def test_registry_forget_and_clear(paths):
    registry = HealedLocatorRegistry.from_paths(paths)
    assert registry.forget("#nothing") is False
    assert registry.clear() == 0

    registry.record("#a", "#b")
    registry.record("#c", "#d")

    assert registry.forget("#a") is True
    assert registry.forget("#a") is False
    assert registry.load() == {"#c": "#d"}

    assert registry.clear() == 1
    assert registry.load() == {}


def test_corrupt_registry_raises(paths):
    paths.data_dir.mkdir(parents=True)
    paths.registry_file.write_text("oops", encoding="utf-8")

    registry = HealedLocatorRegistry.from_paths(paths)
    with pytest.raises(LocatorStoreError):
        registry.lookup("#a")


def test_registry_with_invalid_utf8_raises(paths):
    paths.data_dir.mkdir(parents=True)
    paths.registry_file.write_bytes(b'{"\xff\xfe": "x"}')

    registry = HealedLocatorRegistry.from_paths(paths)
    with pytest.raises(LocatorStoreError):
        registry.lookup("#a")


def test_concurrent_registries_keep_every_entry(paths):
    writers = 8

    def record(index):
        HealedLocatorRegistry.from_paths(paths).record(f"#old-{index}", f"#new-{index}")

    with ThreadPoolExecutor(max_workers=writers) as pool:
        list(pool.map(record, range(writers)))

    entries = HealedLocatorRegistry.from_paths(paths).load()
    assert entries == {f"#old-{i}": f"#new-{i}" for i in range(writers)}


def test_registry_leaves_no_temp_files(paths):
    registry = HealedLocatorRegistry.from_paths(paths)
    registry.record("#a", "#b")
    leftovers = [p.name for p in paths.data_dir.iterdir() if p.suffix == ".tmp"]
    assert leftovers == []


def test_snapshot_write_and_promote(paths):
    store = SnapshotStore(paths.snapshot_dir)
    assert not store.has_current("home")
    assert not store.has_previous("home")

    path = store.write_current("home", "<html>one</html>")
    assert path == paths.snapshot_dir / "home-current.html"
    assert store.read_current("home") == "<html>one</html>"

    store.promote("home")
    store.write_current("home", "<html>two</html>")

    assert store.read_previous("home") == "<html>one</html>"
    assert store.read_current("home") == "<html>two</html>"
