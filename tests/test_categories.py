import json

from finance_tracker.services.categories import (
    CATEGORIES_KEY,
    CATEGORY_COLORS_KEY,
    DEFAULT_CATEGORIES,
    PALETTE,
    CategoryCatalog,
)
from finance_tracker.storage.memory import InMemoryStore


def test_defaults_get_distinct_colours() -> None:
    catalog = CategoryCatalog(InMemoryStore())

    assert catalog.categories == list(DEFAULT_CATEGORIES)
    colours = [catalog.color_for(name) for name in DEFAULT_CATEGORIES]
    assert len(set(colours)) == len(colours)


def test_add_picks_unused_colour_and_persists() -> None:
    store = InMemoryStore()
    catalog = CategoryCatalog(store)

    assert catalog.add(" Pets ")
    assert not catalog.add("Pets")
    assert not catalog.add("   ")

    assert catalog.color_for("Pets") == PALETTE[len(DEFAULT_CATEGORIES)]
    assert "Pets" in json.loads(store.get(CATEGORIES_KEY))
    assert json.loads(store.get(CATEGORY_COLORS_KEY))["Pets"] == catalog.color_for("Pets")


def test_rename_keeps_colour() -> None:
    catalog = CategoryCatalog(InMemoryStore())
    colour = catalog.color_for("Food")

    assert catalog.rename("Food", "Groceries")
    assert not catalog.rename("Missing", "Anything")
    assert not catalog.rename("Bills", "Groceries")

    assert "Food" not in catalog.categories
    assert catalog.color_for("Groceries") == colour


def test_remove() -> None:
    store = InMemoryStore()
    catalog = CategoryCatalog(store)

    assert catalog.remove("Other")
    assert not catalog.remove("Other")
    assert "Other" not in CategoryCatalog(store).categories


def test_malformed_storage_falls_back_to_defaults() -> None:
    catalog = CategoryCatalog(InMemoryStore({CATEGORIES_KEY: "{nope", CATEGORY_COLORS_KEY: "[]"}))

    assert catalog.categories == list(DEFAULT_CATEGORIES)
    assert catalog.color_for("Food") == PALETTE[0]
