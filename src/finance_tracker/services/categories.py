import json

from finance_tracker.errors import PersistenceError
from finance_tracker.logger import get_logger
from finance_tracker.storage.base import KeyValueStore

logger = get_logger(__name__)

CATEGORIES_KEY = "@categories"
CATEGORY_COLORS_KEY = "@category_colors"

DEFAULT_CATEGORIES = ("Food", "Transport", "Shopping", "Bills", "Entertainment", "Other")

PALETTE = (
    "#FF6B6B",
    "#4ECDC4",
    "#45B7D1",
    "#96CEB4",
    "#FFEEAD",
    "#FFD93D",
    "#6C5B7B",
    "#C06C84",
    "#F8B195",
    "#2E86AB",
    "#A8E6CE",
    "#FF8C42",
    "#4B4E6D",
    "#84DCC6",
    "#95A5A6",
    "#D980FA",
    "#B53471",
    "#12CBC4",
    "#FFA502",
    "#009432",
)


class CategoryCatalog:
    """User-editable list of spending categories, each with a display colour."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.categories: list[str] = list(DEFAULT_CATEGORIES)
        self.colors: dict[str, str] = {}
        self.load()

    def load(self) -> None:
        stored_categories = self._read_json(CATEGORIES_KEY)
        stored_colors = self._read_json(CATEGORY_COLORS_KEY)

        if isinstance(stored_categories, list):
            self.categories = [str(name) for name in stored_categories]
        else:
            self.categories = list(DEFAULT_CATEGORIES)

        if isinstance(stored_colors, dict):
            self.colors = {str(name): str(color) for name, color in stored_colors.items()}
        else:
            self.colors = {
                name: PALETTE[index % len(PALETTE)] for index, name in enumerate(self.categories)
            }

    def add(self, category: str) -> bool:
        name = category.strip()
        if not name or name in self.categories:
            return False
        used = set(self.colors.values())
        self.categories.append(name)
        color = next((c for c in PALETTE if c not in used), PALETTE[len(self.categories) % len(PALETTE)])
        self.colors[name] = color
        self._save()
        return True

    def remove(self, category: str) -> bool:
        if category not in self.categories:
            return False
        self.categories.remove(category)
        self.colors.pop(category, None)
        self._save()
        return True

    def rename(self, old: str, new: str) -> bool:
        name = new.strip()
        if not name or name in self.categories or old not in self.categories:
            return False
        self.categories = [name if c == old else c for c in self.categories]
        color = self.colors.pop(old, None)
        if color:
            self.colors[name] = color
        self._save()
        return True

    def color_for(self, category: str) -> str:
        return self.colors.get(category, PALETTE[0])

    def _read_json(self, key: str) -> object | None:
        try:
            raw = self.store.get(key)
        except PersistenceError as exc:
            logger.error("[CATEGORIES] Could not read %s: %s", key, exc)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("[CATEGORIES] Ignoring malformed %s.", key)
            return None

    def _save(self) -> None:
        try:
            self.store.set(CATEGORIES_KEY, json.dumps(self.categories, ensure_ascii=False))
            self.store.set(CATEGORY_COLORS_KEY, json.dumps(self.colors, ensure_ascii=False))
        except PersistenceError as exc:
            logger.error("[CATEGORIES] Could not persist categories: %s", exc)
